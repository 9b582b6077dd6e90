"""Course catalog module.

Provides:
- Courses, modules and sections (Cassandra)
- Ordered course outlines
- Section metadata consumed by progress tracking
"""

from .models import (
    COURSES_TABLES_CQL,
    ContentType,
    Course,
    CourseModule,
    Section,
    SectionType,
)


__all__ = [
    "COURSES_TABLES_CQL",
    "ContentType",
    "Course",
    "CourseModule",
    "Section",
    "SectionType",
]
