"""Database models for the course catalog.

Cassandra table definitions for:
- Courses: Main course table
- Course modules: Ordered groups of sections inside a course
- Course sections: Smallest addressable unit of content, optionally in a module

Sections are partitioned by course so the full outline of a course (and the
denominator of its completion percentage) is a single-partition read.
"""

from datetime import UTC, datetime
from enum import Enum
from typing import Any
from uuid import UUID, uuid4


class SectionType(str, Enum):
    """What a section is for."""

    LESSON = "lesson"
    EXAM = "exam"


class ContentType(str, Enum):
    """Section content type; decides which completion signal applies."""

    VIDEO = "video"
    TEXT = "text"
    MIXED = "mixed"  # Text body with an embedded video


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

COURSE_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.courses (
    id UUID PRIMARY KEY,
    title TEXT,
    description TEXT,
    is_published BOOLEAN,
    created_at TIMESTAMP,
    updated_at TIMESTAMP
)
"""

COURSE_MODULES_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.course_modules (
    course_id UUID,
    module_id UUID,
    title TEXT,
    description TEXT,
    position INT,
    is_published BOOLEAN,
    created_at TIMESTAMP,
    PRIMARY KEY (course_id, module_id)
)
"""

COURSE_SECTIONS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.course_sections (
    course_id UUID,
    section_id UUID,
    module_id UUID,
    title TEXT,
    description TEXT,
    position INT,
    section_type TEXT,
    content_type TEXT,
    video_url TEXT,
    duration_seconds INT,
    is_published BOOLEAN,
    created_at TIMESTAMP,
    PRIMARY KEY (course_id, section_id)
)
"""

COURSES_TABLES_CQL = [
    COURSE_TABLE_CQL,
    COURSE_MODULES_TABLE_CQL,
    COURSE_SECTIONS_TABLE_CQL,
]


def ensure_utc_aware(dt: datetime | None) -> datetime | None:
    """Ensure datetime is UTC-aware (Cassandra returns naive datetimes)."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt


# ==============================================================================
# Entity Classes
# ==============================================================================


class Course:
    """Course entity.

    Attributes:
        id: Course UUID
        title: Course title
        description: Course description
        is_published: Whether students can see it
        created_at: Creation timestamp
        updated_at: Last update timestamp
    """

    def __init__(
        self,
        id: UUID | None = None,
        title: str = "",
        description: str | None = None,
        is_published: bool = True,
        created_at: datetime | None = None,
        updated_at: datetime | None = None,
    ):
        self.id = id or uuid4()
        self.title = title.strip()
        self.description = description
        self.is_published = is_published
        self.created_at = ensure_utc_aware(created_at) or datetime.now(UTC)
        self.updated_at = ensure_utc_aware(updated_at)

    @classmethod
    def from_row(cls, row: Any) -> "Course":
        """Create Course instance from Cassandra row."""
        return cls(
            id=row.id,
            title=row.title or "",
            description=row.description,
            is_published=row.is_published if row.is_published is not None else True,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    def __repr__(self) -> str:
        return f"<Course {self.title}>"


class CourseModule:
    """A module groups sections of one course."""

    def __init__(
        self,
        course_id: UUID,
        id: UUID | None = None,
        title: str = "",
        description: str | None = None,
        position: int = 1,
        is_published: bool = True,
        created_at: datetime | None = None,
    ):
        self.course_id = course_id
        self.id = id or uuid4()
        self.title = title.strip()
        self.description = description
        self.position = position
        self.is_published = is_published
        self.created_at = ensure_utc_aware(created_at) or datetime.now(UTC)

    @classmethod
    def from_row(cls, row: Any) -> "CourseModule":
        """Create CourseModule instance from Cassandra row."""
        return cls(
            course_id=row.course_id,
            id=row.module_id,
            title=row.title or "",
            description=row.description,
            position=row.position or 1,
            is_published=row.is_published if row.is_published is not None else True,
            created_at=row.created_at,
        )

    def __repr__(self) -> str:
        return f"<CourseModule {self.position}: {self.title}>"


class Section:
    """Section entity: a lesson or exam item inside a course.

    Attributes:
        course_id: Owning course
        id: Section UUID
        module_id: Parent module, None for standalone sections
        title: Section title
        description: Section description
        position: Ordering key within its module (or the course)
        section_type: lesson or exam
        content_type: video, text or mixed
        video_url: Video source for video/mixed sections
        duration_seconds: Content duration, if known
        is_published: Whether students can see it
        created_at: Creation timestamp
    """

    def __init__(
        self,
        course_id: UUID,
        id: UUID | None = None,
        module_id: UUID | None = None,
        title: str = "",
        description: str | None = None,
        position: int = 1,
        section_type: str = SectionType.LESSON.value,
        content_type: str = ContentType.TEXT.value,
        video_url: str | None = None,
        duration_seconds: int | None = None,
        is_published: bool = True,
        created_at: datetime | None = None,
    ):
        self.course_id = course_id
        self.id = id or uuid4()
        self.module_id = module_id
        self.title = title.strip()
        self.description = description
        self.position = position
        self.section_type = section_type
        self.content_type = content_type
        self.video_url = video_url
        self.duration_seconds = duration_seconds
        self.is_published = is_published
        self.created_at = ensure_utc_aware(created_at) or datetime.now(UTC)

    @property
    def has_video(self) -> bool:
        """Video and mixed sections carry a playback signal."""
        return self.content_type in (ContentType.VIDEO.value, ContentType.MIXED.value)

    @classmethod
    def from_row(cls, row: Any) -> "Section":
        """Create Section instance from Cassandra row."""
        return cls(
            course_id=row.course_id,
            id=row.section_id,
            module_id=row.module_id,
            title=row.title or "",
            description=row.description,
            position=row.position or 1,
            section_type=row.section_type or SectionType.LESSON.value,
            content_type=row.content_type or ContentType.TEXT.value,
            video_url=row.video_url,
            duration_seconds=row.duration_seconds,
            is_published=row.is_published if row.is_published is not None else True,
            created_at=row.created_at,
        )

    def __repr__(self) -> str:
        return f"<Section {self.position}: {self.title} ({self.content_type})>"
