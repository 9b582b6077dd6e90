"""Section progress tracking module.

Provides:
- Progress records with additive time and one-way completion
- Implicit completion of video sections at the completion threshold
- Course completion percentage derived on read
"""

from .aggregator import CourseCompletion, compute_course_completion
from .models import PROGRESS_TABLES_CQL, ProgressRecord
from .policy import SectionCompletionPolicy


__all__ = [
    "PROGRESS_TABLES_CQL",
    "CourseCompletion",
    "ProgressRecord",
    "SectionCompletionPolicy",
    "compute_course_completion",
]
