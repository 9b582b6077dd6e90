"""Database models for section progress tracking.

Cassandra table definitions for:
- Section progress: time spent, last position and completion per user/section

One partition holds every record of a user in a course, so the course summary
is a single-partition read. Writes use lightweight transactions; see
``src.progress.store``.
"""

from datetime import UTC, datetime
from typing import Any
from uuid import UUID, uuid4

from src.courses.models import ensure_utc_aware


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

# Partition key: (user_id, course_id), one read per course summary
# Clustering: section_id, so (user, course, section) is unique by construction
SECTION_PROGRESS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.section_progress (
    user_id UUID,
    course_id UUID,
    section_id UUID,
    id UUID,
    is_completed BOOLEAN,
    completion_date TIMESTAMP,
    time_spent INT,
    last_position DOUBLE,
    notes TEXT,
    created_at TIMESTAMP,
    updated_at TIMESTAMP,
    PRIMARY KEY ((user_id, course_id), section_id)
)
"""

PROGRESS_TABLES_CQL = [
    SECTION_PROGRESS_TABLE_CQL,
]


# ==============================================================================
# Entity Classes
# ==============================================================================


class ProgressRecord:
    """Progress of one user in one section of one course.

    Attributes:
        user_id: User UUID
        course_id: Course UUID
        section_id: Section UUID
        id: Record UUID, assigned on creation
        is_completed: Completion flag, never reverts to False
        completion_date: Set once, when the record first completes
        time_spent: Cumulative seconds spent in the section
        last_position: Last reported position, percentage 0-100
        notes: Free-form student notes
        created_at: Creation timestamp
        updated_at: Last write timestamp
    """

    def __init__(
        self,
        user_id: UUID,
        course_id: UUID,
        section_id: UUID,
        id: UUID | None = None,
        is_completed: bool = False,
        completion_date: datetime | None = None,
        time_spent: int = 0,
        last_position: float = 0.0,
        notes: str | None = None,
        created_at: datetime | None = None,
        updated_at: datetime | None = None,
    ):
        self.user_id = user_id
        self.course_id = course_id
        self.section_id = section_id
        self.id = id or uuid4()
        self.is_completed = is_completed
        self.completion_date = ensure_utc_aware(completion_date)
        self.time_spent = time_spent
        self.last_position = last_position
        self.notes = notes
        self.created_at = ensure_utc_aware(created_at) or datetime.now(UTC)
        self.updated_at = ensure_utc_aware(updated_at) or self.created_at

    @property
    def just_completed(self) -> bool:
        """Whether the write that produced this record completed it.

        Only meaningful for records returned by a write.
        """
        return self.is_completed and self.completion_date == self.updated_at

    @classmethod
    def from_row(cls, row: Any) -> "ProgressRecord":
        """Create ProgressRecord instance from Cassandra row."""
        return cls(
            user_id=row.user_id,
            course_id=row.course_id,
            section_id=row.section_id,
            id=row.id,
            is_completed=bool(row.is_completed),
            completion_date=row.completion_date,
            time_spent=row.time_spent or 0,
            last_position=row.last_position or 0.0,
            notes=row.notes,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    def __repr__(self) -> str:
        return (
            f"<ProgressRecord section={self.section_id} "
            f"time_spent={self.time_spent} completed={self.is_completed}>"
        )
