"""Course completion percentage, derived on every read."""

from collections.abc import Iterable
from dataclasses import dataclass, field
from uuid import UUID

from .models import ProgressRecord


@dataclass
class CourseCompletion:
    """Progress of a user across the sections currently in a course."""

    course_id: UUID
    completed_sections: int
    total_sections: int
    completion_percentage: float
    records: list[ProgressRecord] = field(default_factory=list)


def compute_course_completion(
    course_id: UUID,
    section_ids: Iterable[UUID],
    records: Iterable[ProgressRecord],
) -> CourseCompletion:
    """Summarize ``records`` against the course's current sections.

    The denominator is every section in the course, inside a module or not.
    Records whose section has been removed from the course are dropped from
    both counts and from the returned records. A course without sections is
    0% complete.
    """
    current = set(section_ids)
    kept = [r for r in records if r.section_id in current]
    completed = sum(1 for r in kept if r.is_completed)
    total = len(current)

    if total == 0:
        percentage = 0.0
    else:
        percentage = round(100 * completed / total, 2)

    return CourseCompletion(
        course_id=course_id,
        completed_sections=completed,
        total_sections=total,
        completion_percentage=percentage,
        records=kept,
    )
