"""Pydantic schemas for progress tracking."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from .aggregator import CourseCompletion
from .models import ProgressRecord


# ==============================================================================
# Requests
# ==============================================================================


class UpdateProgressRequest(BaseModel):
    """One flush from the client reporter.

    ``time_spent`` is the number of seconds accumulated since the previous
    flush, not a running total.
    """

    course_id: UUID
    section_id: UUID
    last_position: float = Field(..., ge=0, le=100, description="Percentage 0-100")
    time_spent: int = Field(..., ge=0, description="Seconds since last flush")
    ended: bool = Field(False, description="Player reached the end of the video")


class CompleteSectionRequest(BaseModel):
    """Explicitly complete a section."""

    course_id: UUID
    section_id: UUID


class UpdateNotesRequest(BaseModel):
    """Replace the student's notes for a section."""

    course_id: UUID
    section_id: UUID
    notes: str | None = Field(None, max_length=10000)


# ==============================================================================
# Responses
# ==============================================================================


class ProgressRecordResponse(BaseModel):
    """Progress record."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    course_id: UUID
    section_id: UUID
    is_completed: bool
    completion_date: datetime | None = None
    time_spent: int
    last_position: float
    notes: str | None = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, record: ProgressRecord) -> "ProgressRecordResponse":
        """Create response from entity."""
        return cls.model_validate(record)


class CourseProgressResponse(BaseModel):
    """Completion summary of a user in a course."""

    course_id: UUID
    progress_records: list[ProgressRecordResponse] = []
    completion_percentage: float
    completed_sections: int
    total_sections: int

    @classmethod
    def from_completion(cls, completion: CourseCompletion) -> "CourseProgressResponse":
        """Create response from the aggregated summary."""
        return cls(
            course_id=completion.course_id,
            progress_records=[
                ProgressRecordResponse.from_entity(r) for r in completion.records
            ],
            completion_percentage=completion.completion_percentage,
            completed_sections=completion.completed_sections,
            total_sections=completion.total_sections,
        )


class SectionProgressCheckResponse(BaseModel):
    """Resume data for a section when it is opened."""

    section_id: UUID
    completed: bool = False
    last_position: float = 0.0
    time_spent: int = 0

    @classmethod
    def from_entity(
        cls, section_id: UUID, record: ProgressRecord | None
    ) -> "SectionProgressCheckResponse":
        """Create response; a missing record means the section is untouched."""
        if record is None:
            return cls(section_id=section_id)
        return cls(
            section_id=section_id,
            completed=record.is_completed,
            last_position=record.last_position,
            time_spent=record.time_spent,
        )
