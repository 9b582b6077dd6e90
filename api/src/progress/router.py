"""Section progress API endpoints.

Provides routes for:
- Progress flushes from the client reporter
- Explicit section completion
- Course completion summaries and section resume checks
- Student notes
"""

from uuid import UUID

from fastapi import APIRouter, Query

from src.auth.dependencies import CurrentUser
from src.courses.dependencies import handle_course_error
from src.courses.service import CourseError

from .dependencies import ProgressServiceDep, handle_progress_error
from .exceptions import ProgressError
from .schemas import (
    CompleteSectionRequest,
    CourseProgressResponse,
    ProgressRecordResponse,
    SectionProgressCheckResponse,
    UpdateNotesRequest,
    UpdateProgressRequest,
)


router = APIRouter(prefix="/v1/progress", tags=["progress"])


@router.post(
    "/update",
    response_model=ProgressRecordResponse,
    summary="Flush section progress",
)
async def update_progress(
    data: UpdateProgressRequest,
    user: CurrentUser,
    progress_service: ProgressServiceDep,
) -> ProgressRecordResponse:
    """Add time spent and the latest position for a section.

    Sent by the client every 30 seconds of active time and on pause, stop or
    navigation. Video sections complete at 95% or when playback ends.
    """
    try:
        record = await progress_service.update_progress(
            user_id=user.id,
            course_id=data.course_id,
            section_id=data.section_id,
            last_position=data.last_position,
            time_spent=data.time_spent,
            ended=data.ended,
        )
    except ProgressError as e:
        raise handle_progress_error(e) from e
    except CourseError as e:
        raise handle_course_error(e) from e
    return ProgressRecordResponse.from_entity(record)


@router.post(
    "/complete-section",
    response_model=ProgressRecordResponse,
    summary="Mark section as complete",
)
async def complete_section(
    data: CompleteSectionRequest,
    user: CurrentUser,
    progress_service: ProgressServiceDep,
) -> ProgressRecordResponse:
    """Explicitly mark a section complete. Repeating the call is a no-op."""
    try:
        record = await progress_service.complete_section(
            user_id=user.id,
            course_id=data.course_id,
            section_id=data.section_id,
        )
    except ProgressError as e:
        raise handle_progress_error(e) from e
    except CourseError as e:
        raise handle_course_error(e) from e
    return ProgressRecordResponse.from_entity(record)


@router.get(
    "/course/{course_id}",
    response_model=CourseProgressResponse,
    summary="Get course progress",
)
async def get_course_progress(
    course_id: UUID,
    user: CurrentUser,
    progress_service: ProgressServiceDep,
) -> CourseProgressResponse:
    """Progress records and completion percentage of the current user."""
    try:
        completion = await progress_service.get_course_progress(user.id, course_id)
    except ProgressError as e:
        raise handle_progress_error(e) from e
    except CourseError as e:
        raise handle_course_error(e) from e
    return CourseProgressResponse.from_completion(completion)


@router.get(
    "/section/{section_id}",
    response_model=SectionProgressCheckResponse,
    summary="Check section progress",
)
async def get_section_progress(
    section_id: UUID,
    user: CurrentUser,
    progress_service: ProgressServiceDep,
    course_id: UUID = Query(..., description="Course the section belongs to"),
) -> SectionProgressCheckResponse:
    """Where to resume a section and whether it is already complete."""
    try:
        record = await progress_service.get_section_progress(
            user.id, course_id, section_id
        )
    except ProgressError as e:
        raise handle_progress_error(e) from e
    return SectionProgressCheckResponse.from_entity(section_id, record)


@router.put(
    "/notes",
    response_model=ProgressRecordResponse,
    summary="Save section notes",
)
async def update_notes(
    data: UpdateNotesRequest,
    user: CurrentUser,
    progress_service: ProgressServiceDep,
) -> ProgressRecordResponse:
    """Replace the current user's notes for a section."""
    try:
        record = await progress_service.update_notes(
            user_id=user.id,
            course_id=data.course_id,
            section_id=data.section_id,
            notes=data.notes,
        )
    except ProgressError as e:
        raise handle_progress_error(e) from e
    except CourseError as e:
        raise handle_course_error(e) from e
    return ProgressRecordResponse.from_entity(record)
