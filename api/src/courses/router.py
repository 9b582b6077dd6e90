"""Course catalog API endpoints.

Provides routes for:
- Course details and ordered section outline (any authenticated user)
- Course, module and section management (ADMIN only)
"""

from uuid import UUID

from fastapi import APIRouter, status

from src.auth.dependencies import AdminUser, CurrentUser
from src.courses.dependencies import CatalogServiceDep, handle_course_error
from src.courses.schemas import (
    CourseOutlineResponse,
    CourseResponse,
    CreateCourseRequest,
    CreateModuleRequest,
    CreateSectionRequest,
    ModuleResponse,
    SectionResponse,
)
from src.courses.service import CourseError


router = APIRouter(prefix="/v1/courses", tags=["courses"])


@router.get(
    "/{course_id}",
    response_model=CourseResponse,
    summary="Get course",
)
async def get_course(
    course_id: UUID,
    user: CurrentUser,
    catalog_service: CatalogServiceDep,
) -> CourseResponse:
    """Get course details."""
    try:
        course = await catalog_service.require_course(course_id)
    except CourseError as e:
        raise handle_course_error(e) from e
    return CourseResponse.from_entity(course)


@router.get(
    "/{course_id}/sections",
    response_model=CourseOutlineResponse,
    summary="Get course outline",
)
async def get_course_sections(
    course_id: UUID,
    user: CurrentUser,
    catalog_service: CatalogServiceDep,
) -> CourseOutlineResponse:
    """Ordered modules with their sections, plus sections outside any module."""
    try:
        modules, standalone = await catalog_service.get_course_outline(course_id)
    except CourseError as e:
        raise handle_course_error(e) from e

    return CourseOutlineResponse(
        course_id=course_id,
        modules=[ModuleResponse.from_entity(m, sections) for m, sections in modules],
        standalone_sections=[SectionResponse.from_entity(s) for s in standalone],
        total_sections=len(standalone) + sum(len(s) for _, s in modules),
    )


# ==============================================================================
# Admin Endpoints
# ==============================================================================


@router.post(
    "",
    response_model=CourseResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create course (admin)",
)
async def create_course(
    data: CreateCourseRequest,
    user: AdminUser,
    catalog_service: CatalogServiceDep,
) -> CourseResponse:
    """Create a new course (ADMIN only)."""
    course = await catalog_service.create_course(data)
    return CourseResponse.from_entity(course)


@router.post(
    "/{course_id}/modules",
    response_model=ModuleResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add module (admin)",
)
async def create_module(
    course_id: UUID,
    data: CreateModuleRequest,
    user: AdminUser,
    catalog_service: CatalogServiceDep,
) -> ModuleResponse:
    """Add a module to a course (ADMIN only)."""
    try:
        module = await catalog_service.create_module(course_id, data)
    except CourseError as e:
        raise handle_course_error(e) from e
    return ModuleResponse.from_entity(module)


@router.post(
    "/{course_id}/sections",
    response_model=SectionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add section (admin)",
)
async def create_section(
    course_id: UUID,
    data: CreateSectionRequest,
    user: AdminUser,
    catalog_service: CatalogServiceDep,
) -> SectionResponse:
    """Add a section to a course, optionally inside a module (ADMIN only)."""
    try:
        section = await catalog_service.create_section(course_id, data)
    except CourseError as e:
        raise handle_course_error(e) from e
    return SectionResponse.from_entity(section)


@router.delete(
    "/{course_id}/sections/{section_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete section (admin)",
)
async def delete_section(
    course_id: UUID,
    section_id: UUID,
    user: AdminUser,
    catalog_service: CatalogServiceDep,
) -> None:
    """Remove a section from a course (ADMIN only)."""
    try:
        await catalog_service.delete_section(course_id, section_id)
    except CourseError as e:
        raise handle_course_error(e) from e
