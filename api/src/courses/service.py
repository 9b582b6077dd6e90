"""Course catalog service layer.

Business logic for:
- Course lookup and creation
- Module and section management
- Ordered course outlines (modules with sections, plus standalone sections)

The progress engine reads section metadata (content type, course membership)
and section counts from here.
"""

from typing import TYPE_CHECKING, Any
from uuid import UUID

import structlog

from src.core.database import TRANSIENT_DRIVER_ERRORS
from src.courses.models import Course, CourseModule, Section
from src.courses.schemas import (
    CreateCourseRequest,
    CreateModuleRequest,
    CreateSectionRequest,
)


if TYPE_CHECKING:
    from cassandra.cluster import Session

logger = structlog.get_logger(__name__)


# ==============================================================================
# Custom Exceptions
# ==============================================================================


class CourseError(Exception):
    """Base course error."""

    def __init__(self, message: str, code: str = "course_error"):
        self.message = message
        self.code = code
        super().__init__(message)


class CourseNotFoundError(CourseError):
    """Course not found."""

    def __init__(self, message: str = "Course not found"):
        super().__init__(message, "course_not_found")


class ModuleNotFoundError(CourseError):
    """Module not found in course."""

    def __init__(self, message: str = "Module not found"):
        super().__init__(message, "module_not_found")


class SectionNotFoundError(CourseError):
    """Section not found in course."""

    def __init__(self, message: str = "Section not found"):
        super().__init__(message, "section_not_found")


class CatalogUnavailableError(CourseError):
    """Catalog store could not serve the request."""

    def __init__(self, message: str = "Course catalog unavailable"):
        super().__init__(message, "store_unavailable")


# ==============================================================================
# Catalog Service
# ==============================================================================


class CatalogService:
    """Service for courses, modules and sections."""

    def __init__(self, session: "Session", keyspace: str):
        """Initialize with Cassandra session."""
        self.session = session
        self.keyspace = keyspace
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements."""
        # Courses
        self._get_course_by_id = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.courses WHERE id = ?"
        )
        self._insert_course = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.courses
            (id, title, description, is_published, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?)
        """)

        # Modules
        self._get_course_modules = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.course_modules WHERE course_id = ?"
        )
        self._get_module = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.course_modules "
            "WHERE course_id = ? AND module_id = ?"
        )
        self._insert_module = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.course_modules
            (course_id, module_id, title, description, position, is_published,
             created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?)
        """)

        # Sections
        self._get_course_sections = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.course_sections WHERE course_id = ?"
        )
        self._get_section = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.course_sections "
            "WHERE course_id = ? AND section_id = ?"
        )
        self._insert_section = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.course_sections
            (course_id, section_id, module_id, title, description, position,
             section_type, content_type, video_url, duration_seconds,
             is_published, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """)
        self._delete_section = self.session.prepare(
            f"DELETE FROM {self.keyspace}.course_sections "
            "WHERE course_id = ? AND section_id = ?"
        )

    async def _execute(self, statement: Any, params: list[Any]) -> Any:
        """Run a statement, mapping driver availability errors."""
        try:
            return await self.session.aexecute(statement, params)
        except TRANSIENT_DRIVER_ERRORS as e:
            logger.warning(
                "catalog_store_unavailable",
                error_type=type(e).__name__,
                error=str(e),
            )
            raise CatalogUnavailableError from e

    # ==========================================================================
    # Courses
    # ==========================================================================

    async def get_course(self, course_id: UUID) -> Course | None:
        """Get course by ID."""
        result = await self._execute(self._get_course_by_id, [course_id])
        row = result.one()
        return Course.from_row(row) if row else None

    async def require_course(self, course_id: UUID) -> Course:
        """Get course by ID.

        Raises:
            CourseNotFoundError: If the course does not exist
        """
        course = await self.get_course(course_id)
        if course is None:
            raise CourseNotFoundError
        return course

    async def create_course(self, data: CreateCourseRequest) -> Course:
        """Create a new course."""
        course = Course(
            title=data.title,
            description=data.description,
            is_published=data.is_published,
        )

        await self._execute(
            self._insert_course,
            [
                course.id,
                course.title,
                course.description,
                course.is_published,
                course.created_at,
                course.updated_at,
            ],
        )

        logger.info("course_created", course_id=str(course.id), title=course.title)
        return course

    # ==========================================================================
    # Modules
    # ==========================================================================

    async def list_modules(self, course_id: UUID) -> list[CourseModule]:
        """List modules of a course ordered by position."""
        rows = await self._execute(self._get_course_modules, [course_id])
        modules = [CourseModule.from_row(row) for row in rows]
        return sorted(modules, key=lambda m: (m.position, m.created_at))

    async def get_module(self, course_id: UUID, module_id: UUID) -> CourseModule | None:
        """Get a module of a course."""
        result = await self._execute(self._get_module, [course_id, module_id])
        row = result.one()
        return CourseModule.from_row(row) if row else None

    async def create_module(
        self, course_id: UUID, data: CreateModuleRequest
    ) -> CourseModule:
        """Add a module to a course.

        Raises:
            CourseNotFoundError: If the course does not exist
        """
        await self.require_course(course_id)

        module = CourseModule(
            course_id=course_id,
            title=data.title,
            description=data.description,
            position=data.position,
            is_published=data.is_published,
        )

        await self._execute(
            self._insert_module,
            [
                module.course_id,
                module.id,
                module.title,
                module.description,
                module.position,
                module.is_published,
                module.created_at,
            ],
        )

        logger.info(
            "module_created", course_id=str(course_id), module_id=str(module.id)
        )
        return module

    # ==========================================================================
    # Sections
    # ==========================================================================

    async def list_sections(self, course_id: UUID) -> list[Section]:
        """List every section of a course ordered by position."""
        rows = await self._execute(self._get_course_sections, [course_id])
        sections = [Section.from_row(row) for row in rows]
        return sorted(sections, key=lambda s: (s.position, s.created_at))

    async def get_section(self, course_id: UUID, section_id: UUID) -> Section | None:
        """Get a section of a course."""
        result = await self._execute(
            self._get_section, [course_id, section_id]
        )
        row = result.one()
        return Section.from_row(row) if row else None

    async def require_section(self, course_id: UUID, section_id: UUID) -> Section:
        """Get a section of a course.

        Raises:
            SectionNotFoundError: If the section is not part of the course
        """
        section = await self.get_section(course_id, section_id)
        if section is None:
            raise SectionNotFoundError
        return section

    async def create_section(
        self, course_id: UUID, data: CreateSectionRequest
    ) -> Section:
        """Add a section to a course.

        Raises:
            CourseNotFoundError: If the course does not exist
            ModuleNotFoundError: If module_id is not a module of the course
        """
        await self.require_course(course_id)
        if data.module_id is not None:
            module = await self.get_module(course_id, data.module_id)
            if module is None:
                raise ModuleNotFoundError

        section = Section(
            course_id=course_id,
            module_id=data.module_id,
            title=data.title,
            description=data.description,
            position=data.position,
            section_type=data.section_type.value,
            content_type=data.content_type.value,
            video_url=data.video_url,
            duration_seconds=data.duration_seconds,
            is_published=data.is_published,
        )

        await self._execute(
            self._insert_section,
            [
                section.course_id,
                section.id,
                section.module_id,
                section.title,
                section.description,
                section.position,
                section.section_type,
                section.content_type,
                section.video_url,
                section.duration_seconds,
                section.is_published,
                section.created_at,
            ],
        )

        logger.info(
            "section_created",
            course_id=str(course_id),
            section_id=str(section.id),
            content_type=section.content_type,
        )
        return section

    async def delete_section(self, course_id: UUID, section_id: UUID) -> None:
        """Remove a section from a course.

        Progress rows for the section are left in place; they become orphans
        and stop counting towards completion.

        Raises:
            SectionNotFoundError: If the section is not part of the course
        """
        await self.require_section(course_id, section_id)
        await self._execute(self._delete_section, [course_id, section_id])
        logger.info(
            "section_deleted",
            course_id=str(course_id),
            section_id=str(section_id),
        )

    # ==========================================================================
    # Outline
    # ==========================================================================

    async def get_course_outline(
        self, course_id: UUID
    ) -> tuple[list[tuple[CourseModule, list[Section]]], list[Section]]:
        """Ordered modules with their sections, plus standalone sections.

        Sections whose module no longer exists are reported as standalone.

        Raises:
            CourseNotFoundError: If the course does not exist
        """
        await self.require_course(course_id)
        modules = await self.list_modules(course_id)
        sections = await self.list_sections(course_id)

        by_module: dict[UUID, list[Section]] = {m.id: [] for m in modules}
        standalone: list[Section] = []
        for section in sections:
            if section.module_id is not None and section.module_id in by_module:
                by_module[section.module_id].append(section)
            else:
                standalone.append(section)

        return [(m, by_module[m.id]) for m in modules], standalone
