"""Pydantic schemas for the course catalog."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .models import ContentType, Course, CourseModule, Section, SectionType


# ==============================================================================
# Requests (admin)
# ==============================================================================


class CreateCourseRequest(BaseModel):
    """Create a course."""

    title: str = Field(..., min_length=1, max_length=200)
    description: str | None = Field(None, max_length=5000)
    is_published: bool = True


class CreateModuleRequest(BaseModel):
    """Add a module to a course."""

    title: str = Field(..., min_length=1, max_length=200)
    description: str | None = Field(None, max_length=5000)
    position: int = Field(1, ge=1)
    is_published: bool = True


class CreateSectionRequest(BaseModel):
    """Add a section to a course, optionally inside one of its modules."""

    title: str = Field(..., min_length=1, max_length=200)
    module_id: UUID | None = None
    description: str | None = Field(None, max_length=5000)
    position: int = Field(1, ge=1)
    section_type: SectionType = SectionType.LESSON
    content_type: ContentType = ContentType.TEXT
    video_url: str | None = Field(None, max_length=2000)
    duration_seconds: int | None = Field(None, ge=0)
    is_published: bool = True

    @model_validator(mode="after")
    def video_sections_need_url(self) -> "CreateSectionRequest":
        """Video and mixed sections must point at a video."""
        if self.content_type != ContentType.TEXT and not self.video_url:
            msg = f"video_url is required for {self.content_type.value} sections"
            raise ValueError(msg)
        return self


# ==============================================================================
# Responses
# ==============================================================================


class CourseResponse(BaseModel):
    """Course response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    description: str | None = None
    is_published: bool
    created_at: datetime
    updated_at: datetime | None = None

    @classmethod
    def from_entity(cls, course: Course) -> "CourseResponse":
        """Create response from entity."""
        return cls.model_validate(course)


class SectionResponse(BaseModel):
    """Section response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    course_id: UUID
    module_id: UUID | None = None
    title: str
    description: str | None = None
    position: int
    section_type: SectionType
    content_type: ContentType
    video_url: str | None = None
    duration_seconds: int | None = None
    is_published: bool

    @classmethod
    def from_entity(cls, section: Section) -> "SectionResponse":
        """Create response from entity."""
        return cls.model_validate(section)


class ModuleResponse(BaseModel):
    """Module with its ordered sections."""

    id: UUID
    course_id: UUID
    title: str
    description: str | None = None
    position: int
    is_published: bool
    sections: list[SectionResponse] = []

    @classmethod
    def from_entity(
        cls, module: CourseModule, sections: list[Section] | None = None
    ) -> "ModuleResponse":
        """Create response from entity and its sections."""
        return cls(
            id=module.id,
            course_id=module.course_id,
            title=module.title,
            description=module.description,
            position=module.position,
            is_published=module.is_published,
            sections=[SectionResponse.from_entity(s) for s in sections or []],
        )


class CourseOutlineResponse(BaseModel):
    """Course structure: ordered modules with sections, plus standalone sections."""

    course_id: UUID
    modules: list[ModuleResponse] = []
    standalone_sections: list[SectionResponse] = []
    total_sections: int = 0
