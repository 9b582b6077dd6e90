"""Fixtures for progress tests.

``FakeProgressSession`` stands in for a Cassandra session holding only the
``section_progress`` table. It honors the conditional writes the store issues
(IF NOT EXISTS, IF time_spent = ? AND is_completed = ?, IF is_completed =
false, IF EXISTS), so service tests run through the real ``ProgressStore``.
"""

from collections.abc import Awaitable, Callable
from types import SimpleNamespace
from typing import Any
from uuid import UUID, uuid4

import pytest

from src.config.settings import Settings
from src.courses.models import ContentType, Section
from src.courses.service import CourseNotFoundError, SectionNotFoundError
from src.progress.policy import SectionCompletionPolicy
from src.progress.service import ProgressService
from src.progress.store import ProgressStore


COLUMNS = (
    "user_id",
    "course_id",
    "section_id",
    "id",
    "is_completed",
    "completion_date",
    "time_spent",
    "last_position",
    "notes",
    "created_at",
    "updated_at",
)


class FakeStatement:
    def __init__(self, query: str):
        self.query_string = " ".join(query.split())
        self.consistency_level = None


class FakeResult:
    def __init__(self, rows: list[Any] | None = None, applied: bool = True):
        self._rows = rows or []
        self.was_applied = applied

    def one(self) -> Any:
        return self._rows[0] if self._rows else None

    def __iter__(self):
        return iter(self._rows)


class FakeProgressSession:
    """In-memory ``section_progress`` with compare-and-set semantics."""

    def __init__(self) -> None:
        self.rows: dict[tuple[UUID, UUID, UUID], dict[str, Any]] = {}
        self.writes: list[str] = []
        # Awaited before each conditional write; lets tests interleave writers
        self.before_write: Callable[[], Awaitable[None]] | None = None

    def prepare(self, query: str) -> FakeStatement:
        return FakeStatement(query)

    async def aexecute(self, statement: FakeStatement, params: list[Any]) -> FakeResult:
        query = statement.query_string

        if query.startswith("SELECT"):
            if "section_id = ?" in query:
                row = self.rows.get(tuple(params))
                return FakeResult([SimpleNamespace(**row)] if row else [])
            user_id, course_id = params
            return FakeResult(
                [
                    SimpleNamespace(**row)
                    for key, row in self.rows.items()
                    if key[:2] == (user_id, course_id)
                ]
            )

        if self.before_write is not None:
            hook, self.before_write = self.before_write, None
            await hook()

        if query.startswith("INSERT"):
            key = tuple(params[:3])
            if key in self.rows:
                return FakeResult(applied=False)
            self.rows[key] = dict(zip(COLUMNS, params, strict=True))
            self.writes.append("insert")
            return FakeResult()

        if "IF time_spent = ? AND is_completed = ?" in query:
            (
                time_spent,
                last_position,
                is_completed,
                completion_date,
                updated_at,
                *key,
                expected_time,
                expected_completed,
            ) = params
            row = self.rows.get(tuple(key))
            if (
                row is None
                or row["time_spent"] != expected_time
                or row["is_completed"] != expected_completed
            ):
                return FakeResult(applied=False)
            row.update(
                time_spent=time_spent,
                last_position=last_position,
                is_completed=is_completed,
                completion_date=completion_date,
                updated_at=updated_at,
            )
            self.writes.append("update")
            return FakeResult()

        if "IF is_completed = false" in query:
            completion_date, updated_at, *key = params
            row = self.rows.get(tuple(key))
            if row is None or row["is_completed"]:
                return FakeResult(applied=False)
            row.update(
                is_completed=True,
                completion_date=completion_date,
                updated_at=updated_at,
            )
            self.writes.append("complete")
            return FakeResult()

        if "IF EXISTS" in query:
            notes, updated_at, *key = params
            row = self.rows.get(tuple(key))
            if row is None:
                return FakeResult(applied=False)
            row.update(notes=notes, updated_at=updated_at)
            self.writes.append("notes")
            return FakeResult()

        msg = f"Unexpected statement: {query}"
        raise AssertionError(msg)


class FakeCatalog:
    """Catalog collaborator holding sections in memory."""

    def __init__(self) -> None:
        self.courses: set[UUID] = set()
        self.sections: dict[UUID, list[Section]] = {}

    def add_course(self, course_id: UUID) -> None:
        self.courses.add(course_id)
        self.sections.setdefault(course_id, [])

    def add_section(
        self,
        course_id: UUID,
        content_type: ContentType = ContentType.VIDEO,
        module_id: UUID | None = None,
    ) -> Section:
        self.add_course(course_id)
        section = Section(
            course_id=course_id,
            module_id=module_id,
            title=f"Section {len(self.sections[course_id]) + 1}",
            position=len(self.sections[course_id]) + 1,
            content_type=content_type.value,
        )
        self.sections[course_id].append(section)
        return section

    def remove_section(self, course_id: UUID, section_id: UUID) -> None:
        self.sections[course_id] = [
            s for s in self.sections[course_id] if s.id != section_id
        ]

    async def require_course(self, course_id: UUID) -> None:
        if course_id not in self.courses:
            raise CourseNotFoundError

    async def list_sections(self, course_id: UUID) -> list[Section]:
        return list(self.sections.get(course_id, []))

    async def require_section(self, course_id: UUID, section_id: UUID) -> Section:
        for section in self.sections.get(course_id, []):
            if section.id == section_id:
                return section
        raise SectionNotFoundError


@pytest.fixture
def settings() -> Settings:
    return Settings(environment="testing")


@pytest.fixture
def fake_session() -> FakeProgressSession:
    return FakeProgressSession()


@pytest.fixture
def store(fake_session: FakeProgressSession) -> ProgressStore:
    return ProgressStore(session=fake_session, keyspace="test_keyspace")


@pytest.fixture
def catalog() -> FakeCatalog:
    return FakeCatalog()


@pytest.fixture
def progress_service(
    store: ProgressStore, catalog: FakeCatalog, settings: Settings
) -> ProgressService:
    return ProgressService(
        store=store,
        catalog=catalog,
        policy=SectionCompletionPolicy(settings.progress_completion_threshold),
        settings=settings,
    )


@pytest.fixture
def user_id() -> UUID:
    return uuid4()


@pytest.fixture
def course_id() -> UUID:
    return uuid4()
