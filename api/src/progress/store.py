"""Section progress persistence.

Every write is a lightweight transaction:
- first write of a (user, course, section) row is ``INSERT ... IF NOT EXISTS``
- later writes are ``UPDATE ... IF time_spent = ? AND is_completed = ?``
  against the values just read

A lost race re-reads the row and retries, so concurrent flushes for the same
section each add their own increment exactly once.
"""

from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any
from uuid import UUID

import structlog
from cassandra import ConsistencyLevel

from src.core.database import TRANSIENT_DRIVER_ERRORS

from .exceptions import ProgressNotFoundError, TransientStoreError
from .models import ProgressRecord


if TYPE_CHECKING:
    from cassandra.cluster import Session

logger = structlog.get_logger(__name__)


class ProgressStore:
    """Cassandra-backed store of progress records."""

    def __init__(self, session: "Session", keyspace: str, max_attempts: int = 5):
        """Initialize with Cassandra session."""
        self.session = session
        self.keyspace = keyspace
        self.max_attempts = max_attempts
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements."""
        table = f"{self.keyspace}.section_progress"
        key = "user_id = ? AND course_id = ? AND section_id = ?"

        self._get_progress = self.session.prepare(
            f"SELECT * FROM {table} WHERE {key}"
        )
        # Reads feeding a compare-and-set must see committed Paxos state
        self._get_progress_serial = self.session.prepare(
            f"SELECT * FROM {table} WHERE {key}"
        )
        self._get_progress_serial.consistency_level = ConsistencyLevel.LOCAL_SERIAL

        self._get_course_progress = self.session.prepare(
            f"SELECT * FROM {table} WHERE user_id = ? AND course_id = ?"
        )

        self._insert_progress = self.session.prepare(f"""
            INSERT INTO {table}
            (user_id, course_id, section_id, id, is_completed, completion_date,
             time_spent, last_position, notes, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            IF NOT EXISTS
        """)

        self._update_progress = self.session.prepare(f"""
            UPDATE {table}
            SET time_spent = ?, last_position = ?, is_completed = ?,
                completion_date = ?, updated_at = ?
            WHERE {key}
            IF time_spent = ? AND is_completed = ?
        """)

        self._complete_progress = self.session.prepare(f"""
            UPDATE {table}
            SET is_completed = true, completion_date = ?, updated_at = ?
            WHERE {key}
            IF is_completed = false
        """)

        self._update_notes = self.session.prepare(f"""
            UPDATE {table}
            SET notes = ?, updated_at = ?
            WHERE {key}
            IF EXISTS
        """)

    # ==========================================================================
    # Execution helpers
    # ==========================================================================

    async def _execute(self, statement: Any, params: list[Any]) -> Any:
        """Run a statement, mapping driver availability errors."""
        try:
            return await self.session.aexecute(statement, params)
        except TRANSIENT_DRIVER_ERRORS as e:
            logger.warning(
                "progress_store_unavailable",
                error_type=type(e).__name__,
                error=str(e),
            )
            raise TransientStoreError from e

    async def _apply(self, statement: Any, params: list[Any]) -> bool:
        """Run a conditional write and report whether it was applied."""
        result = await self._execute(statement, params)
        return bool(result.was_applied)

    async def _read_for_write(
        self, user_id: UUID, course_id: UUID, section_id: UUID
    ) -> ProgressRecord | None:
        result = await self._execute(
            self._get_progress_serial, [user_id, course_id, section_id]
        )
        row = result.one()
        return ProgressRecord.from_row(row) if row else None

    async def _insert(self, record: ProgressRecord) -> bool:
        return await self._apply(
            self._insert_progress,
            [
                record.user_id,
                record.course_id,
                record.section_id,
                record.id,
                record.is_completed,
                record.completion_date,
                record.time_spent,
                record.last_position,
                record.notes,
                record.created_at,
                record.updated_at,
            ],
        )

    def _contention(self, operation: str, section_id: UUID) -> TransientStoreError:
        logger.warning(
            "progress_cas_exhausted",
            operation=operation,
            section_id=str(section_id),
            attempts=self.max_attempts,
        )
        return TransientStoreError("Progress write contention, retry later")

    # ==========================================================================
    # Writes
    # ==========================================================================

    async def upsert_progress(
        self,
        user_id: UUID,
        course_id: UUID,
        section_id: UUID,
        last_position: float,
        additional_time_spent: int,
        complete: bool = False,
    ) -> ProgressRecord:
        """Create or advance the record for a section.

        Adds ``additional_time_spent`` to the stored total and overwrites
        ``last_position``. With ``complete=True`` the record is completed in
        the same write; a record that is already complete keeps its
        ``completion_date``.

        Raises:
            TransientStoreError: Store unavailable or retries exhausted
        """
        for attempt in range(1, self.max_attempts + 1):
            current = await self._read_for_write(user_id, course_id, section_id)
            now = datetime.now(UTC)

            if current is None:
                record = ProgressRecord(
                    user_id=user_id,
                    course_id=course_id,
                    section_id=section_id,
                    is_completed=complete,
                    completion_date=now if complete else None,
                    time_spent=additional_time_spent,
                    last_position=last_position,
                    created_at=now,
                    updated_at=now,
                )
                applied = await self._insert(record)
            else:
                record = ProgressRecord(
                    user_id=user_id,
                    course_id=course_id,
                    section_id=section_id,
                    id=current.id,
                    is_completed=current.is_completed or complete,
                    completion_date=current.completion_date
                    if current.is_completed
                    else (now if complete else None),
                    time_spent=current.time_spent + additional_time_spent,
                    last_position=last_position,
                    notes=current.notes,
                    created_at=current.created_at,
                    updated_at=now,
                )
                applied = await self._apply(
                    self._update_progress,
                    [
                        record.time_spent,
                        record.last_position,
                        record.is_completed,
                        record.completion_date,
                        record.updated_at,
                        user_id,
                        course_id,
                        section_id,
                        current.time_spent,
                        current.is_completed,
                    ],
                )

            if applied:
                return record

            logger.debug(
                "progress_cas_conflict",
                operation="upsert",
                section_id=str(section_id),
                attempt=attempt,
            )

        raise self._contention("upsert", section_id)

    async def mark_completed(
        self, user_id: UUID, course_id: UUID, section_id: UUID
    ) -> tuple[ProgressRecord, bool]:
        """Complete a section.

        Returns the record and whether this call made the false to true
        transition. Completed records are returned unchanged with False.

        Raises:
            TransientStoreError: Store unavailable or retries exhausted
        """
        for attempt in range(1, self.max_attempts + 1):
            current = await self._read_for_write(user_id, course_id, section_id)
            now = datetime.now(UTC)

            if current is not None and current.is_completed:
                return current, False

            if current is None:
                record = ProgressRecord(
                    user_id=user_id,
                    course_id=course_id,
                    section_id=section_id,
                    is_completed=True,
                    completion_date=now,
                    created_at=now,
                    updated_at=now,
                )
                applied = await self._insert(record)
            else:
                current.is_completed = True
                current.completion_date = now
                current.updated_at = now
                record = current
                applied = await self._apply(
                    self._complete_progress,
                    [now, now, user_id, course_id, section_id],
                )

            if applied:
                return record, True

            logger.debug(
                "progress_cas_conflict",
                operation="complete",
                section_id=str(section_id),
                attempt=attempt,
            )

        raise self._contention("complete", section_id)

    async def update_notes(
        self,
        user_id: UUID,
        course_id: UUID,
        section_id: UUID,
        notes: str | None,
    ) -> ProgressRecord:
        """Replace the notes of a record, creating it if needed.

        Raises:
            TransientStoreError: Store unavailable or retries exhausted
        """
        for attempt in range(1, self.max_attempts + 1):
            current = await self._read_for_write(user_id, course_id, section_id)
            now = datetime.now(UTC)

            if current is None:
                record = ProgressRecord(
                    user_id=user_id,
                    course_id=course_id,
                    section_id=section_id,
                    notes=notes,
                    created_at=now,
                    updated_at=now,
                )
                applied = await self._insert(record)
            else:
                current.notes = notes
                current.updated_at = now
                record = current
                applied = await self._apply(
                    self._update_notes,
                    [notes, now, user_id, course_id, section_id],
                )

            if applied:
                return record

            logger.debug(
                "progress_cas_conflict",
                operation="notes",
                section_id=str(section_id),
                attempt=attempt,
            )

        raise self._contention("notes", section_id)

    # ==========================================================================
    # Reads
    # ==========================================================================

    async def find_progress(
        self, user_id: UUID, course_id: UUID, section_id: UUID
    ) -> ProgressRecord | None:
        """Point lookup; None when the user never touched the section."""
        result = await self._execute(
            self._get_progress, [user_id, course_id, section_id]
        )
        row = result.one()
        return ProgressRecord.from_row(row) if row else None

    async def get_progress(
        self, user_id: UUID, course_id: UUID, section_id: UUID
    ) -> ProgressRecord:
        """Point lookup.

        Raises:
            ProgressNotFoundError: If no record exists
        """
        record = await self.find_progress(user_id, course_id, section_id)
        if record is None:
            raise ProgressNotFoundError
        return record

    async def get_progress_for_course(
        self, user_id: UUID, course_id: UUID
    ) -> list[ProgressRecord]:
        """All records of a user in a course, in no particular order."""
        rows = await self._execute(self._get_course_progress, [user_id, course_id])
        return [ProgressRecord.from_row(row) for row in rows]
