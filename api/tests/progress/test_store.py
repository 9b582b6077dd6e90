"""Tests for ProgressStore.

Semantics run against the in-memory session; driver failure handling runs
against a mocked Cassandra session.
"""

from unittest.mock import AsyncMock, Mock
from uuid import UUID, uuid4

import pytest
from cassandra import ConsistencyLevel, Unavailable, WriteTimeout
from cassandra.cluster import NoHostAvailable, Session

from src.progress.exceptions import ProgressNotFoundError, TransientStoreError
from src.progress.store import ProgressStore


@pytest.fixture
def section_id() -> UUID:
    return uuid4()


class TestUpsertProgress:
    """Create-or-add semantics."""

    @pytest.mark.asyncio
    async def test_first_flush_creates_record(
        self, store, fake_session, user_id, course_id, section_id
    ) -> None:
        record = await store.upsert_progress(user_id, course_id, section_id, 20.0, 30)

        assert record.time_spent == 30
        assert record.last_position == 20.0
        assert record.is_completed is False
        assert record.completion_date is None
        assert fake_session.writes == ["insert"]

    @pytest.mark.asyncio
    async def test_time_is_additive(
        self, store, user_id, course_id, section_id
    ) -> None:
        await store.upsert_progress(user_id, course_id, section_id, 10.0, 30)
        await store.upsert_progress(user_id, course_id, section_id, 25.0, 30)
        record = await store.upsert_progress(user_id, course_id, section_id, 5.0, 12)

        assert record.time_spent == 72
        # Position is overwritten, even backwards
        assert record.last_position == 5.0

    @pytest.mark.asyncio
    async def test_record_id_is_stable(
        self, store, user_id, course_id, section_id
    ) -> None:
        first = await store.upsert_progress(user_id, course_id, section_id, 10.0, 30)
        second = await store.upsert_progress(user_id, course_id, section_id, 20.0, 30)

        assert first.id == second.id
        assert first.created_at == second.created_at

    @pytest.mark.asyncio
    async def test_complete_flag_completes_in_same_write(
        self, store, fake_session, user_id, course_id, section_id
    ) -> None:
        await store.upsert_progress(user_id, course_id, section_id, 50.0, 30)
        record = await store.upsert_progress(
            user_id, course_id, section_id, 96.0, 30, complete=True
        )

        assert record.is_completed is True
        assert record.completion_date is not None
        assert record.just_completed is True
        assert fake_session.writes == ["insert", "update"]

    @pytest.mark.asyncio
    async def test_completion_date_set_once(
        self, store, user_id, course_id, section_id
    ) -> None:
        done = await store.upsert_progress(
            user_id, course_id, section_id, 100.0, 30, complete=True
        )
        later = await store.upsert_progress(
            user_id, course_id, section_id, 40.0, 30, complete=True
        )

        assert later.completion_date == done.completion_date
        assert later.just_completed is False

    @pytest.mark.asyncio
    async def test_never_uncompletes(
        self, store, user_id, course_id, section_id
    ) -> None:
        await store.mark_completed(user_id, course_id, section_id)
        record = await store.upsert_progress(
            user_id, course_id, section_id, 10.0, 30, complete=False
        )

        assert record.is_completed is True
        assert record.time_spent == 30
        assert record.last_position == 10.0

    @pytest.mark.asyncio
    async def test_zero_increment_keeps_total(
        self, store, user_id, course_id, section_id
    ) -> None:
        await store.upsert_progress(user_id, course_id, section_id, 10.0, 30)
        record = await store.upsert_progress(user_id, course_id, section_id, 12.0, 0)

        assert record.time_spent == 30


class TestConcurrentWrites:
    """Lost compare-and-set races are retried against fresh state."""

    @pytest.mark.asyncio
    async def test_racing_update_is_retried(
        self, store, fake_session, user_id, course_id, section_id
    ) -> None:
        await store.upsert_progress(user_id, course_id, section_id, 10.0, 30)

        async def concurrent_flush() -> None:
            row = fake_session.rows[(user_id, course_id, section_id)]
            row["time_spent"] += 30

        fake_session.before_write = concurrent_flush
        record = await store.upsert_progress(user_id, course_id, section_id, 20.0, 30)

        # 30 (first) + 30 (concurrent) + 30 (retried) - nothing lost or doubled
        assert record.time_spent == 90
        assert fake_session.rows[(user_id, course_id, section_id)]["time_spent"] == 90

    @pytest.mark.asyncio
    async def test_racing_insert_falls_back_to_update(
        self, store, fake_session, user_id, course_id, section_id
    ) -> None:
        async def concurrent_insert() -> None:
            await store.upsert_progress(user_id, course_id, section_id, 5.0, 30)

        fake_session.before_write = concurrent_insert
        record = await store.upsert_progress(user_id, course_id, section_id, 15.0, 30)

        assert record.time_spent == 60
        assert len(fake_session.rows) == 1

    @pytest.mark.asyncio
    async def test_exhausted_retries_raise_transient_error(
        self, user_id, course_id, section_id
    ) -> None:
        session = Mock(spec=Session)
        session.prepare = Mock(return_value=Mock())
        existing = Mock(
            user_id=user_id,
            course_id=course_id,
            section_id=section_id,
            id=uuid4(),
            is_completed=False,
            completion_date=None,
            time_spent=30,
            last_position=10.0,
            notes=None,
            created_at=None,
            updated_at=None,
        )
        read = Mock()
        read.one.return_value = existing
        lost = Mock(was_applied=False)
        session.aexecute = AsyncMock(side_effect=[read, lost] * 3)

        store = ProgressStore(session=session, keyspace="test_keyspace", max_attempts=3)

        with pytest.raises(TransientStoreError) as exc_info:
            await store.upsert_progress(user_id, course_id, section_id, 20.0, 30)

        assert exc_info.value.code == "store_unavailable"
        assert session.aexecute.await_count == 6


class TestMarkCompleted:
    """Explicit completion."""

    @pytest.mark.asyncio
    async def test_creates_completed_record(
        self, store, user_id, course_id, section_id
    ) -> None:
        record, completed_now = await store.mark_completed(
            user_id, course_id, section_id
        )

        assert completed_now is True

        assert record.is_completed is True
        assert record.time_spent == 0
        assert record.completion_date is not None

    @pytest.mark.asyncio
    async def test_is_idempotent(
        self, store, fake_session, user_id, course_id, section_id
    ) -> None:
        first, _ = await store.mark_completed(user_id, course_id, section_id)
        second, completed_now = await store.mark_completed(
            user_id, course_id, section_id
        )

        assert completed_now is False
        assert second.completion_date == first.completion_date
        assert second.is_completed is True
        assert fake_session.writes == ["insert"]

    @pytest.mark.asyncio
    async def test_keeps_time_and_position(
        self, store, user_id, course_id, section_id
    ) -> None:
        await store.upsert_progress(user_id, course_id, section_id, 40.0, 60)
        record, completed_now = await store.mark_completed(
            user_id, course_id, section_id
        )

        assert completed_now is True

        assert record.time_spent == 60
        assert record.last_position == 40.0
        assert record.is_completed is True


class TestReads:
    """Lookups."""

    @pytest.mark.asyncio
    async def test_get_progress_not_found(
        self, store, user_id, course_id, section_id
    ) -> None:
        with pytest.raises(ProgressNotFoundError):
            await store.get_progress(user_id, course_id, section_id)

    @pytest.mark.asyncio
    async def test_find_progress_returns_none(
        self, store, user_id, course_id, section_id
    ) -> None:
        assert await store.find_progress(user_id, course_id, section_id) is None

    @pytest.mark.asyncio
    async def test_course_progress_is_scoped_to_user_and_course(
        self, store, user_id, course_id
    ) -> None:
        s1, s2 = uuid4(), uuid4()
        await store.upsert_progress(user_id, course_id, s1, 10.0, 30)
        await store.upsert_progress(user_id, course_id, s2, 10.0, 30)
        await store.upsert_progress(uuid4(), course_id, s1, 10.0, 30)
        await store.upsert_progress(user_id, uuid4(), s1, 10.0, 30)

        records = await store.get_progress_for_course(user_id, course_id)

        assert {r.section_id for r in records} == {s1, s2}


class TestNotes:
    """Free-form notes."""

    @pytest.mark.asyncio
    async def test_notes_create_record_lazily(
        self, store, user_id, course_id, section_id
    ) -> None:
        record = await store.update_notes(user_id, course_id, section_id, "Review")

        assert record.notes == "Review"
        assert record.time_spent == 0
        assert record.is_completed is False

    @pytest.mark.asyncio
    async def test_notes_survive_progress_writes(
        self, store, user_id, course_id, section_id
    ) -> None:
        await store.update_notes(user_id, course_id, section_id, "Dosage table")
        record = await store.upsert_progress(user_id, course_id, section_id, 30.0, 30)

        assert record.notes == "Dosage table"
        assert record.time_spent == 30


class TestDriverErrors:
    """Availability errors become TransientStoreError."""

    @pytest.fixture
    def mock_session(self):
        session = Mock(spec=Session)
        # One distinct prepared statement per query
        session.prepare = Mock(side_effect=lambda query: Mock())
        return session

    @pytest.mark.parametrize(
        "error",
        [
            Unavailable("not enough replicas"),
            WriteTimeout("paxos timeout"),
            NoHostAvailable("no hosts", {}),
        ],
    )
    @pytest.mark.asyncio
    async def test_driver_errors_are_mapped(
        self, mock_session, error, user_id, course_id
    ) -> None:
        mock_session.aexecute = AsyncMock(side_effect=error)
        store = ProgressStore(session=mock_session, keyspace="test_keyspace")

        with pytest.raises(TransientStoreError):
            await store.upsert_progress(user_id, course_id, uuid4(), 10.0, 30)

    def test_cas_reads_use_serial_consistency(self, mock_session) -> None:
        store = ProgressStore(session=mock_session, keyspace="test_keyspace")
        assert store._get_progress_serial.consistency_level == (
            ConsistencyLevel.LOCAL_SERIAL
        )
