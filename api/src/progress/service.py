"""Section progress tracking service layer.

Business logic for:
- Progress flushes with implicit completion of video sections
- Explicit section completion
- Course completion summaries
- Resume lookups and student notes
"""

from typing import TYPE_CHECKING
from uuid import UUID

import structlog
from redis.exceptions import RedisError

from src.config.settings import Settings, get_settings
from src.core.redis import flush_rate_key
from src.courses.service import CatalogService

from .aggregator import CourseCompletion, compute_course_completion
from .exceptions import FlushRateLimitedError, ProgressValidationError
from .models import ProgressRecord
from .policy import SectionCompletionPolicy
from .store import ProgressStore


if TYPE_CHECKING:
    import redis.asyncio as redis

logger = structlog.get_logger(__name__)

MAX_POSITION = 100.0


class ProgressService:
    """Service for student progress tracking."""

    def __init__(
        self,
        store: ProgressStore,
        catalog: CatalogService,
        policy: SectionCompletionPolicy | None = None,
        redis: "redis.Redis | None" = None,
        settings: Settings | None = None,
    ):
        self.settings = settings or get_settings()
        self.store = store
        self.catalog = catalog
        self.policy = policy or SectionCompletionPolicy(
            self.settings.progress_completion_threshold
        )
        self.redis = redis

    # ==========================================================================
    # Rate Limiting (Redis-based)
    # ==========================================================================

    async def check_flush_rate(self, user_id: UUID) -> None:
        """Count a flush against the user's per-minute budget.

        Raises:
            FlushRateLimitedError: If the budget for this minute is spent
        """
        if not self.redis:
            return

        key = flush_rate_key(str(user_id))
        try:
            pipe = self.redis.pipeline()
            pipe.incr(key)
            pipe.expire(key, 60)
            count, _ = await pipe.execute()
        except RedisError as e:
            logger.warning("flush_rate_check_skipped", error=str(e))
            return

        if int(count) > self.settings.progress_flush_rate_limit_per_minute:
            logger.warning("progress_flush_rate_limited", user_id=str(user_id))
            raise FlushRateLimitedError

    # ==========================================================================
    # Writes
    # ==========================================================================

    def validate_flush(self, last_position: float, time_spent: int) -> None:
        """Reject flush payloads outside the accepted ranges.

        Raises:
            ProgressValidationError: If a value is out of range
        """
        if time_spent < 0:
            raise ProgressValidationError("time_spent cannot be negative")
        if time_spent > self.settings.progress_max_flush_seconds:
            raise ProgressValidationError(
                f"time_spent cannot exceed "
                f"{self.settings.progress_max_flush_seconds} seconds per update"
            )
        if not 0 <= last_position <= MAX_POSITION:
            raise ProgressValidationError("last_position must be between 0 and 100")

    async def update_progress(
        self,
        user_id: UUID,
        course_id: UUID,
        section_id: UUID,
        last_position: float,
        time_spent: int,
        ended: bool = False,
    ) -> ProgressRecord:
        """Apply one flush from the client reporter.

        ``time_spent`` is the increment since the previous flush, never a
        running total. Video sections complete in the same write once the
        completion policy says so.

        Raises:
            ProgressValidationError: If the payload is out of range
            FlushRateLimitedError: If the user flushes too often
            SectionNotFoundError: If the section is not part of the course
            TransientStoreError: If the store is unavailable
        """
        self.validate_flush(last_position, time_spent)
        await self.check_flush_rate(user_id)

        section = await self.catalog.require_section(course_id, section_id)
        complete = self.policy.should_complete(section, last_position, ended)

        record = await self.store.upsert_progress(
            user_id=user_id,
            course_id=course_id,
            section_id=section_id,
            last_position=last_position,
            additional_time_spent=time_spent,
            complete=complete,
        )

        if record.just_completed:
            logger.info(
                "section_auto_completed",
                user_id=str(user_id),
                course_id=str(course_id),
                section_id=str(section_id),
                last_position=last_position,
                ended=ended,
            )

        return record

    async def complete_section(
        self, user_id: UUID, course_id: UUID, section_id: UUID
    ) -> ProgressRecord:
        """Explicitly complete a section (idempotent).

        Raises:
            SectionNotFoundError: If the section is not part of the course
            TransientStoreError: If the store is unavailable
        """
        await self.catalog.require_section(course_id, section_id)
        record, completed_now = await self.store.mark_completed(
            user_id, course_id, section_id
        )

        if completed_now:
            logger.info(
                "section_completed",
                user_id=str(user_id),
                course_id=str(course_id),
                section_id=str(section_id),
            )

        return record

    async def update_notes(
        self,
        user_id: UUID,
        course_id: UUID,
        section_id: UUID,
        notes: str | None,
    ) -> ProgressRecord:
        """Save the student's notes for a section.

        Raises:
            SectionNotFoundError: If the section is not part of the course
        """
        await self.catalog.require_section(course_id, section_id)
        return await self.store.update_notes(user_id, course_id, section_id, notes)

    # ==========================================================================
    # Reads
    # ==========================================================================

    async def get_course_progress(
        self, user_id: UUID, course_id: UUID
    ) -> CourseCompletion:
        """Completion summary of a user in a course.

        Raises:
            CourseNotFoundError: If the course does not exist
        """
        await self.catalog.require_course(course_id)
        sections = await self.catalog.list_sections(course_id)
        records = await self.store.get_progress_for_course(user_id, course_id)

        return compute_course_completion(
            course_id=course_id,
            section_ids=[s.id for s in sections],
            records=records,
        )

    async def get_section_progress(
        self, user_id: UUID, course_id: UUID, section_id: UUID
    ) -> ProgressRecord | None:
        """Resume lookup; None when the section was never opened."""
        return await self.store.find_progress(user_id, course_id, section_id)
