"""Client-side reporter of time spent and position in a section.

The reporter counts active seconds while a student consumes a section and
periodically flushes the increment to the progress API:

- ``tick()`` accumulates whole seconds from the clock; nothing is sent per tick
- every ``flush_interval`` seconds of active time a flush is dispatched
- ``pause()``, ``stop()``, ``close()`` and switching sections flush whatever
  accumulated since the last flush
- the counter is reset when a flush is dispatched, so each flush carries only
  its own increment; a failed flush is logged and dropped

Flushes run as background tasks; ticks never wait for the network.
"""

import asyncio
import contextlib
import time
from collections.abc import Callable
from enum import Enum
from typing import Any
from uuid import UUID

import structlog

from .transport import ProgressClientError, ProgressTransport


logger = structlog.get_logger(__name__)

DEFAULT_FLUSH_INTERVAL = 30
END_POSITION = 100.0


class ReporterState(str, Enum):
    """Reporter lifecycle."""

    IDLE = "idle"  # No section, or paused
    ACTIVE = "active"  # Counting time
    STOPPED = "stopped"  # Section left or reporter closed


class ProgressReporter:
    """Tracks one section at a time for one course."""

    def __init__(
        self,
        transport: ProgressTransport,
        course_id: UUID,
        flush_interval: int = DEFAULT_FLUSH_INTERVAL,
        clock: Callable[[], float] = time.monotonic,
        on_completed: Callable[[UUID], None] | None = None,
        tick_interval: float = 1.0,
    ):
        self.transport = transport
        self.course_id = course_id
        self.flush_interval = flush_interval
        self.clock = clock
        self.on_completed = on_completed
        self.tick_interval = tick_interval

        self.state = ReporterState.IDLE
        self.section_id: UUID | None = None
        self.position = 0.0

        self._unflushed = 0
        self._mark: float | None = None
        self._completed: set[UUID] = set()
        self._inflight: set[asyncio.Task] = set()
        self._ticker: asyncio.Task | None = None
        self._closed = False

    @property
    def unflushed_seconds(self) -> int:
        """Active seconds not yet dispatched."""
        return self._unflushed

    def is_completed(self, section_id: UUID) -> bool:
        """Whether the reporter knows the section is complete."""
        return section_id in self._completed

    # ==========================================================================
    # Lifecycle
    # ==========================================================================

    def start(
        self, section_id: UUID, position: float = 0.0, completed: bool = False
    ) -> None:
        """Begin (or resume) timing a section.

        Starting a different section stops the current one first, flushing its
        pending time. ``completed`` seeds what the caller already knows, e.g.
        from a resume check.
        """
        if self._closed:
            msg = "Reporter is closed"
            raise RuntimeError(msg)

        if self.section_id is not None and self.section_id != section_id:
            self.stop()
        elif self.state == ReporterState.ACTIVE:
            # Same section: keep the seconds elapsed since the last tick
            self.tick()

        if self.section_id != section_id:
            self.section_id = section_id
            self.position = position
            self._unflushed = 0

        if completed:
            self._completed.add(section_id)

        self.state = ReporterState.ACTIVE
        self._mark = self.clock()

    def tick(self) -> None:
        """Accumulate elapsed whole seconds; flush every ``flush_interval``."""
        if self.state != ReporterState.ACTIVE or self._mark is None:
            return

        now = self.clock()
        elapsed = int(now - self._mark)
        if elapsed <= 0:
            return

        # Keep the fractional remainder for the next tick
        self._mark += elapsed
        self._unflushed += elapsed

        if self._unflushed >= self.flush_interval:
            self._dispatch()

    def update_position(self, position: float) -> None:
        """Record the current position (percentage 0-100)."""
        self.position = min(max(position, 0.0), END_POSITION)

    def pause(self) -> None:
        """Stop counting and flush pending time; ``start`` resumes."""
        if self.state != ReporterState.ACTIVE:
            return
        self.tick()
        self.state = ReporterState.IDLE
        self._mark = None
        if self._unflushed > 0:
            self._dispatch()

    def stop(self) -> None:
        """Leave the current section, flushing pending time."""
        if self.state == ReporterState.ACTIVE:
            self.tick()
        if self.section_id is not None and self._unflushed > 0:
            self._dispatch()
        self.state = ReporterState.STOPPED
        self._mark = None

    def ended(self) -> None:
        """The video reached its end: flush with ``ended=True`` at 100%.

        Timing stops with the content; ``start`` begins a replay.
        """
        if self.section_id is None:
            return
        if self.state == ReporterState.ACTIVE:
            self.tick()
        self.position = END_POSITION
        self._dispatch(ended=True)
        self.state = ReporterState.STOPPED
        self._mark = None

    async def close(self) -> None:
        """Stop, cancel the ticker and wait for in-flight flushes."""
        self.stop()
        self._closed = True
        if self._ticker is not None:
            self._ticker.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._ticker
            self._ticker = None
        await self.drain()

    # ==========================================================================
    # Explicit completion
    # ==========================================================================

    async def mark_complete(
        self, section_id: UUID | None = None
    ) -> dict[str, Any] | None:
        """User-initiated completion of a section (current one by default).

        Returns None without calling the API when the section is already known
        to be complete.

        Raises:
            ProgressClientError: If the API call fails
        """
        target = section_id or self.section_id
        if target is None:
            msg = "No section to complete"
            raise RuntimeError(msg)
        if target in self._completed:
            return None

        response = await self.transport.complete_section(self.course_id, target)
        self._set_completed(target)
        return response

    # ==========================================================================
    # Background work
    # ==========================================================================

    def start_ticker(self) -> asyncio.Task:
        """Run ``tick()`` every ``tick_interval`` seconds until closed."""
        if self._ticker is None or self._ticker.done():
            self._ticker = asyncio.get_running_loop().create_task(self._run_ticker())
        return self._ticker

    async def _run_ticker(self) -> None:
        while not self._closed:
            await asyncio.sleep(self.tick_interval)
            self.tick()

    async def drain(self) -> None:
        """Wait for every in-flight flush."""
        if self._inflight:
            await asyncio.gather(*self._inflight)

    def _dispatch(self, ended: bool = False) -> None:
        """Send the pending increment in the background and reset the counter."""
        increment = self._unflushed
        self._unflushed = 0
        task = asyncio.get_running_loop().create_task(
            self._send(self.section_id, self.position, increment, ended)
        )
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)

    async def _send(
        self, section_id: UUID, position: float, increment: int, ended: bool
    ) -> None:
        try:
            response = await self.transport.update_progress(
                course_id=self.course_id,
                section_id=section_id,
                last_position=position,
                time_spent=increment,
                ended=ended,
            )
        except ProgressClientError as e:
            logger.warning(
                "progress_flush_failed",
                course_id=str(self.course_id),
                section_id=str(section_id),
                time_spent=increment,
                status_code=e.status_code,
                error=e.message,
            )
            return

        logger.debug(
            "progress_flush_sent",
            section_id=str(section_id),
            time_spent=increment,
            ended=ended,
        )
        if response.get("is_completed"):
            self._set_completed(section_id)

    def _set_completed(self, section_id: UUID) -> None:
        if section_id in self._completed:
            return
        self._completed.add(section_id)
        logger.info("section_completion_observed", section_id=str(section_id))
        if self.on_completed is not None:
            self.on_completed(section_id)
