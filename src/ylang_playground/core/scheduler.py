"""Coalescing timer built on APScheduler.

A ``DebounceScheduler`` holds at most one armed one-shot job. Re-arming while
a job is pending replaces it (same job id, ``replace_existing=True``), so a
burst of edits produces a single callback once the quiet interval elapses.
Callbacks are coroutines. The job only starts them as tasks on the scheduler's
event loop, the same loop that processes edits, so a callback that is still
running never blocks the next firing of the job id.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime, timedelta
from typing import Any

from apscheduler.jobstores.base import JobLookupError  # type: ignore[import-untyped]
from apscheduler.schedulers.asyncio import (  # type: ignore[import-untyped]
    AsyncIOScheduler,
)
from apscheduler.triggers.date import DateTrigger  # type: ignore[import-untyped]


logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE_SECONDS = 1.0
DEFAULT_JOB_ID = "debounced_action"

DebouncedCallback = Callable[[], Awaitable[Any]]


class DebounceScheduler:
    """Arm, re-arm and cancel a single delayed coroutine call.

    Must be used from inside a running asyncio event loop; the underlying
    ``AsyncIOScheduler`` is started lazily on the first ``schedule()``.
    """

    def __init__(
        self,
        interval_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
        *,
        job_id: str = DEFAULT_JOB_ID,
        name: str = "Debounced action",
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self.interval_seconds = interval_seconds
        self.job_id = job_id
        self.name = name
        self._scheduler: AsyncIOScheduler | None = None
        self._closed = False
        self._running: set[asyncio.Task[Any]] = set()

    def _ensure_started(self) -> AsyncIOScheduler:
        if self._scheduler is None:
            self._scheduler = AsyncIOScheduler(timezone="UTC")
        if not self._scheduler.running:
            self._scheduler.start()
            logger.debug("Debounce scheduler started for %s", self.job_id)
        return self._scheduler

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def running(self) -> int:
        """Callbacks started by the timer that have not finished yet."""
        return len(self._running)

    @property
    def armed(self) -> bool:
        if self._scheduler is None or not self._scheduler.running:
            return False
        return self._scheduler.get_job(self.job_id) is not None

    def schedule(self, callback: DebouncedCallback) -> None:
        """Arm the timer, replacing any timer that is already armed."""
        if self._closed:
            raise RuntimeError("DebounceScheduler has been shut down")
        scheduler = self._ensure_started()
        run_date = datetime.now(UTC) + timedelta(seconds=self.interval_seconds)
        scheduler.add_job(
            self._fire,
            trigger=DateTrigger(run_date=run_date, timezone="UTC"),
            args=[callback],
            id=self.job_id,
            name=self.name,
            replace_existing=True,
            misfire_grace_time=None,
        )

    def cancel(self) -> None:
        """Disarm the timer without firing; a no-op when nothing is armed."""
        if self._scheduler is None or not self._scheduler.running:
            return
        try:
            self._scheduler.remove_job(self.job_id)
        except JobLookupError:
            return
        logger.debug("Debounced job %s cancelled", self.job_id)

    def shutdown(self) -> None:
        """Disarm and stop the scheduler; later ``schedule()`` calls fail."""
        self.cancel()
        self._closed = True
        if self._scheduler is not None and self._scheduler.running:
            self._scheduler.shutdown(wait=False)
            logger.debug("Debounce scheduler for %s shut down", self.job_id)

    async def _fire(self, callback: DebouncedCallback) -> None:
        # APScheduler allows one running instance per job id; return at once
        task = asyncio.ensure_future(callback())
        self._running.add(task)
        task.add_done_callback(self._finished)

    def _finished(self, task: asyncio.Task[Any]) -> None:
        self._running.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(f"Debounced job {self.job_id} failed: {exc}", exc_info=exc)
