"""Periodic check for a due check-in reminder."""

from __future__ import annotations

import inspect
import logging
from typing import Awaitable, Callable

from .db import ReminderStore

logger = logging.getLogger(__name__)


class ReminderScheduler:
    """Polls the reminder store and fires a notification when it is due.

    Uses APScheduler for interval-based scheduling. The reminder itself is
    not cleared here; it stays due until the user analyses a new photo.
    """

    def __init__(
        self,
        config,
        store: ReminderStore,
        notify: Callable[[], Awaitable[None] | None],
    ) -> None:
        """Initialize scheduler with a BodyFatConfig.

        Args:
            config: BodyFatConfig instance.
            store: Reminder store to poll.
            notify: Called (and awaited if it is a coroutine function) once
                per due reminder.

        Raises:
            ImportError: If apscheduler is not installed.
        """
        try:
            from apscheduler.schedulers.asyncio import AsyncIOScheduler
            from apscheduler.triggers.interval import IntervalTrigger
        except ImportError:
            raise ImportError(
                "apscheduler is required: pip install 'bodyfatai[scheduler]'"
            )

        self._config = config
        self._store = store
        self._notify = notify
        self._scheduler = AsyncIOScheduler()
        self._IntervalTrigger = IntervalTrigger
        self._running = False
        self._notified_due: int | None = None

    def setup_jobs(self) -> None:
        """Register the reminder check job."""
        minutes = self._config.reminder.check_minutes
        self._scheduler.add_job(
            self.check_reminder,
            trigger=self._IntervalTrigger(minutes=minutes),
            id="check_reminder",
            name="Check-in reminder",
            replace_existing=True,
        )
        logger.info("Reminder check registered: every %d min", minutes)

    def start(self) -> None:
        self.setup_jobs()
        self._scheduler.start()
        self._running = True
        logger.info("Scheduler started")

    def stop(self) -> None:
        if self._running:
            self._scheduler.shutdown(wait=False)
            self._running = False
            logger.info("Scheduler stopped")

    @property
    def running(self) -> bool:
        return self._running

    def get_jobs(self) -> list[dict]:
        """Return info about scheduled jobs."""
        jobs = []
        for job in self._scheduler.get_jobs():
            next_run = getattr(job, "next_run_time", None)
            jobs.append({
                "id": job.id,
                "name": job.name,
                "next_run": str(next_run) if next_run else None,
            })
        return jobs

    async def check_reminder(self) -> bool:
        """Notify if the stored reminder is due and not yet notified.

        Returns True when a notification was sent.
        """
        try:
            if not self._store.is_due():
                return False
            due = self._store.due_at()
            if due == self._notified_due:
                return False

            logger.info("Check-in reminder is due")
            result = self._notify()
            if inspect.isawaitable(result):
                await result
            self._notified_due = due
            return True
        except Exception:
            logger.exception("Reminder check failed")
            return False
