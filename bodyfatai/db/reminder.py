"""The single "check in again" reminder timestamp."""

from __future__ import annotations

import logging
import sqlite3
import time
from pathlib import Path
from typing import Protocol

from .schema import ensure_schema

logger = logging.getLogger(__name__)

REMINDER_KEY = "bodyfatai_next_reminder"
TWO_WEEKS_MS = 14 * 24 * 60 * 60 * 1000


def now_ms() -> int:
    return int(time.time() * 1000)


class PushRegistrar(Protocol):
    """Registers a device for a push notification at *due_at_ms*."""

    async def register(self, due_at_ms: int) -> None: ...


class ReminderStore:
    """Stores at most one due-at timestamp (epoch milliseconds) under one key."""

    def __init__(
        self,
        db_path: str | Path = "~/.config/bodyfatai/state.db",
        key: str = REMINDER_KEY,
    ) -> None:
        self._db_path = db_path
        self._key = key
        self._conn: sqlite3.Connection | None = None

    def _get_conn(self) -> sqlite3.Connection:
        if self._conn is None:
            self._conn = ensure_schema(self._db_path)
        return self._conn

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def due_at(self) -> int | None:
        """Return the stored due timestamp, or None if nothing is scheduled."""
        row = self._get_conn().execute(
            "SELECT value FROM kv_store WHERE key = ?", (self._key,)
        ).fetchone()
        if row is None:
            return None
        try:
            return int(row["value"])
        except ValueError:
            logger.warning("Ignoring malformed reminder value %r", row["value"])
            return None

    def is_due(self, now: int | None = None) -> bool:
        """True once the current time is past the stored due timestamp."""
        due = self.due_at()
        if due is None:
            return False
        return (now_ms() if now is None else now) > due

    def schedule_in(self, duration_ms: int, now: int | None = None) -> int:
        """Replace any existing reminder with one due *duration_ms* from now."""
        due = (now_ms() if now is None else now) + duration_ms
        conn = self._get_conn()
        conn.execute(
            """INSERT INTO kv_store (key, value) VALUES (?, ?)
               ON CONFLICT(key) DO UPDATE SET
                   value = excluded.value,
                   updated_at = datetime('now', 'localtime')""",
            (self._key, str(due)),
        )
        conn.commit()
        logger.info("Reminder scheduled for %s", time.strftime(
            "%Y-%m-%d %H:%M", time.localtime(due / 1000)
        ))
        return due

    def clear(self) -> None:
        conn = self._get_conn()
        conn.execute("DELETE FROM kv_store WHERE key = ?", (self._key,))
        conn.commit()


async def schedule_two_week_reminder(
    store: ReminderStore,
    push: PushRegistrar | None = None,
    duration_ms: int = TWO_WEEKS_MS,
) -> int:
    """Store the next reminder locally, then try to arrange a push notification.

    The local timestamp is written first and is kept whether or not the push
    registration succeeds.
    """
    due = store.schedule_in(duration_ms)
    if push is not None:
        try:
            await push.register(due)
        except Exception:
            logger.exception("Push notification registration failed")
    return due
