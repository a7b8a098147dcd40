"""SQLite-backed local state for the reminder timestamp."""

from .reminder import TWO_WEEKS_MS, PushRegistrar, ReminderStore, schedule_two_week_reminder
from .schema import ensure_schema

__all__ = [
    "ReminderStore",
    "PushRegistrar",
    "TWO_WEEKS_MS",
    "schedule_two_week_reminder",
    "ensure_schema",
]
