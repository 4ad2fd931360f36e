"""State Store - Persistent storage for users, reminders, and reschedule requests."""

from remindly.state_store.models import (
    DEFAULT_DURATION_MINUTES,
    Category,
    NotificationType,
    Priority,
    Reminder,
    ReminderFilter,
    ReminderStatus,
    RequestStatus,
    RescheduleRequest,
    Role,
    TargetFilter,
    User,
)
from remindly.state_store.store import REMINDER_PATCHABLE_FIELDS, StateStore

__all__ = [
    "Category",
    "DEFAULT_DURATION_MINUTES",
    "NotificationType",
    "Priority",
    "REMINDER_PATCHABLE_FIELDS",
    "Reminder",
    "ReminderFilter",
    "ReminderStatus",
    "RequestStatus",
    "RescheduleRequest",
    "Role",
    "StateStore",
    "TargetFilter",
    "User",
]
