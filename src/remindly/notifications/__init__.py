"""Notifications - workflow events and the in-memory inbox that observes them."""

from remindly.notifications.events import (
    Event,
    EventManager,
    EventType,
    Subscriber,
    WorkflowObserver,
)
from remindly.notifications.inbox import (
    Notification,
    NotificationCenter,
    NotificationNotFoundError,
)

__all__ = [
    "Event",
    "EventManager",
    "EventType",
    "Notification",
    "NotificationCenter",
    "NotificationNotFoundError",
    "Subscriber",
    "WorkflowObserver",
]
