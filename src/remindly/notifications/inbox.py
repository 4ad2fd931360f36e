"""NotificationCenter - per-user in-memory notification inbox."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING
from uuid import uuid4

from remindly.exceptions import NotFoundError, UserNotFoundError
from remindly.notifications.events import Event, EventManager, EventType
from remindly.state_store.models import Role

if TYPE_CHECKING:
    from remindly.state_store import StateStore

logger = logging.getLogger("remindly.notifications")


class NotificationNotFoundError(NotFoundError):
    """Notification with given ID does not exist for this user."""


@dataclass
class Notification:
    """A notification shown to one user."""

    user_id: str
    type: EventType
    title: str
    message: str
    reminder_id: str | None = None
    id: str = field(default_factory=lambda: str(uuid4()))
    is_read: bool = False
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))


class NotificationCenter:
    """Turns workflow events into notifications and keeps them in memory.

    Notifications live only as long as the process. Nothing is pushed to
    clients; they poll their inbox.
    """

    def __init__(self, store: StateStore, event_manager: EventManager) -> None:
        self._store = store
        self._inbox: dict[str, list[Notification]] = {}
        self._lock = threading.Lock()
        self._handlers = {
            EventType.REMINDER_CREATED: self._on_reminder_created,
            EventType.RESCHEDULE_REQUESTED: self._on_reschedule_requested,
            EventType.RESCHEDULE_REVIEWED: self._on_reschedule_reviewed,
        }
        self._subscriber = event_manager.subscribe(self.handle)
        self._event_manager = event_manager

    def close(self) -> None:
        """Stop receiving events."""
        self._event_manager.unsubscribe(self._subscriber.id)

    def handle(self, event: Event) -> None:
        handler = self._handlers.get(event.event_type)
        if handler is not None:
            handler(event.data)

    # --- Inbox operations ---

    def list_for(self, user_id: str) -> list[Notification]:
        """Notifications for a user, newest first."""
        with self._lock:
            return list(reversed(self._inbox.get(user_id, [])))

    def unread_count(self, user_id: str) -> int:
        with self._lock:
            return sum(1 for n in self._inbox.get(user_id, []) if not n.is_read)

    def mark_read(self, user_id: str, notification_id: str) -> Notification:
        """Mark one notification read.

        Raises:
            NotificationNotFoundError: If the user has no such notification
        """
        with self._lock:
            notification = self._find(user_id, notification_id)
            notification.is_read = True
            return notification

    def mark_all_read(self, user_id: str) -> int:
        """Mark every notification read; returns how many changed."""
        with self._lock:
            changed = 0
            for notification in self._inbox.get(user_id, []):
                if not notification.is_read:
                    notification.is_read = True
                    changed += 1
            return changed

    def delete(self, user_id: str, notification_id: str) -> None:
        """Remove a notification.

        Raises:
            NotificationNotFoundError: If the user has no such notification
        """
        with self._lock:
            notification = self._find(user_id, notification_id)
            self._inbox[user_id].remove(notification)

    def _find(self, user_id: str, notification_id: str) -> Notification:
        for notification in self._inbox.get(user_id, []):
            if notification.id == notification_id:
                return notification
        raise NotificationNotFoundError(f"Notification '{notification_id}' not found")

    def _push(self, notification: Notification) -> None:
        with self._lock:
            self._inbox.setdefault(notification.user_id, []).append(notification)

    # --- Event handlers ---

    def _on_reminder_created(self, data: dict) -> None:
        recipients = data["assigned_to"] or [
            u.id for u in self._store.list_users(role=Role.STUDENT)
        ]
        for user_id in recipients:
            self._push(
                Notification(
                    user_id=user_id,
                    type=EventType.REMINDER_CREATED,
                    title="New task assigned",
                    message=f'"{data["title"]}" is scheduled for {data["date"]} at {data["time"]}.',
                    reminder_id=data["reminder_id"],
                )
            )
        logger.debug("Queued reminder_created for %d user(s)", len(recipients))

    def _on_reschedule_requested(self, data: dict) -> None:
        title = data["reminder_title"]
        slot = f'{data["proposed_date"]} at {data["proposed_time"]}'
        self._push(
            Notification(
                user_id=data["requested_by"],
                type=EventType.RESCHEDULE_REQUESTED,
                title="Reschedule requested",
                message=f'You requested to reschedule "{title}" to {slot}. '
                "Awaiting admin approval.",
                reminder_id=data["reminder_id"],
            )
        )

        try:
            student_name = self._store.get_user(data["requested_by"]).name
        except UserNotFoundError:
            student_name = "A student"
        message = f'{student_name} has requested to reschedule "{title}" to {slot}.'
        if data["reason"]:
            message += f' Reason: {data["reason"]}'
        for admin in self._store.list_users(role=Role.ADMIN):
            self._push(
                Notification(
                    user_id=admin.id,
                    type=EventType.RESCHEDULE_REQUESTED,
                    title="Reschedule request",
                    message=message,
                    reminder_id=data["reminder_id"],
                )
            )

    def _on_reschedule_reviewed(self, data: dict) -> None:
        status = data["status"]
        self._push(
            Notification(
                user_id=data["requested_by"],
                type=EventType.RESCHEDULE_REVIEWED,
                title=f"Reschedule {status}",
                message=(
                    f'Your request to move "{data["reminder_title"]}" to '
                    f'{data["proposed_date"]} at {data["proposed_time"]} was {status}.'
                ),
                reminder_id=data["reminder_id"],
            )
        )
