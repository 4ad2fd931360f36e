"""Event emission for reminder and reschedule state transitions."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any, Protocol
from uuid import uuid4

logger = logging.getLogger("remindly.notifications")


class EventType(str, Enum):
    """Types of events that can be emitted."""

    REMINDER_CREATED = "reminder_created"
    RESCHEDULE_REQUESTED = "reschedule_requested"
    RESCHEDULE_REVIEWED = "reschedule_reviewed"


@dataclass
class Event:
    """A state transition observed by subscribers."""

    event_type: EventType
    data: dict[str, Any]
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))


EventHandler = Callable[[Event], None]


@dataclass
class Subscriber:
    """A subscriber to the event stream."""

    id: str
    handler: EventHandler
    event_types: frozenset[EventType] | None = None  # None means every event type

    @classmethod
    def create(
        cls, handler: EventHandler, event_types: set[EventType] | None = None
    ) -> Subscriber:
        """Create a new subscriber."""
        return cls(
            id=str(uuid4()),
            handler=handler,
            event_types=frozenset(event_types) if event_types is not None else None,
        )

    def accepts(self, event: Event) -> bool:
        return self.event_types is None or event.event_type in self.event_types


class WorkflowObserver(Protocol):
    """What the scheduling service and reschedule workflow emit to."""

    def emit_reminder_created(
        self,
        reminder_id: str,
        title: str,
        date: str,
        time: str,
        created_by: str,
        assigned_to: list[str],
    ) -> None: ...

    def emit_reschedule_requested(
        self,
        request_id: str,
        reminder_id: str,
        reminder_title: str,
        requested_by: str,
        proposed_date: str,
        proposed_time: str,
        reason: str,
    ) -> None: ...

    def emit_reschedule_reviewed(
        self,
        request_id: str,
        reminder_id: str,
        reminder_title: str,
        requested_by: str,
        reviewed_by: str,
        status: str,
        proposed_date: str,
        proposed_time: str,
    ) -> None: ...


@dataclass
class EventManager:
    """Synchronous publish/subscribe hub.

    A failing subscriber is logged and skipped; the emitter never sees its
    exception.
    """

    _subscribers: dict[str, Subscriber] = field(default_factory=dict)

    def subscribe(
        self, handler: EventHandler, event_types: set[EventType] | None = None
    ) -> Subscriber:
        """Subscribe a handler to events.

        Args:
            handler: Callable invoked with each matching event.
            event_types: Event types to receive. None means all of them.

        Returns:
            Subscriber instance, whose id can be used to unsubscribe.
        """
        subscriber = Subscriber.create(handler, event_types)
        self._subscribers[subscriber.id] = subscriber
        return subscriber

    def unsubscribe(self, subscriber_id: str) -> None:
        """Unsubscribe a handler from events.

        Args:
            subscriber_id: ID of the subscriber to remove.
        """
        self._subscribers.pop(subscriber_id, None)

    def emit(self, event: Event) -> None:
        """Deliver an event to all matching subscribers.

        Args:
            event: Event to emit.
        """
        for subscriber in list(self._subscribers.values()):
            if not subscriber.accepts(event):
                continue
            try:
                subscriber.handler(event)
            except Exception:
                logger.exception(
                    "Subscriber %s failed handling %s", subscriber.id, event.event_type.value
                )

    @property
    def subscriber_count(self) -> int:
        """Get the number of active subscribers."""
        return len(self._subscribers)

    # Convenience methods for emitting specific event types

    def emit_reminder_created(
        self,
        reminder_id: str,
        title: str,
        date: str,
        time: str,
        created_by: str,
        assigned_to: list[str],
    ) -> None:
        """Emit a reminder_created event."""
        self.emit(
            Event(
                event_type=EventType.REMINDER_CREATED,
                data={
                    "reminder_id": reminder_id,
                    "title": title,
                    "date": date,
                    "time": time,
                    "created_by": created_by,
                    "assigned_to": list(assigned_to),
                },
            )
        )

    def emit_reschedule_requested(
        self,
        request_id: str,
        reminder_id: str,
        reminder_title: str,
        requested_by: str,
        proposed_date: str,
        proposed_time: str,
        reason: str,
    ) -> None:
        """Emit a reschedule_requested event."""
        self.emit(
            Event(
                event_type=EventType.RESCHEDULE_REQUESTED,
                data={
                    "request_id": request_id,
                    "reminder_id": reminder_id,
                    "reminder_title": reminder_title,
                    "requested_by": requested_by,
                    "proposed_date": proposed_date,
                    "proposed_time": proposed_time,
                    "reason": reason,
                },
            )
        )

    def emit_reschedule_reviewed(
        self,
        request_id: str,
        reminder_id: str,
        reminder_title: str,
        requested_by: str,
        reviewed_by: str,
        status: str,
        proposed_date: str,
        proposed_time: str,
    ) -> None:
        """Emit a reschedule_reviewed event."""
        self.emit(
            Event(
                event_type=EventType.RESCHEDULE_REVIEWED,
                data={
                    "request_id": request_id,
                    "reminder_id": reminder_id,
                    "reminder_title": reminder_title,
                    "requested_by": requested_by,
                    "reviewed_by": reviewed_by,
                    "status": status,
                    "proposed_date": proposed_date,
                    "proposed_time": proposed_time,
                },
            )
        )
