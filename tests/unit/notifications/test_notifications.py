"""Unit tests for the event hub and the notification inbox."""

import logging

import pytest

from remindly.notifications import (
    Event,
    EventManager,
    EventType,
    NotificationCenter,
    NotificationNotFoundError,
)
from remindly.state_store import StateStore, User


@pytest.mark.unit
class TestEventManager:
    """Tests for subscribe/emit."""

    def test_subscriber_receives_events(self, events: EventManager) -> None:
        received: list[Event] = []
        events.subscribe(received.append)

        events.emit_reminder_created("r-1", "Exam", "2025-06-01", "10:00", "a-1", ["s-1"])

        assert len(received) == 1
        assert received[0].event_type == EventType.REMINDER_CREATED
        assert received[0].data["assigned_to"] == ["s-1"]

    def test_event_type_filter(self, events: EventManager) -> None:
        received: list[Event] = []
        events.subscribe(received.append, {EventType.RESCHEDULE_REVIEWED})

        events.emit_reminder_created("r-1", "Exam", "2025-06-01", "10:00", "a-1", [])

        assert received == []

    def test_unsubscribe(self, events: EventManager) -> None:
        received: list[Event] = []
        subscriber = events.subscribe(received.append)

        events.unsubscribe(subscriber.id)
        events.emit_reminder_created("r-1", "Exam", "2025-06-01", "10:00", "a-1", [])

        assert received == []
        assert events.subscriber_count == 0

    def test_failing_subscriber_is_isolated(
        self, events: EventManager, caplog: pytest.LogCaptureFixture
    ) -> None:
        received: list[Event] = []

        def broken(_event: Event) -> None:
            raise RuntimeError("subscriber exploded")

        events.subscribe(broken)
        events.subscribe(received.append)

        with caplog.at_level(logging.ERROR, logger="remindly.notifications"):
            events.emit_reminder_created("r-1", "Exam", "2025-06-01", "10:00", "a-1", [])

        assert len(received) == 1
        assert "failed handling reminder_created" in caplog.text


@pytest.fixture
def center(store: StateStore, events: EventManager):
    c = NotificationCenter(store, events)
    yield c
    c.close()


@pytest.mark.unit
class TestNotificationCenter:
    """Tests for recipients and inbox operations."""

    def test_assigned_task_notifies_assignees_only(
        self,
        center: NotificationCenter,
        events: EventManager,
        admin: User,
        student: User,
        other_student: User,
    ) -> None:
        events.emit_reminder_created("r-1", "Lab", "2025-06-01", "10:00", admin.id, [student.id])

        inbox = center.list_for(student.id)
        assert len(inbox) == 1
        assert inbox[0].type == EventType.REMINDER_CREATED
        assert inbox[0].reminder_id == "r-1"
        assert '"Lab" is scheduled for 2025-06-01 at 10:00.' == inbox[0].message
        assert center.list_for(other_student.id) == []
        assert center.list_for(admin.id) == []

    def test_broadcast_notifies_every_student(
        self,
        center: NotificationCenter,
        events: EventManager,
        admin: User,
        student: User,
        other_student: User,
    ) -> None:
        events.emit_reminder_created("r-1", "Assembly", "2025-06-01", "08:00", admin.id, [])

        assert center.unread_count(student.id) == 1
        assert center.unread_count(other_student.id) == 1
        assert center.unread_count(admin.id) == 0

    def test_reschedule_requested_notifies_student_and_admins(
        self, center: NotificationCenter, events: EventManager, admin: User, student: User
    ) -> None:
        events.emit_reschedule_requested(
            "q-1", "r-1", "Exam", student.id, "2025-06-03", "14:00", "Clinic visit"
        )

        [confirmation] = center.list_for(student.id)
        assert "Awaiting admin approval" in confirmation.message
        [alert] = center.list_for(admin.id)
        assert alert.message == (
            'Sam Student has requested to reschedule "Exam" to 2025-06-03 at 14:00. '
            "Reason: Clinic visit"
        )

    def test_reschedule_reviewed_notifies_requester(
        self, center: NotificationCenter, events: EventManager, admin: User, student: User
    ) -> None:
        events.emit_reschedule_reviewed(
            "q-1", "r-1", "Exam", student.id, admin.id, "approved", "2025-06-03", "14:00"
        )

        [notification] = center.list_for(student.id)
        assert notification.title == "Reschedule approved"
        assert center.list_for(admin.id) == []

    def test_newest_first(
        self, center: NotificationCenter, events: EventManager, admin: User, student: User
    ) -> None:
        events.emit_reminder_created("r-1", "First", "2025-06-01", "08:00", admin.id, [student.id])
        events.emit_reminder_created("r-2", "Second", "2025-06-01", "09:00", admin.id, [student.id])

        assert [n.reminder_id for n in center.list_for(student.id)] == ["r-2", "r-1"]

    def test_mark_read_and_delete(
        self, center: NotificationCenter, events: EventManager, admin: User, student: User
    ) -> None:
        events.emit_reminder_created("r-1", "A", "2025-06-01", "08:00", admin.id, [student.id])
        events.emit_reminder_created("r-2", "B", "2025-06-01", "09:00", admin.id, [student.id])
        newest, oldest = center.list_for(student.id)

        assert center.mark_read(student.id, newest.id).is_read is True
        assert center.unread_count(student.id) == 1
        assert center.mark_all_read(student.id) == 1
        assert center.unread_count(student.id) == 0

        center.delete(student.id, oldest.id)
        assert [n.id for n in center.list_for(student.id)] == [newest.id]

    def test_other_users_notifications_are_not_found(
        self, center: NotificationCenter, events: EventManager, admin: User, student: User
    ) -> None:
        events.emit_reminder_created("r-1", "A", "2025-06-01", "08:00", admin.id, [student.id])
        [notification] = center.list_for(student.id)

        with pytest.raises(NotificationNotFoundError):
            center.mark_read(admin.id, notification.id)
        with pytest.raises(NotificationNotFoundError):
            center.delete(admin.id, notification.id)

    def test_close_stops_delivery(
        self, store: StateStore, events: EventManager, admin: User, student: User
    ) -> None:
        center = NotificationCenter(store, events)
        center.close()

        events.emit_reminder_created("r-1", "A", "2025-06-01", "08:00", admin.id, [student.id])

        assert center.list_for(student.id) == []
