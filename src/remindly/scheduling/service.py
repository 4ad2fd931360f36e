"""ReminderService - validated creation and mutation of reminders."""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Any

from remindly.exceptions import (
    ConflictingReminder,
    ScheduleConflictError,
    UserNotFoundError,
    ValidationError,
)
from remindly.policy import AccessPolicy, Operation
from remindly.scheduling.overlap import overlaps
from remindly.scheduling.validation import (
    PATCHABLE_FIELDS,
    clean_new_reminder,
    clean_patch,
    validate_enum,
)
from remindly.state_store.models import (
    Category,
    ReminderFilter,
    ReminderStatus,
    Role,
    TargetFilter,
)

if TYPE_CHECKING:
    from contextlib import AbstractContextManager

    from remindly.notifications import WorkflowObserver
    from remindly.state_store import Reminder, StateStore, User

logger = logging.getLogger("remindly.scheduling")

_ADMIN_PATCHABLE = PATCHABLE_FIELDS | {"assigned_to", "target_filter"}
_STUDENT_PATCHABLE = PATCHABLE_FIELDS


def _default_target(assignees: list[str]) -> TargetFilter:
    return TargetFilter.SPECIFIC if assignees else TargetFilter.ALL


class ReminderService:
    """Entry point for creating and changing reminders.

    Admin tasks are locked and define the conflict surface. Student
    reminders are personal and are refused if they overlap an admin task the
    student can see on the same date.
    """

    def __init__(
        self,
        store: StateStore,
        policy: AccessPolicy | None = None,
        events: WorkflowObserver | None = None,
        lock: AbstractContextManager[Any] | None = None,
    ) -> None:
        """Initialize the service.

        Args:
            store: Reminder repository and identity store
            policy: Access policy (defaults to the standard rule table)
            events: Observer notified of new admin tasks (optional)
            lock: Serializes the overlap check with the insert; share it with
                other writers of the same store
        """
        self._store = store
        self._policy = policy or AccessPolicy()
        self._events = events
        self._lock = lock if lock is not None else threading.RLock()

    def list_reminders(self, actor: User) -> list[Reminder]:
        """All reminders the actor may see, ordered by date and time."""
        return self._store.list_reminders(self._policy.reminder_filter(actor))

    def create_reminder(
        self,
        actor: User,
        fields: dict[str, Any],
        as_admin: bool,
        assigned_to: list[str] | None = None,
        target_filter: str | None = None,
    ) -> Reminder:
        """Create an admin task or a personal reminder.

        Raises:
            ForbiddenError: If the actor's role does not match the path
            ValidationError: If required fields are missing or malformed
            ScheduleConflictError: If a personal reminder overlaps admin tasks
        """
        if as_admin:
            return self.create_as_admin(actor, fields, assigned_to, target_filter)
        return self.create_as_student(actor, fields)

    def create_as_admin(
        self,
        actor: User,
        fields: dict[str, Any],
        assigned_to: list[str] | None = None,
        target_filter: str | None = None,
    ) -> Reminder:
        """Create a locked admin task.

        An empty assignee list broadcasts the task to every student. Admin
        tasks are not checked for overlap with each other.
        """
        self._policy.authorize(actor, Operation.CREATE_TASK)
        cleaned = clean_new_reminder(fields)
        assignees = self._resolve_assignees(assigned_to or [])

        if target_filter is None:
            target_filter = _default_target(assignees)
        cleaned["target_filter"] = validate_enum(TargetFilter, target_filter, "target_filter")

        reminder = self._store.create_reminder(
            created_by=actor.id,
            created_by_role=Role.ADMIN,
            is_locked=True,
            assigned_to=assignees,
            **cleaned,
        )
        logger.info(
            "Admin %s created task %s for %s",
            actor.id,
            reminder.id,
            f"{len(assignees)} student(s)" if assignees else "all students",
        )
        if self._events is not None:
            self._events.emit_reminder_created(
                reminder_id=reminder.id,
                title=reminder.title,
                date=reminder.date,
                time=reminder.time,
                created_by=actor.id,
                assigned_to=assignees,
            )
        return reminder

    def create_as_student(self, actor: User, fields: dict[str, Any]) -> Reminder:
        """Create a personal reminder after checking it against admin tasks.

        Raises:
            ScheduleConflictError: Listing every overlapping admin task
        """
        self._policy.authorize(actor, Operation.CREATE_PERSONAL)
        cleaned = clean_new_reminder(fields)
        cleaned.setdefault("category", Category.PERSONAL.value)

        with self._lock:
            conflicts = self.find_conflicts(
                actor, cleaned["date"], cleaned["time"], cleaned["duration_minutes"]
            )
            if conflicts:
                logger.warning(
                    "Student %s blocked by %d conflicting task(s) on %s",
                    actor.id,
                    len(conflicts),
                    cleaned["date"],
                )
                raise ScheduleConflictError(conflicts)

            reminder = self._store.create_reminder(
                created_by=actor.id,
                created_by_role=Role.STUDENT,
                is_locked=False,
                assigned_to=[actor.id],
                target_filter=TargetFilter.SPECIFIC.value,
                **cleaned,
            )
        logger.info("Student %s created reminder %s", actor.id, reminder.id)
        return reminder

    def find_conflicts(
        self, actor: User, date: str, time: str, duration_minutes: int
    ) -> list[ConflictingReminder]:
        """Admin tasks visible to the actor that overlap the given slot."""
        admin_tasks = self._store.list_reminders(
            ReminderFilter(audience_user_id=actor.id, created_by_role=Role.ADMIN, date=date)
        )
        return [
            ConflictingReminder(
                id=task.id,
                title=task.title,
                date=task.date,
                time=task.time,
                duration_minutes=task.duration_minutes,
            )
            for task in admin_tasks
            if overlaps(date, time, duration_minutes, task.date, task.time, task.duration_minutes)
        ]

    def update_reminder(self, actor: User, reminder_id: str, patch: dict[str, Any]) -> Reminder:
        """Apply a partial update.

        Updates are not re-checked for overlap.

        Raises:
            ReminderNotFoundError: If reminder doesn't exist
            ForbiddenError: If the actor may not edit it
            ValidationError: If the patch is malformed
        """
        reminder = self._store.get_reminder(reminder_id)
        self._policy.authorize(actor, Operation.UPDATE, reminder)

        allowed = _ADMIN_PATCHABLE if actor.role == Role.ADMIN.value else _STUDENT_PATCHABLE
        cleaned = clean_patch(patch, allowed)
        assigned_to = cleaned.pop("assigned_to", None)
        if assigned_to is not None:
            assigned_to = self._resolve_assignees(assigned_to)
            if reminder.created_by_role == Role.ADMIN.value:
                cleaned.setdefault("target_filter", _default_target(assigned_to).value)

        updated = self._store.update_reminder(reminder_id, assigned_to=assigned_to, **cleaned)
        logger.info("User %s updated reminder %s (%s)", actor.id, reminder_id, sorted(patch))
        return updated

    def delete_reminder(self, actor: User, reminder_id: str) -> None:
        """Delete a reminder.

        Raises:
            ReminderNotFoundError: If reminder doesn't exist
            ForbiddenError: If the actor may not delete it
        """
        reminder = self._store.get_reminder(reminder_id)
        self._policy.authorize(actor, Operation.DELETE, reminder)
        self._store.delete_reminder(reminder_id)
        logger.info("User %s deleted reminder %s", actor.id, reminder_id)

    def toggle_complete(self, actor: User, reminder_id: str) -> Reminder:
        """Flip completion: completed becomes pending, anything else completed.

        Raises:
            ReminderNotFoundError: If reminder doesn't exist
            ForbiddenError: If the actor may not toggle it
        """
        reminder = self._store.get_reminder(reminder_id)
        self._policy.authorize(actor, Operation.TOGGLE_COMPLETE, reminder)

        if reminder.status == ReminderStatus.COMPLETED.value:
            new_status = ReminderStatus.PENDING
        else:
            new_status = ReminderStatus.COMPLETED
        updated = self._store.set_reminder_status(reminder_id, new_status)
        logger.info(
            "User %s toggled reminder %s: %s -> %s",
            actor.id,
            reminder_id,
            reminder.status,
            new_status.value,
        )
        return updated

    def _resolve_assignees(self, user_ids: list[str]) -> list[str]:
        """Deduplicate assignee ids and check that each user exists."""
        resolved: list[str] = []
        for user_id in user_ids:
            if user_id in resolved:
                continue
            try:
                self._store.get_user(user_id)
            except UserNotFoundError as e:
                raise ValidationError(f"Cannot assign to unknown user '{user_id}'") from e
            resolved.append(user_id)
        return resolved
