"""Error taxonomy shared by every Remindly component."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class RemindlyError(Exception):
    """Base exception for Remindly errors."""


class ValidationError(RemindlyError):
    """A required field is missing or a value is malformed."""


class UnauthenticatedError(RemindlyError):
    """No identity, or an identity that cannot be trusted."""


class DenialReason(StrEnum):
    """Why an authenticated actor was refused."""

    NOT_OWNER = "not_owner"
    LOCKED = "locked"
    ROLE = "role"
    NOT_ASSIGNED = "not_assigned"


_DENIAL_MESSAGES = {
    DenialReason.NOT_OWNER: "You can only modify your own reminders",
    DenialReason.LOCKED: (
        "This reminder was assigned by an admin and is locked; request a reschedule instead"
    ),
    DenialReason.ROLE: "Your role is not allowed to perform this action",
    DenialReason.NOT_ASSIGNED: "This reminder is not assigned to you",
}


class ForbiddenError(RemindlyError):
    """Authenticated, but not allowed to perform this operation."""

    def __init__(self, reason: DenialReason, message: str | None = None) -> None:
        self.reason = reason
        super().__init__(message or _DENIAL_MESSAGES[reason])


class NotFoundError(RemindlyError):
    """A resource id does not resolve."""


class UserNotFoundError(NotFoundError):
    """User with given ID does not exist."""


class ReminderNotFoundError(NotFoundError):
    """Reminder with given ID does not exist."""


class RescheduleRequestNotFoundError(NotFoundError):
    """Reschedule request with given ID does not exist."""


class ConflictError(RemindlyError):
    """The operation collides with existing state."""


@dataclass(frozen=True)
class ConflictingReminder:
    """An admin reminder that overlaps a proposed slot."""

    id: str
    title: str
    date: str
    time: str
    duration_minutes: int


class ScheduleConflictError(ConflictError):
    """A student reminder overlaps one or more admin reminders."""

    def __init__(self, conflicts: list[ConflictingReminder]) -> None:
        self.conflicts = conflicts
        titles = ", ".join(f"'{c.title}'" for c in conflicts)
        super().__init__(f"Time slot overlaps {len(conflicts)} admin reminder(s): {titles}")


class DuplicatePendingRequestError(ConflictError):
    """A pending reschedule request already exists for this reminder and requester."""


class RescheduleAlreadyReviewedError(ConflictError):
    """The reschedule request has already been approved or rejected."""


class EmailAlreadyRegisteredError(ConflictError):
    """An account with this email already exists."""


class StoreUnavailableError(RemindlyError):
    """The persistence layer failed for reasons unrelated to the request."""
