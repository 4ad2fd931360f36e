"""Value types for the access policy."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, StrEnum

from remindly.exceptions import DenialReason


class Operation(StrEnum):
    """Actions an actor may attempt."""

    VIEW = "view"
    UPDATE = "update"
    DELETE = "delete"
    TOGGLE_COMPLETE = "toggle_complete"
    REQUEST_RESCHEDULE = "request_reschedule"
    # Actions that do not target one reminder
    CREATE_TASK = "create_task"
    CREATE_PERSONAL = "create_personal"
    REVIEW_RESCHEDULE = "review_reschedule"
    LIST_ALL_REQUESTS = "list_all_requests"
    MANAGE_USERS = "manage_users"


class Relation(Enum):
    """How an actor relates to a reminder."""

    OWNER = "owner"
    # Listed in assigned_to, or an admin broadcast
    ASSIGNED = "assigned"
    UNRELATED = "unrelated"


@dataclass(frozen=True)
class Decision:
    """Outcome of an authorization check."""

    allowed: bool
    reason: DenialReason | None = None


ALLOW = Decision(allowed=True)


def deny(reason: DenialReason) -> Decision:
    return Decision(allowed=False, reason=reason)
