"""AccessPolicy - who may see and change which reminders."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from remindly.exceptions import DenialReason, ForbiddenError
from remindly.policy.models import ALLOW, Decision, Operation, Relation, deny
from remindly.state_store.models import ReminderFilter, Role

if TYPE_CHECKING:
    from collections.abc import Iterable

    from remindly.state_store.models import Reminder, User

logger = logging.getLogger("remindly.policy")

_LOCK_STATES = (True, False)

# (role, operation, relation, is_locked) -> decision for reminder-scoped actions.
# Anything not listed is denied.
_RESOURCE_RULES: dict[tuple[Role, Operation, Relation, bool], Decision] = {}

# Admins may see and change any reminder, but never request a reschedule
for _relation in Relation:
    for _locked in _LOCK_STATES:
        for _op in (
            Operation.VIEW,
            Operation.UPDATE,
            Operation.DELETE,
            Operation.TOGGLE_COMPLETE,
        ):
            _RESOURCE_RULES[(Role.ADMIN, _op, _relation, _locked)] = ALLOW
        _RESOURCE_RULES[(Role.ADMIN, Operation.REQUEST_RESCHEDULE, _relation, _locked)] = deny(
            DenialReason.ROLE
        )

_RESOURCE_RULES.update(
    {
        # View
        (Role.STUDENT, Operation.VIEW, Relation.OWNER, False): ALLOW,
        (Role.STUDENT, Operation.VIEW, Relation.OWNER, True): ALLOW,
        (Role.STUDENT, Operation.VIEW, Relation.ASSIGNED, False): ALLOW,
        (Role.STUDENT, Operation.VIEW, Relation.ASSIGNED, True): ALLOW,
        (Role.STUDENT, Operation.VIEW, Relation.UNRELATED, False): deny(DenialReason.NOT_OWNER),
        (Role.STUDENT, Operation.VIEW, Relation.UNRELATED, True): deny(DenialReason.NOT_ASSIGNED),
        # Update
        (Role.STUDENT, Operation.UPDATE, Relation.OWNER, False): ALLOW,
        (Role.STUDENT, Operation.UPDATE, Relation.OWNER, True): deny(DenialReason.LOCKED),
        (Role.STUDENT, Operation.UPDATE, Relation.ASSIGNED, True): deny(DenialReason.LOCKED),
        (Role.STUDENT, Operation.UPDATE, Relation.ASSIGNED, False): deny(DenialReason.NOT_OWNER),
        (Role.STUDENT, Operation.UPDATE, Relation.UNRELATED, True): deny(DenialReason.NOT_OWNER),
        (Role.STUDENT, Operation.UPDATE, Relation.UNRELATED, False): deny(DenialReason.NOT_OWNER),
        # Delete
        (Role.STUDENT, Operation.DELETE, Relation.OWNER, False): ALLOW,
        (Role.STUDENT, Operation.DELETE, Relation.OWNER, True): deny(DenialReason.LOCKED),
        (Role.STUDENT, Operation.DELETE, Relation.ASSIGNED, True): deny(DenialReason.LOCKED),
        (Role.STUDENT, Operation.DELETE, Relation.ASSIGNED, False): deny(DenialReason.NOT_OWNER),
        (Role.STUDENT, Operation.DELETE, Relation.UNRELATED, True): deny(DenialReason.NOT_OWNER),
        (Role.STUDENT, Operation.DELETE, Relation.UNRELATED, False): deny(DenialReason.NOT_OWNER),
        # Toggle complete
        (Role.STUDENT, Operation.TOGGLE_COMPLETE, Relation.OWNER, False): ALLOW,
        (Role.STUDENT, Operation.TOGGLE_COMPLETE, Relation.OWNER, True): ALLOW,
        (Role.STUDENT, Operation.TOGGLE_COMPLETE, Relation.ASSIGNED, False): ALLOW,
        (Role.STUDENT, Operation.TOGGLE_COMPLETE, Relation.ASSIGNED, True): ALLOW,
        (Role.STUDENT, Operation.TOGGLE_COMPLETE, Relation.UNRELATED, False): deny(
            DenialReason.NOT_OWNER
        ),
        (Role.STUDENT, Operation.TOGGLE_COMPLETE, Relation.UNRELATED, True): deny(
            DenialReason.NOT_ASSIGNED
        ),
        # Request reschedule: only on a locked reminder the student is assigned to
        (Role.STUDENT, Operation.REQUEST_RESCHEDULE, Relation.ASSIGNED, True): ALLOW,
        (Role.STUDENT, Operation.REQUEST_RESCHEDULE, Relation.UNRELATED, True): deny(
            DenialReason.NOT_ASSIGNED
        ),
    }
)

# (role, operation) -> decision for actions that do not target a reminder
_ACTION_RULES: dict[tuple[Role, Operation], Decision] = {
    (Role.ADMIN, Operation.CREATE_TASK): ALLOW,
    (Role.ADMIN, Operation.REVIEW_RESCHEDULE): ALLOW,
    (Role.ADMIN, Operation.LIST_ALL_REQUESTS): ALLOW,
    (Role.ADMIN, Operation.MANAGE_USERS): ALLOW,
    (Role.STUDENT, Operation.CREATE_PERSONAL): ALLOW,
}


class AccessPolicy:
    """Single source of truth for reminder visibility and authorization.

    Every check is a lookup in a rule table. Combinations the tables do not
    name are denied.
    """

    def __init__(
        self,
        resource_rules: dict[tuple[Role, Operation, Relation, bool], Decision] | None = None,
        action_rules: dict[tuple[Role, Operation], Decision] | None = None,
    ) -> None:
        self._resource_rules = resource_rules if resource_rules is not None else _RESOURCE_RULES
        self._action_rules = action_rules if action_rules is not None else _ACTION_RULES

    @staticmethod
    def relation(actor: User, reminder: Reminder) -> Relation:
        """Classify the actor's relation to a reminder."""
        if reminder.created_by == actor.id:
            return Relation.OWNER
        if actor.id in reminder.assigned_to or reminder.is_broadcast:
            return Relation.ASSIGNED
        return Relation.UNRELATED

    def decide(
        self,
        actor: User,
        operation: Operation,
        reminder: Reminder | None = None,
    ) -> Decision:
        """Decide whether actor may perform operation (on reminder, if given)."""
        try:
            role = Role(actor.role)
        except ValueError:
            return deny(DenialReason.ROLE)

        if reminder is None:
            return self._action_rules.get((role, operation), deny(DenialReason.ROLE))

        key = (role, operation, self.relation(actor, reminder), bool(reminder.is_locked))
        return self._resource_rules.get(key, deny(DenialReason.NOT_OWNER))

    def authorize(
        self,
        actor: User,
        operation: Operation,
        reminder: Reminder | None = None,
    ) -> None:
        """Raise ForbiddenError unless actor may perform operation.

        Raises:
            ForbiddenError: Carrying the reason the action was denied
        """
        decision = self.decide(actor, operation, reminder)
        if decision.allowed:
            return
        reason = decision.reason or DenialReason.ROLE
        logger.warning(
            "Denied %s for user %s on %s (%s)",
            operation.value,
            actor.id,
            reminder.id if reminder is not None else "-",
            reason.value,
        )
        raise ForbiddenError(reason)

    def can_view(self, actor: User, reminder: Reminder) -> bool:
        return self.decide(actor, Operation.VIEW, reminder).allowed

    def visible(self, actor: User, reminders: Iterable[Reminder]) -> list[Reminder]:
        """Filter reminders down to those the actor may see."""
        return [r for r in reminders if self.can_view(actor, r)]

    def reminder_filter(self, actor: User) -> ReminderFilter:
        """Store query that returns exactly the reminders the actor may see.

        Admins see everything. Students see what they created, what is
        assigned to them, and admin broadcasts.
        """
        if actor.role == Role.ADMIN.value:
            return ReminderFilter()
        return ReminderFilter(audience_user_id=actor.id)
