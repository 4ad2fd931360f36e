"""RescheduleWorkflow - student proposals to move locked reminders, reviewed by admins."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from remindly.exceptions import (
    DuplicatePendingRequestError,
    RescheduleAlreadyReviewedError,
    ValidationError,
)
from remindly.policy import AccessPolicy, Operation
from remindly.scheduling.validation import validate_date, validate_time
from remindly.state_store.models import RequestStatus

if TYPE_CHECKING:
    from contextlib import AbstractContextManager

    from remindly.notifications import WorkflowObserver
    from remindly.state_store import Reminder, RescheduleRequest, StateStore, User

logger = logging.getLogger("remindly.reschedule")

# Review outcomes; both are terminal
DECISIONS = frozenset({RequestStatus.APPROVED, RequestStatus.REJECTED})


def _utcnow() -> datetime:
    return datetime.now(UTC)


class RescheduleWorkflow:
    """State machine for reschedule requests.

    pending -> approved and pending -> rejected are the only transitions.
    Approval moves the reminder to the proposed date and time; nothing else
    about the reminder changes, and the new slot is not checked for overlap.
    """

    def __init__(
        self,
        store: StateStore,
        policy: AccessPolicy | None = None,
        events: WorkflowObserver | None = None,
        lock: AbstractContextManager[Any] | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """Initialize the workflow.

        Args:
            store: Reminder repository and reschedule request store
            policy: Access policy (defaults to the standard rule table)
            events: Observer notified on submit and review (optional)
            lock: Serializes the pending-request check with the insert
            clock: Source of review timestamps (defaults to UTC now)
        """
        self._store = store
        self._policy = policy or AccessPolicy()
        self._events = events
        self._lock = lock if lock is not None else threading.RLock()
        self._clock = clock or _utcnow

    def authorize_submission(self, actor: User, reminder_id: str) -> Reminder:
        """Load a reminder and check that the actor may ask to move it.

        Raises:
            ReminderNotFoundError: If reminder doesn't exist
            ValidationError: If the reminder is not locked
            ForbiddenError: If the actor is not a student assigned to the reminder
        """
        reminder = self._store.get_reminder(reminder_id)
        if not reminder.is_locked:
            raise ValidationError("Only admin reminders support reschedule requests")
        self._policy.authorize(actor, Operation.REQUEST_RESCHEDULE, reminder)
        return reminder

    def submit(
        self,
        actor: User,
        reminder_id: str,
        proposed_date: str,
        proposed_time: str,
        reason: str | None = None,
    ) -> RescheduleRequest:
        """Submit a request to move a locked reminder.

        Raises:
            ReminderNotFoundError: If reminder doesn't exist
            ValidationError: If the reminder is not locked or the proposal is malformed
            ForbiddenError: If the actor is not a student assigned to the reminder
            DuplicatePendingRequestError: If the actor already has a pending
                request for this reminder
        """
        reminder = self.authorize_submission(actor, reminder_id)
        validate_date(proposed_date, "proposed_date")
        validate_time(proposed_time, "proposed_time")

        with self._lock:
            pending = self._store.list_reschedule_requests(
                requested_by=actor.id,
                reminder_id=reminder_id,
                status=RequestStatus.PENDING,
            )
            if pending:
                logger.warning(
                    "User %s already has pending request %s for reminder %s",
                    actor.id,
                    pending[0].id,
                    reminder_id,
                )
                raise DuplicatePendingRequestError(
                    "You already have a pending reschedule request for this reminder"
                )
            request = self._store.create_reschedule_request(
                reminder_id=reminder_id,
                requested_by=actor.id,
                proposed_date=proposed_date,
                proposed_time=proposed_time,
                reason=(reason or "").strip(),
            )

        logger.info(
            "User %s requested reschedule %s of reminder %s to %s %s",
            actor.id,
            request.id,
            reminder_id,
            proposed_date,
            proposed_time,
        )
        if self._events is not None:
            self._events.emit_reschedule_requested(
                request_id=request.id,
                reminder_id=reminder_id,
                reminder_title=reminder.title,
                requested_by=actor.id,
                proposed_date=proposed_date,
                proposed_time=proposed_time,
                reason=request.reason,
            )
        return request

    def review(self, actor: User, request_id: str, decision: str) -> RescheduleRequest:
        """Approve or reject a pending request.

        Raises:
            ForbiddenError: If the actor is not an admin
            RescheduleRequestNotFoundError: If request doesn't exist
            ValidationError: If decision is not approved or rejected
            RescheduleAlreadyReviewedError: If the request was already reviewed
        """
        self._policy.authorize(actor, Operation.REVIEW_RESCHEDULE)
        request = self._store.get_reschedule_request(request_id)

        try:
            outcome = RequestStatus(decision)
        except ValueError:
            outcome = None
        if outcome not in DECISIONS:
            raise ValidationError("Status must be 'approved' or 'rejected'")

        if request.status != RequestStatus.PENDING.value:
            raise RescheduleAlreadyReviewedError(
                f"Reschedule request '{request_id}' was already {request.status}"
            )

        reviewed = self._store.finalize_reschedule_request(
            request_id,
            decision=outcome,
            reviewer_id=actor.id,
            reviewed_at=self._clock(),
        )
        logger.info("Admin %s %s reschedule request %s", actor.id, outcome.value, request_id)
        if self._events is not None:
            self._events.emit_reschedule_reviewed(
                request_id=reviewed.id,
                reminder_id=reviewed.reminder_id,
                reminder_title=reviewed.reminder_title or "",
                requested_by=reviewed.requested_by,
                reviewed_by=actor.id,
                status=outcome.value,
                proposed_date=reviewed.proposed_date,
                proposed_time=reviewed.proposed_time,
            )
        return reviewed

    def list_my_requests(self, actor: User) -> list[RescheduleRequest]:
        """Requests the actor submitted, most recent first."""
        return self._store.list_reschedule_requests(requested_by=actor.id)

    def list_all_requests(self, actor: User) -> list[RescheduleRequest]:
        """Every request, most recent first. Admin only.

        Raises:
            ForbiddenError: If the actor is not an admin
        """
        self._policy.authorize(actor, Operation.LIST_ALL_REQUESTS)
        return self._store.list_reschedule_requests()
