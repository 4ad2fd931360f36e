"""Reschedule request endpoints."""

from fastapi import APIRouter, status

from remindly.api.dependencies import CurrentUserDep, RescheduleWorkflowDep
from remindly.api.models import (
    APIResponse,
    RescheduleCreate,
    RescheduleResponse,
    RescheduleReview,
    reschedule_to_response,
)
from remindly.exceptions import ValidationError

router = APIRouter(prefix="/reminders", tags=["reschedule"])


@router.get("/reschedule/mine", response_model=APIResponse[list[RescheduleResponse]])
def list_my_requests(
    user: CurrentUserDep, workflow: RescheduleWorkflowDep
) -> APIResponse[list[RescheduleResponse]]:
    """Reschedule requests submitted by the signed-in user, newest first."""
    requests = workflow.list_my_requests(user)
    return APIResponse(data=[reschedule_to_response(r) for r in requests])


@router.get("/reschedule/all", response_model=APIResponse[list[RescheduleResponse]])
def list_all_requests(
    user: CurrentUserDep, workflow: RescheduleWorkflowDep
) -> APIResponse[list[RescheduleResponse]]:
    """Every reschedule request (admin only), newest first."""
    requests = workflow.list_all_requests(user)
    return APIResponse(data=[reschedule_to_response(r) for r in requests])


@router.patch(
    "/reschedule/{request_id}/review", response_model=APIResponse[RescheduleResponse]
)
def review_request(
    request_id: str, body: RescheduleReview, user: CurrentUserDep, workflow: RescheduleWorkflowDep
) -> APIResponse[RescheduleResponse]:
    """Approve or reject a pending request (admin only)."""
    reviewed = workflow.review(user, request_id, body.status)
    return APIResponse(data=reschedule_to_response(reviewed))


@router.post(
    "/{reminder_id}/reschedule",
    response_model=APIResponse[RescheduleResponse],
    status_code=status.HTTP_201_CREATED,
)
def request_reschedule(
    reminder_id: str,
    body: RescheduleCreate,
    user: CurrentUserDep,
    workflow: RescheduleWorkflowDep,
) -> APIResponse[RescheduleResponse]:
    """Ask an admin to move a locked reminder to a new date and time."""
    reminder = workflow.authorize_submission(user, reminder_id)
    if reminder.date == body.proposed_date and reminder.time == body.proposed_time:
        raise ValidationError("Proposed time must be different from the original")

    created = workflow.submit(
        user,
        reminder_id,
        proposed_date=body.proposed_date,
        proposed_time=body.proposed_time,
        reason=body.reason,
    )
    return APIResponse(data=reschedule_to_response(created))
