"""Reminder endpoints: listing, creation by role, editing and completion."""

from fastapi import APIRouter, status

from remindly.api.dependencies import CurrentUserDep, ReminderServiceDep
from remindly.api.models import (
    AdminReminderCreate,
    APIResponse,
    ReminderCreate,
    ReminderResponse,
    ReminderUpdate,
    reminder_to_response,
)

router = APIRouter(prefix="/reminders", tags=["reminders"])


@router.get("", response_model=APIResponse[list[ReminderResponse]])
def list_reminders(
    user: CurrentUserDep, service: ReminderServiceDep
) -> APIResponse[list[ReminderResponse]]:
    """List the reminders visible to the signed-in user, ordered by date and time."""
    reminders = service.list_reminders(user)
    return APIResponse(data=[reminder_to_response(r) for r in reminders])


@router.post(
    "/admin",
    response_model=APIResponse[ReminderResponse],
    status_code=status.HTTP_201_CREATED,
)
def create_admin_reminder(
    body: AdminReminderCreate, user: CurrentUserDep, service: ReminderServiceDep
) -> APIResponse[ReminderResponse]:
    """Create a locked task for specific students, or for everyone when none are named."""
    created = service.create_as_admin(
        user,
        body.fields(),
        assigned_to=body.assigned_to,
        target_filter=body.target_filter,
    )
    return APIResponse(data=reminder_to_response(created))


@router.post(
    "/student",
    response_model=APIResponse[ReminderResponse],
    status_code=status.HTTP_201_CREATED,
)
def create_student_reminder(
    body: ReminderCreate, user: CurrentUserDep, service: ReminderServiceDep
) -> APIResponse[ReminderResponse]:
    """Create a personal reminder; rejected with 409 if it overlaps an admin task."""
    created = service.create_as_student(user, body.fields())
    return APIResponse(data=reminder_to_response(created))


@router.put("/{reminder_id}", response_model=APIResponse[ReminderResponse])
def update_reminder(
    reminder_id: str, body: ReminderUpdate, user: CurrentUserDep, service: ReminderServiceDep
) -> APIResponse[ReminderResponse]:
    """Update a reminder (partial update)."""
    updated = service.update_reminder(user, reminder_id, body.model_dump(exclude_unset=True))
    return APIResponse(data=reminder_to_response(updated))


@router.delete("/{reminder_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_reminder(reminder_id: str, user: CurrentUserDep, service: ReminderServiceDep) -> None:
    """Delete a reminder."""
    service.delete_reminder(user, reminder_id)


@router.patch("/{reminder_id}/toggle", response_model=APIResponse[ReminderResponse])
def toggle_reminder(
    reminder_id: str, user: CurrentUserDep, service: ReminderServiceDep
) -> APIResponse[ReminderResponse]:
    """Flip a reminder between completed and pending."""
    toggled = service.toggle_complete(user, reminder_id)
    return APIResponse(data=reminder_to_response(toggled))
