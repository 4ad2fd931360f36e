"""Notification inbox endpoints."""

from fastapi import APIRouter, status

from remindly.api.dependencies import CurrentUserDep, NotificationCenterDep
from remindly.api.models import (
    APIResponse,
    NotificationResponse,
    UnreadCountResponse,
    notification_to_response,
)

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("", response_model=APIResponse[list[NotificationResponse]])
def list_notifications(
    user: CurrentUserDep, center: NotificationCenterDep
) -> APIResponse[list[NotificationResponse]]:
    """The signed-in user's notifications, newest first."""
    return APIResponse(data=[notification_to_response(n) for n in center.list_for(user.id)])


@router.get("/unread-count", response_model=APIResponse[UnreadCountResponse])
def unread_count(
    user: CurrentUserDep, center: NotificationCenterDep
) -> APIResponse[UnreadCountResponse]:
    return APIResponse(data=UnreadCountResponse(unread=center.unread_count(user.id)))


@router.post("/read-all", response_model=APIResponse[UnreadCountResponse])
def mark_all_read(
    user: CurrentUserDep, center: NotificationCenterDep
) -> APIResponse[UnreadCountResponse]:
    """Mark every notification read."""
    center.mark_all_read(user.id)
    return APIResponse(data=UnreadCountResponse(unread=0))


@router.post("/{notification_id}/read", response_model=APIResponse[NotificationResponse])
def mark_read(
    notification_id: str, user: CurrentUserDep, center: NotificationCenterDep
) -> APIResponse[NotificationResponse]:
    notification = center.mark_read(user.id, notification_id)
    return APIResponse(data=notification_to_response(notification))


@router.delete("/{notification_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_notification(
    notification_id: str, user: CurrentUserDep, center: NotificationCenterDep
) -> None:
    """Delete a notification."""
    center.delete(user.id, notification_id)
