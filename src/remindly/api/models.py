"""Pydantic models for REST API."""

from datetime import datetime
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator

T = TypeVar("T")


class APIResponse(BaseModel, Generic[T]):
    """Standard API response wrapper."""

    data: T | None = None
    error: str | None = None


class MessageResponse(BaseModel):
    message: str


# Auth models


class RegisterRequest(BaseModel):
    """Request model for email/password registration."""

    name: str = Field(default="", max_length=255)
    email: str = Field(default="", max_length=255)
    password: str = Field(default="", max_length=128)


class LoginRequest(BaseModel):
    """Request model for email/password login."""

    email: str = ""
    password: str = ""


class GoogleLoginRequest(BaseModel):
    """Request model for completing Google sign-in with an authorization code."""

    code: str = Field(..., min_length=1)
    redirect_uri: str | None = None


class UserResponse(BaseModel):
    """Response model for a user."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    email: str
    role: str
    avatar: str | None
    is_active: bool
    created_at: datetime


def user_to_response(user: Any) -> UserResponse:
    """Convert a User model to UserResponse."""
    return UserResponse.model_validate(user)


class AuthResponse(BaseModel):
    """Response model for a successful sign-in."""

    token: str
    user: UserResponse


class RoleUpdate(BaseModel):
    role: str


class ActiveUpdate(BaseModel):
    is_active: bool


# Reminder models


class ReminderCreate(BaseModel):
    """Request model for creating a personal reminder.

    Required fields are checked by the scheduling service so that a missing
    title, date or time is reported the same way on every path.
    """

    model_config = ConfigDict(extra="forbid")

    title: str | None = None
    description: str | None = None
    date: str | None = None
    time: str | None = None
    priority: str | None = None
    category: str | None = None
    status: str | None = None
    recurring: bool | None = None
    notification_type: str | None = None
    duration_minutes: int | None = None

    def fields(self) -> dict[str, Any]:
        """Reminder content fields that were supplied."""
        return self.model_dump(exclude_none=True, include=set(ReminderCreate.model_fields))


class AdminReminderCreate(ReminderCreate):
    """Request model for creating an admin task."""

    assigned_to: list[str] = Field(default_factory=list)
    target_filter: str | None = None


class ReminderUpdate(BaseModel):
    """Request model for updating a reminder (partial update)."""

    model_config = ConfigDict(extra="forbid")

    title: str | None = None
    description: str | None = None
    date: str | None = None
    time: str | None = None
    priority: str | None = None
    category: str | None = None
    recurring: bool | None = None
    notification_type: str | None = None
    duration_minutes: int | None = None
    assigned_to: list[str] | None = None
    target_filter: str | None = None


class ReminderResponse(BaseModel):
    """Response model for a reminder."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    description: str
    date: str
    time: str
    priority: str
    category: str
    status: str
    recurring: bool
    notification_type: str
    created_by: str
    created_by_role: str
    assigned_to: list[str]
    target_filter: str
    is_locked: bool
    duration_minutes: int
    created_at: datetime
    updated_at: datetime

    @field_validator("assigned_to", mode="before")
    @classmethod
    def _sorted_ids(cls, value: Any) -> list[str]:
        return sorted(value)


def reminder_to_response(reminder: Any) -> ReminderResponse:
    """Convert a Reminder model to ReminderResponse."""
    return ReminderResponse.model_validate(reminder)


class ConflictItem(BaseModel):
    """An admin task that overlaps a requested slot."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    date: str
    time: str
    duration_minutes: int


class ConflictResponse(BaseModel):
    conflicts: list[ConflictItem]


# Reschedule models


class RescheduleCreate(BaseModel):
    """Request model for submitting a reschedule request."""

    proposed_date: str = Field(..., min_length=1)
    proposed_time: str = Field(..., min_length=1)
    reason: str | None = Field(default=None, max_length=2000)


class RescheduleReview(BaseModel):
    """Request model for reviewing a reschedule request."""

    status: str


class RescheduleResponse(BaseModel):
    """Response model for a reschedule request."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    reminder_id: str
    reminder_title: str | None
    requested_by: str
    requested_by_name: str | None
    proposed_date: str
    proposed_time: str
    reason: str
    status: str
    reviewed_by: str | None
    reviewed_at: datetime | None
    created_at: datetime


def reschedule_to_response(request: Any) -> RescheduleResponse:
    """Convert a RescheduleRequest model to RescheduleResponse."""
    return RescheduleResponse.model_validate(request)


# Notification models


class NotificationResponse(BaseModel):
    """Response model for an inbox notification."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    type: str
    title: str
    message: str
    reminder_id: str | None
    is_read: bool
    created_at: datetime


def notification_to_response(notification: Any) -> NotificationResponse:
    """Convert a Notification to NotificationResponse."""
    return NotificationResponse.model_validate(notification)


class UnreadCountResponse(BaseModel):
    unread: int
