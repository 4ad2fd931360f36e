"""Field validation for reminder payloads."""

from __future__ import annotations

import re
from datetime import date as date_type
from enum import StrEnum
from typing import Any, TypeVar

from remindly.exceptions import ValidationError
from remindly.scheduling.overlap import effective_duration
from remindly.state_store.models import (
    Category,
    NotificationType,
    Priority,
    ReminderStatus,
    TargetFilter,
)

E = TypeVar("E", bound=StrEnum)

_TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")
_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")

# Fields a caller may supply when creating a reminder
CONTENT_FIELDS = frozenset(
    {
        "title",
        "description",
        "date",
        "time",
        "priority",
        "category",
        "status",
        "recurring",
        "notification_type",
        "duration_minutes",
    }
)

# Content fields an update may change; status only moves through the toggle
PATCHABLE_FIELDS = CONTENT_FIELDS - {"status"}

# Fields that identify who owns a reminder; never patchable
IDENTITY_FIELDS = frozenset({"id", "created_by", "created_by_role", "is_locked"})

_ENUM_FIELDS: dict[str, type[StrEnum]] = {
    "priority": Priority,
    "category": Category,
    "status": ReminderStatus,
    "notification_type": NotificationType,
    "target_filter": TargetFilter,
}


def validate_date(value: Any, field: str = "date") -> str:
    """Require an ISO ``YYYY-MM-DD`` calendar date."""
    if not isinstance(value, str) or not _DATE_PATTERN.match(value):
        raise ValidationError(f"{field} must be a date in YYYY-MM-DD format")
    try:
        date_type.fromisoformat(value)
    except ValueError as e:
        raise ValidationError(f"{field} is not a valid calendar date") from e
    return value


def validate_time(value: Any, field: str = "time") -> str:
    """Require a 24-hour ``HH:MM`` time."""
    if not isinstance(value, str) or not _TIME_PATTERN.match(value):
        raise ValidationError(f"{field} must be a time in HH:MM 24-hour format")
    return value


def validate_enum(enum_cls: type[E], value: Any, field: str) -> str:
    try:
        return enum_cls(value).value
    except ValueError as e:
        allowed = ", ".join(m.value for m in enum_cls)
        raise ValidationError(f"{field} must be one of: {allowed}") from e


def _require_text(fields: dict[str, Any], name: str) -> str:
    value = fields.get(name)
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{name.capitalize()} is required")
    return value.strip()


def _clean_values(fields: dict[str, Any]) -> dict[str, Any]:
    cleaned: dict[str, Any] = {}
    for key, value in fields.items():
        if key in _ENUM_FIELDS:
            cleaned[key] = validate_enum(_ENUM_FIELDS[key], value, key)
        elif key == "date":
            cleaned[key] = validate_date(value)
        elif key == "time":
            cleaned[key] = validate_time(value)
        elif key == "recurring":
            cleaned[key] = bool(value)
        elif key == "description":
            cleaned[key] = "" if value is None else str(value)
        else:
            cleaned[key] = value
    return cleaned


def clean_new_reminder(fields: dict[str, Any]) -> dict[str, Any]:
    """Validate the content of a reminder being created.

    Title, date, and time are required. Missing or non-positive durations
    fall back to the default.

    Raises:
        ValidationError: If a field is missing, unknown, or malformed
    """
    unknown = set(fields) - CONTENT_FIELDS
    if unknown:
        raise ValidationError(f"Unknown reminder fields: {', '.join(sorted(unknown))}")

    title = _require_text(fields, "title")
    _require_text(fields, "date")
    _require_text(fields, "time")

    present = {k: v for k, v in fields.items() if v is not None}
    cleaned = _clean_values(present)
    cleaned["title"] = title
    cleaned["duration_minutes"] = _coerce_duration(fields.get("duration_minutes"))
    return cleaned


def clean_patch(patch: dict[str, Any], allowed: frozenset[str]) -> dict[str, Any]:
    """Validate a partial update.

    Raises:
        ValidationError: If the patch touches a protected or unknown field, or
            a value is malformed
    """
    protected = set(patch) & IDENTITY_FIELDS
    if protected:
        raise ValidationError(f"Fields cannot be changed: {', '.join(sorted(protected))}")
    if "status" in patch:
        raise ValidationError("Status can only be changed with the completion toggle")
    unknown = set(patch) - allowed
    if unknown:
        raise ValidationError(f"Fields cannot be updated: {', '.join(sorted(unknown))}")

    cleaned = _clean_values({k: v for k, v in patch.items() if v is not None})
    if "title" in cleaned:
        cleaned["title"] = _require_text(cleaned, "title")
    if "duration_minutes" in cleaned:
        duration = cleaned["duration_minutes"]
        if not isinstance(duration, int) or isinstance(duration, bool) or duration <= 0:
            raise ValidationError("duration_minutes must be a positive integer")
    return cleaned


def _coerce_duration(value: Any) -> int:
    if value is None:
        return effective_duration(None)
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError("duration_minutes must be an integer")
    return effective_duration(value)
