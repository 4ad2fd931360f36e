"""Time-slot overlap detection for reminders on the same calendar date."""

from __future__ import annotations

from remindly.state_store.models import DEFAULT_DURATION_MINUTES


def to_minutes(time: str) -> int:
    """Convert an ``HH:MM`` string to minutes since midnight.

    The caller is responsible for passing a well-formed value.
    """
    hours, minutes = time.split(":")
    return int(hours) * 60 + int(minutes)


def effective_duration(duration: int | None) -> int:
    """Missing, zero, or negative durations fall back to the default."""
    if not duration or duration <= 0:
        return DEFAULT_DURATION_MINUTES
    return duration


def overlaps(
    date_a: str,
    time_a: str,
    duration_a: int | None,
    date_b: str,
    time_b: str,
    duration_b: int | None,
) -> bool:
    """Return True if two slots intersect.

    Slots are half-open intervals ``[start, start + duration)``, so a slot
    that ends exactly when the other starts does not overlap it. Slots on
    different dates never overlap; nothing spans midnight.
    """
    if date_a != date_b:
        return False

    start_a = to_minutes(time_a)
    end_a = start_a + effective_duration(duration_a)
    start_b = to_minutes(time_b)
    end_b = start_b + effective_duration(duration_b)

    return start_a < end_b and start_b < end_a
