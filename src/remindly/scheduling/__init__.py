"""Scheduling - overlap detection and the reminder scheduling service."""

from remindly.scheduling.overlap import effective_duration, overlaps, to_minutes
from remindly.scheduling.service import ReminderService

__all__ = [
    "ReminderService",
    "effective_duration",
    "overlaps",
    "to_minutes",
]
