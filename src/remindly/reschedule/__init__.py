"""Reschedule Workflow - requests to move admin-locked reminders."""

from remindly.reschedule.workflow import DECISIONS, RescheduleWorkflow

__all__ = [
    "DECISIONS",
    "RescheduleWorkflow",
]
