"""Access Policy - reminder visibility and mutation authorization."""

from remindly.exceptions import DenialReason
from remindly.policy.models import Decision, Operation, Relation
from remindly.policy.policy import AccessPolicy

__all__ = [
    "AccessPolicy",
    "Decision",
    "DenialReason",
    "Operation",
    "Relation",
]
