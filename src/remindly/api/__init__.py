"""REST API for Remindly."""

from remindly.api.app import create_app
from remindly.api.models import APIResponse

__all__ = ["APIResponse", "create_app"]
