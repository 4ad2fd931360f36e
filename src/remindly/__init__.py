"""Remindly - role-based reminder and task scheduling service."""

__version__ = "0.1.0"
