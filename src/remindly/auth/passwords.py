"""Password hashing."""

from __future__ import annotations

import logging

from passlib.context import CryptContext
from passlib.exc import UnknownHashError

logger = logging.getLogger("remindly.auth")


class PasswordHasher:
    """bcrypt hashing through a passlib CryptContext."""

    def __init__(self, rounds: int = 12) -> None:
        self._context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds)

    def hash(self, password: str) -> str:
        return self._context.hash(password)

    def verify(self, password: str, hashed: str | None) -> bool:
        """Check a password against a stored hash.

        Accounts without a password (federated only) never verify.
        """
        if not hashed:
            return False
        try:
            return self._context.verify(password, hashed)
        except (UnknownHashError, ValueError) as e:
            logger.error("Password verification error: %s", e)
            return False
