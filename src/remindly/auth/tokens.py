"""Access token issuance and verification (JWT)."""

from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt

from remindly.exceptions import UnauthenticatedError

logger = logging.getLogger("remindly.auth")


class TokenIssuer:
    """Signs and verifies bearer tokens whose subject is a user id."""

    def __init__(self, secret: str, algorithm: str = "HS256", expires_minutes: int = 10080) -> None:
        self._secret = secret
        self._algorithm = algorithm
        self._expires = timedelta(minutes=expires_minutes)

    def create_access_token(self, user_id: str) -> str:
        now = datetime.now(UTC)
        payload = {"sub": user_id, "iat": now, "exp": now + self._expires}
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def decode_access_token(self, token: str) -> str:
        """Return the user id a token was issued for.

        Raises:
            UnauthenticatedError: If the token is malformed, forged, or expired
        """
        try:
            payload = jwt.decode(token, self._secret, algorithms=[self._algorithm])
        except JWTError as e:
            logger.warning("JWT verification failed: %s", e)
            raise UnauthenticatedError("Token invalid or expired") from e

        user_id = payload.get("sub")
        if not isinstance(user_id, str) or not user_id:
            raise UnauthenticatedError("Token invalid or expired")
        return user_id
