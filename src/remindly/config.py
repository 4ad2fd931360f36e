"""Runtime configuration resolved from environment variables."""

from __future__ import annotations

import os
import secrets
import warnings
from dataclasses import dataclass, field
from functools import lru_cache

DEFAULT_DB_PATH = "remindly.db"
DEFAULT_JWT_EXPIRES_MINUTES = 7 * 24 * 60
DEFAULT_BCRYPT_ROUNDS = 12
DEFAULT_CORS_ORIGINS = "http://localhost:8080"


def _split_csv(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


@dataclass
class Settings:
    """Application settings.

    Every field can be overridden by the matching environment variable.
    """

    db_path: str = DEFAULT_DB_PATH
    jwt_secret: str = ""
    jwt_algorithm: str = "HS256"
    jwt_expires_minutes: int = DEFAULT_JWT_EXPIRES_MINUTES
    bcrypt_rounds: int = DEFAULT_BCRYPT_ROUNDS
    cors_origins: list[str] = field(default_factory=lambda: [DEFAULT_CORS_ORIGINS])
    google_client_id: str | None = None
    google_client_secret: str | None = None
    google_redirect_uri: str | None = None

    @classmethod
    def from_env(cls) -> Settings:
        """Build settings from the process environment."""
        settings = cls(
            db_path=os.environ.get("REMINDLY_DB_PATH", DEFAULT_DB_PATH),
            jwt_secret=os.environ.get("REMINDLY_JWT_SECRET", ""),
            jwt_expires_minutes=int(
                os.environ.get("REMINDLY_JWT_EXPIRES_MINUTES", DEFAULT_JWT_EXPIRES_MINUTES)
            ),
            bcrypt_rounds=int(os.environ.get("REMINDLY_BCRYPT_ROUNDS", DEFAULT_BCRYPT_ROUNDS)),
            cors_origins=_split_csv(os.environ.get("REMINDLY_CORS_ORIGINS", DEFAULT_CORS_ORIGINS)),
            google_client_id=os.environ.get("GOOGLE_CLIENT_ID"),
            google_client_secret=os.environ.get("GOOGLE_CLIENT_SECRET"),
            google_redirect_uri=os.environ.get("GOOGLE_REDIRECT_URI"),
        )
        if not settings.jwt_secret:
            warnings.warn(
                "REMINDLY_JWT_SECRET not set; using a random per-process secret",
                RuntimeWarning,
                stacklevel=2,
            )
            settings.jwt_secret = secrets.token_urlsafe(32)
        return settings

    @property
    def google_enabled(self) -> bool:
        """Whether federated sign-in with Google is configured."""
        return bool(self.google_client_id and self.google_client_secret)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached settings instance."""
    return Settings.from_env()
