"""AuthService - registration, sign-in, and user administration."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

from remindly.auth.passwords import PasswordHasher
from remindly.auth.tokens import TokenIssuer
from remindly.exceptions import (
    EmailAlreadyRegisteredError,
    UnauthenticatedError,
    UserNotFoundError,
    ValidationError,
)
from remindly.policy import AccessPolicy, Operation
from remindly.state_store.models import Role

if TYPE_CHECKING:
    from remindly.auth.google import FederatedProfile, IdentityProvider
    from remindly.config import Settings
    from remindly.state_store import StateStore, User

logger = logging.getLogger("remindly.auth")

_EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


@dataclass
class AuthResult:
    """A signed-in user and their bearer token."""

    token: str
    user: User


class AuthService:
    """Resolves credentials to users and issues access tokens.

    New accounts are created through StateStore.create_user, which alone
    decides whether a new user is the bootstrap admin.
    """

    def __init__(
        self,
        store: StateStore,
        settings: Settings,
        identity_provider: IdentityProvider | None = None,
        policy: AccessPolicy | None = None,
    ) -> None:
        self._store = store
        self._hasher = PasswordHasher(rounds=settings.bcrypt_rounds)
        self._tokens = TokenIssuer(
            secret=settings.jwt_secret,
            algorithm=settings.jwt_algorithm,
            expires_minutes=settings.jwt_expires_minutes,
        )
        self._identity_provider = identity_provider
        self._policy = policy or AccessPolicy()

    @property
    def federated_enabled(self) -> bool:
        return self._identity_provider is not None

    def register(self, name: str, email: str, password: str) -> AuthResult:
        """Create an email/password account and sign it in.

        Raises:
            ValidationError: If a field is missing or the email is malformed
            EmailAlreadyRegisteredError: If the email is taken
        """
        name = (name or "").strip()
        email = (email or "").strip().lower()
        if not name or not email or not password:
            raise ValidationError("All fields are required")
        if not _EMAIL_PATTERN.match(email):
            raise ValidationError("Email address is invalid")
        if self._store.find_user_by_email(email) is not None:
            raise EmailAlreadyRegisteredError("Email already registered")

        user = self._store.create_user(
            name=name,
            email=email,
            password_hash=self._hasher.hash(password),
        )
        logger.info("Registered user %s (%s)", user.id, user.role)
        return AuthResult(token=self._tokens.create_access_token(user.id), user=user)

    def login(self, email: str, password: str) -> AuthResult:
        """Sign in with email and password.

        Raises:
            ValidationError: If either field is missing
            UnauthenticatedError: If the credentials are wrong or the account is deactivated
        """
        if not email or not password:
            raise ValidationError("Email and password are required")

        user = self._store.find_user_by_email(email)
        if user is None or not self._hasher.verify(password, user.password_hash):
            logger.warning("Failed login attempt")
            raise UnauthenticatedError("Invalid credentials")
        if not user.is_active:
            raise UnauthenticatedError("Account is deactivated")

        return AuthResult(token=self._tokens.create_access_token(user.id), user=user)

    def federated_login(self, profile: FederatedProfile) -> AuthResult:
        """Sign in with an externally verified profile.

        Looks the user up by federated id, then links an existing account
        with the same email, and otherwise creates a new account.

        Raises:
            UnauthenticatedError: If the account is deactivated
        """
        user = self._store.find_user_by_google_id(profile.subject)
        if user is None:
            existing = self._store.find_user_by_email(profile.email)
            if existing is not None:
                user = self._store.link_google_account(existing.id, profile.subject, profile.avatar)
                logger.info("Linked federated identity to user %s", user.id)
            else:
                user = self._store.create_user(
                    name=profile.name,
                    email=profile.email,
                    google_id=profile.subject,
                    avatar=profile.avatar,
                )
                logger.info("Created user %s from federated sign-in (%s)", user.id, user.role)

        if not user.is_active:
            raise UnauthenticatedError("Account is deactivated")
        return AuthResult(token=self._tokens.create_access_token(user.id), user=user)

    def login_with_code(self, code: str, redirect_uri: str | None = None) -> AuthResult:
        """Complete federated sign-in from an OAuth authorization code.

        Raises:
            UnauthenticatedError: If federated sign-in is not configured or fails
        """
        if self._identity_provider is None:
            raise UnauthenticatedError("Federated sign-in is not configured")
        profile = self._identity_provider.resolve(code, redirect_uri)
        return self.federated_login(profile)

    def authenticate(self, token: str) -> User:
        """Resolve a bearer token to an active user.

        Raises:
            UnauthenticatedError: If the token is invalid or the user is gone or deactivated
        """
        user_id = self._tokens.decode_access_token(token)
        try:
            user = self._store.get_user(user_id)
        except UserNotFoundError as e:
            raise UnauthenticatedError("User not found") from e
        if not user.is_active:
            raise UnauthenticatedError("Account is deactivated")
        return user

    # --- Administration ---

    def list_users(self, actor: User) -> list[User]:
        self._policy.authorize(actor, Operation.MANAGE_USERS)
        return self._store.list_users()

    def update_role(self, actor: User, user_id: str, role: str) -> User:
        """Promote or demote a user.

        Raises:
            ForbiddenError: If the actor is not an admin
            ValidationError: If role is not a known role
            UserNotFoundError: If user doesn't exist
        """
        self._policy.authorize(actor, Operation.MANAGE_USERS)
        try:
            new_role = Role(role)
        except ValueError as e:
            raise ValidationError("Invalid role") from e
        user = self._store.update_user_role(user_id, new_role)
        logger.info("Admin %s set role of %s to %s", actor.id, user_id, new_role.value)
        return user

    def set_active(self, actor: User, user_id: str, active: bool) -> User:
        """Suspend or restore a user's ability to sign in.

        Raises:
            ForbiddenError: If the actor is not an admin
            UserNotFoundError: If user doesn't exist
        """
        self._policy.authorize(actor, Operation.MANAGE_USERS)
        user = self._store.set_user_active(user_id, active)
        logger.info(
            "Admin %s %s user %s", actor.id, "activated" if active else "deactivated", user_id
        )
        return user
