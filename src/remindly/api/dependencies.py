"""FastAPI dependencies for dependency injection."""

from __future__ import annotations

from collections.abc import Generator  # noqa: TC003
from typing import Annotated

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from remindly.auth import AuthService, IdentityProvider
from remindly.config import Settings
from remindly.exceptions import UnauthenticatedError
from remindly.notifications import EventManager, NotificationCenter
from remindly.policy import AccessPolicy
from remindly.reschedule import RescheduleWorkflow
from remindly.scheduling import ReminderService
from remindly.state_store import StateStore, User

_policy = AccessPolicy()

# Global Settings instance (initialized on app startup)
_settings: Settings | None = None


def init_settings(settings: Settings) -> Settings:
    """Initialize the global Settings instance."""
    global _settings  # noqa: PLW0603
    _settings = settings
    return _settings


def get_settings() -> Generator[Settings, None, None]:
    """Dependency that provides the Settings instance."""
    if _settings is None:
        raise RuntimeError("Settings not initialized. Call init_settings() first.")
    yield _settings


SettingsDep = Annotated[Settings, Depends(get_settings)]

# Global StateStore instance (initialized on app startup)
_state_store: StateStore | None = None


def init_state_store(db_path: str = "remindly.db") -> StateStore:
    """Initialize the global StateStore instance."""
    global _state_store  # noqa: PLW0603
    _state_store = StateStore(db_path)
    return _state_store


def close_state_store() -> None:
    """Close the global StateStore instance."""
    global _state_store  # noqa: PLW0603
    if _state_store is not None:
        _state_store.close()
        _state_store = None


def get_state_store() -> Generator[StateStore, None, None]:
    """Dependency that provides the StateStore instance."""
    if _state_store is None:
        raise RuntimeError("StateStore not initialized. Call init_state_store() first.")
    yield _state_store


StateStoreDep = Annotated[StateStore, Depends(get_state_store)]

# Global EventManager and NotificationCenter (initialized on app startup)
_event_manager: EventManager | None = None
_notification_center: NotificationCenter | None = None


def init_event_manager() -> EventManager:
    """Initialize the global EventManager instance."""
    global _event_manager  # noqa: PLW0603
    _event_manager = EventManager()
    return _event_manager


def get_event_manager() -> Generator[EventManager, None, None]:
    """Dependency that provides the EventManager instance."""
    if _event_manager is None:
        raise RuntimeError("EventManager not initialized. Call init_event_manager() first.")
    yield _event_manager


EventManagerDep = Annotated[EventManager, Depends(get_event_manager)]


def init_notification_center(
    store: StateStore, event_manager: EventManager
) -> NotificationCenter:
    """Initialize the global NotificationCenter, subscribed to event_manager."""
    global _notification_center  # noqa: PLW0603
    _notification_center = NotificationCenter(store, event_manager)
    return _notification_center


def close_notification_center() -> None:
    """Detach and drop the global NotificationCenter."""
    global _notification_center  # noqa: PLW0603
    if _notification_center is not None:
        _notification_center.close()
        _notification_center = None


def get_notification_center() -> Generator[NotificationCenter, None, None]:
    """Dependency that provides the NotificationCenter instance."""
    if _notification_center is None:
        raise RuntimeError(
            "NotificationCenter not initialized. Call init_notification_center() first."
        )
    yield _notification_center


NotificationCenterDep = Annotated[NotificationCenter, Depends(get_notification_center)]

# Global federated identity provider (None when federated sign-in is disabled)
_identity_provider: IdentityProvider | None = None


def init_identity_provider(provider: IdentityProvider | None) -> None:
    """Initialize the global identity provider."""
    global _identity_provider  # noqa: PLW0603
    _identity_provider = provider


def close_identity_provider() -> None:
    """Drop the global identity provider, closing it if it holds a client."""
    global _identity_provider  # noqa: PLW0603
    close = getattr(_identity_provider, "close", None)
    if callable(close):
        close()
    _identity_provider = None


def get_identity_provider() -> IdentityProvider | None:
    """Dependency that provides the identity provider, if configured."""
    return _identity_provider


# Services are cheap to build; they share the store's lock for check-then-act sections


def get_auth_service(
    store: StateStoreDep,
    settings: SettingsDep,
    identity_provider: Annotated[IdentityProvider | None, Depends(get_identity_provider)],
) -> AuthService:
    """Dependency that provides an AuthService."""
    return AuthService(store, settings, identity_provider=identity_provider, policy=_policy)


AuthServiceDep = Annotated[AuthService, Depends(get_auth_service)]


def get_reminder_service(store: StateStoreDep, events: EventManagerDep) -> ReminderService:
    """Dependency that provides a ReminderService."""
    return ReminderService(store, policy=_policy, events=events, lock=store.lock)


ReminderServiceDep = Annotated[ReminderService, Depends(get_reminder_service)]


def get_reschedule_workflow(store: StateStoreDep, events: EventManagerDep) -> RescheduleWorkflow:
    """Dependency that provides a RescheduleWorkflow."""
    return RescheduleWorkflow(store, policy=_policy, events=events, lock=store.lock)


RescheduleWorkflowDep = Annotated[RescheduleWorkflow, Depends(get_reschedule_workflow)]

_bearer = HTTPBearer(auto_error=False)


def get_current_user(
    auth: AuthServiceDep,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(_bearer)],
) -> User:
    """Dependency that resolves the bearer token to the signed-in user.

    Raises:
        UnauthenticatedError: If no token was sent or it does not resolve
    """
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise UnauthenticatedError("Not authorized, no token")
    return auth.authenticate(credentials.credentials)


CurrentUserDep = Annotated[User, Depends(get_current_user)]
