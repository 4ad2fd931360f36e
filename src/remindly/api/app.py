"""FastAPI application setup."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from remindly.api.dependencies import (
    close_identity_provider,
    close_notification_center,
    close_state_store,
    init_event_manager,
    init_identity_provider,
    init_notification_center,
    init_settings,
    init_state_store,
)
from remindly.api.models import APIResponse, ConflictItem, ConflictResponse
from remindly.api.routes import auth, notifications, reminders, reschedule
from remindly.auth import GoogleIdentityProvider
from remindly.config import get_settings
from remindly.exceptions import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    RemindlyError,
    ReminderNotFoundError,
    RescheduleRequestNotFoundError,
    ScheduleConflictError,
    StoreUnavailableError,
    UnauthenticatedError,
    UserNotFoundError,
    ValidationError,
)
from remindly.logging import get_logger, sanitize_for_log
from remindly.notifications import NotificationNotFoundError

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from remindly.auth import IdentityProvider
    from remindly.config import Settings

logger = get_logger("api")

_NOT_FOUND_MESSAGES: dict[type[NotFoundError], str] = {
    UserNotFoundError: "User not found",
    ReminderNotFoundError: "Reminder not found",
    RescheduleRequestNotFoundError: "Request not found",
    NotificationNotFoundError: "Notification not found",
}


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=APIResponse[None](data=None, error=message).model_dump(),
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    # Startup
    settings: Settings = app.state.settings
    init_settings(settings)
    store = init_state_store(app.state.db_path)
    event_manager = init_event_manager()
    init_notification_center(store, event_manager)

    provider: IdentityProvider | None = app.state.identity_provider
    if provider is None and settings.google_enabled:
        provider = GoogleIdentityProvider(
            client_id=settings.google_client_id or "",
            client_secret=settings.google_client_secret or "",
            redirect_uri=settings.google_redirect_uri,
        )
    init_identity_provider(provider)
    logger.info(
        "Remindly API started (db=%s, google=%s)", app.state.db_path, provider is not None
    )

    yield
    # Shutdown
    close_identity_provider()
    close_notification_center()
    close_state_store()


def register_exception_handlers(app: FastAPI) -> None:
    """Map the domain error taxonomy onto HTTP responses."""

    @app.exception_handler(ValidationError)
    async def validation_error_handler(_request: Request, exc: ValidationError) -> JSONResponse:
        return _error(status.HTTP_400_BAD_REQUEST, str(exc))

    @app.exception_handler(UnauthenticatedError)
    async def unauthenticated_handler(_request: Request, exc: UnauthenticatedError) -> JSONResponse:
        response = _error(status.HTTP_401_UNAUTHORIZED, str(exc))
        response.headers["WWW-Authenticate"] = "Bearer"
        return response

    @app.exception_handler(ForbiddenError)
    async def forbidden_handler(_request: Request, exc: ForbiddenError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_403_FORBIDDEN,
            content=APIResponse[dict[str, str]](
                data={"reason": exc.reason.value}, error=str(exc)
            ).model_dump(),
        )

    @app.exception_handler(NotFoundError)
    async def not_found_handler(_request: Request, exc: NotFoundError) -> JSONResponse:
        message = next(
            (msg for cls, msg in _NOT_FOUND_MESSAGES.items() if isinstance(exc, cls)),
            "Not found",
        )
        return _error(status.HTTP_404_NOT_FOUND, message)

    @app.exception_handler(ScheduleConflictError)
    async def schedule_conflict_handler(
        _request: Request, exc: ScheduleConflictError
    ) -> JSONResponse:
        conflicts = [ConflictItem.model_validate(c) for c in exc.conflicts]
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content=APIResponse[ConflictResponse](
                data=ConflictResponse(conflicts=conflicts), error=str(exc)
            ).model_dump(),
        )

    @app.exception_handler(ConflictError)
    async def conflict_handler(_request: Request, exc: ConflictError) -> JSONResponse:
        return _error(status.HTTP_409_CONFLICT, str(exc))

    @app.exception_handler(StoreUnavailableError)
    async def store_unavailable_handler(
        _request: Request, _exc: StoreUnavailableError
    ) -> JSONResponse:
        return _error(status.HTTP_503_SERVICE_UNAVAILABLE, "Storage temporarily unavailable")

    @app.exception_handler(RemindlyError)
    async def remindly_error_handler(_request: Request, exc: RemindlyError) -> JSONResponse:
        logger.error("Unhandled domain error: %s", sanitize_for_log(str(exc)))
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")


def create_app(
    db_path: str | None = None,
    settings: Settings | None = None,
    identity_provider: IdentityProvider | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        db_path: SQLite database path (defaults to settings.db_path)
        settings: Application settings (defaults to the environment)
        identity_provider: Federated sign-in provider; built from the Google
            settings when omitted
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="Remindly API",
        description="REST API for Remindly - shared reminders for admins and students",
        version="0.1.0",
        lifespan=lifespan,
    )

    # Store config for lifespan manager
    app.state.settings = settings
    app.state.db_path = db_path or settings.db_path
    app.state.identity_provider = identity_provider

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    # Include routers
    app.include_router(auth.router, prefix="/api/v1")
    app.include_router(reschedule.router, prefix="/api/v1")
    app.include_router(reminders.router, prefix="/api/v1")
    app.include_router(notifications.router, prefix="/api/v1")

    @app.get("/api/v1/health", response_model=APIResponse[dict[str, str]])
    def health() -> APIResponse[dict[str, str]]:
        return APIResponse(data={"status": "ok"})

    return app
