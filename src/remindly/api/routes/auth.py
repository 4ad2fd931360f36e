"""Authentication and user administration endpoints."""

from fastapi import APIRouter, status

from remindly.api.dependencies import AuthServiceDep, CurrentUserDep
from remindly.api.models import (
    ActiveUpdate,
    APIResponse,
    AuthResponse,
    GoogleLoginRequest,
    LoginRequest,
    RegisterRequest,
    RoleUpdate,
    UserResponse,
    user_to_response,
)
from remindly.auth import AuthResult

router = APIRouter(prefix="/auth", tags=["auth"])


def _auth_response(result: AuthResult) -> AuthResponse:
    return AuthResponse(token=result.token, user=user_to_response(result.user))


@router.post(
    "/register",
    response_model=APIResponse[AuthResponse],
    status_code=status.HTTP_201_CREATED,
)
def register(body: RegisterRequest, auth: AuthServiceDep) -> APIResponse[AuthResponse]:
    """Create an account. The first account ever created is an admin."""
    result = auth.register(name=body.name, email=body.email, password=body.password)
    return APIResponse(data=_auth_response(result))


@router.post("/login", response_model=APIResponse[AuthResponse])
def login(body: LoginRequest, auth: AuthServiceDep) -> APIResponse[AuthResponse]:
    """Sign in with email and password."""
    result = auth.login(email=body.email, password=body.password)
    return APIResponse(data=_auth_response(result))


@router.post("/google", response_model=APIResponse[AuthResponse])
def google_login(body: GoogleLoginRequest, auth: AuthServiceDep) -> APIResponse[AuthResponse]:
    """Complete Google sign-in with an authorization code."""
    result = auth.login_with_code(body.code, body.redirect_uri)
    return APIResponse(data=_auth_response(result))


@router.get("/me", response_model=APIResponse[UserResponse])
def me(user: CurrentUserDep) -> APIResponse[UserResponse]:
    """The signed-in user."""
    return APIResponse(data=user_to_response(user))


@router.get("/users", response_model=APIResponse[list[UserResponse]])
def list_users(user: CurrentUserDep, auth: AuthServiceDep) -> APIResponse[list[UserResponse]]:
    """List all users (admin only)."""
    users = auth.list_users(user)
    return APIResponse(data=[user_to_response(u) for u in users])


@router.patch("/users/{user_id}/role", response_model=APIResponse[UserResponse])
def update_role(
    user_id: str, body: RoleUpdate, user: CurrentUserDep, auth: AuthServiceDep
) -> APIResponse[UserResponse]:
    """Change a user's role (admin only)."""
    updated = auth.update_role(user, user_id, body.role)
    return APIResponse(data=user_to_response(updated))


@router.patch("/users/{user_id}/active", response_model=APIResponse[UserResponse])
def set_active(
    user_id: str, body: ActiveUpdate, user: CurrentUserDep, auth: AuthServiceDep
) -> APIResponse[UserResponse]:
    """Activate or deactivate a user (admin only)."""
    updated = auth.set_active(user, user_id, body.is_active)
    return APIResponse(data=user_to_response(updated))
