from fastapi import APIRouter
from pydantic import BaseModel, Field

from blogapi.app import LoginResult
from blogapi.core.modules.user.models import UserView
from blogapi.web.deps import AppDep, PrincipalDep
from blogapi.web.openapi import ErrorResponse, MessageResponse

router = APIRouter(tags=["auth"])


class RegisterRequest(BaseModel):
    """Account registration request."""

    username: str = Field(..., description="Unique username, 3-50 characters without whitespace")
    email: str = Field(..., description="Unique email address")
    password: str = Field(..., description="Password satisfying the password policy")


class LoginRequest(BaseModel):
    """Authentication request."""

    email: str = Field(..., description="Email address of the account")
    password: str = Field(..., description="Password for authentication")


class RefreshRequest(BaseModel):
    """Access token refresh request."""

    refresh_token: str = Field(..., description="Refresh token returned by login")


class UserResponse(BaseModel):
    """Single user wrapped in an object."""

    user: UserView


@router.post(
    "/auth/register",
    summary="Register account",
    description="Create a new account with the user role. Does not log in.",
    operation_id="register",
    status_code=201,
    responses={
        201: {"description": "Account created"},
        400: {"model": ErrorResponse, "description": "Invalid username, email or password"},
        409: {"model": ErrorResponse, "description": "Email or username already taken"},
    },
)
async def register(register_data: RegisterRequest, app: AppDep) -> UserResponse:
    user = await app.register(register_data.username, register_data.email, register_data.password)
    return UserResponse(user=user)


@router.post(
    "/auth/login",
    summary="Authenticate user",
    description="Authenticate with email and password to receive an access and a refresh token. "
    "Any previous session of the user is replaced.",
    operation_id="login",
    responses={
        200: {"description": "Successfully authenticated"},
        401: {"model": ErrorResponse, "description": "Invalid credentials"},
    },
)
async def login(login_data: LoginRequest, app: AppDep) -> LoginResult:
    """Authenticate user and create session."""
    return await app.login(login_data.email, login_data.password)


@router.post(
    "/auth/refresh",
    summary="Refresh access token",
    description="Exchange the refresh token of the current session for a new access token.",
    operation_id="refresh",
    responses={
        200: {"description": "New access token issued"},
        401: {"model": ErrorResponse, "description": "Refresh token or session not acceptable"},
    },
)
async def refresh(refresh_data: RefreshRequest, app: AppDep) -> LoginResult:
    return await app.refresh(refresh_data.refresh_token)


@router.post(
    "/auth/logout",
    summary="End session",
    description="Invalidate the current session. Its access and refresh tokens stop working.",
    operation_id="logout",
    responses={
        200: {"description": "Successfully logged out"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def logout(app: AppDep, principal: PrincipalDep) -> MessageResponse:
    await app.logout(principal)
    return MessageResponse(message="Successfully logged out")
