from enum import StrEnum
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from blogapi.core.modules.user.models import Role, User
from blogapi.errors import AuthenticationError


class Principal(BaseModel):
    """Authenticated identity attached to a request by the auth guard."""

    model_config = ConfigDict(frozen=True)

    user_id: UUID
    email: str
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


class AuthResult(BaseModel):
    """Outcome of a successful login or refresh."""

    user: User
    access_token: str
    refresh_token: str


class RefreshFailure(StrEnum):
    INVALID_REFRESH = "invalid_refresh"
    SESSION_NOT_FOUND = "session_not_found"
    SESSION_EXPIRED = "session_expired"
    USER_NOT_FOUND = "user_not_found"


REFRESH_FAILURE_MESSAGES: dict[RefreshFailure, str] = {
    RefreshFailure.INVALID_REFRESH: "invalid refresh token",
    RefreshFailure.SESSION_NOT_FOUND: "session not found",
    RefreshFailure.SESSION_EXPIRED: "session is expired or inactive",
    RefreshFailure.USER_NOT_FOUND: "user not found",
}


class RefreshError(AuthenticationError):
    """Raised when a refresh token cannot be exchanged for a new access token."""

    def __init__(self, reason: RefreshFailure) -> None:
        self.reason = reason
        super().__init__(REFRESH_FAILURE_MESSAGES[reason])
