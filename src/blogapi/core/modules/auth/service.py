"""Registration, login, refresh, logout and the per-request guards."""

import asyncio
from collections.abc import Awaitable, Callable
from datetime import datetime, timedelta
from uuid import UUID

import structlog

from blogapi.core.core import Service
from blogapi.core.modules.auth.models import AuthResult, Principal, RefreshError, RefreshFailure
from blogapi.core.modules.password.policy import PasswordPolicy
from blogapi.core.modules.session.models import Session
from blogapi.core.modules.session.store import SessionExistsError, SessionStore
from blogapi.core.modules.token.service import InvalidTokenError, TokenService
from blogapi.core.modules.user.models import Role, User
from blogapi.core.modules.user.store import UserStore
from blogapi.core.modules.user.validators import validate_email, validate_username
from blogapi.errors import (
    AccessDeniedError,
    AuthenticationError,
    ConflictError,
    InvalidCredentialsError,
    NotFoundError,
    StorageError,
)
from blogapi.utils import now

logger = structlog.get_logger(__name__)

DEFAULT_SESSION_TTL = timedelta(days=7)
SID_BYTES = 16

MISSING_TOKEN_MESSAGE = "authorization token required"
INVALID_TOKEN_MESSAGE = "invalid or expired token"


def extract_bearer_token(authorization: str | None) -> str:
    """Return the token from an ``Authorization: Bearer <token>`` header.

    The header must be exactly ``Bearer``, one space, and a single token.

    Raises:
        AuthenticationError: If the header is missing or malformed
    """
    if not authorization:
        raise AuthenticationError(MISSING_TOKEN_MESSAGE)
    scheme, _, token = authorization.partition(" ")
    if scheme != "Bearer" or not token or any(char.isspace() for char in token):
        raise AuthenticationError(MISSING_TOKEN_MESSAGE)
    return token


class AuthService(Service):
    """Orchestrates the password policy, token service and the user and session stores."""

    def __init__(
        self,
        users: UserStore,
        sessions: SessionStore,
        tokens: TokenService,
        passwords: PasswordPolicy,
        session_ttl: timedelta = DEFAULT_SESSION_TTL,
        clock: Callable[[], datetime] = now,
    ) -> None:
        self._users = users
        self._sessions = sessions
        self._tokens = tokens
        self._passwords = passwords
        self._session_ttl = session_ttl
        self._clock = clock
        self._dummy_hash: str | None = None

    async def register(self, username: str, email: str, password: str) -> User:
        """Create a user with role ``user``.

        Raises:
            ValidationError: If username, email or password are not acceptable
            ConflictError: If the email or username is already taken
        """
        self._passwords.validate(password)
        validate_username(username)
        validate_email(email)

        if await self._exists(self._users.get_by_email(email)):
            raise ConflictError("email")
        if await self._exists(self._users.get_by_username(username)):
            raise ConflictError("username")

        password_hash = await asyncio.to_thread(self._passwords.hash, password)
        # The unique indexes still reject a concurrent registration with ConflictError
        user = await self._users.create(User(username=username, email=email, password_hash=password_hash))
        logger.info("user_registered", user_id=user.id, username=user.username)
        return user

    async def login(self, email: str, password: str) -> AuthResult:
        """Verify credentials and open a session, replacing any previous one.

        Raises:
            InvalidCredentialsError: Unknown email or wrong password, indistinguishably
        """
        try:
            user = await self._users.get_by_email(email)
        except NotFoundError:
            # Spend the same bcrypt time as for a known email
            await asyncio.to_thread(self._passwords.verify, password, await self._get_dummy_hash())
            logger.info("login_failed", reason="unknown_email")
            raise InvalidCredentialsError from None

        if not await asyncio.to_thread(self._passwords.verify, password, user.password_hash):
            logger.info("login_failed", reason="wrong_password", user_id=user.id)
            raise InvalidCredentialsError

        sid = self._passwords.random_token(SID_BYTES)
        access_token = self._tokens.issue_access(user.id, user.email, user.role, sid)
        refresh_token = self._tokens.issue_refresh(user.id, user.email, user.role, sid)

        timestamp = self._clock()
        session = Session(
            user_id=user.id,
            username=user.username,
            refresh_token=refresh_token,
            sid=sid,
            is_active=True,
            created_at=timestamp,
            expires_at=timestamp + self._session_ttl,
            last_activity=timestamp,
        )
        try:
            await self._sessions.create(session)
        except SessionExistsError:
            await self._sessions.update(session)
            logger.info("session_replaced", user_id=user.id)

        logger.info("user_logged_in", user_id=user.id)
        return AuthResult(user=user, access_token=access_token, refresh_token=refresh_token)

    async def refresh(self, refresh_token: str) -> AuthResult:
        """Issue a new access token for an active session. The refresh token is returned unchanged.

        Raises:
            RefreshError: With the reason the refresh token was refused
        """
        try:
            claims = self._tokens.validate(refresh_token)
        except InvalidTokenError:
            raise RefreshError(RefreshFailure.INVALID_REFRESH) from None

        try:
            session = await self._sessions.get_by_user_id(claims.user_id)
        except NotFoundError:
            raise RefreshError(RefreshFailure.SESSION_NOT_FOUND) from None

        if session.refresh_token != refresh_token:
            logger.info("refresh_token_mismatch", user_id=claims.user_id)
            raise RefreshError(RefreshFailure.INVALID_REFRESH)

        if not session.is_usable(self._clock()):
            raise RefreshError(RefreshFailure.SESSION_EXPIRED)

        try:
            user = await self._users.get_by_id(claims.user_id)
        except NotFoundError:
            raise RefreshError(RefreshFailure.USER_NOT_FOUND) from None

        access_token = self._tokens.issue_access(user.id, user.email, user.role, session.sid)
        try:
            await self._sessions.touch(session.id)
        except NotFoundError:
            # Logged out while the refresh was in flight
            raise RefreshError(RefreshFailure.SESSION_NOT_FOUND) from None

        logger.debug("access_token_refreshed", user_id=user.id)
        return AuthResult(user=user, access_token=access_token, refresh_token=refresh_token)

    async def logout(self, user_id: UUID) -> None:
        """Delete the user's session. Logging out without a session succeeds."""
        await self._sessions.delete_by_user_id(user_id)
        logger.info("user_logged_out", user_id=user_id)

    async def authenticate(self, authorization: str | None) -> Principal:
        """Turn an Authorization header into a principal.

        Expired, forged and revoked credentials are rejected with the same message.

        Raises:
            AuthenticationError: If the header, token or session is not acceptable
        """
        token = extract_bearer_token(authorization)

        try:
            claims = self._tokens.validate(token)
        except InvalidTokenError:
            logger.debug("guard_rejected", reason="invalid_token")
            raise AuthenticationError(INVALID_TOKEN_MESSAGE) from None

        try:
            session = await self._sessions.get_by_user_id(claims.user_id)
        except NotFoundError:
            logger.debug("guard_rejected", reason="no_session", user_id=claims.user_id)
            raise AuthenticationError(INVALID_TOKEN_MESSAGE) from None

        if not session.is_usable(self._clock()) or session.sid != claims.sid:
            logger.debug("guard_rejected", reason="session_not_usable", user_id=claims.user_id)
            raise AuthenticationError(INVALID_TOKEN_MESSAGE)

        return Principal(user_id=claims.user_id, email=claims.email, role=claims.role)

    async def authenticate_admin(self, authorization: str | None) -> Principal:
        """Authenticate, then require the admin role.

        Raises:
            AuthenticationError: As for authenticate
            AccessDeniedError: If the principal is not an admin
        """
        principal = await self.authenticate(authorization)
        if principal.role != Role.ADMIN:
            raise AccessDeniedError("admin access required")
        return principal

    async def authenticate_optional(self, authorization: str | None) -> Principal | None:
        """Authenticate if possible; any failure yields an anonymous request."""
        if authorization is None:
            return None
        try:
            return await self.authenticate(authorization)
        except AuthenticationError:
            return None
        except StorageError:
            logger.warning("optional_auth_storage_error", exc_info=True)
            return None

    async def _exists(self, lookup: Awaitable[User]) -> bool:
        try:
            await lookup
        except NotFoundError:
            return False
        return True

    async def _get_dummy_hash(self) -> str:
        if self._dummy_hash is None:
            self._dummy_hash = await asyncio.to_thread(self._passwords.hash, self._passwords.random_token(16))
        return self._dummy_hash
