"""JWT token service.

Issues and validates the two bearer credentials used by the API. Access and
refresh tokens share the same claim layout and signing key and differ only in
their lifetime; which one is the refresh token is decided by the session store.
"""

from collections.abc import Callable
from datetime import datetime, timedelta
from uuid import UUID

import jwt
import structlog
from pydantic import ValidationError as PydanticValidationError

from blogapi.core.modules.password.policy import random_token
from blogapi.core.modules.token.models import TokenClaims
from blogapi.core.modules.user.models import Role
from blogapi.utils import now

logger = structlog.get_logger(__name__)

DEFAULT_ACCESS_TTL = timedelta(minutes=15)
DEFAULT_REFRESH_TTL = timedelta(days=7)


class InvalidTokenError(Exception):
    """Raised for any token that cannot be accepted: forged, expired or malformed."""


class TokenService:
    """Creates and verifies HS256-signed JWTs.

    Expiry is checked against the injected clock with zero leeway rather than
    by PyJWT, so tests can pin time.
    """

    ALGORITHM = "HS256"

    def __init__(
        self,
        secret_key: str,
        access_ttl: timedelta = DEFAULT_ACCESS_TTL,
        refresh_ttl: timedelta = DEFAULT_REFRESH_TTL,
        clock: Callable[[], datetime] = now,
    ) -> None:
        if not secret_key:
            raise ValueError("JWT secret key cannot be empty")
        self._secret_key = secret_key
        self._access_ttl = access_ttl
        self._refresh_ttl = refresh_ttl
        self._clock = clock

    def issue_access(self, user_id: UUID, email: str, role: Role, sid: str) -> str:
        """Create a short-lived access token."""
        return self._issue(user_id, email, role, sid, self._access_ttl)

    def issue_refresh(self, user_id: UUID, email: str, role: Role, sid: str) -> str:
        """Create a long-lived refresh token."""
        return self._issue(user_id, email, role, sid, self._refresh_ttl)

    def validate(self, token: str) -> TokenClaims:
        """Verify signature, algorithm and expiry, and return the claims.

        Raises:
            InvalidTokenError: If the token is forged, expired or malformed
        """
        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self.ALGORITHM],
                options={"verify_exp": False, "verify_iat": False, "require": ["exp", "iat"]},
            )
            claims = TokenClaims.model_validate(payload)
        except jwt.InvalidTokenError as e:
            logger.debug("token_rejected", reason=type(e).__name__)
            raise InvalidTokenError("Invalid token") from e
        except PydanticValidationError as e:
            logger.debug("token_rejected", reason="malformed_claims")
            raise InvalidTokenError("Malformed token payload") from e

        if claims.exp <= self._clock():
            logger.debug("token_rejected", reason="expired")
            raise InvalidTokenError("Token has expired")
        return claims

    def refresh_access(self, refresh_token: str) -> str:
        """Validate a refresh token and issue an access token with the same claims."""
        claims = self.validate(refresh_token)
        return self.issue_access(claims.user_id, claims.email, claims.role, claims.sid)

    def _issue(self, user_id: UUID, email: str, role: Role, sid: str, ttl: timedelta) -> str:
        issued_at = self._clock()
        payload = {
            "user_id": str(user_id),
            "email": email,
            "role": str(role),
            "sid": sid,
            "jti": random_token(16),
            "iat": int(issued_at.timestamp()),
            "exp": int((issued_at + ttl).timestamp()),
        }
        return jwt.encode(payload, self._secret_key, algorithm=self.ALGORITHM)
