from datetime import datetime
from uuid import UUID

from pydantic import BaseModel

from blogapi.core.modules.user.models import Role


class TokenClaims(BaseModel):
    """Claims carried by access and refresh tokens."""

    user_id: UUID
    email: str
    role: Role
    sid: str  # Login identifier of the session the token was issued for
    jti: str
    iat: datetime
    exp: datetime
