"""Session management models."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from blogapi.core.db import MongoModel
from blogapi.utils import now


class Session(MongoModel):
    """Server-side login session, at most one per user.

    Indexed on user_id - unique, username, expires_at (expired-session sweep).
    """

    user_id: UUID
    username: str  # Copy of User.username, never updated in place
    refresh_token: str
    sid: str  # Login identifier embedded in every token issued for this session
    is_active: bool = True
    created_at: datetime = Field(default_factory=now)
    expires_at: datetime
    last_activity: datetime = Field(default_factory=now)

    def is_usable(self, at: datetime) -> bool:
        """Active and not yet expired at the given instant."""
        return self.is_active and self.expires_at > at


class SessionView(BaseModel):
    """Session information for administrators (API representation, no tokens)."""

    id: UUID = Field(..., description="Session ID")
    user_id: UUID = Field(..., description="Owner user ID")
    username: str = Field(..., description="Owner username")
    is_active: bool = Field(..., description="Whether the session can be used")
    created_at: datetime = Field(..., description="Login time")
    expires_at: datetime = Field(..., description="Expiry time")
    last_activity: datetime = Field(..., description="Last refresh time")

    @classmethod
    def from_domain(cls, session: Session) -> "SessionView":
        return cls(
            id=session.id,
            user_id=session.user_id,
            username=session.username,
            is_active=session.is_active,
            created_at=session.created_at,
            expires_at=session.expires_at,
            last_activity=session.last_activity,
        )
