from datetime import datetime
from enum import StrEnum
from uuid import UUID

from pydantic import BaseModel, Field

from blogapi.core.db import MongoModel
from blogapi.utils import now


class Role(StrEnum):
    USER = "user"
    ADMIN = "admin"


class User(MongoModel):
    """User domain model with credentials.

    Indexed on email - unique, username - unique.
    """

    username: str
    email: str
    password_hash: str  # bcrypt hash
    role: Role = Role.USER
    bio: str = ""
    profile_picture: str | None = None  # URL of the picture, the file itself is stored elsewhere
    created_at: datetime = Field(default_factory=now)
    updated_at: datetime = Field(default_factory=now)


class UserView(BaseModel):
    """User account information (API representation, never carries the password hash)."""

    id: UUID = Field(..., description="User ID")
    username: str = Field(..., description="Username")
    email: str = Field(..., description="Email address")
    role: Role = Field(..., description="User role")
    bio: str = Field("", description="Short biography")
    profile_picture: str | None = Field(None, description="Profile picture URL")
    created_at: datetime = Field(..., description="Account creation time")
    updated_at: datetime = Field(..., description="Last modification time")

    @classmethod
    def from_domain(cls, user: User) -> "UserView":
        """Create view model from domain model."""
        return cls(
            id=user.id,
            username=user.username,
            email=user.email,
            role=user.role,
            bio=user.bio,
            profile_picture=user.profile_picture,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )
