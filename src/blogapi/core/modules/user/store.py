from collections.abc import Callable
from datetime import datetime
from typing import Any, Protocol
from uuid import UUID

from pymongo.asynchronous.database import AsyncDatabase
from pymongo.errors import DuplicateKeyError

from blogapi.core.core import Service
from blogapi.core.db import duplicate_key_field, storage_call
from blogapi.core.modules.user.models import Role, User
from blogapi.errors import ConflictError, NotFoundError
from blogapi.utils import now


class UserStore(Protocol):
    """Persistence of user identity records."""

    async def get_by_id(self, user_id: UUID) -> User: ...

    async def get_by_email(self, email: str) -> User: ...

    async def get_by_username(self, username: str) -> User: ...

    async def list_all(self) -> list[User]: ...

    async def create(self, user: User) -> User: ...

    async def update(self, user: User) -> User: ...

    async def update_profile(self, user_id: UUID, bio: str | None, profile_picture: str | None) -> User: ...

    async def update_role(self, user_id: UUID, role: Role) -> User: ...


class MongoUserStore(Service):
    """UserStore backed by the ``users`` collection."""

    def __init__(self, database: AsyncDatabase[dict[str, Any]], clock: Callable[[], datetime] = now) -> None:
        self._collection = database.get_collection("users")
        self._clock = clock

    async def on_start(self) -> None:
        """Create indexes on startup."""
        await self._collection.create_index([("email", 1)], unique=True)
        await self._collection.create_index([("username", 1)], unique=True)
        await self._collection.create_index([("role", 1)])

    @storage_call
    async def get_by_id(self, user_id: UUID) -> User:
        return await self._find_one({"_id": user_id}, f"User '{user_id}' not found")

    @storage_call
    async def get_by_email(self, email: str) -> User:
        return await self._find_one({"email": email}, "User not found")

    @storage_call
    async def get_by_username(self, username: str) -> User:
        return await self._find_one({"username": username}, f"User '{username}' not found")

    @storage_call
    async def list_all(self) -> list[User]:
        return await User.list_cursor(self._collection.find().sort("created_at", 1))

    @storage_call
    async def create(self, user: User) -> User:
        """Insert a new user; created_at and updated_at are set to now."""
        timestamp = self._clock()
        user = user.model_copy(update={"created_at": timestamp, "updated_at": timestamp})
        try:
            await self._collection.insert_one(user.to_mongo())
        except DuplicateKeyError as e:
            raise ConflictError(duplicate_key_field(e) or "email") from e
        return user

    @storage_call
    async def update(self, user: User) -> User:
        """Replace all fields of an existing user and bump updated_at."""
        user = user.model_copy(update={"updated_at": self._clock()})
        data = user.to_mongo()
        data.pop("_id")
        try:
            result = await self._collection.update_one({"_id": user.id}, {"$set": data})
        except DuplicateKeyError as e:
            raise ConflictError(duplicate_key_field(e) or "email") from e
        if result.matched_count == 0:
            raise NotFoundError(f"User '{user.id}' not found")
        return user

    @storage_call
    async def update_profile(self, user_id: UUID, bio: str | None, profile_picture: str | None) -> User:
        """Update profile fields; None leaves a field unchanged."""
        update_data: dict[str, Any] = {"updated_at": self._clock()}
        if bio is not None:
            update_data["bio"] = bio
        if profile_picture is not None:
            update_data["profile_picture"] = profile_picture
        return await self._update_fields(user_id, update_data)

    @storage_call
    async def update_role(self, user_id: UUID, role: Role) -> User:
        return await self._update_fields(user_id, {"role": role, "updated_at": self._clock()})

    async def _update_fields(self, user_id: UUID, update_data: dict[str, Any]) -> User:
        result = await self._collection.update_one({"_id": user_id}, {"$set": update_data})
        if result.matched_count == 0:
            raise NotFoundError(f"User '{user_id}' not found")
        return await self.get_by_id(user_id)

    async def _find_one(self, query: dict[str, Any], not_found_message: str) -> User:
        doc = await self._collection.find_one(query)
        if doc is None:
            raise NotFoundError(not_found_message)
        return User.model_validate(doc)
