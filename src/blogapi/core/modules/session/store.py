from collections.abc import Callable
from datetime import datetime
from typing import Any, Protocol
from uuid import UUID

from pymongo import ReturnDocument
from pymongo.asynchronous.database import AsyncDatabase
from pymongo.errors import DuplicateKeyError

from blogapi.core.core import Service
from blogapi.core.db import storage_call
from blogapi.core.modules.session.models import Session
from blogapi.errors import NotFoundError
from blogapi.utils import now


class SessionExistsError(Exception):
    """Raised by SessionStore.create when the user already has a session."""


class SessionStore(Protocol):
    """Durable mapping from user_id to at most one Session."""

    async def create(self, session: Session) -> Session: ...

    async def get_by_user_id(self, user_id: UUID) -> Session: ...

    async def get_by_username(self, username: str) -> Session: ...

    async def update(self, session: Session) -> Session: ...  # Create-or-replace by user_id

    async def touch(self, session_id: UUID) -> None: ...

    async def delete_by_user_id(self, user_id: UUID) -> None: ...

    async def delete_expired(self) -> int: ...


class MongoSessionStore(Service):
    """SessionStore backed by the ``sessions`` collection."""

    def __init__(self, database: AsyncDatabase[dict[str, Any]], clock: Callable[[], datetime] = now) -> None:
        self._collection = database.get_collection("sessions")
        self._clock = clock

    async def on_start(self) -> None:
        """Create indexes on startup."""
        # One session per user; concurrent logins race on this index
        await self._collection.create_index([("user_id", 1)], unique=True)
        await self._collection.create_index([("username", 1)])
        # Range scans for the expired-session sweep
        await self._collection.create_index([("expires_at", 1)])

    @storage_call
    async def create(self, session: Session) -> Session:
        """Insert a session.

        Raises:
            SessionExistsError: If the user already has a session
        """
        try:
            await self._collection.insert_one(session.to_mongo())
        except DuplicateKeyError as e:
            raise SessionExistsError(f"Session for user '{session.user_id}' already exists") from e
        return session

    @storage_call
    async def get_by_user_id(self, user_id: UUID) -> Session:
        return await self._find_one({"user_id": user_id})

    @storage_call
    async def get_by_username(self, username: str) -> Session:
        return await self._find_one({"username": username})

    @storage_call
    async def update(self, session: Session) -> Session:
        """Replace the user's session, keeping the stored row id.

        Inserts the session if the row was deleted since the caller last saw it.
        """
        data = session.to_mongo()
        row_id = data.pop("_id")
        doc = await self._collection.find_one_and_update(
            {"user_id": session.user_id},
            {"$set": data, "$setOnInsert": {"_id": row_id}},
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
        return Session.model_validate(doc)

    @storage_call
    async def touch(self, session_id: UUID) -> None:
        result = await self._collection.update_one({"_id": session_id}, {"$set": {"last_activity": self._clock()}})
        if result.matched_count == 0:
            raise NotFoundError("Session not found")

    @storage_call
    async def delete_by_user_id(self, user_id: UUID) -> None:
        await self._collection.delete_one({"user_id": user_id})

    @storage_call
    async def delete_expired(self) -> int:
        result = await self._collection.delete_many({"expires_at": {"$lt": self._clock()}})
        return result.deleted_count

    async def _find_one(self, query: dict[str, Any]) -> Session:
        doc = await self._collection.find_one(query)
        if doc is None:
            raise NotFoundError("Session not found")
        return Session.model_validate(doc)
