import functools
from collections.abc import Awaitable, Callable
from typing import Any, Self
from uuid import UUID, uuid4

import structlog
from pydantic import BaseModel, ConfigDict, Field
from pymongo.asynchronous.cursor import AsyncCursor
from pymongo.errors import DuplicateKeyError, PyMongoError

from blogapi.errors import StorageError

logger = structlog.get_logger(__name__)


class MongoModel(BaseModel):
    id: UUID = Field(alias="_id", serialization_alias="id", default_factory=uuid4)

    model_config = ConfigDict(
        populate_by_name=True,
        arbitrary_types_allowed=True,
        json_schema_serialization_defaults_required=True,
    )

    def to_mongo(self) -> dict[str, Any]:
        """Convert the model to a dictionary for MongoDB storage with _id field."""
        data = self.model_dump()
        if "id" in data:
            data["_id"] = data.pop("id")  # Rename id → _id for MongoDB
        return data

    @classmethod
    async def list_cursor(cls, cursor: AsyncCursor[dict[str, Any]]) -> list[Self]:
        """Iterate over an AsyncCursor and return a list of model instances."""
        return [cls.model_validate(item) async for item in cursor]


def duplicate_key_field(error: DuplicateKeyError) -> str | None:
    """Return the name of the field that violated a unique index, if the server reported it."""
    details = error.details or {}
    key_value = details.get("keyValue") or details.get("keyPattern") or {}
    return next(iter(key_value), None)


def storage_call[**P, R](func: Callable[P, Awaitable[R]]) -> Callable[P, Awaitable[R]]:
    """Translate driver failures and deadline expiry into StorageError.

    DuplicateKeyError passes through untouched so stores can map it to a domain error.
    """

    @functools.wraps(func)
    async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        try:
            return await func(*args, **kwargs)
        except DuplicateKeyError:
            raise
        except PyMongoError as e:
            logger.error("storage_error", operation=func.__qualname__, error=str(e), timeout=e.timeout)
            if e.timeout:
                raise StorageError("Storage operation timed out") from e
            raise StorageError from e

    return wrapper
