import re
from collections.abc import Callable
from datetime import datetime
from typing import Any, Protocol
from uuid import UUID

from pymongo.asynchronous.database import AsyncDatabase

from blogapi.core.core import Service
from blogapi.core.db import storage_call
from blogapi.core.modules.blog.models import Comment, Post, PostQuery, PostSort, ReactionType
from blogapi.core.pagination import PaginationResult
from blogapi.errors import NotFoundError
from blogapi.utils import now

REACTION_FIELDS: dict[ReactionType, tuple[str, str]] = {
    ReactionType.LIKE: ("likes", "like_count"),
    ReactionType.DISLIKE: ("dislikes", "dislike_count"),
}


class BlogStore(Protocol):
    """Persistence of blog posts with their comments and reactions."""

    async def create(self, post: Post) -> Post: ...

    async def get(self, post_id: UUID) -> Post: ...

    async def list_posts(self, query: PostQuery, limit: int, offset: int) -> PaginationResult[Post]: ...

    async def list_popular(self, limit: int) -> list[Post]: ...

    async def update_content(self, post_id: UUID, title: str, content: str, tags: list[str]) -> Post: ...

    async def delete(self, post_id: UUID) -> None: ...

    async def increment_views(self, post_id: UUID) -> None: ...

    async def add_comment(self, post_id: UUID, comment: Comment) -> None: ...

    async def update_comment(self, post_id: UUID, comment_id: UUID, content: str) -> None: ...

    async def delete_comment(self, post_id: UUID, comment_id: UUID) -> None: ...

    async def add_reaction(self, post_id: UUID, user_id: UUID, reaction: ReactionType) -> bool: ...

    async def remove_reaction(self, post_id: UUID, user_id: UUID, reaction: ReactionType) -> bool: ...


def build_filter(query: PostQuery) -> dict[str, Any]:
    """Translate listing filters into a MongoDB filter document."""
    mongo_filter: dict[str, Any] = {}
    if query.title:
        mongo_filter["title"] = {"$regex": re.escape(query.title), "$options": "i"}
    if query.author:
        mongo_filter["author_username"] = query.author
    if query.tags:
        mongo_filter["tags"] = {"$all": query.tags}
    return mongo_filter


def build_sort(sort: PostSort) -> list[tuple[str, int]]:
    if sort == PostSort.POPULAR:
        return [("like_count", -1), ("created_at", -1)]
    return [("created_at", -1)]


class MongoBlogStore(Service):
    """BlogStore backed by the ``blogs`` collection."""

    def __init__(self, database: AsyncDatabase[dict[str, Any]], clock: Callable[[], datetime] = now) -> None:
        self._collection = database.get_collection("blogs")
        self._clock = clock

    async def on_start(self) -> None:
        """Create indexes for listing, filtering and sorting."""
        await self._collection.create_index([("author_id", 1)])
        await self._collection.create_index([("author_username", 1)])
        await self._collection.create_index([("tags", 1)])
        await self._collection.create_index([("created_at", -1)])
        await self._collection.create_index([("view_count", -1)])
        await self._collection.create_index([("like_count", -1)])

    @storage_call
    async def create(self, post: Post) -> Post:
        await self._collection.insert_one(post.to_mongo())
        return post

    @storage_call
    async def get(self, post_id: UUID) -> Post:
        doc = await self._collection.find_one({"_id": post_id})
        if doc is None:
            raise NotFoundError("blog not found")
        return Post.model_validate(doc)

    @storage_call
    async def list_posts(self, query: PostQuery, limit: int, offset: int) -> PaginationResult[Post]:
        mongo_filter = build_filter(query)
        total = await self._collection.count_documents(mongo_filter)
        cursor = self._collection.find(mongo_filter).sort(build_sort(query.sort)).skip(offset).limit(limit)
        items = await Post.list_cursor(cursor)
        return PaginationResult(items=items, total=total, limit=limit, offset=offset)

    @storage_call
    async def list_popular(self, limit: int) -> list[Post]:
        cursor = self._collection.find().sort([("view_count", -1), ("like_count", -1)]).limit(limit)
        return await Post.list_cursor(cursor)

    @storage_call
    async def update_content(self, post_id: UUID, title: str, content: str, tags: list[str]) -> Post:
        result = await self._collection.update_one(
            {"_id": post_id},
            {"$set": {"title": title, "content": content, "tags": tags, "updated_at": self._clock()}},
        )
        if result.matched_count == 0:
            raise NotFoundError("blog not found")
        return await self.get(post_id)

    @storage_call
    async def delete(self, post_id: UUID) -> None:
        result = await self._collection.delete_one({"_id": post_id})
        if result.deleted_count == 0:
            raise NotFoundError("blog not found")

    @storage_call
    async def increment_views(self, post_id: UUID) -> None:
        await self._collection.update_one({"_id": post_id}, {"$inc": {"view_count": 1}})

    @storage_call
    async def add_comment(self, post_id: UUID, comment: Comment) -> None:
        result = await self._collection.update_one(
            {"_id": post_id},
            {"$push": {"comments": comment.model_dump()}, "$inc": {"comment_count": 1}},
        )
        if result.matched_count == 0:
            raise NotFoundError("blog not found")

    @storage_call
    async def update_comment(self, post_id: UUID, comment_id: UUID, content: str) -> None:
        result = await self._collection.update_one(
            {"_id": post_id, "comments.id": comment_id},
            {"$set": {"comments.$.content": content, "comments.$.updated_at": self._clock()}},
        )
        if result.matched_count == 0:
            raise NotFoundError("comment not found")

    @storage_call
    async def delete_comment(self, post_id: UUID, comment_id: UUID) -> None:
        result = await self._collection.update_one(
            {"_id": post_id, "comments.id": comment_id},
            {"$pull": {"comments": {"id": comment_id}}, "$inc": {"comment_count": -1}},
        )
        if result.matched_count == 0:
            raise NotFoundError("comment not found")

    @storage_call
    async def add_reaction(self, post_id: UUID, user_id: UUID, reaction: ReactionType) -> bool:
        """Record a reaction; returns False if the user had already reacted this way."""
        list_field, count_field = REACTION_FIELDS[reaction]
        result = await self._collection.update_one(
            {"_id": post_id, list_field: {"$ne": user_id}},
            {"$push": {list_field: user_id}, "$inc": {count_field: 1}},
        )
        return result.modified_count > 0

    @storage_call
    async def remove_reaction(self, post_id: UUID, user_id: UUID, reaction: ReactionType) -> bool:
        """Withdraw a reaction; returns False if the user had not reacted this way."""
        list_field, count_field = REACTION_FIELDS[reaction]
        result = await self._collection.update_one(
            {"_id": post_id, list_field: user_id},
            {"$pull": {list_field: user_id}, "$inc": {count_field: -1}},
        )
        return result.modified_count > 0
