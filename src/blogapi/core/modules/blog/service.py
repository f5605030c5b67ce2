from collections.abc import Callable
from datetime import datetime
from uuid import UUID

import structlog

from blogapi.core.core import Service
from blogapi.core.modules.auth.models import Principal
from blogapi.core.modules.blog.models import Comment, Post, PostQuery, ReactionType
from blogapi.core.modules.blog.store import BlogStore
from blogapi.core.modules.blog.validators import validate_comment, validate_content, validate_tags, validate_title
from blogapi.core.modules.user.models import User
from blogapi.core.modules.user.store import UserStore
from blogapi.core.pagination import PaginationResult
from blogapi.core.workers import BackgroundTaskPool
from blogapi.errors import AccessDeniedError, NotFoundError
from blogapi.utils import now

logger = structlog.get_logger(__name__)


class BlogService(Service):
    """Posts, comments and reactions. View counting runs in the background pool."""

    def __init__(
        self,
        posts: BlogStore,
        users: UserStore,
        view_counter: BackgroundTaskPool,
        clock: Callable[[], datetime] = now,
    ) -> None:
        self._posts = posts
        self._users = users
        self._view_counter = view_counter
        self._clock = clock

    async def on_stop(self) -> None:
        await self._view_counter.drain()

    async def create_post(self, principal: Principal, title: str, content: str, tags: list[str]) -> Post:
        validate_title(title)
        validate_content(content)
        tags = validate_tags(tags)
        author = await self._resolve_user(principal.user_id)

        timestamp = self._clock()
        post = Post(
            title=title,
            content=content,
            tags=tags,
            author_id=author.id,
            author_username=author.username,
            created_at=timestamp,
            updated_at=timestamp,
        )
        await self._posts.create(post)
        logger.info("post_created", post_id=post.id, author_id=author.id)
        return post

    async def get_post(self, post_id: UUID, viewer: Principal | None = None) -> Post:
        """Get a post and count the view in the background. Authors viewing their own post are not counted."""
        post = await self._posts.get(post_id)
        if viewer is None or viewer.user_id != post.author_id:
            self._view_counter.submit(self._posts.increment_views(post_id), label=f"views:{post_id}")
        return post

    async def list_posts(self, query: PostQuery, limit: int = 10, offset: int = 0) -> PaginationResult[Post]:
        return await self._posts.list_posts(query, limit, offset)

    async def list_popular(self, limit: int = 10) -> list[Post]:
        return await self._posts.list_popular(limit)

    async def update_post(
        self,
        principal: Principal,
        post_id: UUID,
        title: str | None = None,
        content: str | None = None,
        tags: list[str] | None = None,
    ) -> Post:
        """Partial update by the author or an admin; None leaves a field unchanged."""
        post = await self._posts.get(post_id)
        self._ensure_author_or_admin(principal, post.author_id, "update this post")

        if title is not None:
            validate_title(title)
        if content is not None:
            validate_content(content)
        if tags is not None:
            tags = validate_tags(tags)

        return await self._posts.update_content(
            post_id,
            title if title is not None else post.title,
            content if content is not None else post.content,
            tags if tags is not None else post.tags,
        )

    async def delete_post(self, principal: Principal, post_id: UUID) -> None:
        post = await self._posts.get(post_id)
        self._ensure_author_or_admin(principal, post.author_id, "delete this post")
        await self._posts.delete(post_id)
        logger.info("post_deleted", post_id=post_id, user_id=principal.user_id)

    async def add_comment(self, principal: Principal, post_id: UUID, content: str) -> Comment:
        validate_comment(content)
        await self._posts.get(post_id)
        author = await self._resolve_user(principal.user_id)
        timestamp = self._clock()
        comment = Comment(
            author_id=author.id,
            author_username=author.username,
            content=content,
            created_at=timestamp,
            updated_at=timestamp,
        )
        await self._posts.add_comment(post_id, comment)
        return comment

    async def update_comment(self, principal: Principal, post_id: UUID, comment_id: UUID, content: str) -> Comment:
        """Only the comment author may edit a comment."""
        validate_comment(content)
        post = await self._posts.get(post_id)
        comment = self._resolve_comment(post, comment_id)
        if comment.author_id != principal.user_id:
            raise AccessDeniedError("you are not the author of this comment")

        await self._posts.update_comment(post_id, comment_id, content)
        return self._resolve_comment(await self._posts.get(post_id), comment_id)

    async def delete_comment(self, principal: Principal, post_id: UUID, comment_id: UUID) -> None:
        """The comment author, the post author or an admin may delete a comment."""
        post = await self._posts.get(post_id)
        comment = self._resolve_comment(post, comment_id)
        if principal.user_id not in (comment.author_id, post.author_id) and not principal.is_admin:
            raise AccessDeniedError("you are not authorized to delete this comment")
        await self._posts.delete_comment(post_id, comment_id)

    async def react(self, principal: Principal, post_id: UUID, reaction: ReactionType) -> Post:
        """Toggle a reaction.

        Repeating a reaction withdraws it; switching from the opposite
        reaction withdraws that one first.
        """
        post = await self._posts.get(post_id)
        user_id = principal.user_id
        opposite = ReactionType.DISLIKE if reaction == ReactionType.LIKE else ReactionType.LIKE
        current = post.likes if reaction == ReactionType.LIKE else post.dislikes

        if user_id in current:
            await self._posts.remove_reaction(post_id, user_id, reaction)
        else:
            await self._posts.remove_reaction(post_id, user_id, opposite)
            await self._posts.add_reaction(post_id, user_id, reaction)
        return await self._posts.get(post_id)

    async def _resolve_user(self, user_id: UUID) -> User:
        try:
            return await self._users.get_by_id(user_id)
        except NotFoundError:
            raise NotFoundError("author not found") from None

    @staticmethod
    def _resolve_comment(post: Post, comment_id: UUID) -> Comment:
        comment = post.get_comment(comment_id)
        if comment is None:
            raise NotFoundError("comment not found")
        return comment

    @staticmethod
    def _ensure_author_or_admin(principal: Principal, author_id: UUID, action: str) -> None:
        if principal.user_id != author_id and not principal.is_admin:
            raise AccessDeniedError(f"you are not authorized to {action}")
