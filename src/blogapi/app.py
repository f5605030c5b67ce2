from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from uuid import UUID

import structlog
from pydantic import BaseModel

from blogapi.config import Config
from blogapi.core.core import Core
from blogapi.core.modules.auth.models import AuthResult, Principal
from blogapi.core.modules.blog.models import Comment, PostQuery, PostView, ReactionType
from blogapi.core.modules.session.models import SessionView
from blogapi.core.modules.user.models import Role, UserView
from blogapi.core.pagination import PaginationResult

logger = structlog.get_logger(__name__)


class LoginResult(BaseModel):
    """Tokens and the user they were issued for (API representation)."""

    user: UserView
    access_token: str
    refresh_token: str

    @classmethod
    def from_domain(cls, result: AuthResult) -> "LoginResult":
        return cls(
            user=UserView.from_domain(result.user),
            access_token=result.access_token,
            refresh_token=result.refresh_token,
        )


class App:
    """Facade for all application operations used by the web layer.

    Authentication happens in the web layer's guards, which pass the resulting
    Principal in; methods here enforce ownership and role rules.
    """

    def __init__(self, config: Config, core: Core | None = None) -> None:
        self._core = core or Core(config)

    @asynccontextmanager
    async def lifespan(self) -> AsyncGenerator[None]:
        """Application lifespan management - delegates to Core."""
        async with self._core.lifespan():
            yield

    # === Authentication ===
    async def authenticate(self, authorization: str | None) -> Principal:
        return await self._core.services.auth.authenticate(authorization)

    async def authenticate_admin(self, authorization: str | None) -> Principal:
        return await self._core.services.auth.authenticate_admin(authorization)

    async def authenticate_optional(self, authorization: str | None) -> Principal | None:
        return await self._core.services.auth.authenticate_optional(authorization)

    async def register(self, username: str, email: str, password: str) -> UserView:
        """Create a new user account with the ``user`` role."""
        user = await self._core.services.auth.register(username, email, password)
        return UserView.from_domain(user)

    async def login(self, email: str, password: str) -> LoginResult:
        """Authenticate user and create session."""
        result = await self._core.services.auth.login(email, password)
        return LoginResult.from_domain(result)

    async def refresh(self, refresh_token: str) -> LoginResult:
        """Exchange a refresh token for a new access token."""
        result = await self._core.services.auth.refresh(refresh_token)
        return LoginResult.from_domain(result)

    async def logout(self, principal: Principal) -> None:
        """End the current user's session."""
        await self._core.services.auth.logout(principal.user_id)

    # === Users ===
    async def get_profile(self, principal: Principal) -> UserView:
        """Get current authenticated user profile."""
        user = await self._core.services.users.get_by_id(principal.user_id)
        return UserView.from_domain(user)

    async def update_profile(self, principal: Principal, bio: str | None, profile_picture: str | None) -> UserView:
        user = await self._core.services.users.update_profile(principal.user_id, bio, profile_picture)
        return UserView.from_domain(user)

    async def get_all_users(self, _admin: Principal) -> list[UserView]:
        """Get all users (admin only)."""
        users = await self._core.services.users.list_all()
        return [UserView.from_domain(user) for user in users]

    async def update_user_role(self, admin: Principal, user_id: UUID, role: Role) -> UserView:
        """Change a user's role (admin only) and end their session so new tokens carry the new role."""
        user = await self._core.services.users.update_role(user_id, role)
        await self._core.services.sessions.delete_by_user_id(user_id)
        logger.info("user_role_updated", user_id=user_id, role=role, admin_id=admin.user_id)
        return UserView.from_domain(user)

    # === Sessions (admin) ===
    async def get_session_by_username(self, _admin: Principal, username: str) -> SessionView:
        session = await self._core.services.sessions.get_by_username(username)
        return SessionView.from_domain(session)

    async def force_logout(self, admin: Principal, user_id: UUID) -> None:
        await self._core.services.auth.logout(user_id)
        logger.info("user_force_logged_out", user_id=user_id, admin_id=admin.user_id)

    async def cleanup_expired_sessions(self, _admin: Principal) -> int:
        return await self._core.services.session_sweeper.sweep()

    # === Blogs ===
    async def list_posts(self, query: PostQuery, limit: int, offset: int) -> PaginationResult[PostView]:
        page = await self._core.services.blog.list_posts(query, limit, offset)
        return PaginationResult[PostView](
            items=[PostView.from_domain(post) for post in page.items],
            total=page.total,
            limit=page.limit,
            offset=page.offset,
        )

    async def list_popular_posts(self, limit: int) -> list[PostView]:
        posts = await self._core.services.blog.list_popular(limit)
        return [PostView.from_domain(post) for post in posts]

    async def get_post(self, post_id: UUID, viewer: Principal | None) -> PostView:
        post = await self._core.services.blog.get_post(post_id, viewer)
        return PostView.from_domain(post, viewer.user_id if viewer else None)

    async def create_post(self, principal: Principal, title: str, content: str, tags: list[str]) -> PostView:
        post = await self._core.services.blog.create_post(principal, title, content, tags)
        return PostView.from_domain(post, principal.user_id)

    async def update_post(
        self,
        principal: Principal,
        post_id: UUID,
        title: str | None,
        content: str | None,
        tags: list[str] | None,
    ) -> PostView:
        post = await self._core.services.blog.update_post(principal, post_id, title, content, tags)
        return PostView.from_domain(post, principal.user_id)

    async def delete_post(self, principal: Principal, post_id: UUID) -> None:
        await self._core.services.blog.delete_post(principal, post_id)

    async def add_comment(self, principal: Principal, post_id: UUID, content: str) -> Comment:
        return await self._core.services.blog.add_comment(principal, post_id, content)

    async def update_comment(self, principal: Principal, post_id: UUID, comment_id: UUID, content: str) -> Comment:
        return await self._core.services.blog.update_comment(principal, post_id, comment_id, content)

    async def delete_comment(self, principal: Principal, post_id: UUID, comment_id: UUID) -> None:
        await self._core.services.blog.delete_comment(principal, post_id, comment_id)

    async def react_to_post(self, principal: Principal, post_id: UUID, reaction: ReactionType) -> PostView:
        post = await self._core.services.blog.react(principal, post_id, reaction)
        return PostView.from_domain(post, principal.user_id)
