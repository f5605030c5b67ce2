"""Shared pytest fixtures: in-memory stores, a controllable clock and an HTTP client."""

from collections.abc import AsyncGenerator
from datetime import UTC, datetime, timedelta
from uuid import UUID

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from blogapi.app import App
from blogapi.config import Config
from blogapi.core.core import Core, Services
from blogapi.core.modules.blog.models import Comment, Post, PostQuery, PostSort, ReactionType
from blogapi.core.modules.session.models import Session
from blogapi.core.modules.session.store import SessionExistsError
from blogapi.core.modules.user.models import Role, User
from blogapi.core.pagination import PaginationResult
from blogapi.errors import ConflictError, NotFoundError
from blogapi.web.server import create_fastapi_app

JWT_SECRET = "test-secret-key-that-is-long-enough-for-hs256"


class FakeClock:
    """Clock that only moves when told to."""

    def __init__(self, start: datetime) -> None:
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, delta: timedelta) -> None:
        self.current += delta


class InMemoryUserStore:
    """UserStore with the unique email and username indexes emulated."""

    def __init__(self, clock: FakeClock) -> None:
        self.users: dict[UUID, User] = {}
        self._clock = clock

    async def get_by_id(self, user_id: UUID) -> User:
        if user_id not in self.users:
            raise NotFoundError(f"User '{user_id}' not found")
        return self.users[user_id].model_copy(deep=True)

    async def get_by_email(self, email: str) -> User:
        return self._find("email", email)

    async def get_by_username(self, username: str) -> User:
        return self._find("username", username)

    async def list_all(self) -> list[User]:
        return [user.model_copy(deep=True) for user in self.users.values()]

    async def create(self, user: User) -> User:
        self._check_unique(user)
        timestamp = self._clock()
        user = user.model_copy(update={"created_at": timestamp, "updated_at": timestamp})
        self.users[user.id] = user
        return user.model_copy(deep=True)

    async def update(self, user: User) -> User:
        if user.id not in self.users:
            raise NotFoundError(f"User '{user.id}' not found")
        self._check_unique(user)
        self.users[user.id] = user.model_copy(update={"updated_at": self._clock()})
        return self.users[user.id].model_copy(deep=True)

    async def update_profile(self, user_id: UUID, bio: str | None, profile_picture: str | None) -> User:
        changes: dict[str, object] = {"updated_at": self._clock()}
        if bio is not None:
            changes["bio"] = bio
        if profile_picture is not None:
            changes["profile_picture"] = profile_picture
        return self._apply(user_id, changes)

    async def update_role(self, user_id: UUID, role: Role) -> User:
        return self._apply(user_id, {"role": role, "updated_at": self._clock()})

    def _apply(self, user_id: UUID, changes: dict[str, object]) -> User:
        if user_id not in self.users:
            raise NotFoundError(f"User '{user_id}' not found")
        self.users[user_id] = self.users[user_id].model_copy(update=changes)
        return self.users[user_id].model_copy(deep=True)

    def _find(self, field: str, value: str) -> User:
        for user in self.users.values():
            if getattr(user, field) == value:
                return user.model_copy(deep=True)
        raise NotFoundError(f"User with {field} '{value}' not found")

    def _check_unique(self, user: User) -> None:
        for field in ("email", "username"):
            for other in self.users.values():
                if other.id != user.id and getattr(other, field) == getattr(user, field):
                    raise ConflictError(field)


class InMemorySessionStore:
    """SessionStore keyed by user_id, at most one row per user."""

    def __init__(self, clock: FakeClock) -> None:
        self.sessions: dict[UUID, Session] = {}
        self._clock = clock

    async def create(self, session: Session) -> Session:
        if session.user_id in self.sessions:
            raise SessionExistsError(f"Session for user '{session.user_id}' already exists")
        self.sessions[session.user_id] = session.model_copy(deep=True)
        return session

    async def get_by_user_id(self, user_id: UUID) -> Session:
        if user_id not in self.sessions:
            raise NotFoundError("Session not found")
        return self.sessions[user_id].model_copy(deep=True)

    async def get_by_username(self, username: str) -> Session:
        for session in self.sessions.values():
            if session.username == username:
                return session.model_copy(deep=True)
        raise NotFoundError("Session not found")

    async def update(self, session: Session) -> Session:
        existing = self.sessions.get(session.user_id)
        row_id = existing.id if existing is not None else session.id
        self.sessions[session.user_id] = session.model_copy(update={"id": row_id})
        return self.sessions[session.user_id].model_copy(deep=True)

    async def touch(self, session_id: UUID) -> None:
        for user_id, session in self.sessions.items():
            if session.id == session_id:
                self.sessions[user_id] = session.model_copy(update={"last_activity": self._clock()})
                return
        raise NotFoundError("Session not found")

    async def delete_by_user_id(self, user_id: UUID) -> None:
        self.sessions.pop(user_id, None)

    async def delete_expired(self) -> int:
        expired = [user_id for user_id, s in self.sessions.items() if s.expires_at < self._clock()]
        for user_id in expired:
            del self.sessions[user_id]
        return len(expired)


class InMemoryBlogStore:
    """BlogStore over a dict of posts."""

    def __init__(self, clock: FakeClock) -> None:
        self.posts: dict[UUID, Post] = {}
        self._clock = clock

    async def create(self, post: Post) -> Post:
        self.posts[post.id] = post.model_copy(deep=True)
        return post

    async def get(self, post_id: UUID) -> Post:
        return self._get(post_id).model_copy(deep=True)

    async def list_posts(self, query: PostQuery, limit: int, offset: int) -> PaginationResult[Post]:
        posts = [post for post in self.posts.values() if self._matches(post, query)]
        if query.sort == PostSort.POPULAR:
            posts.sort(key=lambda p: (p.like_count, p.created_at), reverse=True)
        else:
            posts.sort(key=lambda p: p.created_at, reverse=True)
        items = [post.model_copy(deep=True) for post in posts[offset : offset + limit]]
        return PaginationResult(items=items, total=len(posts), limit=limit, offset=offset)

    async def list_popular(self, limit: int) -> list[Post]:
        posts = sorted(self.posts.values(), key=lambda p: (p.view_count, p.like_count), reverse=True)
        return [post.model_copy(deep=True) for post in posts[:limit]]

    async def update_content(self, post_id: UUID, title: str, content: str, tags: list[str]) -> Post:
        post = self._get(post_id)
        post.title, post.content, post.tags, post.updated_at = title, content, tags, self._clock()
        return post.model_copy(deep=True)

    async def delete(self, post_id: UUID) -> None:
        self._get(post_id)
        del self.posts[post_id]

    async def increment_views(self, post_id: UUID) -> None:
        if post_id in self.posts:
            self.posts[post_id].view_count += 1

    async def add_comment(self, post_id: UUID, comment: Comment) -> None:
        post = self._get(post_id)
        post.comments.append(comment)
        post.comment_count += 1

    async def update_comment(self, post_id: UUID, comment_id: UUID, content: str) -> None:
        comment = self._get(post_id).get_comment(comment_id)
        if comment is None:
            raise NotFoundError("comment not found")
        comment.content, comment.updated_at = content, self._clock()

    async def delete_comment(self, post_id: UUID, comment_id: UUID) -> None:
        post = self._get(post_id)
        if post.get_comment(comment_id) is None:
            raise NotFoundError("comment not found")
        post.comments = [c for c in post.comments if c.id != comment_id]
        post.comment_count -= 1

    async def add_reaction(self, post_id: UUID, user_id: UUID, reaction: ReactionType) -> bool:
        post = self._get(post_id)
        users = post.likes if reaction == ReactionType.LIKE else post.dislikes
        if user_id in users:
            return False
        users.append(user_id)
        self._recount(post)
        return True

    async def remove_reaction(self, post_id: UUID, user_id: UUID, reaction: ReactionType) -> bool:
        post = self._get(post_id)
        users = post.likes if reaction == ReactionType.LIKE else post.dislikes
        if user_id not in users:
            return False
        users.remove(user_id)
        self._recount(post)
        return True

    def _get(self, post_id: UUID) -> Post:
        if post_id not in self.posts:
            raise NotFoundError("blog not found")
        return self.posts[post_id]

    @staticmethod
    def _recount(post: Post) -> None:
        post.like_count = len(post.likes)
        post.dislike_count = len(post.dislikes)

    @staticmethod
    def _matches(post: Post, query: PostQuery) -> bool:
        if query.title and query.title.lower() not in post.title.lower():
            return False
        if query.author and post.author_username != query.author:
            return False
        return all(tag in post.tags for tag in query.tags)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2026, 1, 15, 12, 0, 0, tzinfo=UTC))


@pytest.fixture
def config() -> Config:
    return Config(
        _env_file=None,  # type: ignore[call-arg]
        jwt_secret=JWT_SECRET,
        bcrypt_rounds=4,
        session_sweep_interval=timedelta(0),
    )


@pytest.fixture
def user_store(clock: FakeClock) -> InMemoryUserStore:
    return InMemoryUserStore(clock)


@pytest.fixture
def session_store(clock: FakeClock) -> InMemorySessionStore:
    return InMemorySessionStore(clock)


@pytest.fixture
def blog_store(clock: FakeClock) -> InMemoryBlogStore:
    return InMemoryBlogStore(clock)


@pytest.fixture
def services(
    config: Config,
    user_store: InMemoryUserStore,
    session_store: InMemorySessionStore,
    blog_store: InMemoryBlogStore,
    clock: FakeClock,
) -> Services:
    return Services(config, user_store, session_store, blog_store, clock=clock)


@pytest.fixture
def fastapi_app(config: Config, services: Services) -> FastAPI:
    return create_fastapi_app(App(config, Core(config, services=services)), config)


@pytest.fixture
async def client(fastapi_app: FastAPI) -> AsyncGenerator[AsyncClient]:
    async with fastapi_app.router.lifespan_context(fastapi_app):
        transport = ASGITransport(app=fastapi_app)
        async with AsyncClient(transport=transport, base_url="http://test/api/v1") as client:
            yield client


async def register_and_login(
    client: AsyncClient, username: str = "alice", email: str = "a@x.io", password: str = "Abcdef1!"
) -> dict[str, str]:
    """Register a user over HTTP, log in, and return the login response body."""
    response = await client.post("/auth/register", json={"username": username, "email": email, "password": password})
    assert response.status_code == 201, response.text
    response = await client.post("/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return response.json()


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}
