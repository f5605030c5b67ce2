from __future__ import annotations

from collections.abc import AsyncGenerator, Callable
from contextlib import asynccontextmanager
from datetime import datetime
from typing import TYPE_CHECKING, Any

import structlog
from pymongo import AsyncMongoClient
from pymongo.asynchronous.database import AsyncDatabase

from blogapi.config import Config
from blogapi.utils import now

if TYPE_CHECKING:
    from blogapi.core.modules.auth.service import AuthService
    from blogapi.core.modules.blog.service import BlogService
    from blogapi.core.modules.blog.store import BlogStore
    from blogapi.core.modules.password.policy import PasswordPolicy
    from blogapi.core.modules.session.store import SessionStore
    from blogapi.core.modules.session.sweeper import SessionSweeper
    from blogapi.core.modules.token.service import TokenService
    from blogapi.core.modules.user.store import UserStore
    from blogapi.core.workers import BackgroundTaskPool

logger = structlog.get_logger(__name__)


class Service:
    """Base class for components with startup and shutdown work."""

    async def on_start(self) -> None:
        """Initialize service on application startup."""

    async def on_stop(self) -> None:
        """Cleanup service on application shutdown."""


class Services:
    """Service registry wiring the stores into the domain services."""

    users: UserStore
    sessions: SessionStore
    posts: BlogStore
    passwords: PasswordPolicy
    tokens: TokenService
    auth: AuthService
    view_counter: BackgroundTaskPool
    blog: BlogService
    session_sweeper: SessionSweeper

    def __init__(
        self,
        config: Config,
        users: UserStore,
        sessions: SessionStore,
        posts: BlogStore,
        clock: Callable[[], datetime] = now,
    ) -> None:
        """Build the domain services on top of the given stores."""
        from blogapi.core.modules.auth.service import AuthService  # noqa: PLC0415
        from blogapi.core.modules.blog.service import BlogService  # noqa: PLC0415
        from blogapi.core.modules.password.policy import PasswordPolicy  # noqa: PLC0415
        from blogapi.core.modules.session.sweeper import SessionSweeper  # noqa: PLC0415
        from blogapi.core.modules.token.service import TokenService  # noqa: PLC0415
        from blogapi.core.workers import BackgroundTaskPool  # noqa: PLC0415

        self.users = users
        self.sessions = sessions
        self.posts = posts
        self.passwords = PasswordPolicy(config.bcrypt_rounds)
        self.tokens = TokenService(config.jwt_secret, config.jwt_access_expiry, config.jwt_refresh_expiry, clock)
        self.auth = AuthService(users, sessions, self.tokens, self.passwords, config.session_ttl, clock)
        self.view_counter = BackgroundTaskPool("view_counter", config.view_count_workers, config.view_count_queue)
        self.blog = BlogService(posts, users, self.view_counter, clock)
        self.session_sweeper = SessionSweeper(sessions, config.session_sweep_interval)

        # Order matters: stores create their indexes before anything uses them
        candidates: list[object] = [users, sessions, posts, self.auth, self.blog, self.session_sweeper]
        self._services: list[Service] = [s for s in candidates if isinstance(s, Service)]

    @classmethod
    def from_database(cls, config: Config, database: AsyncDatabase[dict[str, Any]]) -> Services:
        """Create services backed by MongoDB collections."""
        from blogapi.core.modules.blog.store import MongoBlogStore  # noqa: PLC0415
        from blogapi.core.modules.session.store import MongoSessionStore  # noqa: PLC0415
        from blogapi.core.modules.user.store import MongoUserStore  # noqa: PLC0415

        return cls(config, MongoUserStore(database), MongoSessionStore(database), MongoBlogStore(database))

    async def start_all(self) -> None:
        """Start all services in registration order."""
        for service in self._services:
            await service.on_start()

    async def stop_all(self) -> None:
        """Stop all services in reverse registration order."""
        for service in reversed(self._services):
            await service.on_stop()


class Core:
    """Container providing config, database, and all service instances."""

    config: Config
    mongo_client: AsyncMongoClient[dict[str, Any]] | None
    services: Services

    def __init__(self, config: Config, services: Services | None = None) -> None:
        """Initialize core with config and services, connecting to MongoDB unless services are given."""
        self.config = config
        self.mongo_client = None
        if services is None:
            self.mongo_client = AsyncMongoClient(
                config.mongodb_uri,
                uuidRepresentation="standard",
                tz_aware=True,
                timeoutMS=int(config.storage_timeout.total_seconds() * 1000),
            )
            services = Services.from_database(config, self.mongo_client.get_database(config.mongodb_database))
        self.services = services

    @asynccontextmanager
    async def lifespan(self) -> AsyncGenerator[None]:
        """Manage application lifecycle - startup and shutdown."""
        await self.on_start()
        try:
            yield
        finally:
            await self.on_stop()

    async def on_start(self) -> None:
        """Start all services on application startup."""
        await self.services.start_all()
        logger.info("core_started", database=self.config.mongodb_database)

    async def on_stop(self) -> None:
        """Stop services and close MongoDB connection on shutdown."""
        await self.services.stop_all()
        if self.mongo_client is not None:
            await self.mongo_client.aclose()
