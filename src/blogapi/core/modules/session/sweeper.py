import asyncio
import contextlib
from datetime import timedelta

import structlog

from blogapi.core.core import Service
from blogapi.core.modules.session.store import SessionStore
from blogapi.errors import StorageError

logger = structlog.get_logger(__name__)


class SessionSweeper(Service):
    """Periodically deletes expired sessions."""

    def __init__(self, sessions: SessionStore, interval: timedelta) -> None:
        self._sessions = sessions
        self._interval = interval
        self._task: asyncio.Task[None] | None = None

    async def on_start(self) -> None:
        if self._interval.total_seconds() <= 0:
            logger.debug("session_sweeper_disabled")
            return
        self._task = asyncio.create_task(self._run())

    async def on_stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None

    async def sweep(self) -> int:
        """Delete expired sessions once and return how many were removed."""
        deleted = await self._sessions.delete_expired()
        if deleted:
            logger.info("expired_sessions_deleted", count=deleted)
        return deleted

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval.total_seconds())
            try:
                await self.sweep()
            except StorageError:
                logger.warning("session_sweep_failed", exc_info=True)
