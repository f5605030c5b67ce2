"""Bounded pool for background coroutines whose result the caller does not wait for."""

import asyncio
from collections.abc import Coroutine
from typing import Any

import structlog

logger = structlog.get_logger(__name__)


class BackgroundTaskPool:
    """Runs submitted coroutines with bounded concurrency and a bounded backlog.

    At most ``max_workers`` coroutines run at once and at most ``max_pending``
    are accepted (running plus waiting). Submissions beyond that are rejected.
    Failures are logged and counted rather than lost.
    """

    def __init__(self, name: str, max_workers: int = 4, max_pending: int = 256) -> None:
        self.name = name
        self._max_pending = max_pending
        self._semaphore = asyncio.Semaphore(max_workers)
        self._tasks: set[asyncio.Task[None]] = set()
        self.completed = 0
        self.failed = 0
        self.rejected = 0

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def submit(self, coro: Coroutine[Any, Any, Any], label: str = "") -> bool:
        """Schedule a coroutine. Returns False if the backlog is full and the coroutine was dropped."""
        if len(self._tasks) >= self._max_pending:
            coro.close()
            self.rejected += 1
            logger.warning("task_pool_full", pool=self.name, label=label, pending=len(self._tasks))
            return False

        task = asyncio.create_task(self._run(coro, label))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return True

    async def drain(self, timeout: float = 5.0) -> None:
        """Wait for outstanding work, cancelling whatever is still running after the timeout."""
        if not self._tasks:
            return
        _, still_running = await asyncio.wait(set(self._tasks), timeout=timeout)
        for task in still_running:
            task.cancel()
        if still_running:
            await asyncio.wait(still_running)
            logger.warning("task_pool_drain_cancelled", pool=self.name, cancelled=len(still_running))

    async def _run(self, coro: Coroutine[Any, Any, Any], label: str) -> None:
        try:
            async with self._semaphore:
                await coro
        except asyncio.CancelledError:
            coro.close()  # Never started if cancelled while waiting for a worker slot
            raise
        except Exception:
            self.failed += 1
            logger.exception("background_task_failed", pool=self.name, label=label)
        else:
            self.completed += 1
