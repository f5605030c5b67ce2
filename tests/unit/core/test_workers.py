"""Tests for the bounded background task pool."""

import asyncio

from blogapi.core.workers import BackgroundTaskPool


class TestSubmit:
    async def test_runs_submitted_coroutines(self):
        pool = BackgroundTaskPool("test")
        results = []

        async def work(n: int) -> None:
            results.append(n)

        for n in range(3):
            assert pool.submit(work(n))
        await pool.drain()

        assert sorted(results) == [0, 1, 2]
        assert pool.completed == 3
        assert pool.pending == 0

    async def test_rejects_when_backlog_is_full(self):
        pool = BackgroundTaskPool("test", max_workers=1, max_pending=2)
        release = asyncio.Event()

        async def blocked() -> None:
            await release.wait()

        assert pool.submit(blocked())
        assert pool.submit(blocked())
        assert not pool.submit(blocked())
        assert pool.rejected == 1

        release.set()
        await pool.drain()
        assert pool.completed == 2

    async def test_failures_are_counted(self):
        pool = BackgroundTaskPool("test")

        async def broken() -> None:
            raise RuntimeError("boom")

        pool.submit(broken(), label="broken")
        await pool.drain()

        assert pool.failed == 1
        assert pool.completed == 0

    async def test_concurrency_is_bounded(self):
        pool = BackgroundTaskPool("test", max_workers=2)
        running = 0
        peak = 0

        async def work() -> None:
            nonlocal running, peak
            running += 1
            peak = max(peak, running)
            await asyncio.sleep(0.01)
            running -= 1

        for _ in range(6):
            pool.submit(work())
        await pool.drain()

        assert peak == 2


class TestDrain:
    async def test_empty_pool(self):
        await BackgroundTaskPool("test").drain()

    async def test_cancels_after_timeout(self):
        pool = BackgroundTaskPool("test")

        async def forever() -> None:
            await asyncio.Event().wait()

        pool.submit(forever())
        await pool.drain(timeout=0.01)

        assert pool.pending == 0
        assert pool.completed == 0
