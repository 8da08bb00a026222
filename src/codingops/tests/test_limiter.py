"""Tests for the FIFO concurrency limiter."""

from __future__ import annotations

import asyncio

import pytest

from codingops.foundation.errors import AcquireTimeoutError
from codingops.runtime.concurrency import ConcurrencyLimiter


async def _settle() -> None:
    for _ in range(5):
        await asyncio.sleep(0)


class TestConcurrencyLimiter:
    @pytest.mark.asyncio
    async def test_grants_up_to_limit_then_queues(self) -> None:
        limiter = ConcurrencyLimiter(2)
        await limiter.acquire()
        await limiter.acquire()
        assert limiter.active == 2

        third = asyncio.create_task(limiter.acquire())
        await _settle()
        assert not third.done()
        assert limiter.waiting == 1

        limiter.release()
        await _settle()
        assert third.done()
        assert limiter.active == 2
        assert limiter.waiting == 0

        limiter.release()
        limiter.release()
        assert limiter.active == 0

    @pytest.mark.asyncio
    async def test_waiters_resume_in_arrival_order(self) -> None:
        limiter = ConcurrencyLimiter(1)
        await limiter.acquire()
        order: list[int] = []

        async def worker(n: int) -> None:
            async with limiter:
                order.append(n)

        tasks = []
        for n in range(4):
            tasks.append(asyncio.create_task(worker(n)))
            await _settle()
        limiter.release()
        await asyncio.gather(*tasks)
        assert order == [0, 1, 2, 3]
        assert limiter.active == 0

    @pytest.mark.asyncio
    async def test_never_exceeds_limit(self) -> None:
        limiter = ConcurrencyLimiter(3)
        in_flight = peak = 0

        async def worker() -> None:
            nonlocal in_flight, peak
            async with limiter.slot():
                in_flight += 1
                peak = max(peak, in_flight)
                await asyncio.sleep(0.001)
                in_flight -= 1

        await asyncio.gather(*(worker() for _ in range(20)))
        assert peak == 3
        assert limiter.active == 0

    @pytest.mark.asyncio
    async def test_slot_released_on_error(self) -> None:
        limiter = ConcurrencyLimiter(1)
        with pytest.raises(RuntimeError, match="boom"):
            async with limiter.slot():
                raise RuntimeError("boom")
        assert limiter.active == 0

    @pytest.mark.asyncio
    async def test_cancelled_waiter_leaves_queue(self) -> None:
        limiter = ConcurrencyLimiter(1)
        await limiter.acquire()
        waiter = asyncio.create_task(limiter.acquire())
        await _settle()
        waiter.cancel()
        with pytest.raises(asyncio.CancelledError):
            await waiter
        assert limiter.waiting == 0
        limiter.release()
        assert limiter.active == 0

    @pytest.mark.asyncio
    async def test_acquire_timeout(self) -> None:
        limiter = ConcurrencyLimiter(1, acquire_timeout=0.01)
        await limiter.acquire()
        with pytest.raises(AcquireTimeoutError):
            await limiter.acquire()
        assert limiter.active == 1
        assert limiter.waiting == 0

    @pytest.mark.asyncio
    async def test_release_without_acquire(self) -> None:
        with pytest.raises(RuntimeError):
            ConcurrencyLimiter(1).release()

    @pytest.mark.parametrize("kwargs", [{"max_concurrent": 0}, {"max_concurrent": 1, "acquire_timeout": 0}])
    def test_invalid_arguments(self, kwargs: dict[str, float]) -> None:
        with pytest.raises(ValueError):
            ConcurrencyLimiter(**kwargs)  # type: ignore[arg-type]
