"""FIFO concurrency limiter for in-flight network calls.

Bounds the number of simultaneous holders. Callers past the limit queue in
arrival order and are suspended until a holder releases; the freed slot is
handed straight to the oldest waiter, so the active count never dips below
what the new holder needs.

Example:
    >>> limiter = ConcurrencyLimiter(10)
    >>> async with limiter:
    ...     await client.post(...)
"""

from __future__ import annotations

import asyncio
from collections import deque
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from codingops.foundation.errors import AcquireTimeoutError

if TYPE_CHECKING:
    from types import TracebackType


class ConcurrencyLimiter:
    """Counting limiter with a FIFO wait queue.

    Args:
        max_concurrent: Maximum number of simultaneous holders
        acquire_timeout: Optional max wait in seconds for a queued caller.
            None (the default) waits indefinitely.
    """

    __slots__ = ("_max", "_active", "_waiters", "_acquire_timeout")

    def __init__(self, max_concurrent: int, *, acquire_timeout: float | None = None) -> None:
        if max_concurrent < 1:
            raise ValueError("max_concurrent must be >= 1")
        if acquire_timeout is not None and acquire_timeout <= 0:
            raise ValueError("acquire_timeout must be > 0")
        self._max = max_concurrent
        self._active = 0
        self._waiters: deque[asyncio.Future[None]] = deque()
        self._acquire_timeout = acquire_timeout

    @property
    def max_concurrent(self) -> int:
        return self._max

    @property
    def active(self) -> int:
        """Number of slots currently held."""
        return self._active

    @property
    def waiting(self) -> int:
        """Number of callers queued for a slot."""
        return sum(1 for w in self._waiters if not w.done())

    async def acquire(self) -> None:
        """Take a slot, suspending in FIFO order while the limiter is full.

        Raises:
            AcquireTimeoutError: if ``acquire_timeout`` is set and elapses first
        """
        if self._active < self._max:
            self._active += 1
            return

        fut: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        self._waiters.append(fut)
        try:
            if self._acquire_timeout is None:
                await fut
            else:
                await asyncio.wait_for(fut, self._acquire_timeout)
        except (asyncio.CancelledError, TimeoutError) as e:
            if fut.done() and not fut.cancelled():
                # Slot was handed over as we gave up; pass it on.
                self.release()
            else:
                try:
                    self._waiters.remove(fut)
                except ValueError:
                    pass
            if isinstance(e, TimeoutError):
                raise AcquireTimeoutError(
                    f"No concurrency slot within {self._acquire_timeout}s "
                    f"({self._active}/{self._max} active)"
                ) from e
            raise

    def release(self) -> None:
        """Give a slot back, transferring it to the oldest live waiter if any."""
        if self._active <= 0:
            raise RuntimeError("release() called without a matching acquire()")
        while self._waiters:
            fut = self._waiters.popleft()
            if not fut.done():
                fut.set_result(None)
                return
        self._active -= 1

    @asynccontextmanager
    async def slot(self) -> AsyncIterator[None]:
        """Hold one slot for the duration of the block."""
        await self.acquire()
        try:
            yield
        finally:
            self.release()

    async def __aenter__(self) -> ConcurrencyLimiter:
        await self.acquire()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.release()

    def __repr__(self) -> str:
        return f"ConcurrencyLimiter(active={self._active}, max={self._max}, waiting={self.waiting})"
