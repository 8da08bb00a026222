"""Retry policy for network calls.

Classifies failures raised by a single network call and retries the
transient ones with exponential backoff:

- no HTTP status at all (connection refused/reset, timeouts, protocol errors)
- HTTP status >= 500
- an HTTP error whose body carries a retryable platform code
  (RequestLimitExceeded, InternalError)

Anything else propagates on first failure. There is no "retries exhausted"
error: once attempts run out, the last underlying exception is re-raised
unchanged.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Annotated, TypeVar

import httpx
from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

from codingops.foundation.errors import RETRYABLE_API_CODES, api_error_code
from codingops.runtime.observability import get_logger

from .backoff import Backoff, ExponentialBackoff

T = TypeVar("T")

log = get_logger("codingops.retry")


def is_retryable_error(exc: BaseException, retryable_codes: frozenset[str] = RETRYABLE_API_CODES) -> bool:
    """Whether a failure from one network call is worth retrying."""
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code >= 500 or api_error_code(exc) in retryable_codes
    # TransportError covers every failure that never produced a status:
    # ConnectError, ReadError (resets), Connect/Read/Write/PoolTimeout, RemoteProtocolError
    return isinstance(exc, httpx.TransportError)


class RetryPolicy(BaseModel):
    """Configurable retry policy for network calls.

    Attributes:
        max_attempts: Total attempts including the first (0 behaves as 1)
        backoff: Delay strategy; ``delay(n)`` is the wait before retry n+1
        retryable_codes: Platform error codes that trigger a retry

    Example:
        >>> policy = RetryPolicy(max_attempts=3, backoff=ExponentialBackoff(base=1.0))
        >>> [policy.get_delay(a) for a in (1, 2)]
        [1.0, 2.0]
    """

    model_config = ConfigDict(
        frozen=True,
        arbitrary_types_allowed=True,  # For Backoff protocol
        extra="forbid",
    )

    max_attempts: Annotated[int, Field(ge=0)] = 3
    backoff: Backoff = Field(default_factory=ExponentialBackoff, repr=False)
    retryable_codes: frozenset[str] = RETRYABLE_API_CODES

    @field_validator("retryable_codes", mode="before")
    @classmethod
    def _normalize_codes(cls, v: object) -> frozenset[str]:
        return v if isinstance(v, frozenset) else frozenset(str(c) for c in v)  # type: ignore[union-attr]

    @field_serializer("retryable_codes")
    def _serialize_codes(self, v: frozenset[str]) -> list[str]:
        return sorted(v)

    @property
    def total_attempts(self) -> int:
        return max(1, self.max_attempts)

    def should_retry(self, exc: BaseException, attempt: int) -> bool:
        """Determine if another attempt should follow.

        Args:
            exc: Failure raised by the attempt
            attempt: 1-indexed number of the attempt that just failed
        """
        return attempt < self.total_attempts and is_retryable_error(exc, self.retryable_codes)

    def get_delay(self, attempt: int) -> float:
        """Delay before the attempt following ``attempt`` (1-indexed)."""
        return self.backoff.delay(attempt - 1)


async def execute_with_retry(
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    *,
    action: str = "",
    sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
    on_retry: Callable[[int, BaseException, float], None] | None = None,
) -> T:
    """Run ``operation`` under ``policy``, sleeping between attempts.

    Args:
        operation: Async callable performing one network call
        policy: Retry policy
        action: Action name for logging
        sleep: Awaitable delay, injectable for tests
        on_retry: Called with (failed attempt, exception, delay) before each wait

    Returns:
        The first successful result

    Raises:
        The last attempt's exception, unchanged
    """
    attempt = 1
    while True:
        try:
            return await operation()
        except Exception as e:
            if not policy.should_retry(e, attempt):
                raise
            delay = policy.get_delay(attempt)
            log.warning(
                "retrying request",
                action=action,
                attempt=attempt + 1,
                max_attempts=policy.total_attempts,
                delay_s=round(delay, 3),
                error=f"{type(e).__name__}: {e}",
            )
            if on_retry:
                on_retry(attempt, e, delay)
            await sleep(delay)
            attempt += 1
