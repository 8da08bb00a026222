"""Backoff strategies for retry policies.

Attempt numbers are 0-indexed: ``delay(0)`` is the wait before the first
retry, ``delay(1)`` before the second, and so on.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@runtime_checkable
class Backoff(Protocol):
    """Protocol for backoff delay calculation."""

    def delay(self, attempt: int) -> float:
        """Delay in seconds before retry ``attempt`` (0-indexed)."""
        ...


@dataclass(frozen=True, slots=True)
class ExponentialBackoff:
    """Exponential backoff with an optional cap and jitter.

    Delay = min(base * (multiplier ^ attempt), max_delay), times a random
    0.5-1.5 factor when ``jitter`` is on. Jitter is off by default so the
    delays between consecutive attempts strictly increase until the cap.

    Attributes:
        base: Delay before the first retry in seconds (default: 1.0)
        multiplier: Exponential growth factor (default: 2.0)
        max_delay: Maximum delay cap in seconds (default: 30.0)
        jitter: Randomize delays (default: False)
    """

    base: float = 1.0
    multiplier: float = 2.0
    max_delay: float = 30.0
    jitter: bool = False

    def delay(self, attempt: int) -> float:
        d = min(self.base * (self.multiplier ** attempt), self.max_delay)
        return d * (0.5 + random.random()) if self.jitter else d
