"""Result caching with TTL support.

In-memory cache for read-only action results so identical queries do not
hit the API twice. Keys are generated from the action name plus a hash of
the key-sorted parameters, so field insertion order never matters.
"""

from __future__ import annotations

import copy
import hashlib
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

import orjson

DEFAULT_TTL: float = 300.0  # 5 minutes


@dataclass(slots=True)
class CacheEntry:
    """A cached result with its creation time and time-to-live (seconds)."""
    value: Any
    created_at: float
    ttl: float

    def expired(self, now: float) -> bool:
        return now > self.created_at + self.ttl


def make_key(action: str, params: Mapping[str, Any] | None) -> str:
    """Generate cache key from action name and parameters.

    Nested mappings are key-sorted too, so ``{"a": 1, "b": 2}`` and
    ``{"b": 2, "a": 1}`` map to the same key.
    """
    params_json = orjson.dumps(
        dict(params or {}),
        option=orjson.OPT_SORT_KEYS | orjson.OPT_NON_STR_KEYS,
        default=str,
    )
    params_hash = hashlib.sha256(params_json).hexdigest()[:16]
    return f"{action}:{params_hash}"


class MemoryCache:
    """In-memory cache with lazy TTL expiration.

    Entries are only checked for expiry when read. Values are deep-copied on
    the way in and out so no caller can alias a cached payload.

    Args:
        default_ttl: TTL in seconds used when ``set`` is not given one
        clock: Time source, injectable for tests

    Example:
        >>> cache = MemoryCache(default_ttl=60)
        >>> cache.set("DescribeTeam:abc", {"Team": {"Id": 1}})
        >>> cache.get("DescribeTeam:abc")
        {'Team': {'Id': 1}}
    """

    __slots__ = ("_entries", "_default_ttl", "_clock")

    def __init__(self, default_ttl: float = DEFAULT_TTL, *, clock: Callable[[], float] = time.time) -> None:
        if default_ttl <= 0:
            raise ValueError("default_ttl must be > 0")
        self._entries: dict[str, CacheEntry] = {}
        self._default_ttl = default_ttl
        self._clock = clock

    def get(self, key: str) -> Any | None:
        """Return the cached value, or None on miss or expiry (expired entries are evicted)."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.expired(self._clock()):
            del self._entries[key]
            return None
        return copy.deepcopy(entry.value)

    def set(self, key: str, value: Any, ttl: float | None = None) -> None:
        """Store ``value`` under ``key``, overwriting any existing entry."""
        self._entries[key] = CacheEntry(
            value=copy.deepcopy(value),
            created_at=self._clock(),
            ttl=ttl if ttl is not None else self._default_ttl,
        )

    def delete(self, key: str) -> bool:
        return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        self._entries.clear()

    @property
    def size(self) -> int:
        return len(self._entries)

    @property
    def default_ttl(self) -> float:
        return self._default_ttl

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def stats(self) -> dict[str, object]:
        """Get cache statistics for monitoring."""
        now = self._clock()
        expired = sum(1 for e in self._entries.values() if e.expired(now))
        return {
            "total_entries": len(self._entries),
            "expired_entries": expired,
            "active_entries": len(self._entries) - expired,
            "default_ttl": self._default_ttl,
        }
