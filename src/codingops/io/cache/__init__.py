"""Caching for read-only action results."""

from .cache import DEFAULT_TTL, CacheEntry, MemoryCache, make_key

__all__ = ["CacheEntry", "MemoryCache", "make_key", "DEFAULT_TTL"]
