"""IO layer: result caching."""

from .cache import CacheEntry, MemoryCache, make_key

__all__ = ["CacheEntry", "MemoryCache", "make_key"]
