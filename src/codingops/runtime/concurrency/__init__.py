"""Concurrency control for network calls."""

from .limiter import ConcurrencyLimiter

__all__ = ["ConcurrencyLimiter"]
