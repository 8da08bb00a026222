"""Runtime layer: logging, concurrency limiting, retry and metrics."""

from .observability import configure_logging, get_logger
from .concurrency import ConcurrencyLimiter
from .metrics import ApiMetrics, MetricsRegistry
from .retry import ExponentialBackoff, RetryPolicy, execute_with_retry

__all__ = [
    "configure_logging", "get_logger",
    "ConcurrencyLimiter",
    "ApiMetrics", "MetricsRegistry",
    "ExponentialBackoff", "RetryPolicy", "execute_with_retry",
]
