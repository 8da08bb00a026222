"""codingops: request execution core for the CODING DevOps Open API.

Turns an action name plus parameters into a network call with read-only
result caching, a FIFO concurrency limit, exponential-backoff retries,
normalized errors and per-module metrics.

Example:
    >>> from codingops import CodingApiClient
    >>> async with CodingApiClient.from_env() as client:
    ...     depots = await client.request("DescribeProjectDepotInfoList", {"ProjectId": 1})
"""

from .client import (
    BatchRequest,
    BatchResult,
    CodingApiClient,
    HealthStatus,
    RequestOptions,
    is_read_only_action,
    module_for_action,
)
from .foundation.config import VERSION, CodingSettings, ModuleConfig, ModuleRegistry, ToolConfig, default_registry, load_settings
from .foundation.errors import ApiErrorInfo, CodingApiError, ConfigError, ErrorCode
from .io.cache import MemoryCache, make_key
from .runtime.concurrency import ConcurrencyLimiter
from .runtime.metrics import ApiMetrics, MetricsRegistry
from .runtime.observability import configure_logging, get_logger
from .runtime.retry import ExponentialBackoff, RetryPolicy

__version__ = VERSION

__all__ = [
    "__version__",
    # Client
    "CodingApiClient", "BatchRequest", "BatchResult", "HealthStatus", "RequestOptions",
    "module_for_action", "is_read_only_action",
    # Config
    "CodingSettings", "load_settings", "ModuleRegistry", "ModuleConfig", "ToolConfig", "default_registry",
    # Errors
    "ErrorCode", "ApiErrorInfo", "CodingApiError", "ConfigError",
    # Building blocks
    "MemoryCache", "make_key", "ConcurrencyLimiter", "ApiMetrics", "MetricsRegistry",
    "ExponentialBackoff", "RetryPolicy",
    # Logging
    "configure_logging", "get_logger",
]
