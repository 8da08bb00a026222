"""Foundation layer: configuration and error types."""

from .config import (
    CodingSettings,
    LoggingSettings,
    ModuleConfig,
    ModuleRegistry,
    ToolConfig,
    default_registry,
    load_settings,
)
from .errors import (
    AcquireTimeoutError,
    ApiErrorInfo,
    CodingApiError,
    ConfigError,
    ErrorCode,
    ResponseDecodeError,
)

__all__ = [
    "CodingSettings", "LoggingSettings", "load_settings",
    "ModuleConfig", "ModuleRegistry", "ToolConfig", "default_registry",
    "ErrorCode", "ApiErrorInfo", "CodingApiError", "ConfigError",
    "ResponseDecodeError", "AcquireTimeoutError",
]
