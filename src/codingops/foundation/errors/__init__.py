"""Error handling for codingops.

- ErrorCode: local and retryable platform error codes
- ApiErrorInfo/CodingApiError: the normalized error shape and its exception
- ConfigError, ResponseDecodeError, AcquireTimeoutError: non-API failures
"""

from .errors import (
    RETRYABLE_API_CODES,
    AcquireTimeoutError,
    ApiErrorInfo,
    CodingApiError,
    ConfigError,
    ErrorCode,
    ResponseDecodeError,
    api_error_code,
    extract_api_error,
)
from .types import JsonDict, JsonMapping, JsonPrimitive, JsonValue

__all__ = [
    "ErrorCode", "RETRYABLE_API_CODES", "ApiErrorInfo", "CodingApiError",
    "ConfigError", "ResponseDecodeError", "AcquireTimeoutError",
    "extract_api_error", "api_error_code",
    "JsonDict", "JsonMapping", "JsonPrimitive", "JsonValue",
]
