"""Normalized error handling for CODING API calls.

Every failure leaving the request executor is a CodingApiError wrapping an
immutable ApiErrorInfo, whatever the underlying cause:

- Business errors: the call succeeded but the decoded body carries
  ``Response.Error``. Code, message and RequestId come from the platform.
- Transport errors: connection failures, timeouts, non-2xx responses without
  a parseable error body. Mapped to NETWORK_ERROR with the raw message.
- Anything else: UNKNOWN_ERROR.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Annotated, Self

import httpx
import orjson
from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from .types import JsonDict, JsonMapping


class ErrorCode(StrEnum):
    """Error codes produced locally or recognized from the platform.

    Platform business codes are passed through verbatim, so ApiErrorInfo.code
    is a plain string rather than this enum.
    """
    NETWORK_ERROR = "NETWORK_ERROR"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"
    BATCH_ERROR = "BATCH_ERROR"
    CONFIG_ERROR = "CONFIG_ERROR"
    # Platform codes that are safe to retry
    REQUEST_LIMIT_EXCEEDED = "RequestLimitExceeded"
    INTERNAL_ERROR = "InternalError"


RETRYABLE_API_CODES: frozenset[str] = frozenset({
    ErrorCode.REQUEST_LIMIT_EXCEEDED.value,
    ErrorCode.INTERNAL_ERROR.value,
})


class ApiErrorInfo(BaseModel):
    """Normalized API error record.

    Attributes:
        code: Platform error code or a local ErrorCode value
        message: Human-readable message
        request_id: Platform correlation id, when the response carried one
        context: Originating action and params for diagnostics
    """

    model_config = ConfigDict(
        frozen=True,
        str_strip_whitespace=True,
        extra="forbid",
        json_schema_extra={
            "title": "API Error",
            "examples": [{
                "code": "ResourceNotFound",
                "message": "depot not found",
                "request_id": "6d4c0e4a-1b2c",
                "context": {"action": "DescribeGitDepot", "params": {"DepotId": 1}},
            }],
        },
    )

    code: Annotated[str, Field(min_length=1)]
    message: str = ""
    request_id: str | None = None
    context: JsonDict | None = Field(default=None, repr=False)

    @field_validator("message", mode="before")
    @classmethod
    def _ensure_message(cls, v: object) -> str:
        """Accept exceptions and None."""
        if v is None:
            return ""
        return str(v) if isinstance(v, Exception) else v  # type: ignore[return-value]

    @computed_field
    @property
    def is_retryable(self) -> bool:
        """Whether the platform code is one the retry layer treats as transient."""
        return self.code in RETRYABLE_API_CODES

    @property
    def action(self) -> str | None:
        return (self.context or {}).get("action")

    def render(self) -> str:
        rid = f" (RequestId: {self.request_id})" if self.request_id else ""
        act = f" [{self.action}]" if self.action else ""
        return f"{self.code}{act}: {self.message}{rid}"

    __str__ = render


class CodingApiError(Exception):
    """Exception carrying a normalized ApiErrorInfo."""

    __slots__ = ("error",)

    def __init__(self, error: ApiErrorInfo) -> None:
        self.error = error
        super().__init__(error.message)

    @property
    def code(self) -> str:
        return self.error.code

    @property
    def message(self) -> str:
        return self.error.message

    @property
    def request_id(self) -> str | None:
        return self.error.request_id

    @property
    def context(self) -> JsonDict | None:
        return self.error.context

    def __str__(self) -> str:
        return self.error.render()

    @classmethod
    def create(
        cls,
        code: str | ErrorCode,
        message: str,
        request_id: str | None = None,
        context: JsonDict | None = None,
    ) -> Self:
        return cls(ApiErrorInfo(code=str(code), message=message, request_id=request_id, context=context))

    @classmethod
    def from_response(cls, body: JsonMapping, action: str, params: JsonMapping) -> Self | None:
        """Build a business error from a decoded response body, or None if it carries no Error."""
        if (found := extract_api_error(body)) is None:
            return None
        code, message, request_id = found
        return cls.create(code, message, request_id, _context(action, params))

    @classmethod
    def from_exception(cls, exc: BaseException, action: str, params: JsonMapping) -> CodingApiError:
        """Normalize any exception raised while executing an action."""
        if isinstance(exc, CodingApiError):
            return exc
        ctx = _context(action, params)
        if isinstance(exc, httpx.HTTPStatusError):
            if (found := _error_from_http_response(exc.response)) is not None:
                code, message, request_id = found
                return cls.create(code, message or str(exc), request_id, ctx)
            return cls.create(ErrorCode.NETWORK_ERROR, str(exc), None, ctx)
        if isinstance(exc, (httpx.HTTPError, ResponseDecodeError)):
            return cls.create(ErrorCode.NETWORK_ERROR, str(exc) or type(exc).__name__, None, ctx)
        return cls.create(ErrorCode.UNKNOWN_ERROR, str(exc) or "Unknown error", None, ctx)


class ConfigError(ValueError):
    """Configuration failed validation."""


class ResponseDecodeError(ValueError):
    """Response body was not a JSON object."""


class AcquireTimeoutError(TimeoutError):
    """A concurrency slot was not granted within the configured acquire timeout."""


def _context(action: str, params: JsonMapping) -> JsonDict:
    return {"action": action, "params": dict(params)}


def _embedded_error(body: object) -> tuple[str | None, str, str | None] | None:
    """(code or None, message, request_id) for any present ``Response.Error``, else None."""
    if not isinstance(body, dict):
        return None
    response = body.get("Response")
    if not isinstance(response, dict):
        return None
    err = response.get("Error")
    if err is None or (not isinstance(err, dict) and not err):
        return None
    request_id = response.get("RequestId")
    rid = str(request_id) if request_id else None
    if not isinstance(err, dict):
        return None, str(err), rid
    code = err.get("Code")
    return (None if code is None or not str(code).strip() else str(code)), str(err.get("Message") or ""), rid


def extract_api_error(body: object) -> tuple[str, str, str | None] | None:
    """Return (code, message, request_id) from ``{"Response": {"Error": ...}}`` or None.

    Any Error object that is present counts, even one without a Code; those
    are reported as UNKNOWN_ERROR.
    """
    if (found := _embedded_error(body)) is None:
        return None
    code, message, request_id = found
    return code or ErrorCode.UNKNOWN_ERROR.value, message, request_id


def _error_from_http_response(response: httpx.Response) -> tuple[str, str, str | None] | None:
    try:
        body = orjson.loads(response.content)
    except orjson.JSONDecodeError:
        return None
    if (found := _embedded_error(body)) is None:
        return None
    code, message, request_id = found
    return (code, message, request_id) if code else None


def api_error_code(exc: BaseException) -> str | None:
    """Platform error code embedded in an HTTP error response, if any."""
    if isinstance(exc, httpx.HTTPStatusError) and (found := _error_from_http_response(exc.response)):
        return found[0]
    return None
