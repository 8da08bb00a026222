"""Request options, batch items and health records exchanged with callers."""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, PositiveFloat

from codingops.foundation.errors import ApiErrorInfo, JsonDict
from codingops.runtime.metrics import ApiMetrics


class RequestOptions(BaseModel):
    """Per-call options. camelCase keys (useCache, cacheTTL) are accepted too."""

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    use_cache: bool | None = Field(default=None, validation_alias=AliasChoices("use_cache", "useCache"))
    cache_ttl: PositiveFloat | None = Field(default=None, validation_alias=AliasChoices("cache_ttl", "cacheTTL"))
    module: str | None = None


class BatchRequest(BaseModel):
    """One entry of a batch: action, params and options."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    action: str = Field(min_length=1)
    params: JsonDict = Field(default_factory=dict)
    options: RequestOptions = Field(default_factory=RequestOptions)


class BatchResult(BaseModel):
    """Outcome of one batch entry; exactly one of data/error is meaningful."""

    model_config = ConfigDict(frozen=True)

    success: bool
    data: Any = None
    error: ApiErrorInfo | None = None


class HealthStatus(BaseModel):
    """Aggregate health: per-module flags, metrics and uptime (milliseconds)."""

    model_config = ConfigDict(frozen=True)

    healthy: bool
    uptime: int
    version: str
    modules: dict[str, bool]
    metrics: dict[str, ApiMetrics]
