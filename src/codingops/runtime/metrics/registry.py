"""Per-module request metrics and health.

Counters are mutated only by the request executor through ``record``; every
read hands out a copy. ``record`` never awaits, so on a single event loop an
update is applied as a unit.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Iterable

from pydantic import BaseModel, ConfigDict, Field

HEALTH_THRESHOLD: float = 0.8


class ApiMetrics(BaseModel):
    """Counters for one module.

    Attributes:
        request_count: Completed requests (successes + errors)
        success_count: Successful requests, cache hits included
        error_count: Failed requests
        average_response_time: Running mean latency in milliseconds
        last_request_time: Epoch milliseconds of the last completed request (0 = never)
    """

    model_config = ConfigDict(extra="forbid")

    request_count: int = Field(default=0, ge=0)
    success_count: int = Field(default=0, ge=0)
    error_count: int = Field(default=0, ge=0)
    average_response_time: float = Field(default=0.0, ge=0.0)
    last_request_time: int = Field(default=0, ge=0)

    @property
    def success_rate(self) -> float | None:
        return self.success_count / self.request_count if self.request_count else None

    @property
    def healthy(self) -> bool:
        """No traffic yet, or success ratio above HEALTH_THRESHOLD."""
        return self.request_count == 0 or self.success_count / self.request_count > HEALTH_THRESHOLD


class MetricsRegistry:
    """Metrics records keyed by module name.

    Args:
        modules: Module names to pre-register with zeroed records
        clock: Time source in seconds, injectable for tests

    Example:
        >>> metrics = MetricsRegistry(["git-management"])
        >>> metrics.record("git-management", 120.0, success=True)
        >>> metrics.get("git-management").request_count
        1
    """

    __slots__ = ("_records", "_clock")

    def __init__(self, modules: Iterable[str] = (), *, clock: Callable[[], float] = time.time) -> None:
        self._records: dict[str, ApiMetrics] = {name: ApiMetrics() for name in modules}
        self._clock = clock

    def record(self, module: str, latency_ms: float, success: bool) -> None:
        """Account one completed request. Unknown module names get a fresh record."""
        m = self._records.get(module)
        if m is None:
            m = self._records[module] = ApiMetrics()
        m.request_count += 1
        if success:
            m.success_count += 1
        else:
            m.error_count += 1
        m.last_request_time = int(self._clock() * 1000)
        n = m.request_count
        m.average_response_time = (m.average_response_time * (n - 1) + max(latency_ms, 0.0)) / n

    def get(self, module: str) -> ApiMetrics | None:
        m = self._records.get(module)
        return m.model_copy() if m is not None else None

    def snapshot(self) -> dict[str, ApiMetrics]:
        return {name: m.model_copy() for name, m in self._records.items()}

    def modules(self) -> list[str]:
        return list(self._records)

    def reset(self, module: str | None = None) -> None:
        """Zero one module's record, or every record. Known module names are kept."""
        if module is None:
            for name in self._records:
                self._records[name] = ApiMetrics()
        elif module in self._records:
            self._records[module] = ApiMetrics()

    def module_health(self) -> dict[str, bool]:
        return {name: m.healthy for name, m in self._records.items()}

    def healthy(self) -> bool:
        return all(m.healthy for m in self._records.values())
