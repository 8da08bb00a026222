"""Request executor for the CODING Open API.

CodingApiClient turns an action name plus parameters into one network call
and layers on:

- read-only result caching (Describe*/Get*/List*/Check* actions)
- a FIFO concurrency limit shared by every in-flight call
- exponential-backoff retry of transient transport failures
- normalization of every failure into CodingApiError
- per-module metrics and health

Example:
    >>> async with CodingApiClient.from_env(enable_cache=True) as client:
    ...     me = await client.request("DescribeCodingCurrentUser")
    ...     results = await client.batch_request([
    ...         {"action": "DescribeTeam"},
    ...         {"action": "DescribeProjects", "params": {"PageNumber": 1}},
    ...     ])
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable, Iterable, Mapping
from typing import TYPE_CHECKING, Any

import httpx
from pydantic import ValidationError

from codingops.foundation.config import VERSION, CodingSettings, ModuleRegistry, default_registry, load_settings
from codingops.foundation.errors import (
    ApiErrorInfo,
    CodingApiError,
    ErrorCode,
    JsonDict,
    ResponseDecodeError,
)
from codingops.io.cache import MemoryCache, make_key
from codingops.runtime.concurrency import ConcurrencyLimiter
from codingops.runtime.metrics import ApiMetrics, MetricsRegistry
from codingops.runtime.observability import get_logger
from codingops.runtime.retry import ExponentialBackoff, RetryPolicy, execute_with_retry

from .models import BatchRequest, BatchResult, HealthStatus
from .routing import is_read_only_action, module_for_action
from .transport import Transport

if TYPE_CHECKING:
    from types import TracebackType

HEALTH_CHECK_ACTION = "DescribeCodingCurrentUser"

# Envelope fields removed from the payload handed back to callers
_ENVELOPE_FIELDS = frozenset({"Error", "RequestId"})


def _elapsed_ms(start: float) -> float:
    return (time.perf_counter() - start) * 1000


def _unwrap(body: JsonDict, action: str) -> JsonDict:
    """Inner ``Response`` object without its Error/RequestId envelope fields."""
    response = body.get("Response")
    if not isinstance(response, dict):
        raise ResponseDecodeError(f"Response for {action} has no 'Response' object")
    return {k: v for k, v in response.items() if k not in _ENVELOPE_FIELDS}


class CodingApiClient:
    """Executes CODING Open API actions with caching, limits, retries and metrics.

    The cache, metrics registry and limiter are owned by the client and
    shared by every concurrent call made through it.

    Args:
        settings: Connection settings
        registry: Module registry; a fresh default_registry() when omitted
        transport: Pre-built transport
        http_client: httpx client for the default transport (ignored if transport is given)
        cache: Result cache
        metrics: Metrics registry; pre-seeded with the registry's modules when omitted
        limiter: Concurrency limiter
        retry_policy: Retry policy; built from settings when omitted
        sleep: Awaitable delay used between retries, injectable for tests
    """

    __slots__ = (
        "_settings", "_registry", "_transport", "_cache", "_metrics", "_limiter",
        "_retry", "_sleep", "_started", "_log",
    )

    def __init__(
        self,
        settings: CodingSettings,
        registry: ModuleRegistry | None = None,
        *,
        transport: Transport | None = None,
        http_client: httpx.AsyncClient | None = None,
        cache: MemoryCache | None = None,
        metrics: MetricsRegistry | None = None,
        limiter: ConcurrencyLimiter | None = None,
        retry_policy: RetryPolicy | None = None,
        sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
    ) -> None:
        self._settings = settings
        self._registry = registry if registry is not None else default_registry()
        self._transport = transport or Transport(settings, http_client)
        self._cache = cache if cache is not None else MemoryCache(settings.cache_ttl)
        self._metrics = metrics if metrics is not None else MetricsRegistry(self._registry.names())
        self._limiter = limiter or ConcurrencyLimiter(
            settings.max_concurrent_requests, acquire_timeout=settings.acquire_timeout,
        )
        self._retry = retry_policy or self._policy_from(settings)
        self._sleep = sleep
        self._started = time.monotonic()
        self._log = get_logger("codingops.client")

    @classmethod
    def from_env(cls, registry: ModuleRegistry | None = None, **overrides: Any) -> CodingApiClient:
        """Build settings from ``overrides`` → environment → defaults, then the client.

        Raises:
            ConfigError: if the resulting settings are invalid
        """
        return cls(load_settings(**overrides), registry)

    @staticmethod
    def _policy_from(settings: CodingSettings) -> RetryPolicy:
        return RetryPolicy(
            max_attempts=settings.retry_attempts,
            backoff=ExponentialBackoff(base=settings.retry_base_delay),
        )

    # ─────────────────────────────────────────────────────────────────
    # Accessors
    # ─────────────────────────────────────────────────────────────────

    @property
    def settings(self) -> CodingSettings:
        return self._settings

    @property
    def registry(self) -> ModuleRegistry:
        return self._registry

    @property
    def cache(self) -> MemoryCache:
        return self._cache

    @property
    def limiter(self) -> ConcurrencyLimiter:
        return self._limiter

    # ─────────────────────────────────────────────────────────────────
    # Execution
    # ─────────────────────────────────────────────────────────────────

    async def request(
        self,
        action: str,
        params: Mapping[str, Any] | None = None,
        *,
        use_cache: bool | None = None,
        cache_ttl: float | None = None,
        module: str | None = None,
    ) -> JsonDict:
        """Execute one action and return its result payload.

        Args:
            action: Action name, e.g. ``DescribeGitDepots``
            params: Action parameters (sent alongside ``Action``)
            use_cache: Override the global cache flag for this call
            cache_ttl: TTL in seconds for the stored result
            module: Owning module for metrics; derived from the action when omitted

        Returns:
            The inner ``Response`` object without Error/RequestId

        Raises:
            CodingApiError: on any failure, with action and params as context
        """
        params = dict(params or {})
        module_name = module or module_for_action(action)
        log = self._log.bind(action=action, module=module_name)
        start = time.perf_counter()
        acquired = False
        try:
            await self._limiter.acquire()
            acquired = True

            cache_on = self._settings.enable_cache if use_cache is None else use_cache
            cache_key = make_key(action, params) if cache_on and is_read_only_action(action) else None
            if cache_key is not None and (cached := self._cache.get(cache_key)) is not None:
                log.debug("cache hit")
                self._metrics.record(module_name, _elapsed_ms(start), True)
                return cached

            log.debug("dispatching request")
            async with self._transport.lease() as transport:
                body = await execute_with_retry(
                    lambda: transport.post(action, params),
                    self._retry,
                    action=action,
                    sleep=self._sleep,
                )
            if (api_error := CodingApiError.from_response(body, action, params)) is not None:
                raise api_error

            result = _unwrap(body, action)
            if cache_key is not None:
                self._cache.set(cache_key, result, cache_ttl if cache_ttl is not None else self._settings.cache_ttl)
            duration = _elapsed_ms(start)
            self._metrics.record(module_name, duration, True)
            log.debug("request completed", duration_ms=round(duration, 2))
            return result
        except Exception as e:
            duration = _elapsed_ms(start)
            self._metrics.record(module_name, duration, False)
            err = CodingApiError.from_exception(e, action, params)
            log.warning(
                "request failed",
                code=err.code,
                message=err.message,
                request_id=err.request_id,
                duration_ms=round(duration, 2),
            )
            if err is e:
                raise
            raise err from e
        finally:
            if acquired:
                self._limiter.release()

    async def batch_request(
        self,
        requests: Iterable[BatchRequest | Mapping[str, Any]],
    ) -> list[BatchResult]:
        """Run every entry concurrently under the shared limiter.

        One entry failing never affects the others; each result carries its
        own success flag. Results are in input order.
        """
        return list(await asyncio.gather(*(self._run_batch_item(r) for r in requests)))

    async def _run_batch_item(self, raw: BatchRequest | Mapping[str, Any]) -> BatchResult:
        try:
            item = raw if isinstance(raw, BatchRequest) else BatchRequest.model_validate(raw)
            data = await self.request(
                item.action,
                item.params,
                use_cache=item.options.use_cache,
                cache_ttl=item.options.cache_ttl,
                module=item.options.module,
            )
            return BatchResult(success=True, data=data)
        except CodingApiError as e:
            return BatchResult(success=False, error=e.error)
        except (ValidationError, TypeError, ValueError) as e:
            return BatchResult(success=False, error=ApiErrorInfo(code=ErrorCode.BATCH_ERROR.value, message=str(e)))

    # ─────────────────────────────────────────────────────────────────
    # Management
    # ─────────────────────────────────────────────────────────────────

    async def health_check(self) -> bool:
        """Check the API with an uncached current-user lookup."""
        try:
            await self.request(HEALTH_CHECK_ACTION, {}, use_cache=False, module="user-team")
        except CodingApiError as e:
            self._log.error("health check failed", code=e.code, message=e.message)
            return False
        return True

    def get_metrics(self) -> dict[str, ApiMetrics]:
        return self._metrics.snapshot()

    def get_module_metrics(self, module: str) -> ApiMetrics | None:
        return self._metrics.get(module)

    def reset_metrics(self) -> None:
        """Zero every module's counters. Module enablement is untouched."""
        self._metrics.reset()

    def clear_cache(self) -> None:
        self._cache.clear()

    def get_uptime(self) -> int:
        """Milliseconds since the client was created."""
        return int((time.monotonic() - self._started) * 1000)

    def get_health_status(self) -> HealthStatus:
        """Healthy when every module has no traffic or a success ratio above 0.8."""
        modules = {name: True for name in self._registry.names()}
        modules.update(self._metrics.module_health())
        return HealthStatus(
            healthy=all(modules.values()),
            uptime=self.get_uptime(),
            version=VERSION,
            modules=modules,
            metrics=self._metrics.snapshot(),
        )

    def module_status(self) -> list[JsonDict]:
        return self._registry.status()

    def toggle_module(self, name: str, enabled: bool) -> bool:
        """Enable or disable a module. Returns False if it is unknown."""
        changed = self._registry.set_module_enabled(name, enabled)
        if changed:
            self._log.info("module toggled", module=name, enabled=enabled)
        return changed

    async def update_settings(self, settings: CodingSettings) -> None:
        """Swap connection settings (endpoint, token, timeout, retries).

        The concurrency limiter, cache and metrics are kept. New calls use a
        rebuilt transport; calls already in flight finish, retries included, on
        the previous one, which is closed once they are done.
        """
        old = self._transport
        self._settings = settings
        self._transport = old.rebind(settings)
        self._retry = self._policy_from(settings)
        await old.retire()

    async def aclose(self) -> None:
        await self._transport.aclose()

    async def __aenter__(self) -> CodingApiClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.aclose()
