"""HTTP transport for the CODING Open API.

Every action is one POST to the API endpoint with body
``{"Action": <name>, ...params}``; the response is a JSON object of the form
``{"Response": {"Error"?: {...}, "RequestId": ..., ...}}``.

Transport errors (httpx.TransportError, httpx.HTTPStatusError) propagate
untouched so the retry layer can classify them.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Mapping
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

import httpx
import orjson

from codingops.foundation.errors import JsonDict, ResponseDecodeError
from codingops.runtime.observability import get_logger

if TYPE_CHECKING:
    from types import TracebackType

    from codingops.foundation.config import CodingSettings

log = get_logger("codingops.transport")


class Transport:
    """Async POST transport backed by a lazily created httpx.AsyncClient.

    Args:
        settings: Endpoint, credential and timeout
        client: Pre-built client (e.g. with httpx.MockTransport). An injected
            client is not closed by ``aclose``.
    """

    __slots__ = ("_settings", "_client", "_owned", "_leases", "_retiring")

    def __init__(self, settings: CodingSettings, client: httpx.AsyncClient | None = None) -> None:
        self._settings = settings
        self._client = client
        self._owned = client is None
        self._leases = 0
        self._retiring = False

    @property
    def settings(self) -> CodingSettings:
        return self._settings

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._settings.timeout)
        return self._client

    async def post(self, action: str, params: Mapping[str, Any]) -> JsonDict:
        """Send one action and return the decoded response body.

        Raises:
            httpx.HTTPStatusError: non-2xx response
            httpx.TransportError: connection failure, reset or timeout
            ResponseDecodeError: body is not a JSON object
        """
        content = orjson.dumps({"Action": action, **params}, default=str)
        log.debug("posting action", action=action, url=self._settings.api_base_url)
        response = await self._get_client().post(
            self._settings.api_base_url,
            content=content,
            headers=self._settings.auth_headers(),
            timeout=self._settings.timeout,
        )
        response.raise_for_status()
        try:
            body = orjson.loads(response.content)
        except orjson.JSONDecodeError as e:
            raise ResponseDecodeError(f"Response for {action} is not valid JSON: {e}") from e
        if not isinstance(body, dict):
            raise ResponseDecodeError(f"Response for {action} is not a JSON object")
        return body

    @asynccontextmanager
    async def lease(self) -> AsyncIterator[Transport]:
        """Pin this transport for one logical call, retries included."""
        self._leases += 1
        try:
            yield self
        finally:
            self._leases -= 1
            if self._retiring and self._leases == 0:
                await self.aclose()

    async def retire(self) -> None:
        """Close once every leased call has finished; immediately if none are running."""
        self._retiring = True
        if self._leases == 0:
            await self.aclose()

    def rebind(self, settings: CodingSettings) -> Transport:
        """New transport for ``settings``; an injected client carries over."""
        return Transport(settings, None if self._owned else self._client)

    async def aclose(self) -> None:
        if self._client is not None and self._owned:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> Transport:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.aclose()
