"""Shared fixtures: isolated settings, a scripted fake API and a recording sleep."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from typing import Any

import httpx
import pytest

from codingops.client import CodingApiClient
from codingops.foundation.config import CodingSettings, load_settings
from codingops.runtime.observability import CaptureRenderer, set_renderer

from .fakes import FakeApi, RecordingSleep

_ENV_VARS = (
    "CODING_API_BASE_URL", "CODING_PERSONAL_ACCESS_TOKEN", "CODING_API_TIMEOUT",
    "CODING_API_RETRY_ATTEMPTS", "CODING_MAX_CONCURRENT_REQUESTS", "CODING_ENABLE_CACHE",
    "CODING_CACHE_TTL", "CODING_RETRY_BASE_DELAY", "CODING_ACQUIRE_TIMEOUT", "CODING_USER_AGENT",
    "CODING_LOG_LEVEL", "CODING_LOG_FORMAT",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the developer's CODING_* environment out of the tests."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def captured_logs() -> Iterator[CaptureRenderer]:
    capture = CaptureRenderer()
    set_renderer(capture, "DEBUG")
    yield capture
    set_renderer(None, "INFO")


@pytest.fixture
def settings() -> CodingSettings:
    return load_settings(personal_access_token="test-token")


@pytest.fixture
def fake_api() -> FakeApi:
    return FakeApi()


@pytest.fixture
def fake_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def make_client(fake_api: FakeApi, fake_sleep: RecordingSleep) -> Callable[..., CodingApiClient]:
    """Factory building a client wired to ``fake_api``; keyword args override settings."""

    def _make(handler: Callable[[httpx.Request], Any] | None = None, **overrides: Any) -> CodingApiClient:
        cfg = load_settings(personal_access_token="test-token", **overrides)
        http = httpx.AsyncClient(transport=httpx.MockTransport(handler or fake_api))
        return CodingApiClient(cfg, http_client=http, sleep=fake_sleep)

    return _make
