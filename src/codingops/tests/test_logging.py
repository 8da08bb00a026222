"""Tests for structured logging."""

from __future__ import annotations

import io
import sys

import orjson
import pytest

from codingops.foundation.config import LoggingSettings
from codingops.runtime.observability import (
    CaptureRenderer,
    ConsoleRenderer,
    JsonRenderer,
    NoOpRenderer,
    configure_from_settings,
    configure_logging,
    get_logger,
    log_context,
    set_renderer,
)


def test_bind_merges_context(captured_logs: CaptureRenderer) -> None:
    log = get_logger("codingops.test").bind(action="DescribeTeam")
    log.info("request completed", duration_ms=1.5)
    entry = captured_logs.entries[-1]
    assert entry.level == "info"
    assert entry.context == {"logger": "codingops.test", "action": "DescribeTeam", "duration_ms": 1.5}
    assert "action" not in log.unbind("action").context


def test_level_filtering(captured_logs: CaptureRenderer) -> None:
    set_renderer(captured_logs, "WARNING")
    log = get_logger("codingops.test")
    log.debug("hidden")
    log.info("hidden")
    log.warning("shown")
    log.error("shown too")
    assert captured_logs.events() == ["shown", "shown too"]
    assert captured_logs.events("error") == ["shown too"]


def test_log_context_scope(captured_logs: CaptureRenderer) -> None:
    log = get_logger()
    with log_context(request_id="abc"):
        log.info("inside")
    log.info("outside")
    inside, outside = captured_logs.entries[-2:]
    assert inside.context["request_id"] == "abc"
    assert "request_id" not in outside.context


def test_console_renderer() -> None:
    out = io.StringIO()
    set_renderer(ConsoleRenderer(output=out, colors=False, show_timestamp=False), "INFO")
    get_logger("codingops.client").warning("request failed", code="NETWORK_ERROR")
    assert out.getvalue().strip() == '[warning] request failed code="NETWORK_ERROR" logger="codingops.client"'


def test_json_renderer() -> None:
    out = io.StringIO()
    assert isinstance(configure_logging("json", "DEBUG", output=out), JsonRenderer)
    get_logger("codingops.client").debug("cache hit", action="DescribeTeam")
    line = orjson.loads(out.getvalue())
    assert line["event"] == "cache hit"
    assert line["level"] == "debug"
    assert line["action"] == "DescribeTeam"
    assert "timestamp" in line


def test_json_defaults_to_stderr(monkeypatch: pytest.MonkeyPatch) -> None:
    err, out = io.StringIO(), io.StringIO()
    monkeypatch.setattr(sys, "stderr", err)
    monkeypatch.setattr(sys, "stdout", out)
    assert JsonRenderer().output is err
    configure_logging("json", "INFO")
    get_logger("codingops.client").info("request completed")
    assert orjson.loads(err.getvalue())["event"] == "request completed"
    assert out.getvalue() == ""


def test_configure_from_settings() -> None:
    renderer = configure_from_settings(LoggingSettings(format="none", level="error"))
    assert isinstance(renderer, NoOpRenderer)
    assert get_logger().is_enabled_for(40)
    assert not get_logger().is_enabled_for(30)


def test_configure_rejects_unknown_format() -> None:
    with pytest.raises(ValueError):
        configure_logging("xml")
