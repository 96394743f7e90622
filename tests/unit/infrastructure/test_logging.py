"""Unit tests for structlog configuration."""

from __future__ import annotations

import json
import os
from unittest.mock import patch

import pytest
import structlog

from electorate.infrastructure.observability import (
    build_processors,
    configure_structlog,
    set_run_id,
)
from electorate.infrastructure.observability.logging import LOG_LEVEL_ENV


class TestConfigureStructlog:
    """Tests for configure_structlog()."""

    def test_production_uses_json_renderer(self) -> None:
        configure_structlog(environment="production")

        processors = structlog.get_config()["processors"]
        assert any(isinstance(p, structlog.processors.JSONRenderer) for p in processors)

    def test_development_uses_console_renderer(self) -> None:
        configure_structlog(environment="development")

        processors = structlog.get_config()["processors"]
        assert any(isinstance(p, structlog.dev.ConsoleRenderer) for p in processors)

    def test_default_is_production(self) -> None:
        configure_structlog()

        processors = structlog.get_config()["processors"]
        assert any(isinstance(p, structlog.processors.JSONRenderer) for p in processors)

    def test_renderer_is_last(self) -> None:
        processors = build_processors("production")

        assert isinstance(processors[-1], structlog.processors.JSONRenderer)
        assert structlog.contextvars.merge_contextvars in processors


class TestJsonOutput:
    """Tests for production log entries."""

    @pytest.fixture(autouse=True)
    def setup_logging(self) -> None:
        structlog.reset_defaults()
        configure_structlog(environment="production")

    def test_entry_carries_run_id_and_context(
        self, capsys: pytest.CaptureFixture[str]
    ) -> None:
        set_run_id("test-run")

        structlog.get_logger().info("vote_committed", agent_id="v1")

        output = capsys.readouterr().out.strip()
        entry = json.loads(output)
        assert entry["event"] == "vote_committed"
        assert entry["level"] == "info"
        assert entry["run_id"] == "test-run"
        assert entry["agent_id"] == "v1"
        assert "T" in entry["timestamp"]

        set_run_id("")

    def test_no_run_id_when_unset(self, capsys: pytest.CaptureFixture[str]) -> None:
        set_run_id("")

        structlog.get_logger().info("election_created")

        entry = json.loads(capsys.readouterr().out.strip())
        assert "run_id" not in entry


class TestLogLevel:
    def test_debug_dropped_at_default_level(
        self, capsys: pytest.CaptureFixture[str]
    ) -> None:
        with patch.dict(os.environ, {}, clear=True):
            structlog.reset_defaults()
            configure_structlog(environment="production")

            structlog.get_logger().debug("reputation_profile_loaded")

        assert capsys.readouterr().out == ""

    def test_level_from_environment(self, capsys: pytest.CaptureFixture[str]) -> None:
        with patch.dict(os.environ, {LOG_LEVEL_ENV: "debug"}):
            structlog.reset_defaults()
            configure_structlog(environment="production")

            structlog.get_logger().debug("reputation_profile_loaded")

        entry = json.loads(capsys.readouterr().out.strip())
        assert entry["level"] == "debug"
