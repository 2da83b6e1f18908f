"""Tests for settings and logging configuration."""

from __future__ import annotations

import logging

import pytest
import structlog

from soos_sca.core.config import Settings
from soos_sca.core.logging import resolve_log_level, setup_logging


class TestSettings:
    def test_defaults(self, monkeypatch):
        for name in ("SOOS_API_KEY", "SOOS_CLIENT_ID", "SOOS_API_URL", "SOOS_STATUS_DELAY"):
            monkeypatch.delenv(name, raising=False)
        settings = Settings.from_env()
        assert settings.api_key is None
        assert settings.client_id is None
        assert settings.api_url == "https://api.soos.io/api/"
        assert settings.status_delay == 5.0

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("SOOS_API_KEY", "key")
        monkeypatch.setenv("SOOS_CLIENT_ID", "client")
        monkeypatch.setenv("SOOS_API_URL", "https://qa-api.soos.io/api/")
        monkeypatch.setenv("SOOS_STATUS_DELAY", "0.5")
        settings = Settings.from_env()
        assert (settings.api_key, settings.client_id) == ("key", "client")
        assert settings.api_url == "https://qa-api.soos.io/api/"
        assert settings.status_delay == 0.5

    def test_bad_number_falls_back(self, monkeypatch):
        monkeypatch.setenv("SOOS_HTTP_TIMEOUT", "soon")
        assert Settings.from_env().http_timeout == 60.0


class TestLogLevels:
    @pytest.mark.parametrize(
        "given, expected",
        [
            (None, "INFO"),
            ("", "INFO"),
            ("debug", "DEBUG"),
            ("WARN", "WARNING"),
            ("FAIL", "ERROR"),
            ("ERROR", "ERROR"),
            ("verbose", "INFO"),
        ],
    )
    def test_resolve(self, given, expected):
        assert resolve_log_level(given) == expected


@pytest.fixture
def restore_logging():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    logging.getLogger("soos_sca").setLevel(logging.NOTSET)
    structlog.reset_defaults()


class TestSetupLogging:
    def test_explicit_level_wins_over_environment(self, monkeypatch, restore_logging):
        monkeypatch.setenv("SOOS_LOG_LEVEL", "DEBUG")
        setup_logging("FAIL", colors=False)
        assert logging.getLogger("soos_sca").level == logging.ERROR
        assert logging.getLogger("httpx").level == logging.WARNING

    def test_environment_level(self, monkeypatch, restore_logging):
        monkeypatch.setenv("SOOS_LOG_LEVEL", "DEBUG")
        setup_logging()
        assert logging.getLogger("soos_sca").level == logging.DEBUG
