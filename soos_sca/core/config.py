"""Runtime settings resolved from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass

from soos_sca.constants import (
    DEFAULT_API_URL,
    ENV_API_KEY,
    ENV_API_URL,
    ENV_CLIENT_ID,
    STATUS_DELAY_SECONDS,
)


def _float_env(name: str, default: float) -> float:
    try:
        value = os.environ.get(name)
        return float(value) if value is not None else default
    except ValueError:
        return default


@dataclass
class Settings:
    """Connection and polling defaults; CLI flags override these."""

    api_key: str | None = None
    client_id: str | None = None
    api_url: str = DEFAULT_API_URL
    status_delay: float = STATUS_DELAY_SECONDS
    http_timeout: float = 60.0

    @classmethod
    def from_env(cls) -> Settings:
        """Create settings from environment variables (evaluated at call time)."""
        return cls(
            api_key=os.environ.get(ENV_API_KEY) or None,
            client_id=os.environ.get(ENV_CLIENT_ID) or None,
            api_url=os.environ.get(ENV_API_URL) or DEFAULT_API_URL,
            status_delay=_float_env("SOOS_STATUS_DELAY", STATUS_DELAY_SECONDS),
            http_timeout=_float_env("SOOS_HTTP_TIMEOUT", 60.0),
        )


def load_settings() -> Settings:
    return Settings.from_env()
