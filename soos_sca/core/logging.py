"""Structured logging configuration: structlog + stdlib logging."""

from __future__ import annotations

import logging
import logging.config
import os

import structlog

from soos_sca.enums import LogLevel

# CLI log levels mapped onto stdlib levels; FAIL sits between WARN and ERROR.
_LEVEL_MAP: dict[str, str] = {
    LogLevel.DEBUG.value: "DEBUG",
    LogLevel.INFO.value: "INFO",
    LogLevel.WARN.value: "WARNING",
    LogLevel.FAIL.value: "ERROR",
    LogLevel.ERROR.value: "ERROR",
    "WARNING": "WARNING",
    "CRITICAL": "CRITICAL",
}


def resolve_log_level(level: str | None) -> str:
    """Map a CLI/env level name to a stdlib level name (default INFO)."""
    if not level:
        return "INFO"
    return _LEVEL_MAP.get(level.strip().upper(), "INFO")


def setup_logging(level: str | None = None, *, colors: bool = True) -> None:
    """Configure structlog and stdlib logging.

    *level* overrides the environment. Reads from environment variables:
        SOOS_LOG_LEVEL: DEBUG | INFO | WARN | FAIL | ERROR (default: INFO)
        SOOS_LOG_FORMAT: console | json (default: console)
    """
    log_level = resolve_log_level(level or os.environ.get("SOOS_LOG_LEVEL"))
    log_format = os.environ.get("SOOS_LOG_FORMAT", "console").lower()

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if log_format == "json":
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=colors)

    structlog.configure(
        processors=shared_processors
        + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "structlog": {
                    "()": structlog.stdlib.ProcessorFormatter,
                    "foreign_pre_chain": shared_processors,
                    "processors": [
                        structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                        renderer,
                    ],
                },
            },
            "handlers": {
                "default": {
                    "class": "logging.StreamHandler",
                    "stream": "ext://sys.stdout",
                    "formatter": "structlog",
                },
            },
            "root": {
                "handlers": ["default"],
                "level": log_level,
            },
            "loggers": {
                "soos_sca": {"level": log_level},
                "httpx": {"level": "WARNING"},
                "httpcore": {"level": "WARNING"},
            },
        }
    )
