"""Logging setup: the global console tracer and stdlib handlers."""

from __future__ import annotations

import json
import logging
import logging.config
from typing import Any

from aiworks.logging.logger import AIWorksLogger, LogLevel

_logger: AIWorksLogger | None = None

# Attributes set by ``logger.info(..., extra={...})`` that the JSON output keeps.
_JSON_EXTRAS = ("workflow_id", "node_id", "execution_id")


def get_logger() -> AIWorksLogger:
    """Get the global tracer, creating a default one on first use."""
    global _logger
    if _logger is None:
        _logger = AIWorksLogger()
    return _logger


def configure_logging(level: LogLevel | str = LogLevel.INFO, **kwargs: Any) -> AIWorksLogger:
    """Replace the global tracer.

    Keyword arguments go to ``AIWorksLogger`` (``console``, ``enabled``,
    ``show_timestamps``, ``show_level``).

    Example:
        >>> configure_logging(level="debug", show_timestamps=False)
    """
    global _logger
    _logger = AIWorksLogger(level=level, **kwargs)
    return _logger


def disable_logging() -> None:
    get_logger().enabled = False


def enable_logging() -> None:
    get_logger().enabled = True


class JsonFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "time": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in _JSON_EXTRAS:
            if hasattr(record, key):
                entry[key] = getattr(record, key)
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def setup_logging(level: str = "INFO", log_format: str = "text") -> None:
    """Configure stdlib logging for the server process."""
    level = level.upper()
    config: dict[str, Any] = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "text": {
                "format": "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
            "json": {
                "()": JsonFormatter,
                "datefmt": "%Y-%m-%dT%H:%M:%S",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "stream": "ext://sys.stdout",
                "formatter": log_format if log_format in ("text", "json") else "text",
            },
        },
        "root": {"level": level, "handlers": ["console"]},
        "loggers": {
            "uvicorn": {"level": level},
            "httpx": {"level": "WARNING"},
            "aiworks": {"level": level},
        },
    }

    logging.config.dictConfig(config)
