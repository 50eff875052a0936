"""Logging module for AIWorks.

Provides structured logging with Rich console support.
"""

from aiworks.logging.logger import LogLevel, AIWorksLogger
from aiworks.logging.config import (
    configure_logging,
    disable_logging,
    enable_logging,
    get_logger,
    setup_logging,
    JsonFormatter,
)

__all__ = [
    "LogLevel",
    "AIWorksLogger",
    "get_logger",
    "configure_logging",
    "disable_logging",
    "enable_logging",
    "setup_logging",
    "JsonFormatter",
]
