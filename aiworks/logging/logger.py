"""Rich console tracer for workflow runs."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from rich.console import Console


class LogLevel(str, Enum):
    """Log levels."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"

    @property
    def rank(self) -> int:
        return list(LogLevel).index(self)

    @classmethod
    def parse(cls, value: LogLevel | str) -> LogLevel:
        """Accept an enum member or a case-insensitive name."""
        return value if isinstance(value, cls) else cls(str(value).lower())


_LEVEL_STYLES = {
    LogLevel.DEBUG: "dim",
    LogLevel.INFO: "blue",
    LogLevel.WARNING: "yellow",
    LogLevel.ERROR: "red bold",
}


class AIWorksLogger:
    """Console tracer for workflow execution.

    Workflow events print at INFO and node events at DEBUG, so the default
    level shows one line per run and ``debug`` shows every node.

    Example:
        >>> tracer = AIWorksLogger(level=LogLevel.DEBUG)
        >>> tracer.workflow_start("Daily report", node_count=4)
        >>> tracer.node_start("fetch", "api-call")
    """

    def __init__(
        self,
        level: LogLevel | str = LogLevel.INFO,
        console: Console | None = None,
        show_timestamps: bool = True,
        show_level: bool = True,
        enabled: bool = True,
    ) -> None:
        self._level = LogLevel.parse(level)
        self._console = console or Console(stderr=True)
        self._show_timestamps = show_timestamps
        self._show_level = show_level
        self._enabled = enabled

    @property
    def level(self) -> LogLevel:
        return self._level

    @level.setter
    def level(self, value: LogLevel | str) -> None:
        self._level = LogLevel.parse(value)

    @property
    def enabled(self) -> bool:
        return self._enabled

    @enabled.setter
    def enabled(self, value: bool) -> None:
        self._enabled = value

    def _should_log(self, level: LogLevel) -> bool:
        return self._enabled and level.rank >= self._level.rank

    def _emit(self, level: LogLevel, body: str) -> None:
        if not self._should_log(level):
            return

        parts = []
        if self._show_timestamps:
            parts.append(f"[dim]{datetime.now():%H:%M:%S}[/]")
        if self._show_level:
            parts.append(f"[{_LEVEL_STYLES[level]}]{level.value.upper():7}[/]")
        parts.append(body)
        self._console.print(" ".join(parts))

    def log(self, level: LogLevel | str, message: str, **context: Any) -> None:
        """Log a message with optional ``key=value`` context."""
        if context:
            message += " " + " ".join(f"[dim]{k}=[/]{v}" for k, v in context.items())
        self._emit(LogLevel.parse(level), message)

    def debug(self, message: str, **context: Any) -> None:
        self.log(LogLevel.DEBUG, message, **context)

    def info(self, message: str, **context: Any) -> None:
        self.log(LogLevel.INFO, message, **context)

    def warning(self, message: str, **context: Any) -> None:
        self.log(LogLevel.WARNING, message, **context)

    def error(self, message: str, **context: Any) -> None:
        self.log(LogLevel.ERROR, message, **context)

    # Run events

    def workflow_start(self, workflow_name: str, node_count: int) -> None:
        self._emit(LogLevel.INFO, f"[bold cyan]◆ {workflow_name}[/] starting with {node_count} nodes")

    def workflow_end(self, workflow_name: str, duration_ms: int, node_count: int) -> None:
        self._emit(
            LogLevel.INFO,
            f"[bold cyan]◆ {workflow_name}[/] completed ({node_count} nodes | {duration_ms}ms)",
        )

    def workflow_failed(self, workflow_name: str, node_name: str, duration_ms: int) -> None:
        self._emit(
            LogLevel.ERROR,
            f"[bold red]◆ {workflow_name}[/] stopped at {node_name} after {duration_ms}ms",
        )

    def node_start(self, node_name: str, node_type: str) -> None:
        self._emit(LogLevel.DEBUG, f"  [bold blue]▶ {node_name}[/] [dim]({node_type})[/]")

    def node_end(self, node_name: str, duration_ms: int) -> None:
        self._emit(LogLevel.DEBUG, f"  [green]✓ {node_name}[/] ({duration_ms}ms)")

    def node_skipped(self, node_name: str) -> None:
        self._emit(LogLevel.DEBUG, f"  [dim]- {node_name} skipped[/]")

    def node_error(self, node_name: str, error: str) -> None:
        self._emit(LogLevel.ERROR, f"  [bold red]✗ {node_name}[/] failed: {error}")
