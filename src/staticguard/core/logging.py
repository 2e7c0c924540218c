"""Structured logging infrastructure for staticguard.

Provides structured logging using structlog with run-specific context such as
run_id and project_root. Supports console and JSON output, optionally to a
rotating log file.

Example usage:
    from staticguard.core.logging import get_logger, configure_logging, with_context

    # Configure once at startup
    configure_logging(level="DEBUG", format="console")

    # Get a component-specific logger
    logger = get_logger("runner")
    logger.info("process.started", pid=1234)

    # Use execution context for automatic correlation
    ctx = ExecutionContext(project_root="/work/app")
    with with_context(ctx):
        logger.info("analysis.completed")  # Includes run_id, project_root
"""

from __future__ import annotations

import logging
import sys
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from datetime import UTC, datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Literal

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]
LogFormat = Literal["json", "console", "both"]

_VALID_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")

# Tracked so the CLI can point users at the active log file
_current_log_path: Path | None = None


def get_current_log_path() -> Path | None:
    """Return the configured log file path, or None when logging to a stream."""
    return _current_log_path


@dataclass(frozen=True)
class ExecutionContext:
    """Immutable context for correlating log entries across one analysis run.

    Attributes:
        run_id: Unique identifier of the run (UUID).
        project_root: Project directory the build tool runs in.
        component: Component name for the current operation.
    """

    run_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    project_root: str | None = None
    component: str = "unknown"

    def with_component(self, component: str) -> ExecutionContext:
        """Return a copy of this context with ``component`` replaced."""
        return ExecutionContext(
            run_id=self.run_id,
            project_root=self.project_root,
            component=component,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert context to a dictionary for logging (None values dropped)."""
        result: dict[str, Any] = {
            "run_id": self.run_id,
            "component": self.component,
        }
        if self.project_root is not None:
            result["project_root"] = self.project_root
        return result


# ContextVar keeps concurrent runs on one event loop isolated
_current_context: ContextVar[ExecutionContext | None] = ContextVar(
    "staticguard_context", default=None
)


def get_current_context() -> ExecutionContext | None:
    """Get the current ExecutionContext if set."""
    return _current_context.get()


@contextmanager
def with_context(ctx: ExecutionContext) -> Iterator[ExecutionContext]:
    """Set ``ctx`` as the current ExecutionContext for the duration of a block.

    Args:
        ctx: The ExecutionContext to use for the block.

    Yields:
        The ExecutionContext that was set.
    """
    token = _current_context.set(ctx)
    try:
        yield ctx
    finally:
        _current_context.reset(token)


def _add_timestamp(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Structlog processor that adds an ISO8601 UTC timestamp."""
    event_dict["timestamp"] = datetime.now(UTC).isoformat()
    return event_dict


def _add_context(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Structlog processor that merges ExecutionContext fields into an event.

    Explicitly bound keys take precedence over context values.
    """
    ctx = get_current_context()
    if ctx is not None:
        for key, value in ctx.to_dict().items():
            event_dict.setdefault(key, value)
    return event_dict


class GuardLogger:
    """Component-bound logger wrapper around structlog.

    The underlying structlog logger is fetched on every call, so loggers
    created at import time still honour a later configure_logging().
    """

    def __init__(self, component: str, **initial_context: Any) -> None:
        self._component = component
        self._context: dict[str, Any] = {"component": component, **initial_context}

    def _get_logger(self) -> structlog.stdlib.BoundLogger:
        logger: structlog.stdlib.BoundLogger = structlog.get_logger().bind(**self._context)
        return logger

    def bind(self, **context: Any) -> GuardLogger:
        """Return a new logger with additional bound context."""
        new_logger = GuardLogger.__new__(GuardLogger)
        new_logger._component = self._component
        new_logger._context = {**self._context, **context}
        return new_logger

    def debug(self, event: str, **kw: Any) -> None:
        self._get_logger().debug(event, **kw)

    def info(self, event: str, **kw: Any) -> None:
        self._get_logger().info(event, **kw)

    def warning(self, event: str, **kw: Any) -> None:
        self._get_logger().warning(event, **kw)

    def error(self, event: str, **kw: Any) -> None:
        self._get_logger().error(event, **kw)

    def exception(self, event: str, **kw: Any) -> None:
        """Log an error with traceback. Call from within an exception handler."""
        self._get_logger().exception(event, **kw)


def _build_processors(
    renderer: Processor,
    include_timestamps: bool,
    include_context: bool,
) -> list[Processor]:
    processors: list[Processor] = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_log_level,
    ]
    if include_context:
        processors.append(_add_context)
    if include_timestamps:
        processors.append(_add_timestamp)
    processors.extend([
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        renderer,
    ])
    return processors


def configure_logging(
    level: LogLevel = "INFO",
    format: LogFormat = "console",  # noqa: A002
    file_path: Path | None = None,
    max_file_size_mb: int = 10,
    backup_count: int = 3,
    include_timestamps: bool = True,
    include_context: bool = True,
) -> None:
    """Configure staticguard structured logging.

    Call once at application startup before any logging occurs.

    Args:
        level: Minimum log level to capture.
        format: "json" for structured output, "console" for human-readable,
            "both" for console to stderr and JSON to file (requires file_path).
        file_path: Optional log file. Rotated at ``max_file_size_mb``.
        max_file_size_mb: Maximum log file size before rotation (MB).
        backup_count: Number of rotated log files to keep.
        include_timestamps: Whether to add ISO8601 timestamps.
        include_context: Whether to merge ExecutionContext fields into entries.

    Raises:
        ValueError: If format="both" but file_path is not provided, or the
            level is unknown.
    """
    global _current_log_path

    if format == "both" and file_path is None:
        raise ValueError("file_path is required when format='both'")
    if level not in _VALID_LEVELS:
        raise ValueError(f"Invalid log level: {level!r}")

    log_level = getattr(logging, level)
    handlers: list[logging.Handler] = []

    if format in ("console", "both"):
        handlers.append(logging.StreamHandler(sys.stderr))

    if format in ("json", "both"):
        if file_path is not None:
            file_path.parent.mkdir(parents=True, exist_ok=True)
            _current_log_path = file_path
            handlers.append(
                RotatingFileHandler(
                    file_path,
                    maxBytes=max_file_size_mb * 1024 * 1024,
                    backupCount=backup_count,
                    encoding="utf-8",
                )
            )
        else:
            handlers.append(logging.StreamHandler(sys.stdout))
    elif file_path is not None:
        # Console format written to a file instead of stderr
        file_path.parent.mkdir(parents=True, exist_ok=True)
        _current_log_path = file_path
        handlers = [logging.FileHandler(file_path, encoding="utf-8")]

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    for handler in handlers:
        handler.setLevel(log_level)
        root_logger.addHandler(handler)

    renderer: Processor
    if format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=file_path is None)

    # cache_logger_on_first_use=False so module-level loggers follow reconfiguration
    structlog.configure(
        processors=_build_processors(renderer, include_timestamps, include_context),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )


def get_logger(component: str, **initial_context: Any) -> GuardLogger:
    """Get a logger bound to ``component``.

    Example:
        logger = get_logger("task")
        with with_context(ExecutionContext(project_root="/work/app")):
            logger.info("analysis.started")  # Includes run_id automatically
    """
    return GuardLogger(component, **initial_context)


__all__ = [
    "ExecutionContext",
    "GuardLogger",
    "LogFormat",
    "LogLevel",
    "configure_logging",
    "get_current_context",
    "get_current_log_path",
    "get_logger",
    "with_context",
]
