"""Shared utilities for staticguard CLI commands.

Module-level state holds the global options (output level, logging options)
so that the app callback can record them once and every command can read
them without threading them through arguments.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Literal

import typer
from rich.console import Console

from staticguard.cli.output import EXIT_USAGE_ERROR, output_error
from staticguard.core.config import LogConfig, StaticGuardConfig
from staticguard.core.errors import ConfigurationError
from staticguard.core.logging import configure_logging, get_logger

_logger = get_logger("cli")


class ErrorMessages:
    """Constants for CLI error messages."""

    CONFIG_LOAD_ERROR = "Error loading config"
    LOG_READ_ERROR = "Cannot read build output"


# =============================================================================
# Output level management
# =============================================================================


class OutputLevel(str, Enum):
    """Output verbosity level."""

    QUIET = "quiet"  # Result panel only, no spinner or status lines
    NORMAL = "normal"
    VERBOSE = "verbose"  # Echo every build tool line


_output_level: OutputLevel = OutputLevel.NORMAL


def get_output_level() -> OutputLevel:
    return _output_level


def set_output_level(level: OutputLevel) -> None:
    global _output_level
    _output_level = level


def is_verbose() -> bool:
    return _output_level == OutputLevel.VERBOSE


def is_quiet() -> bool:
    return _output_level == OutputLevel.QUIET


# =============================================================================
# Logging configuration
# =============================================================================


@dataclass
class CliLoggingConfig:
    """Logging options collected from the command line.

    ``explicit`` records whether any option was given, in which case a
    config file's ``logging`` section does not override them.
    """

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "WARNING"
    file: Path | None = None
    format: Literal["json", "console", "both"] = "console"
    configured: bool = False
    explicit: bool = False


_log_config = CliLoggingConfig()


def get_log_level() -> str:
    return _log_config.level


def set_log_level(level: str) -> None:
    _log_config.level = level.upper()  # type: ignore[assignment]
    _log_config.explicit = True


def get_log_file() -> Path | None:
    return _log_config.file


def set_log_file(path: Path | None) -> None:
    """Set the log file path.

    Structured logs go to the file; the rich spinner and result panels
    still render on the terminal.
    """
    _log_config.file = path
    _log_config.explicit = True


def get_log_format() -> str:
    return _log_config.format


def set_log_format(fmt: str) -> None:
    _log_config.format = fmt.lower()  # type: ignore[assignment]
    _log_config.explicit = True


def configure_global_logging(console: Console) -> None:
    """Configure logging from the global CLI options, once per session.

    Raises:
        typer.Exit: If the options are inconsistent (e.g. format "both"
            without a log file).
    """
    if _log_config.configured:
        return

    try:
        configure_logging(
            level=_log_config.level,
            format=_log_config.format,
            file_path=_log_config.file,
        )
        _log_config.configured = True
    except ValueError as e:
        output_error(f"Logging configuration error: {e}", console_instance=console)
        raise typer.Exit(EXIT_USAGE_ERROR) from None


def apply_config_logging(log_config: LogConfig) -> None:
    """Reconfigure logging from a config file unless CLI options were given."""
    if _log_config.explicit:
        return
    configure_logging(
        level=log_config.level,
        format=log_config.format,
        file_path=log_config.file_path,
        max_file_size_mb=log_config.max_file_size_mb,
        backup_count=log_config.backup_count,
    )
    _log_config.configured = True


def reset_logging_state() -> None:
    """Reset logging state (primarily for testing)."""
    global _log_config
    _log_config = CliLoggingConfig()


# =============================================================================
# Config loading
# =============================================================================


def load_config(config_file: Path | None, console: Console) -> StaticGuardConfig:
    """Load ``config_file``, or return defaults when none is given.

    Raises:
        typer.Exit: With the usage exit code if the file is invalid.
    """
    if config_file is None:
        return StaticGuardConfig()

    try:
        config = StaticGuardConfig.from_yaml(config_file)
    except ConfigurationError as e:
        output_error(
            f"{ErrorMessages.CONFIG_LOAD_ERROR}: {e}",
            hints=["Check the file against the documented configuration keys."],
            console_instance=console,
        )
        raise typer.Exit(EXIT_USAGE_ERROR) from None

    _logger.debug("config.loaded", path=str(config_file))
    return config
