"""Configuration models for staticguard.

Pydantic models for the optional YAML configuration passed with
``staticguard run --config``. The analysis core itself owns no file format;
these settings only shape the front end (logging, progress display and
presenters).

Example YAML:
    logging:
      level: DEBUG
      format: console
    progress:
      show: true
      max_line_width: 100
    notifications:
      - type: desktop
        on_results: [failed, transport_error]
        config:
          timeout: 15
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, ValidationError, model_validator

from staticguard.core.errors import ConfigurationError

ResultKindName = Literal["passed", "failed", "undetermined", "transport_error"]


class LogConfig(BaseModel):
    """Configuration for structured logging."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="WARNING",
        description="Minimum log level to capture",
    )
    format: Literal["json", "console", "both"] = Field(
        default="console",
        description="Output format: json for structured, console for human-readable, "
        "both for console to stderr and JSON to file",
    )
    file_path: Path | None = Field(
        default=None,
        description="Path for log file output (required if format='both')",
    )
    max_file_size_mb: int = Field(
        default=10,
        gt=0,
        le=1000,
        description="Maximum log file size before rotation (MB)",
    )
    backup_count: int = Field(
        default=3,
        ge=0,
        le=100,
        description="Number of rotated log files to keep",
    )

    @model_validator(mode="after")
    def _check_file_path_required(self) -> LogConfig:
        if self.format == "both" and self.file_path is None:
            raise ValueError(f"file_path is required when format='{self.format}'")
        return self


class ProgressConfig(BaseModel):
    """Live progress display settings."""

    show: bool = Field(default=True, description="Show a spinner with the latest output line")
    max_line_width: int = Field(
        default=120,
        ge=20,
        description="Latest-line text is truncated to this many characters",
    )


class NotificationConfig(BaseModel):
    """Configuration for one result presenter."""

    type: Literal["console", "desktop"]
    on_results: list[ResultKindName] = Field(
        default=["passed", "failed", "undetermined", "transport_error"],
        min_length=1,
        description="Result kinds this presenter shows; omit the key for all of them",
    )
    config: dict[str, Any] = Field(
        default_factory=dict, description="Presenter-specific configuration"
    )


class StaticGuardConfig(BaseModel):
    """Top-level staticguard configuration."""

    logging: LogConfig = Field(default_factory=LogConfig)
    progress: ProgressConfig = Field(default_factory=ProgressConfig)
    notifications: list[NotificationConfig] = Field(
        default_factory=lambda: [NotificationConfig(type="console")],
    )

    @classmethod
    def from_yaml(cls, path: Path) -> StaticGuardConfig:
        """Load configuration from a YAML file.

        Raises:
            ConfigurationError: If the file is missing, is not valid YAML, or
                fails validation.
        """
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigurationError(f"Cannot read config file {path}: {e}") from e
        return cls.from_yaml_string(text, source=str(path))

    @classmethod
    def from_yaml_string(cls, yaml_str: str, source: str = "<string>") -> StaticGuardConfig:
        """Load configuration from a YAML string."""
        try:
            data = yaml.safe_load(yaml_str)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {source}: {e}") from e
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigurationError(f"Config in {source} must be a mapping")
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration in {source}:\n{e}") from e


__all__ = [
    "LogConfig",
    "NotificationConfig",
    "ProgressConfig",
    "ResultKindName",
    "StaticGuardConfig",
]
