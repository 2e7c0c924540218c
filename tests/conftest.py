"""Pytest fixtures for staticguard tests."""

import logging
from collections.abc import Callable, Generator
from pathlib import Path

import pytest
import structlog

from tests.helpers import write_gradlew


@pytest.fixture(autouse=True)
def reset_logging_state() -> Generator[None, None, None]:
    """Reset CLI and logging state before and after each test.

    This ensures test isolation for logging configuration.
    """
    from staticguard.cli import helpers

    helpers.reset_logging_state()
    helpers.set_output_level(helpers.OutputLevel.NORMAL)

    # Reset structlog to default state
    structlog.reset_defaults()

    # Clear all handlers from root logger
    root_logger = logging.getLogger()
    original_handlers = root_logger.handlers[:]
    original_level = root_logger.level
    for handler in original_handlers:
        root_logger.removeHandler(handler)

    yield

    helpers.reset_logging_state()
    helpers.set_output_level(helpers.OutputLevel.NORMAL)
    structlog.reset_defaults()

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()
    for handler in original_handlers:
        root_logger.addHandler(handler)
    root_logger.setLevel(original_level)


@pytest.fixture
def fake_project(tmp_path: Path) -> Callable[[str], Path]:
    """Factory for a project directory whose ``./gradlew`` runs a shell body.

    Example:
        root = fake_project('echo "Overall: PASSED"')
    """

    def _make(body: str) -> Path:
        root = tmp_path / "project"
        root.mkdir(exist_ok=True)
        write_gradlew(root, body)
        return root

    return _make


@pytest.fixture
def sample_config_dict() -> dict:
    """Return a sample staticguard configuration dictionary."""
    return {
        "logging": {"level": "DEBUG", "format": "console"},
        "progress": {"show": False, "max_line_width": 60},
        "notifications": [
            {"type": "console"},
            {
                "type": "desktop",
                "on_results": ["failed", "transport_error"],
                "config": {"timeout": 15},
            },
        ],
    }


@pytest.fixture
def sample_yaml_config(tmp_path: Path, sample_config_dict: dict) -> Path:
    """Create a sample YAML config file."""
    import yaml

    config_path = tmp_path / "staticguard.yaml"
    with open(config_path, "w") as f:
        yaml.dump(sample_config_dict, f)
    return config_path
