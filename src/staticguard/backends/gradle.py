"""Gradle wrapper invocation for the static analysis task.

The command is a fixed lookup keyed by OS family: Windows runs the batch
wrapper through ``cmd /c``, everything else executes the shell wrapper
directly. It is intentionally not configurable.
"""

from __future__ import annotations

import platform
from enum import Enum

GRADLE_TASK = "staticAnalys"


class OsFamily(str, Enum):
    """Host operating system families with distinct wrapper scripts."""

    WINDOWS = "windows"
    POSIX = "posix"


_ANALYSIS_COMMANDS: dict[OsFamily, tuple[str, ...]] = {
    OsFamily.WINDOWS: ("cmd", "/c", "gradlew.bat", GRADLE_TASK),
    OsFamily.POSIX: ("./gradlew", GRADLE_TASK),
}


def detect_os_family(system: str | None = None) -> OsFamily:
    """Map a ``platform.system()`` name to an OsFamily.

    Args:
        system: System name to map. Defaults to the current host.
    """
    name = platform.system() if system is None else system
    return OsFamily.WINDOWS if name.startswith("Windows") else OsFamily.POSIX


def analysis_command(os_family: OsFamily | None = None) -> list[str]:
    """Return the argument list that runs the analysis task.

    The command is relative to the project root, which must be the working
    directory of the spawned process.
    """
    family = detect_os_family() if os_family is None else os_family
    return list(_ANALYSIS_COMMANDS[family])


__all__ = ["GRADLE_TASK", "OsFamily", "analysis_command", "detect_os_family"]
