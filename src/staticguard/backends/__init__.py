"""Build tool process backends."""

from staticguard.backends.gradle import GRADLE_TASK, OsFamily, analysis_command, detect_os_family
from staticguard.backends.process_manager import (
    OutputBuffer,
    ProcessHandle,
    ProcessRunner,
    StreamResult,
)

__all__ = [
    "GRADLE_TASK",
    "OsFamily",
    "OutputBuffer",
    "ProcessHandle",
    "ProcessRunner",
    "StreamResult",
    "analysis_command",
    "detect_os_family",
]
