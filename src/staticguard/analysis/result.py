"""Typed verdicts produced from the build tool's output.

``AnalysisResult`` is a closed set of immutable variants:

- Passed: the analysis ran and reported ``Overall: PASSED``
- FailedWithCount: the analysis ran and found issues
- Undetermined: output present, but no recognizable verdict
- TransportError: the tool (or the process around it) failed before a verdict
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

NOTIFICATION_TITLE = "Static Analysis"


class ResultKind(str, Enum):
    """Discriminator shared by all result variants."""

    PASSED = "passed"
    FAILED = "failed"
    UNDETERMINED = "undetermined"
    TRANSPORT_ERROR = "transport_error"


@dataclass(frozen=True)
class AnalysisResult:
    """Base class for analysis verdicts. Never instantiated directly."""

    @property
    def kind(self) -> ResultKind:
        raise NotImplementedError

    @property
    def is_success(self) -> bool:
        return self.kind is ResultKind.PASSED

    def format_title(self) -> str:
        """Notification title for this result."""
        return NOTIFICATION_TITLE

    def format_message(self) -> str:
        """Human-readable notification body."""
        raise NotImplementedError


@dataclass(frozen=True)
class Passed(AnalysisResult):
    @property
    def kind(self) -> ResultKind:
        return ResultKind.PASSED

    def format_message(self) -> str:
        return "Overall: PASSED!"


@dataclass(frozen=True)
class FailedWithCount(AnalysisResult):
    """Analysis found issues.

    Attributes:
        descriptor: Summary captured from ``Overall: FAILED (<descriptor>)``.
        report_location: ``file:`` URI of the full HTML report, when printed.
    """

    descriptor: str
    report_location: str | None = None

    @property
    def kind(self) -> ResultKind:
        return ResultKind.FAILED

    def format_message(self) -> str:
        return f"Analysis failed: {self.descriptor}"


@dataclass(frozen=True)
class Undetermined(AnalysisResult):
    reason: str

    @property
    def kind(self) -> ResultKind:
        return ResultKind.UNDETERMINED

    def format_message(self) -> str:
        return f"{self.reason}. Try to run it manually."


@dataclass(frozen=True)
class TransportError(AnalysisResult):
    """The build tool could not produce a verdict.

    ``message`` is surfaced verbatim: either the tool's own output or the
    description of a spawn/read failure.
    """

    message: str

    @property
    def kind(self) -> ResultKind:
        return ResultKind.TRANSPORT_ERROR

    def format_message(self) -> str:
        return self.message


__all__ = [
    "NOTIFICATION_TITLE",
    "AnalysisResult",
    "FailedWithCount",
    "Passed",
    "ResultKind",
    "TransportError",
    "Undetermined",
]
