"""Output classification: typed verdicts and the marker classifier."""

from staticguard.analysis.classifier import classify_output
from staticguard.analysis.result import (
    AnalysisResult,
    FailedWithCount,
    Passed,
    ResultKind,
    TransportError,
    Undetermined,
)

__all__ = [
    "AnalysisResult",
    "FailedWithCount",
    "Passed",
    "ResultKind",
    "TransportError",
    "Undetermined",
    "classify_output",
]
