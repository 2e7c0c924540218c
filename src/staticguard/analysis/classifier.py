"""Marker-based classification of static analysis output.

``classify_output`` is a pure function of the complete, merged output of one
run. Rules are applied in order and the first one that matches decides:

1. Output starting with ``Error`` or ``FAILURE`` -> TransportError
   (Gradle failed to run the task at all).
2. ``Overall: PASSED`` anywhere -> Passed.
3. No ``Overall: FAILED`` -> Undetermined.
4. ``Overall: FAILED (<descriptor>)`` -> FailedWithCount, with the first
   ``file:...full_report.html`` URI as report location when present.
   A FAILED marker without a parenthesized descriptor is Undetermined.
"""

from __future__ import annotations

import re

from staticguard.analysis.result import (
    AnalysisResult,
    FailedWithCount,
    Passed,
    TransportError,
    Undetermined,
)

TOOL_FAILURE_PREFIXES: tuple[str, ...] = ("Error", "FAILURE")
PASSED_MARKER = "Overall: PASSED"
FAILED_MARKER = "Overall: FAILED"
REPORT_FILENAME = "full_report.html"
UNDETERMINED_REASON = "Can't detect analysis result"

# Descriptor stays on one line; colored output may close the group with ESC
_DESCRIPTOR_PATTERN = re.compile(r"Overall: FAILED \((?P<descriptor>.+)\)(?:\x1b)?")
_REPORT_LOCATION_PATTERN = re.compile(
    r"file:[^\s\x1b]*?" + re.escape(REPORT_FILENAME)
)


def extract_descriptor(output: str) -> str | None:
    """Return the first failure descriptor in ``output``, if any."""
    match = _DESCRIPTOR_PATTERN.search(output)
    return match.group("descriptor") if match else None


def extract_report_location(output: str) -> str | None:
    """Return the first ``file:`` URI pointing at the full report, if any."""
    match = _REPORT_LOCATION_PATTERN.search(output)
    return match.group(0) if match else None


def classify_output(output: str) -> AnalysisResult:
    """Classify the complete output of one analysis run.

    Args:
        output: Merged stdout/stderr of the build tool, lines joined by ``\\n``.

    Returns:
        The verdict. Same text always yields an equal result.
    """
    if output.startswith(TOOL_FAILURE_PREFIXES):
        return TransportError(output)

    if PASSED_MARKER in output:
        return Passed()

    if FAILED_MARKER not in output:
        return Undetermined(UNDETERMINED_REASON)

    descriptor = extract_descriptor(output)
    if descriptor is None:
        return Undetermined(UNDETERMINED_REASON)

    return FailedWithCount(descriptor, extract_report_location(output))


__all__ = [
    "FAILED_MARKER",
    "PASSED_MARKER",
    "REPORT_FILENAME",
    "TOOL_FAILURE_PREFIXES",
    "UNDETERMINED_REASON",
    "classify_output",
    "extract_descriptor",
    "extract_report_location",
]
