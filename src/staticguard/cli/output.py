"""Rich output formatting for the staticguard CLI.

Holds the shared console, the exit code mapping for results, the live
progress display and error formatting.
"""

from __future__ import annotations

import json
from typing import Any, Literal

from rich.console import Console
from rich.markup import escape
from rich.progress import Progress, SpinnerColumn, TextColumn, TimeElapsedColumn

from staticguard.analysis.result import (
    AnalysisResult,
    FailedWithCount,
    ResultKind,
    TransportError,
    Undetermined,
)

# Commands should use this console or accept one as a parameter
console = Console()


# =============================================================================
# Exit codes
# =============================================================================

EXIT_PASSED = 0
EXIT_FAILED = 1
EXIT_UNDETERMINED = 2
EXIT_TRANSPORT_ERROR = 3
EXIT_USAGE_ERROR = 4
EXIT_CANCELLED = 130  # 128 + SIGINT, as shells report Ctrl-C

RESULT_EXIT_CODES: dict[ResultKind, int] = {
    ResultKind.PASSED: EXIT_PASSED,
    ResultKind.FAILED: EXIT_FAILED,
    ResultKind.UNDETERMINED: EXIT_UNDETERMINED,
    ResultKind.TRANSPORT_ERROR: EXIT_TRANSPORT_ERROR,
}


def exit_code_for(result: AnalysisResult | None) -> int:
    """Map a result to the process exit code; None means cancelled."""
    if result is None:
        return EXIT_CANCELLED
    return RESULT_EXIT_CODES[result.kind]


# =============================================================================
# Formatting
# =============================================================================


def format_duration(seconds: float | None) -> str:
    """Format a duration as "5.2s", "3m 12s" or "1h 30m"."""
    if seconds is None:
        return "N/A"

    if seconds < 60:
        return f"{seconds:.1f}s"
    elif seconds < 3600:
        minutes = int(seconds // 60)
        secs = int(seconds % 60)
        return f"{minutes}m {secs}s"
    else:
        hours = int(seconds // 3600)
        minutes = int((seconds % 3600) // 60)
        return f"{hours}h {minutes}m"


def result_to_dict(result: AnalysisResult) -> dict[str, Any]:
    """JSON-friendly representation of a result."""
    data: dict[str, Any] = {
        "kind": result.kind.value,
        "success": result.is_success,
        "message": result.format_message(),
    }
    if isinstance(result, FailedWithCount):
        data["descriptor"] = result.descriptor
        data["report_location"] = result.report_location
    elif isinstance(result, Undetermined):
        data["reason"] = result.reason
    elif isinstance(result, TransportError):
        data["message"] = result.message
    return data


# =============================================================================
# Progress display
# =============================================================================


def create_run_progress(console_instance: Console | None = None) -> Progress:
    """Spinner with elapsed time and the latest build tool line.

    The description is rendered without markup since it carries raw tool
    output.
    """
    return Progress(
        SpinnerColumn(),
        TimeElapsedColumn(),
        TextColumn("{task.description}", markup=False),
        console=console_instance or console,
        transient=True,
    )


# =============================================================================
# Error formatting
# =============================================================================


def output_error(
    message: str,
    *,
    hints: list[str] | None = None,
    severity: Literal["error", "warning"] = "error",
    json_output: bool = False,
    console_instance: Console | None = None,
) -> None:
    """Print an error or warning, with optional hints, as rich text or JSON."""
    out = console_instance or console
    color = "red" if severity == "error" else "yellow"
    label = "Error" if severity == "error" else "Warning"

    if json_output:
        payload: dict[str, Any] = {"success": False, "message": message}
        if hints:
            payload["hints"] = hints
        out.print_json(json.dumps(payload))
        return

    out.print(f"[{color}]{label}:[/{color}] {escape(message)}", highlight=False)

    if hints:
        out.print()
        out.print("[dim]Hints:[/dim]")
        for hint in hints:
            out.print(f"  - {hint}")
