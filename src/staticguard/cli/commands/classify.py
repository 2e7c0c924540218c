"""Classify command for the staticguard CLI.

``staticguard classify`` applies the verdict rules to saved build output,
e.g. a CI log, without running anything.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import typer

from staticguard.analysis.classifier import classify_output
from staticguard.notifications.console import render_result_panel

from ..helpers import ErrorMessages
from ..output import EXIT_USAGE_ERROR, console, exit_code_for, output_error, result_to_dict


def classify(
    logfile: str = typer.Argument(
        ...,
        help="File with saved build tool output, or '-' for stdin",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        "-j",
        help="Output result as JSON for machine parsing",
    ),
) -> None:
    """Classify saved static analysis output and exit with its result code."""
    try:
        if logfile == "-":
            text = sys.stdin.buffer.read().decode("utf-8", errors="replace")
        else:
            text = Path(logfile).read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        output_error(f"{ErrorMessages.LOG_READ_ERROR}: {e}", json_output=json_output)
        raise typer.Exit(EXIT_USAGE_ERROR) from None

    # Same shape the runner hands the classifier: "\n"-terminated lines
    result = classify_output(text.replace("\r\n", "\n"))

    if json_output:
        console.print_json(json.dumps(result_to_dict(result)))
    else:
        console.print(render_result_panel(result))

    raise typer.Exit(exit_code_for(result))
