"""Rich console presenter.

Renders each verdict as a bordered panel. Failed runs carry a clickable link
to the full HTML report when the build tool printed one.
"""

from __future__ import annotations

from typing import Any

from rich.console import Console
from rich.panel import Panel
from rich.style import Style
from rich.text import Text

from staticguard.analysis.result import (
    AnalysisResult,
    FailedWithCount,
    ResultKind,
    TransportError,
    Undetermined,
)
from staticguard.core.logging import get_logger

_logger = get_logger("notifications.console")

RESULT_STYLES: dict[ResultKind, str] = {
    ResultKind.PASSED: "green",
    ResultKind.FAILED: "red",
    ResultKind.UNDETERMINED: "yellow",
    ResultKind.TRANSPORT_ERROR: "red",
}

# Tool output surfaced verbatim can be the whole build log
MAX_TRANSPORT_LINES = 40


def render_result_panel(result: AnalysisResult) -> Panel:
    """Build the panel shown for ``result``."""
    style = RESULT_STYLES.get(result.kind, "white")

    # Text, not markup: messages and report paths may contain square brackets
    if isinstance(result, FailedWithCount):
        body = Text()
        body.append(result.format_message(), style=f"bold {style}")
        if result.report_location:
            body.append("\nReport: ")
            body.append(result.report_location, style=Style(link=result.report_location))
    elif isinstance(result, TransportError):
        lines = result.message.rstrip("\n").splitlines()
        if len(lines) > MAX_TRANSPORT_LINES:
            omitted = len(lines) - MAX_TRANSPORT_LINES
            lines = [f"... {omitted} earlier lines omitted", *lines[-MAX_TRANSPORT_LINES:]]
        body = Text("\n".join(lines))
    elif isinstance(result, Undetermined):
        body = Text(result.format_message(), style=style)
    else:
        body = Text(result.format_message(), style=f"bold {style}")

    return Panel(body, title=result.format_title(), border_style=style)


class ConsolePresenter:
    """Prints results to a rich Console."""

    def __init__(
        self,
        results: set[ResultKind] | None = None,
        console: Console | None = None,
    ) -> None:
        self._results = set(ResultKind) if results is None else results
        self._console = console or Console()

    @classmethod
    def from_config(
        cls,
        on_results: list[str],
        config: dict[str, Any] | None = None,
        console: Console | None = None,
    ) -> ConsolePresenter:
        results: set[ResultKind] = set()
        for name in on_results:
            try:
                results.add(ResultKind(name.lower()))
            except ValueError:
                _logger.warning("unknown_result_kind", result_kind=name)
        return cls(results=results, console=console)

    @property
    def subscribed_results(self) -> set[ResultKind]:
        return self._results

    async def present(self, result: AnalysisResult) -> bool:
        if result.kind not in self._results:
            return True
        self._console.print(render_result_panel(result))
        return True

    async def close(self) -> None:
        pass


__all__ = ["RESULT_STYLES", "ConsolePresenter", "render_result_panel"]
