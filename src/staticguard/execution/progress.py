"""Live progress tracking for a running analysis.

Each output line is fed to a ProgressTracker, which keeps the latest line
(what a status bar shows under the spinner), line and byte counters, and the
current phase. Listeners receive an ExecutionProgress snapshot per update, in
line arrival order.
"""

from collections.abc import Callable
from dataclasses import dataclass, replace
from datetime import UTC, datetime
from enum import Enum

from staticguard.core.logging import get_logger

_logger = get_logger("progress")


class RunPhase(str, Enum):
    """Coarse phases of one analysis run."""

    STARTING = "starting"
    ANALYZING = "analyzing"
    CLASSIFYING = "classifying"
    FINISHED = "finished"


@dataclass
class ExecutionProgress:
    """Snapshot of run progress at a point in time.

    Attributes:
        started_at: When the run started.
        last_activity_at: When the last line (or phase change) arrived.
        lines_received: Output lines received so far.
        bytes_received: UTF-8 size of those lines, terminators excluded.
        latest_line: Most recent output line.
        phase: Current run phase.
    """

    started_at: datetime
    last_activity_at: datetime
    lines_received: int = 0
    bytes_received: int = 0
    latest_line: str = ""
    phase: RunPhase = RunPhase.STARTING

    @property
    def elapsed_seconds(self) -> float:
        return (datetime.now(UTC) - self.started_at).total_seconds()

    def format_elapsed(self) -> str:
        """Format elapsed time as human-readable string."""
        seconds = self.elapsed_seconds
        if seconds < 60:
            return f"{seconds:.0f}s"
        if seconds < 3600:
            return f"{int(seconds // 60)}m {int(seconds % 60)}s"
        return f"{int(seconds // 3600)}h {int((seconds % 3600) // 60)}m"

    def format_latest_line(self, max_width: int = 120) -> str:
        """Latest line truncated to ``max_width``, or the phase when none yet."""
        line = self.latest_line.strip()
        if len(line) > max_width:
            line = line[: max_width - 3] + "..."
        return line or self.phase.value

    def format_status(self, max_width: int = 120) -> str:
        """Status line such as ``"[1m 5s] > Task :app:lint"``."""
        return f"[{self.format_elapsed()}] {self.format_latest_line(max_width)}"


ProgressListener = Callable[[ExecutionProgress], None]


class ProgressTracker:
    """Accumulates progress for one run and notifies an optional listener.

    Example:
        tracker = ProgressTracker(listener=lambda p: status.update(p.format_status()))
        tracker.set_phase(RunPhase.ANALYZING)
        tracker.record_line("> Task :app:detekt")
    """

    def __init__(self, listener: ProgressListener | None = None) -> None:
        self.listener = listener
        self.reset()

    def reset(self) -> None:
        """Start tracking a new run; the listener is kept."""
        now = datetime.now(UTC)
        self._progress = ExecutionProgress(started_at=now, last_activity_at=now)

    def record_line(self, line: str) -> None:
        self._progress.lines_received += 1
        self._progress.bytes_received += len(line.encode("utf-8"))
        self._progress.latest_line = line
        self._progress.last_activity_at = datetime.now(UTC)
        self._notify()

    def set_phase(self, phase: RunPhase) -> None:
        if self._progress.phase is phase:
            return
        self._progress.phase = phase
        self._progress.last_activity_at = datetime.now(UTC)
        self._notify()

    def get_progress(self) -> ExecutionProgress:
        """Return a copy of the current progress."""
        return replace(self._progress)

    def _notify(self) -> None:
        if self.listener is None:
            return
        try:
            self.listener(self.get_progress())
        except Exception as e:
            _logger.warning("progress_listener_failed", error=str(e))


__all__ = ["ExecutionProgress", "ProgressListener", "ProgressTracker", "RunPhase"]
