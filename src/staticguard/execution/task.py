"""Analysis run orchestration.

AnalysisTask owns at most one AnalysisRun at a time. A run spawns the build
tool through ProcessRunner, forwards each output line to the progress sink,
classifies the full output when the process exits and hands the verdict to a
ResultPresenter. Cancelled runs deliver nothing.

State machine:

    IDLE -> RUNNING -> COMPLETED   (process exited, output classified)
                    -> CANCELLED   (cancel() or worker task cancelled)
                    -> FAILED      (spawn/read failure, TransportError delivered)

Example:

    task = AnalysisTask(presenter=PresenterManager([ConsolePresenter()]))
    task.start(Path("/work/app"))
    ...
    task.cancel()          # from any thread
    await task.wait()
"""

from __future__ import annotations

import asyncio
import threading
import time
import uuid
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from pathlib import Path
from typing import Any

from staticguard.analysis.classifier import classify_output
from staticguard.analysis.result import AnalysisResult, TransportError
from staticguard.backends.gradle import analysis_command
from staticguard.backends.process_manager import ProcessHandle, ProcessRunner
from staticguard.core.errors import AnalysisAlreadyRunningError, ProcessTransportError
from staticguard.core.logging import ExecutionContext, get_logger, with_context
from staticguard.execution.progress import ProgressListener, ProgressTracker, RunPhase
from staticguard.notifications.base import ResultPresenter

_logger = get_logger("analysis")

CommandFactory = Callable[[], Sequence[str]]
LineListener = Callable[[str], None]


class TaskState(str, Enum):
    """Lifecycle state of an AnalysisTask (and of each run)."""

    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"


@dataclass
class AnalysisRun:
    """One invocation of the analysis task.

    The process handle belongs to this run alone while it is active.
    """

    project_root: Path
    command: tuple[str, ...]
    run_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    status: TaskState = TaskState.RUNNING
    handle: ProcessHandle | None = None
    output: str = ""
    line_count: int = 0
    result: AnalysisResult | None = None
    started_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    _started_monotonic: float = field(default_factory=time.monotonic, repr=False)
    duration_seconds: float | None = None
    _cancel_event: threading.Event = field(default_factory=threading.Event, repr=False)

    @property
    def cancel_requested(self) -> bool:
        return self._cancel_event.is_set()

    @property
    def is_terminal(self) -> bool:
        return self.status in (TaskState.COMPLETED, TaskState.CANCELLED, TaskState.FAILED)

    def request_cancel(self) -> None:
        self._cancel_event.set()

    def mark(self, status: TaskState, result: AnalysisResult | None = None) -> None:
        """Move to a terminal status and record the duration."""
        self.status = status
        self.result = result
        self.duration_seconds = time.monotonic() - self._started_monotonic


class AnalysisTask:
    """Runs the static analysis task, one run at a time.

    ``start`` and ``cancel`` are the trigger boundary; ``is_running`` is safe
    to poll from any thread. Results go to the injected presenter exactly once
    per run that is not cancelled.
    """

    def __init__(
        self,
        presenter: ResultPresenter | None = None,
        on_progress: LineListener | None = None,
        progress_listener: ProgressListener | None = None,
        runner: ProcessRunner | None = None,
        command_factory: CommandFactory = analysis_command,
    ) -> None:
        """Initialize the task.

        Args:
            presenter: Receives each verdict. Usually a PresenterManager.
            on_progress: Receives every raw output line in arrival order.
            progress_listener: Receives ExecutionProgress snapshots.
            runner: Process backend; a fresh ProcessRunner by default.
            command_factory: Builds the command line for a run.
        """
        self._presenter = presenter
        self._on_progress = on_progress
        self._runner = runner or ProcessRunner()
        self._command_factory = command_factory
        self._progress = ProgressTracker(listener=progress_listener)

        self._running = threading.Event()
        self._start_lock = threading.Lock()
        self._state = TaskState.IDLE
        self._current_run: AnalysisRun | None = None
        self._last_run: AnalysisRun | None = None
        self._worker: asyncio.Task[AnalysisResult | None] | None = None

    # -- trigger boundary --

    def start(self, project_root: Path | str) -> asyncio.Task[AnalysisResult | None]:
        """Schedule a new run on the running event loop and return its task.

        Raises:
            AnalysisAlreadyRunningError: If a run is still active. The active
                run is left untouched.
            RuntimeError: If no event loop is running.
        """
        loop = asyncio.get_running_loop()
        with self._start_lock:
            if self._running.is_set():
                active = self._current_run
                raise AnalysisAlreadyRunningError(
                    f"Analysis already running (run {active.run_id if active else 'unknown'})"
                )
            run = AnalysisRun(
                project_root=Path(project_root),
                command=tuple(self._command_factory()),
            )
            self._current_run = run
            self._state = TaskState.RUNNING
            self._progress.reset()
            self._running.set()

        worker = loop.create_task(self._execute(run), name=f"staticguard-run-{run.run_id[:8]}")
        worker.add_done_callback(self._on_worker_done)
        self._worker = worker
        return worker

    def cancel(self) -> bool:
        """Cancel the active run. Safe from any thread.

        Returns:
            False when there is nothing to cancel.
        """
        run = self._current_run
        if run is None or not self._running.is_set() or run.is_terminal:
            return False
        run.request_cancel()
        # The worker re-checks the flag after publishing the handle, so a
        # cancel landing before spawn completes is not lost.
        handle = run.handle
        if handle is not None:
            self._runner.cancel(handle)
        _logger.info("analysis.cancel_requested", run_id=run.run_id)
        return True

    def is_running(self) -> bool:
        return self._running.is_set()

    # -- accessors --

    @property
    def state(self) -> TaskState:
        return self._state

    @property
    def current_run(self) -> AnalysisRun | None:
        """The active run, or None when idle."""
        return self._current_run

    @property
    def last_run(self) -> AnalysisRun | None:
        """The most recently finished run."""
        return self._last_run

    @property
    def last_result(self) -> AnalysisResult | None:
        return self._last_run.result if self._last_run else None

    @property
    def progress(self) -> ProgressTracker:
        return self._progress

    async def wait(self) -> AnalysisResult | None:
        """Wait for the active run (if any) and return its result.

        Returns None for a cancelled run.
        """
        worker = self._worker
        if worker is None:
            return self.last_result
        await asyncio.wait({worker})
        if worker.cancelled():
            return None
        return worker.result()

    # -- worker --

    async def _execute(self, run: AnalysisRun) -> AnalysisResult | None:
        ctx = ExecutionContext(
            run_id=run.run_id,
            project_root=str(run.project_root),
            component="analysis",
        )
        with with_context(ctx):
            try:
                return await self._run(run)
            finally:
                self._finalize(run)

    async def _run(self, run: AnalysisRun) -> AnalysisResult | None:
        _logger.info("analysis.started", command=" ".join(run.command))
        try:
            handle = await self._runner.start(run.command, run.project_root)
            run.handle = handle
            if run.cancel_requested:
                self._runner.cancel(handle)
            self._progress.set_phase(RunPhase.ANALYZING)
            stream = await self._runner.stream_lines(handle, self._handle_line)
        except asyncio.CancelledError:
            self._transition(run, TaskState.CANCELLED)
            _logger.info("analysis.cancelled", reason="worker_cancelled")
            raise
        except ProcessTransportError as e:
            return await self._fail(run, e)
        except Exception as e:
            _logger.exception("analysis.unexpected_error", error=str(e))
            return await self._fail(run, e)

        run.output = stream.output
        run.line_count = stream.line_count

        # A cancel that raced with normal exit still suppresses delivery
        if stream.cancelled or run.cancel_requested:
            self._transition(run, TaskState.CANCELLED)
            _logger.info("analysis.cancelled", lines=stream.line_count)
            return None

        self._progress.set_phase(RunPhase.CLASSIFYING)
        result = classify_output(stream.output)
        self._transition(run, TaskState.COMPLETED, result)
        _logger.info(
            "analysis.completed",
            result_kind=result.kind.value,
            returncode=stream.returncode,
            lines=stream.line_count,
            duration_seconds=round(stream.duration_seconds, 3),
        )
        await self._deliver(result)
        return result

    async def _fail(self, run: AnalysisRun, error: Exception) -> AnalysisResult:
        result = TransportError(f"Exception: {error}")
        self._transition(run, TaskState.FAILED, result)
        _logger.error("analysis.failed", error=str(error), error_type=type(error).__name__)
        await self._deliver(result)
        return result

    def _transition(
        self,
        run: AnalysisRun,
        status: TaskState,
        result: AnalysisResult | None = None,
    ) -> None:
        run.mark(status, result)
        self._state = status
        self._progress.set_phase(RunPhase.FINISHED)

    def _finalize(self, run: AnalysisRun) -> None:
        if not run.is_terminal:
            # Only reachable if the worker died outside the handled paths
            self._transition(run, TaskState.FAILED)
        run.handle = None
        self._last_run = run
        self._current_run = None
        # Cleared last: observers polling is_running() see the terminal state
        self._running.clear()

    def _handle_line(self, line: str) -> None:
        try:
            self._progress.record_line(line)
            if self._on_progress is not None:
                self._on_progress(line)
        except Exception as e:
            _logger.warning("progress_callback_failed", error=str(e))

    async def _deliver(self, result: AnalysisResult) -> None:
        if self._presenter is None:
            return
        try:
            delivered = await self._presenter.present(result)
        except Exception as e:
            _logger.warning("result_delivery_failed", result_kind=result.kind.value, error=str(e))
            return
        if not delivered:
            _logger.warning("result_not_presented", result_kind=result.kind.value)

    def _on_worker_done(self, task: asyncio.Task[Any]) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            _logger.error("analysis.worker_died", error=str(exc), task_name=task.get_name())


__all__ = ["AnalysisRun", "AnalysisTask", "CommandFactory", "TaskState"]
