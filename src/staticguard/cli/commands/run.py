"""Run command for the staticguard CLI.

``staticguard run`` executes the static analysis task in a project, shows a
spinner with the latest output line while it runs and renders the verdict.
Ctrl-C (or ``--timeout``) cancels the run and terminates the build tool.
"""

from __future__ import annotations

import asyncio
import signal
import sys
from pathlib import Path

import typer
from rich.progress import Progress, TaskID
from rich.text import Text

from staticguard.core.config import StaticGuardConfig
from staticguard.core.logging import get_logger
from staticguard.execution.progress import ExecutionProgress
from staticguard.execution.task import AnalysisTask, TaskState
from staticguard.notifications.base import PresenterManager, ResultPresenter
from staticguard.notifications.desktop import DesktopPresenter, is_desktop_notification_available
from staticguard.notifications.factory import create_presenters_from_config

from ..helpers import apply_config_logging, is_quiet, is_verbose, load_config
from ..output import (
    EXIT_CANCELLED,
    console,
    create_run_progress,
    exit_code_for,
    format_duration,
)

_logger = get_logger("cli.run")


def run(
    project_root: Path = typer.Argument(
        Path("."),
        help="Project directory containing the Gradle wrapper",
        exists=True,
        file_okay=False,
        dir_okay=True,
        resolve_path=True,
    ),
    config_file: Path | None = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to YAML configuration file",
        exists=True,
        dir_okay=False,
        readable=True,
    ),
    timeout: float | None = typer.Option(
        None,
        "--timeout",
        "-t",
        min=0.1,
        help="Cancel the run after this many seconds",
    ),
    notify: bool | None = typer.Option(
        None,
        "--notify/--no-notify",
        help="Force desktop notifications on or off (default: from config)",
    ),
    show_progress: bool | None = typer.Option(
        None,
        "--progress/--no-progress",
        help="Show a spinner with the latest output line (default: from config)",
    ),
) -> None:
    """Run the static analysis task and report the verdict."""
    config = load_config(config_file, console)
    if config_file is not None:
        apply_config_logging(config.logging)

    presenters = _build_presenters(config, notify)
    if show_progress is None:
        show_progress = config.progress.show

    try:
        exit_code = asyncio.run(
            _run_analysis(
                project_root,
                presenters,
                show_progress=show_progress and not is_quiet(),
                max_line_width=config.progress.max_line_width,
                timeout=timeout,
            )
        )
    except KeyboardInterrupt:
        # Platforms without loop signal handlers: asyncio.run already
        # cancelled the worker, which terminated the build tool.
        if not is_quiet():
            console.print("[yellow]Analysis cancelled[/yellow]")
        exit_code = EXIT_CANCELLED

    raise typer.Exit(exit_code)


def _build_presenters(config: StaticGuardConfig, notify: bool | None) -> list[ResultPresenter]:
    presenters = create_presenters_from_config(config.notifications, console=console)
    if notify is False:
        presenters = [p for p in presenters if not isinstance(p, DesktopPresenter)]
    elif notify is True and not any(isinstance(p, DesktopPresenter) for p in presenters):
        presenters.append(DesktopPresenter())
    if notify is True and not is_desktop_notification_available():
        console.print("[yellow]Desktop notifications unavailable: install plyer[/yellow]")
    return presenters


async def _run_analysis(
    project_root: Path,
    presenters: list[ResultPresenter],
    *,
    show_progress: bool,
    max_line_width: int,
    timeout: float | None,
) -> int:
    """Run one analysis with progress display and return the exit code."""
    manager = PresenterManager(presenters)
    progress: Progress | None = create_run_progress(console) if show_progress else None
    progress_task_id: TaskID | None = None

    def update_progress(snapshot: ExecutionProgress) -> None:
        if progress is not None and progress_task_id is not None:
            progress.update(
                progress_task_id, description=snapshot.format_latest_line(max_line_width)
            )

    def echo_line(line: str) -> None:
        console.print(Text(line, style="dim"))

    task = AnalysisTask(
        presenter=manager,
        on_progress=echo_line if is_verbose() else None,
        progress_listener=update_progress,
    )

    loop = asyncio.get_running_loop()
    installed = _install_cancel_handlers(loop, task)
    timeout_handle: asyncio.TimerHandle | None = None
    if timeout is not None:
        timeout_handle = loop.call_later(timeout, _cancel_on_timeout, task, timeout)

    try:
        if progress is not None:
            progress.start()
            progress_task_id = progress.add_task("starting", total=None)
        task.start(project_root)
        result = await task.wait()
    finally:
        if progress is not None:
            progress.stop()
        if timeout_handle is not None:
            timeout_handle.cancel()
        _remove_cancel_handlers(loop, installed)
        await manager.close()

    last_run = task.last_run
    if task.state is TaskState.CANCELLED:
        if not is_quiet():
            console.print("[yellow]Analysis cancelled[/yellow]")
        return EXIT_CANCELLED

    if is_verbose() and last_run is not None:
        console.print(
            f"[dim]{last_run.line_count} lines in "
            f"{format_duration(last_run.duration_seconds)}[/dim]"
        )
    return exit_code_for(result)


def _cancel_on_timeout(task: AnalysisTask, timeout: float) -> None:
    if task.cancel():
        _logger.warning("analysis.timeout", timeout_seconds=timeout)
        if not is_quiet():
            console.print(
                f"[yellow]Timed out after {format_duration(timeout)}, cancelling...[/yellow]"
            )


def _install_cancel_handlers(
    loop: asyncio.AbstractEventLoop, task: AnalysisTask
) -> list[signal.Signals]:
    """Route SIGINT/SIGTERM to ``task.cancel()``.

    On Windows we rely on KeyboardInterrupt instead.
    """
    installed: list[signal.Signals] = []
    if sys.platform == "win32":
        return installed

    def _on_signal(sig: signal.Signals) -> None:
        if task.cancel() and not is_quiet():
            console.print(f"\n[yellow]{sig.name} received, cancelling analysis...[/yellow]")

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, _on_signal, sig)
            installed.append(sig)
        except (RuntimeError, NotImplementedError, ValueError):
            # Not in the main thread, or unsupported by the loop
            break
    return installed


def _remove_cancel_handlers(
    loop: asyncio.AbstractEventLoop, installed: list[signal.Signals]
) -> None:
    for sig in installed:
        loop.remove_signal_handler(sig)
