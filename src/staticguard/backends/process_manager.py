"""Subprocess lifecycle for the build tool: spawn, stream lines, cancel.

The build tool writes verdict markers to either stream, so stderr is merged
into stdout at spawn time and read as a single line-oriented stream.

Security Note: Uses asyncio.create_subprocess_exec(), which is shell-injection
safe - arguments are passed as a list, not interpolated into a shell command.

Example:

    runner = ProcessRunner()
    handle = await runner.start(["./gradlew", "staticAnalys"], project_root)
    result = await runner.stream_lines(handle, on_line=print)
    if not result.cancelled:
        verdict = classify_output(result.output)

Cancellation: ``cancel(handle)`` may be called from any thread. It flags the
handle and terminates the whole process group, which closes the pipe and
wakes a reader blocked on a silent process. ``stream_lines`` then returns
what was captured so far with ``cancelled=True``.
"""

from __future__ import annotations

import asyncio
import os
import signal
import threading
import time
from collections.abc import Callable, Iterator, Sequence
from dataclasses import dataclass, field
from pathlib import Path

from staticguard.core.errors import ProcessSpawnError, ProcessStreamError
from staticguard.core.logging import get_logger

_logger = get_logger("process_manager")

GRACEFUL_TERMINATION_TIMEOUT: float = 5.0  # Seconds between SIGTERM and SIGKILL
PROCESS_EXIT_TIMEOUT: float = 5.0  # Seconds to wait for exit after the stream closes
STREAM_LIMIT_BYTES: int = 1024 * 1024  # Longest single line accepted from the tool

LineCallback = Callable[[str], None]


def get_signal_name(sig_num: int) -> str:
    """Get human-readable signal name."""
    try:
        return signal.Signals(sig_num).name
    except ValueError:
        return f"signal {sig_num}"


class OutputBuffer:
    """Append-only sequence of output lines, kept in arrival order."""

    def __init__(self) -> None:
        self._lines: list[str] = []

    def append(self, line: str) -> None:
        self._lines.append(line)

    def __len__(self) -> int:
        return len(self._lines)

    def __iter__(self) -> Iterator[str]:
        return iter(self._lines)

    def render(self) -> str:
        """Join the lines into one string, each followed by ``\\n``."""
        return "".join(f"{line}\n" for line in self._lines)


@dataclass
class ProcessHandle:
    """A running build tool process.

    Owned exclusively by the run that started it; other components go through
    ProcessRunner rather than touching ``process`` directly.
    """

    process: asyncio.subprocess.Process
    command: tuple[str, ...]
    working_dir: Path
    loop: asyncio.AbstractEventLoop
    started_at: float = field(default_factory=time.monotonic)
    _cancel_event: threading.Event = field(default_factory=threading.Event)
    _kill_timer: asyncio.TimerHandle | None = None
    # Set once the process was reaped; the pid may be reused after that
    _released: bool = False

    @property
    def pid(self) -> int:
        return self.process.pid

    @property
    def cancel_requested(self) -> bool:
        return self._cancel_event.is_set()

    @property
    def finished(self) -> bool:
        return self.process.returncode is not None


@dataclass
class StreamResult:
    """Outcome of reading a process to completion or cancellation."""

    output: str
    cancelled: bool
    returncode: int | None
    line_count: int
    duration_seconds: float

    @property
    def exit_signal(self) -> int | None:
        """Signal number when the process was killed by a signal."""
        if self.returncode is not None and self.returncode < 0:
            return -self.returncode
        return None


def _strip_terminator(raw: bytes) -> str:
    line = raw.decode("utf-8", errors="replace")
    if line.endswith("\r\n"):
        return line[:-2]
    if line.endswith("\n"):
        return line[:-1]
    return line


class ProcessRunner:
    """Runs one build tool process at a time per handle.

    Features:
    - Merged stdout/stderr, read line by line
    - Per-line callback invoked before the line is buffered
    - Process group isolation (start_new_session=True) so cancellation
      reaches wrapper scripts and the JVMs they launch
    - Graceful then forced termination on cancel
    """

    def __init__(self, graceful_termination_timeout: float = GRACEFUL_TERMINATION_TIMEOUT) -> None:
        self.graceful_termination_timeout = graceful_termination_timeout

    async def start(self, command: Sequence[str], working_dir: Path) -> ProcessHandle:
        """Spawn ``command`` in ``working_dir`` with the inherited environment.

        Raises:
            ValueError: If ``command`` is empty.
            ProcessSpawnError: If the process cannot be started.
        """
        if not command:
            raise ValueError("command requires at least one argument")

        _logger.debug(
            "process.starting",
            command=command[0],
            args_count=len(command) - 1,
            cwd=str(working_dir),
        )

        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT,
                cwd=working_dir,
                start_new_session=True,
                limit=STREAM_LIMIT_BYTES,
            )
        except OSError as e:
            _logger.error(
                "process.spawn_failed",
                command=" ".join(command),
                cwd=str(working_dir),
                error=str(e),
            )
            raise ProcessSpawnError(
                f"Cannot run '{' '.join(command)}' in {working_dir}: {e}"
            ) from e

        _logger.info("process.started", pid=process.pid, command=" ".join(command))
        return ProcessHandle(
            process=process,
            command=tuple(command),
            working_dir=working_dir,
            loop=asyncio.get_running_loop(),
        )

    async def stream_lines(self, handle: ProcessHandle, on_line: LineCallback) -> StreamResult:
        """Read merged output line by line until EOF or cancellation.

        Each line has its terminator stripped and is passed to ``on_line``
        before it is appended to the buffer.

        Returns:
            StreamResult whose ``output`` holds every line read so far.

        Raises:
            ProcessStreamError: If reading the stream fails.
        """
        buffer = OutputBuffer()
        stream = handle.process.stdout
        if stream is None:
            raise ProcessStreamError("process was started without an output pipe")

        try:
            while not handle.cancel_requested:
                raw = await stream.readline()
                if not raw or handle.cancel_requested:
                    break
                line = _strip_terminator(raw)
                on_line(line)
                buffer.append(line)
        except asyncio.CancelledError:
            # The worker task itself was cancelled: never leave the tool running
            handle._cancel_event.set()
            await self._terminate(handle)
            raise
        except (OSError, ValueError) as e:
            await self._terminate(handle)
            _logger.error("process.stream_failed", pid=handle.pid, error=str(e))
            raise ProcessStreamError(f"Failed reading build tool output: {e}") from e
        except Exception:
            await self._terminate(handle)
            raise

        cancelled = handle.cancel_requested
        if cancelled:
            await self._terminate(handle)
        else:
            await self._wait_for_exit(handle)
            self._release(handle)

        duration = time.monotonic() - handle.started_at
        result = StreamResult(
            output=buffer.render(),
            cancelled=cancelled,
            returncode=handle.process.returncode,
            line_count=len(buffer),
            duration_seconds=duration,
        )
        _logger.debug(
            "process.completed",
            pid=handle.pid,
            returncode=result.returncode,
            exit_signal=get_signal_name(result.exit_signal) if result.exit_signal else None,
            cancelled=cancelled,
            lines=result.line_count,
            duration_seconds=round(duration, 3),
        )
        return result

    def cancel(self, handle: ProcessHandle) -> None:
        """Request termination of ``handle``'s process. Safe from any thread.

        Best-effort: sends SIGTERM to the process group, then SIGKILL after
        the grace period if it is still alive.
        """
        if handle.cancel_requested:
            return
        handle._cancel_event.set()
        _logger.info("process.cancel_requested", pid=handle.pid)

        try:
            on_loop_thread = asyncio.get_running_loop() is handle.loop
        except RuntimeError:
            on_loop_thread = False

        if on_loop_thread:
            self._begin_termination(handle)
        elif not handle.loop.is_closed():
            handle.loop.call_soon_threadsafe(self._begin_termination, handle)

    def _begin_termination(self, handle: ProcessHandle) -> None:
        if handle._released:
            return
        self._signal_group(handle, force=False)
        if handle._kill_timer is None:
            handle._kill_timer = handle.loop.call_later(
                self.graceful_termination_timeout,
                self._signal_group,
                handle,
                True,
            )

    async def _terminate(self, handle: ProcessHandle) -> None:
        """Terminate gracefully, force kill after the grace period, then reap."""
        self._begin_termination(handle)
        if not handle.finished:
            try:
                await asyncio.wait_for(
                    handle.process.wait(),
                    timeout=self.graceful_termination_timeout + PROCESS_EXIT_TIMEOUT,
                )
            except TimeoutError:
                _logger.warning("process.unreaped", pid=handle.pid)
                return
        self._release(handle)

    def _release(self, handle: ProcessHandle) -> None:
        """Drop pending signals once the process has been reaped."""
        if handle._kill_timer is not None:
            handle._kill_timer.cancel()
            handle._kill_timer = None
        handle._released = True

    async def _wait_for_exit(self, handle: ProcessHandle) -> None:
        """Wait for exit after EOF; a process that lingers is killed."""
        try:
            await asyncio.wait_for(handle.process.wait(), timeout=PROCESS_EXIT_TIMEOUT)
        except TimeoutError:
            _logger.warning(
                "process.exit_timeout",
                pid=handle.pid,
                message="Process did not exit after its output closed",
                timeout_seconds=PROCESS_EXIT_TIMEOUT,
            )
            self._signal_group(handle, force=True)
            await handle.process.wait()

    def _signal_group(self, handle: ProcessHandle, force: bool) -> None:
        """Send SIGTERM (or SIGKILL when ``force``) to the process group.

        The group is signalled even after the leader exited, since wrapper
        scripts may leave children holding the output pipe.
        """
        try:
            if os.name == "posix":
                # start_new_session made the child its own group leader
                os.killpg(handle.pid, signal.SIGKILL if force else signal.SIGTERM)
            elif force:
                handle.process.kill()
            else:
                handle.process.terminate()
        except ProcessLookupError:
            pass  # Already gone
        except OSError as e:
            _logger.warning(
                "process.signal_failed",
                pid=handle.pid,
                force=force,
                error=str(e),
            )


__all__ = [
    "GRACEFUL_TERMINATION_TIMEOUT",
    "PROCESS_EXIT_TIMEOUT",
    "LineCallback",
    "OutputBuffer",
    "ProcessHandle",
    "ProcessRunner",
    "StreamResult",
    "get_signal_name",
]
