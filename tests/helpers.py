"""Shared test helpers for staticguard tests."""

import asyncio
import os
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path

import pytest

from staticguard.backends.process_manager import LineCallback, StreamResult

posix_only = pytest.mark.skipif(
    os.name != "posix",
    reason="fake gradlew wrappers are POSIX shell scripts",
)


def write_gradlew(root: Path, body: str) -> Path:
    """Write an executable ``gradlew`` shell script into ``root``."""
    script = root / "gradlew"
    script.write_text(f"#!/bin/sh\n{body}\n", encoding="utf-8")
    script.chmod(0o755)
    return script


@dataclass
class FakeHandle:
    """Stand-in for ProcessHandle used with FakeRunner."""

    command: tuple[str, ...]
    working_dir: Path
    cancelled: bool = False
    released: asyncio.Event = field(default_factory=asyncio.Event)


class FakeRunner:
    """In-memory ProcessRunner replacement.

    Emits ``lines`` one per loop iteration. With ``block=True`` it then waits
    until cancelled, like a build tool that went silent.
    """

    def __init__(
        self,
        lines: Sequence[str] = (),
        *,
        block: bool = False,
        spawn_error: Exception | None = None,
        stream_error: Exception | None = None,
        returncode: int = 0,
    ) -> None:
        self.lines = list(lines)
        self.block = block
        self.spawn_error = spawn_error
        self.stream_error = stream_error
        self.returncode = returncode
        self.started_with: list[tuple[tuple[str, ...], Path]] = []
        self.cancel_calls = 0
        self.streaming = asyncio.Event()
        self.handle: FakeHandle | None = None

    async def start(self, command: Sequence[str], working_dir: Path) -> FakeHandle:
        self.started_with.append((tuple(command), working_dir))
        if self.spawn_error is not None:
            raise self.spawn_error
        self.handle = FakeHandle(command=tuple(command), working_dir=working_dir)
        return self.handle

    async def stream_lines(self, handle: FakeHandle, on_line: LineCallback) -> StreamResult:
        self.streaming.set()
        received: list[str] = []
        for line in self.lines:
            if handle.cancelled:
                break
            on_line(line)
            received.append(line)
            await asyncio.sleep(0)
        if self.stream_error is not None:
            raise self.stream_error
        if self.block and not handle.cancelled:
            await handle.released.wait()
        return StreamResult(
            output="".join(f"{line}\n" for line in received),
            cancelled=handle.cancelled,
            returncode=None if handle.cancelled else self.returncode,
            line_count=len(received),
            duration_seconds=0.01,
        )

    def cancel(self, handle: FakeHandle) -> None:
        self.cancel_calls += 1
        handle.cancelled = True
        handle.released.set()
