"""Test doubles shared across test modules."""

from __future__ import annotations

import asyncio
import subprocess
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from commit_scribe.agent.base import AgentOptions
from commit_scribe.cancellation import CancellationToken
from commit_scribe.notifications import ProgressEvent


class RecordingNotifier:
    """Notifier that keeps every message per level."""

    def __init__(self) -> None:
        self.errors: list[str] = []
        self.warnings: list[str] = []
        self.infos: list[str] = []

    def error(self, message: str) -> None:
        self.errors.append(message)

    def warning(self, message: str) -> None:
        self.warnings.append(message)

    def info(self, message: str) -> None:
        self.infos.append(message)


class RecordingProgress:
    """Progress sink that keeps every event."""

    def __init__(self) -> None:
        self.events: list[ProgressEvent] = []

    def report(self, event: ProgressEvent) -> None:
        self.events.append(event)

    @property
    def messages(self) -> list[str]:
        return [event.message for event in self.events if event.message]


@dataclass(slots=True)
class InvokeCall:
    instruction: str
    context: str
    cwd: Path | str
    options: AgentOptions


@dataclass
class ScriptedInvoker:
    """Agent invoker double; ``respond`` decides each call's answer."""

    respond: Callable[[InvokeCall, CancellationToken], str | None]
    calls: list[InvokeCall] = field(default_factory=list)

    async def invoke(
        self,
        instruction: str,
        context: str,
        cwd: Path | str,
        token: CancellationToken,
        options: AgentOptions | None = None,
    ) -> str | None:
        call = InvokeCall(instruction, context, cwd, options or AgentOptions())
        self.calls.append(call)
        await asyncio.sleep(0)
        return self.respond(call, token)

    @property
    def analysis_calls(self) -> list[InvokeCall]:
        return [call for call in self.calls if call.options.silent]

    @property
    def loud_calls(self) -> list[InvokeCall]:
        return [call for call in self.calls if not call.options.silent]


def default_response(call: InvokeCall, token: CancellationToken) -> str | None:
    del token
    if call.options.silent:
        first_line = call.context.splitlines()[0]
        return f"  analysis for {first_line}  \n"
    return "feat: synthesized message"


class FakeStdin:
    def __init__(self) -> None:
        self.written: list[bytes] = []
        self.closed = False

    def write(self, data: bytes) -> None:
        self.written.append(data)

    async def drain(self) -> None:
        await asyncio.sleep(0)

    def close(self) -> None:
        self.closed = True


class FakeProcess:
    """In-memory stand-in for ``asyncio.subprocess.Process``."""

    def __init__(self, pid: int) -> None:
        self.pid = pid
        self.returncode: int | None = None
        self.stdin = FakeStdin()
        self.stdout = asyncio.StreamReader()
        self.stderr = asyncio.StreamReader()
        self.terminate_calls = 0
        self._exited = asyncio.Event()

    def emit_stdout(self, text: str) -> None:
        self.stdout.feed_data(text.encode("utf-8"))

    def emit_stderr(self, text: str) -> None:
        self.stderr.feed_data(text.encode("utf-8"))

    def exit(self, code: int) -> None:
        if self.returncode is not None:
            return
        self.returncode = code
        self.stdout.feed_eof()
        self.stderr.feed_eof()
        self._exited.set()

    async def wait(self) -> int:
        await self._exited.wait()
        assert self.returncode is not None
        return self.returncode

    def terminate(self) -> None:
        self.terminate_calls += 1
        self.exit(-15)


@dataclass(slots=True)
class ProcessScript:
    stdout: tuple[str, ...] = ()
    stderr: str = ""
    exit_code: int = 0


class FakeLauncher:
    """Replacement for ``asyncio.create_subprocess_exec``.

    With ``script`` set, each process plays it immediately; otherwise the
    process stays running until the test drives it.
    """

    def __init__(self) -> None:
        self.calls: list[tuple[tuple[str, ...], dict[str, object]]] = []
        self.processes: list[FakeProcess] = []
        self.script: ProcessScript | None = None
        self.error: OSError | None = None

    async def __call__(self, *args: str, **kwargs: object) -> FakeProcess:
        self.calls.append((args, kwargs))
        if self.error is not None:
            raise self.error
        process = FakeProcess(pid=1000 + len(self.processes))
        self.processes.append(process)
        if self.script is not None:
            for chunk in self.script.stdout:
                process.emit_stdout(chunk)
            if self.script.stderr:
                process.emit_stderr(self.script.stderr)
            process.exit(self.script.exit_code)
        return process

    async def wait_for_process(self, index: int = 0) -> FakeProcess:
        for _ in range(100):
            if len(self.processes) > index:
                return self.processes[index]
            await asyncio.sleep(0)
        raise AssertionError("agent process was never launched")


def run_git(cwd: Path, *args: str) -> str:
    completed = subprocess.run(  # noqa: S603
        ["git", *args],  # noqa: S607
        cwd=cwd,
        check=True,
        capture_output=True,
        text=True,
    )
    return completed.stdout

