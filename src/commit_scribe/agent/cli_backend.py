"""Async subprocess runner for the Claude CLI agent."""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Sequence
from pathlib import Path

from commit_scribe.agent.base import AgentOptions
from commit_scribe.cancellation import CancellationToken
from commit_scribe.notifications import Notifier

logger = logging.getLogger(__name__)

DEFAULT_AGENT_COMMAND: tuple[str, ...] = ("claude",)
CLI_NOT_FOUND_MESSAGE = (
    '"claude" CLI not found. Install Claude Code and ensure it is in your PATH.'
)

_READ_CHUNK_BYTES = 64 * 1024
_REAP_TIMEOUT_SECONDS = 5.0


class ClaudeCliInvoker:
    """Run ``claude -p <instruction>`` with the context piped through stdin.

    Every call resolves to the agent's stdout, or ``None`` when the call was
    cancelled or failed. Failures are surfaced through the notifier at most
    once per call.
    """

    def __init__(
        self,
        *,
        notifier: Notifier,
        command: Sequence[str] = DEFAULT_AGENT_COMMAND,
    ) -> None:
        if not command:
            raise ValueError("Agent command must not be empty.")
        self._notifier = notifier
        self._command = tuple(command)

    @property
    def command(self) -> tuple[str, ...]:
        return self._command

    def build_run_args(self, instruction: str, model: str) -> list[str]:
        return [*self._command, "-p", instruction, "--model", model]

    async def invoke(
        self,
        instruction: str,
        context: str,
        cwd: Path | str,
        token: CancellationToken,
        options: AgentOptions | None = None,
    ) -> str | None:
        options = options or AgentOptions()
        if token.is_cancellation_requested:
            return None

        run_args = self.build_run_args(instruction, options.model)
        try:
            process = await asyncio.create_subprocess_exec(
                *run_args,
                cwd=str(cwd),
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=os.environ.copy(),
            )
        except FileNotFoundError:
            logger.debug("Agent executable not found: %s", self._command[0])
            self._notifier.error(CLI_NOT_FOUND_MESSAGE)
            return None
        except OSError as error:
            logger.debug("Agent failed to start: %s", error)
            self._report(f"Failed to start Claude CLI: {error}", silent=options.silent)
            return None

        loop = asyncio.get_running_loop()
        settled: asyncio.Future[str | None] = loop.create_future()
        terminated = False

        def _settle(value: str | None) -> None:
            if not settled.done():
                settled.set_result(value)

        def _terminate() -> None:
            nonlocal terminated
            if terminated:
                return
            terminated = True
            _send_terminate(process)

        def _on_cancel() -> None:
            logger.debug("Cancellation requested; terminating agent pid=%s", process.pid)
            _terminate()
            _settle(None)

        registration = token.on_cancellation_requested(_on_cancel)
        exchange = asyncio.ensure_future(_exchange(process, context))
        try:
            await asyncio.wait({settled, exchange}, return_when=asyncio.FIRST_COMPLETED)
            if not settled.done():
                _settle(self._resolve(exchange, token, options))
        finally:
            registration.dispose()
            if not exchange.done():
                _terminate()
                await _reap(exchange)
        return settled.result()

    def _resolve(
        self,
        exchange: asyncio.Future[tuple[int, str, str]],
        token: CancellationToken,
        options: AgentOptions,
    ) -> str | None:
        try:
            exit_code, stdout, stderr = exchange.result()
        except OSError as error:
            logger.debug("Agent I/O failed: %s", error)
            if not token.is_cancellation_requested:
                self._report(f"Claude CLI I/O failed: {error}", silent=options.silent)
            return None

        if token.is_cancellation_requested:
            return None
        if exit_code != 0:
            message = stderr.strip() or f"Process exited with code {exit_code}"
            logger.debug("Agent exited with code %d: %s", exit_code, message)
            self._report(message, silent=options.silent)
            return None
        return stdout

    def _report(self, message: str, *, silent: bool) -> None:
        if not silent:
            self._notifier.error(message)


async def _exchange(
    process: asyncio.subprocess.Process,
    context: str,
) -> tuple[int, str, str]:
    stdout_chunks: list[bytes] = []
    stderr_chunks: list[bytes] = []
    await asyncio.gather(
        _write_stdin(process.stdin, context),
        _drain(process.stdout, stdout_chunks),
        _drain(process.stderr, stderr_chunks),
    )
    exit_code = await process.wait()
    return exit_code, _decode(stdout_chunks), _decode(stderr_chunks)


async def _write_stdin(stdin: asyncio.StreamWriter | None, context: str) -> None:
    if stdin is None:
        return
    try:
        stdin.write(context.encode("utf-8"))
        await stdin.drain()
    except (BrokenPipeError, ConnectionResetError):
        logger.debug("Agent closed stdin before the context was fully written")
    finally:
        stdin.close()


async def _drain(stream: asyncio.StreamReader | None, chunks: list[bytes]) -> None:
    if stream is None:
        return
    while True:
        chunk = await stream.read(_READ_CHUNK_BYTES)
        if not chunk:
            return
        chunks.append(chunk)


def _decode(chunks: list[bytes]) -> str:
    return b"".join(chunks).decode("utf-8", errors="replace")


def _send_terminate(process: asyncio.subprocess.Process) -> None:
    if process.returncode is not None:
        return
    try:
        process.terminate()
    except ProcessLookupError:
        return


async def _reap(exchange: asyncio.Future[tuple[int, str, str]]) -> None:
    done, _ = await asyncio.wait({exchange}, timeout=_REAP_TIMEOUT_SECONDS)
    if exchange in done:
        if not exchange.cancelled() and exchange.exception() is not None:
            logger.debug("Agent exchange ended with %r after termination", exchange.exception())
        return
    logger.warning("Agent did not exit within %.0fs of SIGTERM", _REAP_TIMEOUT_SECONDS)
    exchange.cancel()
