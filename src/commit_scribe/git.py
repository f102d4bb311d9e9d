"""Git collaborators: staged diff, recent history, and staged file content."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from commit_scribe.cancellation import CancellationToken

logger = logging.getLogger(__name__)

GIT_EXECUTABLE = "git"
MAX_FILE_CONTENT_BYTES = 512 * 1024

_READ_CHUNK_BYTES = 64 * 1024


class GitCommandError(RuntimeError):
    """A git command could not be started or exited with a non-zero code."""

    def __init__(self, message: str, *, exit_code: int | None = None) -> None:
        super().__init__(message)
        self.exit_code = exit_code


async def run_git_command(args: list[str], cwd: Path | str) -> str:
    """Run ``git <args>`` in ``cwd`` and return stdout, raising on failure."""

    try:
        process = await asyncio.create_subprocess_exec(
            GIT_EXECUTABLE,
            *args,
            cwd=str(cwd),
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as error:
        raise GitCommandError(f"Failed to run git: {error}") from error

    stdout, stderr = await process.communicate()
    if process.returncode != 0:
        message = stderr.decode("utf-8", errors="replace").strip()
        raise GitCommandError(
            message or f"git {args[0]} exited with code {process.returncode}",
            exit_code=process.returncode,
        )
    return stdout.decode("utf-8", errors="replace")


async def resolve_repository_root(path: Path | str) -> Path:
    """Return the top-level directory of the repository containing ``path``."""

    output = await run_git_command(["rev-parse", "--show-toplevel"], path)
    return Path(output.strip())


async def get_staged_diff(cwd: Path | str) -> str:
    return await run_git_command(["diff", "--staged"], cwd)


async def get_recent_commit_log(cwd: Path | str, count: int) -> str:
    return await run_git_command(["log", "--oneline", f"-{count}"], cwd)


async def get_staged_file_content(
    file_path: str,
    cwd: Path | str,
    token: CancellationToken | None = None,
) -> str | None:
    """Return the staged (index) version of ``file_path``.

    Never raises: any failure, oversized or non-UTF-8 content, and
    cancellation all yield ``None``. A running ``git show`` is terminated when
    the token fires.
    """

    if token is not None and token.is_cancellation_requested:
        return None
    try:
        process = await asyncio.create_subprocess_exec(
            GIT_EXECUTABLE,
            "show",
            f":{file_path}",
            cwd=str(cwd),
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.DEVNULL,
        )
    except OSError as error:
        logger.debug("git show failed to start for %s: %s", file_path, error)
        return None

    registration = (
        token.on_cancellation_requested(lambda: _terminate(process))
        if token is not None
        else None
    )
    try:
        content, oversized = await _read_capped(process, MAX_FILE_CONTENT_BYTES)
        exit_code = await process.wait()
    finally:
        if registration is not None:
            registration.dispose()

    if token is not None and token.is_cancellation_requested:
        return None
    if oversized:
        logger.debug(
            "Staged content of %s exceeds %d bytes; skipped",
            file_path,
            MAX_FILE_CONTENT_BYTES,
        )
        return None
    if exit_code != 0:
        logger.debug("git show exited with code %d for %s", exit_code, file_path)
        return None
    try:
        return content.decode("utf-8")
    except UnicodeDecodeError:
        logger.debug("Staged content of %s is not UTF-8 text; skipped", file_path)
        return None


async def _read_capped(
    process: asyncio.subprocess.Process,
    limit: int,
) -> tuple[bytes, bool]:
    if process.stdout is None:
        return b"", False
    chunks: list[bytes] = []
    total = 0
    while True:
        chunk = await process.stdout.read(_READ_CHUNK_BYTES)
        if not chunk:
            return b"".join(chunks), False
        total += len(chunk)
        if total > limit:
            _terminate(process)
            # Drain so the child is not blocked on a full pipe.
            while await process.stdout.read(_READ_CHUNK_BYTES):
                pass
            return b"", True
        chunks.append(chunk)


def _terminate(process: asyncio.subprocess.Process) -> None:
    if process.returncode is not None:
        return
    try:
        process.terminate()
    except ProcessLookupError:
        return
