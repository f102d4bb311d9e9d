"""Top-level generation: pre-flight checks, path selection, and fallback."""

from __future__ import annotations

import asyncio
import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from commit_scribe.agent.base import AgentInvoker, AgentOptions
from commit_scribe.cancellation import CancellationToken
from commit_scribe.config import Settings
from commit_scribe.diff_parser import FileDiff, FileStatus, parse_unified_diff
from commit_scribe.git import (
    GitCommandError,
    get_recent_commit_log,
    get_staged_diff,
    get_staged_file_content,
)
from commit_scribe.notifications import Notifier, ProgressEvent, ProgressSink
from commit_scribe.pipeline import (
    Cancelled,
    Failed,
    PipelineResult,
    Success,
    map_reduce_generate,
)
from commit_scribe.prompts import (
    FileContext,
    build_single_call_context,
    build_single_call_instruction,
)

logger = logging.getLogger(__name__)

FALLBACK_MESSAGE = "Falling back to single-call generation..."
NO_STAGED_CHANGES_MESSAGE = "No staged changes found. Stage some changes first."
EMPTY_RESPONSE_MESSAGE = "Claude returned an empty response."

_CODE_FENCE = re.compile(r"^```\w*\n(?P<body>[\s\S]*?)\n```$")


@dataclass(frozen=True, slots=True)
class GenerationOutcome:
    """Final result of one generation run.

    ``message`` is set on success. ``cancelled`` separates a user abort from
    a failure that was already reported through the notifier.
    """

    message: str | None
    cancelled: bool = False

    @property
    def succeeded(self) -> bool:
        return self.message is not None


def uses_map_reduce(file_count: int, settings: Settings) -> bool:
    return file_count >= settings.pipeline.parallel_file_threshold


async def generate_commit_message(  # noqa: PLR0913
    repo_root: Path | str,
    settings: Settings,
    invoker: AgentInvoker,
    notifier: Notifier,
    progress: ProgressSink,
    token: CancellationToken,
) -> GenerationOutcome:
    """Generate a commit message for the staged changes of ``repo_root``."""

    try:
        diff = await get_staged_diff(repo_root)
    except GitCommandError as error:
        notifier.error(f"Failed to get staged diff: {error}")
        return GenerationOutcome(message=None)

    if not diff.strip():
        notifier.warning(NO_STAGED_CHANGES_MESSAGE)
        return GenerationOutcome(message=None)

    log = await _recent_history(repo_root, settings.history.commit_log_count)

    try:
        file_diffs = parse_unified_diff(diff)
    except Exception:
        logger.exception("Failed to parse staged diff; using single-call generation")
        file_diffs = []

    result = await dispatch(file_diffs, diff, log, repo_root, settings, invoker, progress, token)
    if isinstance(result, Cancelled):
        return GenerationOutcome(message=None, cancelled=True)
    if isinstance(result, Failed):
        if token.is_cancellation_requested:
            return GenerationOutcome(message=None, cancelled=True)
        logger.info("Generation failed: %s", result.reason)
        return GenerationOutcome(message=None)

    message = strip_code_fences(result.text.strip())
    if not message:
        notifier.warning(EMPTY_RESPONSE_MESSAGE)
        return GenerationOutcome(message=None)
    return GenerationOutcome(message=message)


async def dispatch(  # noqa: PLR0913
    file_diffs: Sequence[FileDiff],
    diff: str,
    log: str,
    cwd: Path | str,
    settings: Settings,
    invoker: AgentInvoker,
    progress: ProgressSink,
    token: CancellationToken,
) -> PipelineResult:
    """Pick the map/reduce or single-call path and apply the fallback rule."""

    if uses_map_reduce(len(file_diffs), settings):
        logger.info(
            "Using map/reduce for %d files (threshold %d)",
            len(file_diffs),
            settings.pipeline.parallel_file_threshold,
        )
        result = await map_reduce_generate(
            file_diffs,
            log,
            cwd,
            settings,
            invoker,
            progress,
            token,
        )
        if isinstance(result, Success | Cancelled):
            return result
        if token.is_cancellation_requested:
            return Cancelled()
        logger.info("Map/reduce failed (%s); falling back to single call", result.reason)
        progress.report(ProgressEvent(message=FALLBACK_MESSAGE))

    return await single_call_generate(file_diffs, diff, log, cwd, settings, invoker, token)


async def single_call_generate(  # noqa: PLR0913
    file_diffs: Sequence[FileDiff],
    diff: str,
    log: str,
    cwd: Path | str,
    settings: Settings,
    invoker: AgentInvoker,
    token: CancellationToken,
) -> PipelineResult:
    """Describe the whole staged diff with exactly one agent call."""

    include_file_context = settings.pipeline.include_file_context
    file_contexts: list[FileContext] | None = None
    if include_file_context:
        file_contexts = await _fetch_file_contexts(file_diffs, cwd, token)

    result = await invoker.invoke(
        build_single_call_instruction(include_file_context),
        build_single_call_context(diff, log, file_contexts),
        cwd,
        token,
        AgentOptions(model=settings.models.single_call_model),
    )
    if result is not None:
        return Success(result)
    if token.is_cancellation_requested:
        return Cancelled()
    return Failed("single-call agent failed")


def strip_code_fences(text: str) -> str:
    """Remove one wrapping ```...``` block if the agent added it anyway."""

    match = _CODE_FENCE.match(text)
    return match.group("body").strip() if match else text


async def _fetch_file_contexts(
    file_diffs: Sequence[FileDiff],
    cwd: Path | str,
    token: CancellationToken,
) -> list[FileContext]:
    candidates = [
        diff for diff in file_diffs if not diff.is_binary and diff.status is not FileStatus.DELETED
    ]
    contents = await asyncio.gather(
        *(get_staged_file_content(diff.file_path, cwd, token) for diff in candidates),
    )
    return [
        FileContext(file_path=diff.file_path, content=content)
        for diff, content in zip(candidates, contents, strict=True)
        if content is not None
    ]


async def _recent_history(repo_root: Path | str, count: int) -> str:
    if count <= 0:
        return ""
    try:
        return await get_recent_commit_log(repo_root, count)
    except GitCommandError as error:
        logger.debug("Recent commit log unavailable: %s", error)
        return ""
