"""Map/reduce commit message generation.

Map phase: one analysis agent per non-binary file, run with bounded
concurrency. Reduce phase: one synthesis agent over all analyses.

The result is three-way. ``Success`` carries the message. ``Failed`` tells
the caller to try the single-call path. ``Cancelled`` tells it to stop. A
cancelled run never reports ``Failed``.
"""

from __future__ import annotations

import logging
import posixpath
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from commit_scribe.agent.base import AgentInvoker, AgentOptions
from commit_scribe.cancellation import CancellationToken
from commit_scribe.concurrency import map_with_concurrency
from commit_scribe.config import Settings
from commit_scribe.diff_parser import FileDiff, FileStatus
from commit_scribe.git import get_staged_file_content
from commit_scribe.notifications import ProgressEvent, ProgressSink
from commit_scribe.prompts import (
    AnalysisRecord,
    build_analysis_context,
    build_analysis_instruction,
    build_synthesis_context,
    build_synthesis_instruction,
)

logger = logging.getLogger(__name__)

ANALYSIS_PROGRESS_SHARE = 70.0
SYNTHESIS_PROGRESS_SHARE = 30.0
SYNTHESIS_MESSAGE = "Synthesizing commit message..."
UNAVAILABLE_ANALYSIS_PREFIX = "[Analysis unavailable]"


@dataclass(frozen=True, slots=True)
class Success:
    text: str


@dataclass(frozen=True, slots=True)
class Failed:
    """Generation failed; the caller may fall back to a simpler path."""

    reason: str


@dataclass(frozen=True, slots=True)
class Cancelled:
    """Generation was cancelled; the caller must not fall back."""


PipelineResult = Success | Failed | Cancelled


@dataclass(frozen=True, slots=True)
class _PrefetchedContent:
    file_path: str
    content: str | None


async def map_reduce_generate(  # noqa: PLR0913
    file_diffs: Sequence[FileDiff],
    log: str,
    cwd: Path | str,
    settings: Settings,
    invoker: AgentInvoker,
    progress: ProgressSink,
    token: CancellationToken,
) -> PipelineResult:
    """Run prefetch, per-file analysis, and synthesis over ``file_diffs``."""

    analyzable = [diff for diff in file_diffs if not diff.is_binary]
    binary_files = [diff.file_path for diff in file_diffs if diff.is_binary]
    if not analyzable:
        return Failed("no analyzable files")

    limit = settings.pipeline.max_concurrent_agents
    file_contents: dict[str, str | None] = {}
    if settings.pipeline.include_file_context:
        file_contents = await _prefetch_contents(analyzable, cwd, limit, token)

    if token.is_cancellation_requested:
        return Cancelled()

    analyses = await _analyze(analyzable, file_contents, cwd, settings, invoker, progress, token)

    if token.is_cancellation_requested:
        return Cancelled()
    if not analyses:
        return Failed("all analysis agents failed")

    progress.report(ProgressEvent(increment=0, message=SYNTHESIS_MESSAGE))
    logger.info(
        "Synthesizing from %d analyses (%d binary files)",
        len(analyses),
        len(binary_files),
    )
    result = await invoker.invoke(
        build_synthesis_instruction(),
        build_synthesis_context(analyses, binary_files, log),
        cwd,
        token,
        AgentOptions(model=settings.models.synthesis_model),
    )
    progress.report(ProgressEvent(increment=SYNTHESIS_PROGRESS_SHARE))

    if result is None:
        if token.is_cancellation_requested:
            return Cancelled()
        return Failed("synthesis agent failed")
    return Success(result)


async def _prefetch_contents(
    analyzable: Sequence[FileDiff],
    cwd: Path | str,
    limit: int,
    token: CancellationToken,
) -> dict[str, str | None]:
    async def _fetch(file_diff: FileDiff, _index: int) -> _PrefetchedContent:
        if file_diff.status is FileStatus.DELETED:
            return _PrefetchedContent(file_diff.file_path, None)
        content = await get_staged_file_content(file_diff.file_path, cwd, token)
        return _PrefetchedContent(file_diff.file_path, content)

    fetched = await map_with_concurrency(analyzable, limit, _fetch, token)
    return {entry.file_path: entry.content for entry in fetched if entry is not None}


async def _analyze(  # noqa: PLR0913
    analyzable: Sequence[FileDiff],
    file_contents: dict[str, str | None],
    cwd: Path | str,
    settings: Settings,
    invoker: AgentInvoker,
    progress: ProgressSink,
    token: CancellationToken,
) -> list[AnalysisRecord]:
    instruction = build_analysis_instruction()
    options = AgentOptions(model=settings.models.analysis_model, silent=True)
    total = len(analyzable)
    completed = 0

    async def _analyze_one(file_diff: FileDiff, _index: int) -> AnalysisRecord | None:
        nonlocal completed
        context = build_analysis_context(
            file_diff.file_path,
            file_diff.raw_diff,
            file_contents.get(file_diff.file_path),
        )
        result = await invoker.invoke(instruction, context, cwd, token, options)

        completed += 1
        progress.report(
            ProgressEvent(
                increment=ANALYSIS_PROGRESS_SHARE / total,
                message=(
                    f"Analyzing file {completed} of {total}: "
                    f"{posixpath.basename(file_diff.file_path)}..."
                ),
            ),
        )

        if result is None:
            if token.is_cancellation_requested:
                return None
            logger.debug("Analysis unavailable for %s; using placeholder", file_diff.file_path)
            return AnalysisRecord(
                file_path=file_diff.file_path,
                analysis=f"{UNAVAILABLE_ANALYSIS_PREFIX} Changes in {file_diff.file_path}",
            )
        return AnalysisRecord(file_path=file_diff.file_path, analysis=result.strip())

    results = await map_with_concurrency(
        analyzable,
        settings.pipeline.max_concurrent_agents,
        _analyze_one,
        token,
    )
    return [record for record in results if record is not None]
