"""Controllers for commit-scribe CLI commands."""

from __future__ import annotations

import asyncio
import logging
import signal
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path

from commit_scribe.agent.cli_backend import ClaudeCliInvoker
from commit_scribe.cancellation import CancellationTokenSource
from commit_scribe.config import Settings
from commit_scribe.diff_parser import FileStatus, parse_unified_diff
from commit_scribe.dispatcher import GenerationOutcome, generate_commit_message, uses_map_reduce
from commit_scribe.git import get_staged_diff, resolve_repository_root
from commit_scribe.notifications import (
    ClickNotifier,
    ClickProgressSink,
    Notifier,
    NullProgressSink,
    ProgressSink,
)

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_CANCELLED = 130


@dataclass(slots=True)
class SettingsOverrides:
    """CLI options that take precedence over environment settings."""

    analysis_model: str | None = None
    synthesis_model: str | None = None
    single_call_model: str | None = None
    parallel_file_threshold: int | None = None
    max_concurrent_agents: int | None = None
    include_file_context: bool | None = None


@dataclass(slots=True)
class GenerateCommand:
    """CLI input for commit message generation."""

    repo: Path | None
    output_path: Path | None = None
    quiet: bool = False
    overrides: SettingsOverrides = field(default_factory=SettingsOverrides)


@dataclass(slots=True)
class FilesCommand:
    """CLI input for staged file listing."""

    repo: Path | None
    overrides: SettingsOverrides = field(default_factory=SettingsOverrides)


@dataclass(slots=True)
class GenerateResult:
    """Generation outcome mapped to CLI exit semantics."""

    message: str | None
    exit_code: int
    lines: list[str] = field(default_factory=list)


class CommitCliController:
    """CLI controller for commit message operations."""

    def __init__(self, *, notifier: Notifier | None = None) -> None:
        self._notifier = notifier or ClickNotifier()

    def generate(self, command: GenerateCommand) -> GenerateResult:
        """Generate a commit message; configuration errors raise ``ValueError``."""

        settings = build_settings(command.overrides)
        progress: ProgressSink = NullProgressSink() if command.quiet else ClickProgressSink()
        outcome = asyncio.run(self._generate(command, settings, progress))

        if outcome.cancelled:
            return GenerateResult(message=None, exit_code=EXIT_CANCELLED, lines=["Cancelled."])
        if outcome.message is None:
            return GenerateResult(message=None, exit_code=EXIT_FAILED)

        if command.output_path is not None:
            command.output_path.write_text(outcome.message + "\n", "utf-8")
            return GenerateResult(
                message=outcome.message,
                exit_code=EXIT_OK,
                lines=[f"Commit message written to {command.output_path}"],
            )
        return GenerateResult(message=outcome.message, exit_code=EXIT_OK, lines=[outcome.message])

    def list_files(self, command: FilesCommand) -> list[str]:
        """Describe the staged files and which generation path they would take."""

        settings = build_settings(command.overrides)
        return asyncio.run(self._list_files(command, settings))

    async def _generate(
        self,
        command: GenerateCommand,
        settings: Settings,
        progress: ProgressSink,
    ) -> GenerationOutcome:
        source = CancellationTokenSource()
        with _cancel_on_sigint(source, self._notifier):
            repo_root = await resolve_repository_root(command.repo or Path.cwd())
            logger.debug("Repository root: %s", repo_root)
            invoker = ClaudeCliInvoker(notifier=self._notifier, command=settings.agent.command)
            return await generate_commit_message(
                repo_root,
                settings,
                invoker,
                self._notifier,
                progress,
                source.token,
            )

    async def _list_files(self, command: FilesCommand, settings: Settings) -> list[str]:
        repo_root = await resolve_repository_root(command.repo or Path.cwd())
        file_diffs = parse_unified_diff(await get_staged_diff(repo_root))
        path_name = (
            "map-reduce" if uses_map_reduce(len(file_diffs), settings) else "single-call"
        )
        lines = [
            f"Repository: {repo_root}",
            f"Staged files: {len(file_diffs)}",
            (
                f"Generation path: {path_name} "
                f"(threshold={settings.pipeline.parallel_file_threshold}, "
                f"max_agents={settings.pipeline.max_concurrent_agents})"
            ),
        ]
        for file_diff in file_diffs:
            kind = "binary" if file_diff.is_binary else "text"
            line = f"  {file_diff.status.value:<8} {kind:<6} {file_diff.file_path}"
            if file_diff.status is FileStatus.RENAMED and file_diff.old_path:
                line += f" (from {file_diff.old_path})"
            lines.append(line)
        return lines


def build_settings(overrides: SettingsOverrides) -> Settings:
    """Load environment settings, apply CLI overrides, and validate."""

    settings = Settings.from_env()
    if overrides.analysis_model is not None:
        settings.models.analysis_model = overrides.analysis_model
    if overrides.synthesis_model is not None:
        settings.models.synthesis_model = overrides.synthesis_model
    if overrides.single_call_model is not None:
        settings.models.single_call_model = overrides.single_call_model
    if overrides.parallel_file_threshold is not None:
        settings.pipeline.parallel_file_threshold = overrides.parallel_file_threshold
    if overrides.max_concurrent_agents is not None:
        settings.pipeline.max_concurrent_agents = overrides.max_concurrent_agents
    if overrides.include_file_context is not None:
        settings.pipeline.include_file_context = overrides.include_file_context
    settings.validate()
    return settings


@contextmanager
def _cancel_on_sigint(source: CancellationTokenSource, notifier: Notifier) -> Iterator[None]:
    """Turn the first Ctrl-C into cooperative cancellation.

    A second Ctrl-C falls through to the default handler.
    """

    loop = asyncio.get_running_loop()

    def _on_sigint() -> None:
        loop.remove_signal_handler(signal.SIGINT)
        notifier.info("Cancelling... (press Ctrl-C again to abort immediately)")
        source.cancel()

    try:
        loop.add_signal_handler(signal.SIGINT, _on_sigint)
    except (NotImplementedError, RuntimeError, ValueError):
        logger.debug("SIGINT handler unavailable; Ctrl-C will abort immediately")
        yield
        return

    try:
        yield
    finally:
        loop.remove_signal_handler(signal.SIGINT)
