"""Runtime configuration for commit message generation."""

from __future__ import annotations

import os
import shlex
from dataclasses import dataclass, field

from commit_scribe.agent.cli_backend import DEFAULT_AGENT_COMMAND


@dataclass(slots=True)
class AgentSettings:
    """External agent command settings."""

    command: tuple[str, ...] = DEFAULT_AGENT_COMMAND


@dataclass(slots=True)
class ModelSettings:
    """Model selector per agent call kind."""

    analysis_model: str = "haiku"
    synthesis_model: str = "sonnet"
    single_call_model: str = "sonnet"


@dataclass(slots=True)
class PipelineSettings:
    """Map/reduce activation and concurrency settings."""

    parallel_file_threshold: int = 4
    max_concurrent_agents: int = 5
    include_file_context: bool = True


@dataclass(slots=True)
class HistorySettings:
    """Recent commit history used as extra context."""

    commit_log_count: int = 5


@dataclass(slots=True)
class Settings:
    """Application settings grouped by concern."""

    agent: AgentSettings = field(default_factory=AgentSettings)
    models: ModelSettings = field(default_factory=ModelSettings)
    pipeline: PipelineSettings = field(default_factory=PipelineSettings)
    history: HistorySettings = field(default_factory=HistorySettings)

    @classmethod
    def from_env(cls) -> Settings:
        """Load settings from environment with defaults matching the Claude CLI."""

        return cls(
            agent=AgentSettings(
                command=_env_command("COMMIT_SCRIBE_AGENT_COMMAND", DEFAULT_AGENT_COMMAND),
            ),
            models=ModelSettings(
                analysis_model=os.getenv("COMMIT_SCRIBE_ANALYSIS_MODEL", "haiku"),
                synthesis_model=os.getenv("COMMIT_SCRIBE_SYNTHESIS_MODEL", "sonnet"),
                single_call_model=os.getenv("COMMIT_SCRIBE_SINGLE_CALL_MODEL", "sonnet"),
            ),
            pipeline=PipelineSettings(
                parallel_file_threshold=_env_int("COMMIT_SCRIBE_PARALLEL_FILE_THRESHOLD", 4),
                max_concurrent_agents=_env_int("COMMIT_SCRIBE_MAX_CONCURRENT_AGENTS", 5),
                include_file_context=_env_bool(
                    "COMMIT_SCRIBE_INCLUDE_FILE_CONTEXT",
                    default=True,
                ),
            ),
            history=HistorySettings(
                commit_log_count=_env_int("COMMIT_SCRIBE_COMMIT_LOG_COUNT", 5),
            ),
        )

    def validate(self) -> None:
        """Raise configuration error for values the pipeline cannot run with."""

        if not self.agent.command:
            raise ValueError("COMMIT_SCRIBE_AGENT_COMMAND must not be empty.")
        if self.pipeline.parallel_file_threshold < 1:
            raise ValueError("COMMIT_SCRIBE_PARALLEL_FILE_THRESHOLD must be >= 1.")
        if self.pipeline.max_concurrent_agents < 1:
            raise ValueError("COMMIT_SCRIBE_MAX_CONCURRENT_AGENTS must be >= 1.")
        if self.history.commit_log_count < 0:
            raise ValueError("COMMIT_SCRIBE_COMMIT_LOG_COUNT must be >= 0.")
        for name, value in (
            ("COMMIT_SCRIBE_ANALYSIS_MODEL", self.models.analysis_model),
            ("COMMIT_SCRIBE_SYNTHESIS_MODEL", self.models.synthesis_model),
            ("COMMIT_SCRIBE_SINGLE_CALL_MODEL", self.models.single_call_model),
        ):
            if not value.strip():
                raise ValueError(f"{name} must not be empty.")


def _env_command(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return tuple(shlex.split(raw))
    except ValueError as error:
        raise ValueError(f"Invalid command for {name}: {raw!r} ({error})") from error


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError as error:
        raise ValueError(f"Invalid integer value for {name}: {value!r}") from error


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    raise ValueError(f"Invalid boolean value for {name}: {value!r}")
