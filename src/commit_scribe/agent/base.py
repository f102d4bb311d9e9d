"""Agent invocation interface."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from commit_scribe.cancellation import CancellationToken

DEFAULT_MODEL = "sonnet"


@dataclass(frozen=True, slots=True)
class AgentOptions:
    """Per-call knobs for one agent invocation.

    ``silent`` suppresses ordinary failure notifications so parallel agents do
    not flood the user; a missing executable is reported regardless.
    """

    model: str = DEFAULT_MODEL
    silent: bool = False


class AgentInvoker(Protocol):
    """Protocol implemented by agent runners."""

    async def invoke(
        self,
        instruction: str,
        context: str,
        cwd: Path | str,
        token: CancellationToken,
        options: AgentOptions | None = None,
    ) -> str | None:
        """Run one agent call; ``None`` on cancellation or failure."""
