"""Agent invocation implementations."""

from commit_scribe.agent.base import DEFAULT_MODEL, AgentInvoker, AgentOptions
from commit_scribe.agent.cli_backend import (
    CLI_NOT_FOUND_MESSAGE,
    DEFAULT_AGENT_COMMAND,
    ClaudeCliInvoker,
)

__all__ = [
    "CLI_NOT_FOUND_MESSAGE",
    "DEFAULT_AGENT_COMMAND",
    "DEFAULT_MODEL",
    "AgentInvoker",
    "AgentOptions",
    "ClaudeCliInvoker",
]
