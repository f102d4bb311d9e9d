"""Shared test fixtures."""

from __future__ import annotations

import asyncio
import shutil
import sys
from collections.abc import Callable
from pathlib import Path

import pytest
from doubles import (
    FakeLauncher,
    InvokeCall,
    RecordingNotifier,
    RecordingProgress,
    ScriptedInvoker,
    default_response,
    run_git,
)

import commit_scribe
from commit_scribe.cancellation import CancellationToken

_SRC_DIR = Path(commit_scribe.__file__).resolve().parents[1]


@pytest.fixture()
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture()
def progress() -> RecordingProgress:
    return RecordingProgress()


@pytest.fixture()
def make_invoker() -> Callable[..., ScriptedInvoker]:
    def _make(
        respond: Callable[[InvokeCall, CancellationToken], str | None] = default_response,
    ) -> ScriptedInvoker:
        return ScriptedInvoker(respond=respond)

    return _make


@pytest.fixture()
def fake_exec(monkeypatch: pytest.MonkeyPatch) -> FakeLauncher:
    launcher = FakeLauncher()
    monkeypatch.setattr(asyncio, "create_subprocess_exec", launcher)
    return launcher


@pytest.fixture()
def echo_agent_command(monkeypatch: pytest.MonkeyPatch) -> tuple[str, ...]:
    """Command running the bundled echo agent in a real subprocess."""

    monkeypatch.setenv("PYTHONPATH", str(_SRC_DIR))
    return (sys.executable, "-m", "commit_scribe.agent.echo_agent")


@pytest.fixture()
def git_repo(tmp_path: Path) -> Path:
    """Empty git repository with a local identity configured."""

    if shutil.which("git") is None:
        pytest.skip("git executable is not available")
    repo = tmp_path / "repo"
    repo.mkdir()
    run_git(repo, "init", "-q")
    run_git(repo, "config", "user.email", "dev@example.com")
    run_git(repo, "config", "user.name", "Dev")
    run_git(repo, "config", "commit.gpgsign", "false")
    return repo
