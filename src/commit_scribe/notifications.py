"""Progress and user-facing message channels."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

import rich_click as click

logger = logging.getLogger(__name__)

_PREFIX = "commit-scribe"


@dataclass(frozen=True, slots=True)
class ProgressEvent:
    """One progress update: percentage increment and/or a status message."""

    increment: float | None = None
    message: str | None = None


class ProgressSink(Protocol):
    """Receives progress events; rendering is up to the implementation."""

    def report(self, event: ProgressEvent) -> None:
        """Accept one progress event."""


class Notifier(Protocol):
    """User-visible error/warning channel."""

    def error(self, message: str) -> None:
        """Show an error to the user."""

    def warning(self, message: str) -> None:
        """Show a warning to the user."""

    def info(self, message: str) -> None:
        """Show an informational note to the user."""


class NullProgressSink:
    """Progress sink that drops everything."""

    def report(self, event: ProgressEvent) -> None:
        del event


class ClickProgressSink:
    """Print progress messages to stderr with an accumulated percentage."""

    def __init__(self) -> None:
        self._percent = 0.0

    @property
    def percent(self) -> float:
        return self._percent

    def report(self, event: ProgressEvent) -> None:
        if event.increment:
            self._percent = min(100.0, self._percent + event.increment)
        if event.message:
            click.secho(f"[{self._percent:3.0f}%] {event.message}", err=True, dim=True)


class ClickNotifier:
    """Render notifications on stderr; the log only gets a debug copy."""

    def error(self, message: str) -> None:
        logger.debug("error notification: %s", message)
        click.secho(f"{_PREFIX}: {message}", err=True, fg="red")

    def warning(self, message: str) -> None:
        logger.debug("warning notification: %s", message)
        click.secho(f"{_PREFIX}: {message}", err=True, fg="yellow")

    def info(self, message: str) -> None:
        logger.debug("info notification: %s", message)
        click.secho(f"{_PREFIX}: {message}", err=True)
