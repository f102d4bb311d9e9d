"""Cooperative cancellation shared by every stage of one generation run."""

from __future__ import annotations

import logging
from collections.abc import Callable

logger = logging.getLogger(__name__)


class Registration:
    """Handle returned by ``on_cancellation_requested``; ``dispose`` unregisters."""

    def __init__(self, token: CancellationToken, callback: Callable[[], None]) -> None:
        self._token = token
        self._callback: Callable[[], None] | None = callback

    def dispose(self) -> None:
        if self._callback is None:
            return
        self._token._remove(self._callback)  # noqa: SLF001
        self._callback = None


class CancellationToken:
    """Read side of a cancellation signal.

    The flag is one-way: once set it never reverts for the lifetime of the
    token. Listeners run synchronously inside ``CancellationTokenSource.cancel``.
    """

    def __init__(self) -> None:
        self._cancelled = False
        self._listeners: list[Callable[[], None]] = []

    @classmethod
    def none(cls) -> CancellationToken:
        """Return a token nobody can cancel."""

        return cls()

    @property
    def is_cancellation_requested(self) -> bool:
        return self._cancelled

    def on_cancellation_requested(self, callback: Callable[[], None]) -> Registration:
        """Register a one-shot listener; fires immediately if already cancelled."""

        registration = Registration(self, callback)
        if self._cancelled:
            _invoke_listener(callback)
            return registration
        self._listeners.append(callback)
        return registration

    def _remove(self, callback: Callable[[], None]) -> None:
        try:
            self._listeners.remove(callback)
        except ValueError:
            pass

    def _fire(self) -> None:
        if self._cancelled:
            return
        self._cancelled = True
        listeners, self._listeners = self._listeners, []
        for listener in listeners:
            _invoke_listener(listener)


class CancellationTokenSource:
    """Write side of a cancellation signal."""

    def __init__(self) -> None:
        self.token = CancellationToken()

    def cancel(self) -> None:
        self.token._fire()  # noqa: SLF001

    @property
    def is_cancellation_requested(self) -> bool:
        return self.token.is_cancellation_requested


def _invoke_listener(listener: Callable[[], None]) -> None:
    try:
        listener()
    except Exception:
        logger.exception("Cancellation listener failed")
