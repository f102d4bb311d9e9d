"""Bounded-concurrency mapping over async workers."""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from collections.abc import Awaitable, Callable, Sequence
from typing import TypeVar

from commit_scribe.cancellation import CancellationToken

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


class SlotSemaphore:
    """Counting semaphore with a FIFO wait queue.

    A released slot is handed straight to the oldest live waiter, so a slot is
    never idle while somebody is queued.
    """

    def __init__(self, slots: int) -> None:
        if slots < 1:
            raise ValueError(f"Semaphore needs at least one slot, got {slots}.")
        self._available = slots
        self._waiters: deque[asyncio.Future[None]] = deque()

    @property
    def available(self) -> int:
        return self._available

    @property
    def waiting(self) -> int:
        return len(self._waiters)

    async def acquire(self) -> None:
        if self._available > 0:
            self._available -= 1
            return

        waiter: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        self._waiters.append(waiter)
        try:
            await waiter
        except asyncio.CancelledError:
            if waiter.done() and not waiter.cancelled():
                # The slot was handed over just before the task got cancelled.
                self.release()
            else:
                self._remove_waiter(waiter)
            raise

    def release(self) -> None:
        self._available += 1
        while self._waiters:
            waiter = self._waiters.popleft()
            if waiter.done():
                continue
            self._available -= 1
            waiter.set_result(None)
            return

    def _remove_waiter(self, waiter: asyncio.Future[None]) -> None:
        try:
            self._waiters.remove(waiter)
        except ValueError:
            pass


async def map_with_concurrency(
    items: Sequence[T],
    limit: int,
    worker: Callable[[T, int], Awaitable[R | None]],
    token: CancellationToken,
) -> list[R | None]:
    """Run ``worker`` over ``items`` with at most ``limit`` bodies in flight.

    Results keep input order. A worker that raises, an item skipped because the
    token was already cancelled, and an item whose slot arrived after
    cancellation all resolve to ``None``; no exception escapes.
    """

    if limit < 1:
        raise ValueError(f"Concurrency limit must be >= 1, got {limit}.")
    if not items:
        return []

    semaphore = SlotSemaphore(limit)

    async def _run(item: T, index: int) -> R | None:
        if token.is_cancellation_requested:
            return None

        await semaphore.acquire()
        try:
            if token.is_cancellation_requested:
                return None
            return await worker(item, index)
        except Exception:
            logger.exception("Concurrent task %d failed", index)
            return None
        finally:
            semaphore.release()

    return list(await asyncio.gather(*(_run(item, index) for index, item in enumerate(items))))
