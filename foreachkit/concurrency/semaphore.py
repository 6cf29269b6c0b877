"""
FIFO concurrency limiter.

Bounds the number of callbacks in flight for the parallel and chunked
engines. Waiting never blocks a thread: a waiter is a pending future that
the releasing side resolves directly, handing the slot over without
returning it to the pool first. That keeps admission FIFO even when
several releases happen before the event loop runs the next waiter.
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from dataclasses import dataclass
from typing import Any, Callable, Deque

logger = logging.getLogger(__name__)

Release = Callable[[], None]


@dataclass
class SemaphoreStats:
    """Counters for limiter monitoring.

    Attributes:
        acquired: Slots handed out
        queued: Acquisitions that had to wait
        max_in_flight: Highest number of slots held at once
    """

    acquired: int = 0
    queued: int = 0
    max_in_flight: int = 0


class Semaphore:
    """
    Counting semaphore with FIFO hand-off.

    Example:
        >>> limiter = Semaphore(3)
        >>> release = await limiter.acquire()
        >>> try:
        ...     await work()
        ... finally:
        ...     release()

        >>> # Or as a context manager
        >>> async with limiter:
        ...     await work()

    Each release token must be called exactly once. Calling one twice
    frees a slot that was never taken; that is the caller's bug and is not
    detected here.
    """

    def __init__(self, permits: int) -> None:
        if isinstance(permits, bool) or not isinstance(permits, int) or permits < 1:
            raise ValueError(f"permits must be a positive integer, got {permits!r}")
        self._capacity = permits
        self._permits = permits
        self._waiters: Deque[asyncio.Future] = deque()
        self._stats = SemaphoreStats()

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def available(self) -> int:
        return self._permits

    @property
    def waiting(self) -> int:
        return sum(1 for waiter in self._waiters if not waiter.done())

    @property
    def stats(self) -> SemaphoreStats:
        return self._stats

    async def acquire(self) -> Release:
        """Wait for a slot and return its release function."""
        if self._permits > 0 and not self._waiters:
            self._permits -= 1
            self._record_acquired()
            return self._release

        waiter = asyncio.get_running_loop().create_future()
        self._waiters.append(waiter)
        self._stats.queued += 1
        try:
            await waiter
        except asyncio.CancelledError:
            if waiter.done() and not waiter.cancelled():
                # slot was handed over just before the cancellation landed
                self._release()
            raise

        self._record_acquired()
        return self._release

    def _release(self) -> None:
        while self._waiters:
            waiter = self._waiters.popleft()
            if not waiter.done():
                waiter.set_result(None)
                return
        self._permits += 1

    def _record_acquired(self) -> None:
        self._stats.acquired += 1
        in_flight = self._capacity - self._permits
        if in_flight > self._stats.max_in_flight:
            self._stats.max_in_flight = in_flight

    async def __aenter__(self) -> "Semaphore":
        await self.acquire()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self._release()
