"""
Bounded concurrency gate.

Caps how many embedding requests are in flight at once. Callers beyond
the cap wait in a FIFO queue; when a running task finishes (or fails),
its slot is handed straight to the oldest waiter.

Usage:
    gate = ConcurrencyGate(2)
    results = await asyncio.gather(*(gate.run(lambda b=b: embed(b)) for b in batches))
"""

import asyncio
from collections import deque
from typing import Awaitable, Callable, TypeVar

T = TypeVar("T")


class ConcurrencyGate:
    """At most `max_concurrent` tasks run at once; the rest queue in call order."""

    def __init__(self, max_concurrent: int):
        if max_concurrent < 1:
            raise ValueError(f"max_concurrent must be at least 1, got {max_concurrent}")
        self._max = max_concurrent
        self._active = 0
        self._waiters: deque[asyncio.Future] = deque()

    @property
    def max_concurrent(self) -> int:
        return self._max

    @property
    def active(self) -> int:
        """Tasks currently holding a slot."""
        return self._active

    @property
    def waiting(self) -> int:
        """Callers queued for a slot."""
        return sum(1 for fut in self._waiters if not fut.done())

    async def run(self, task: Callable[[], Awaitable[T]]) -> T:
        """
        Run `task()` once a slot is free and return its result.

        The slot is released whether the task returns or raises.
        """
        await self._acquire()
        try:
            return await task()
        finally:
            self._release()

    async def _acquire(self) -> None:
        if self._active < self._max and not self._waiters:
            self._active += 1
            return

        fut = asyncio.get_running_loop().create_future()
        self._waiters.append(fut)
        try:
            await fut
        except asyncio.CancelledError:
            if fut.done() and not fut.cancelled():
                # The slot was handed over before the cancel landed; pass it on.
                self._release()
            elif fut in self._waiters:
                self._waiters.remove(fut)
            raise

    def _release(self) -> None:
        # Hand the slot directly to the next waiter; active count stays the same.
        while self._waiters:
            fut = self._waiters.popleft()
            if not fut.done():
                fut.set_result(None)
                return
        self._active -= 1
