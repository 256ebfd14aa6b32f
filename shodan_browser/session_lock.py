"""
Session Lock
============
Serialized executor for everything that touches the shared browser page.

``run(task)`` chains *task* behind every task submitted before it, so tasks
execute one at a time in strict submission order.  A failed task does not
block the chain: its exception is delivered to its own caller only.

Every navigation on the shared page must go through one lock.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SessionLock:
    """FIFO, non-reentrant lock built as a chain of asyncio tasks.

    Submission order is fixed when ``run()`` is *called* (synchronously),
    not when the returned awaitable is first awaited.

    Usage::

        lock = SessionLock()
        result = await lock.run(lambda: do_navigation(page))
    """

    def __init__(self):
        self._tail: Optional[asyncio.Future] = None
        self._pending = 0

    @property
    def pending(self) -> int:
        """Number of submitted tasks that have not finished yet."""
        return self._pending

    @property
    def locked(self) -> bool:
        return self._pending > 0

    def run(self, task: Callable[[], Awaitable[T]]) -> "asyncio.Task[T]":
        """Schedule *task* after all previously submitted tasks.

        Args:
            task: Zero-argument callable returning an awaitable.

        Returns:
            An ``asyncio.Task`` resolving to the task's result (or raising
            its exception).  Must be called from a running event loop.
        """
        loop = asyncio.get_running_loop()
        previous = self._tail
        gate = loop.create_future()
        self._tail = gate
        self._pending += 1
        logger.debug(f"[LOCK] Task queued (pending={self._pending})")
        job = loop.create_task(self._run_after(previous, task))
        job.add_done_callback(lambda _: self._release(previous, gate))
        return job

    async def _run_after(
        self, previous: Optional[asyncio.Future], task: Callable[[], Awaitable[T]]
    ) -> T:
        if previous is not None:
            await asyncio.shield(previous)
        return await task()

    def _release(self, previous: Optional[asyncio.Future], gate: asyncio.Future) -> None:
        self._pending -= 1
        # The gate opens only once the predecessor is done too, so a job
        # cancelled while queued cannot let its successor jump ahead.
        if previous is None or previous.done():
            gate.set_result(None)
        else:
            previous.add_done_callback(lambda _: gate.set_result(None))
