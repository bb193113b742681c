"""Task queues for deferred delivery.

The bridge never delivers a message inside the sender's call stack. It
hands a zero-argument callback to a scheduler, which runs it on a later
turn of a FIFO queue. Deliveries scheduled in one direction therefore
run in the order send() was called.
"""

from __future__ import annotations

import asyncio
from collections import deque
from collections.abc import Callable

Scheduler = Callable[[Callable[[], None]], None]


def call_soon(callback: Callable[[], None]) -> None:
    """Run ``callback`` on the next turn of the running asyncio loop.

    Args:
        callback: Zero-argument callable to defer.

    Raises:
        RuntimeError: If no event loop is running.
    """
    asyncio.get_running_loop().call_soon(callback)


class ManualScheduler:
    """A FIFO task queue that only runs when told to.

    Useful in tests that need to observe state between scheduling and
    delivery.

    Example:
        >>> scheduler = ManualScheduler()
        >>> scheduler(lambda: print("later"))
        >>> scheduler.pending
        1
        >>> scheduler.run_pending()
        later
        1
    """

    def __init__(self) -> None:
        self._queue: deque[Callable[[], None]] = deque()

    def __call__(self, callback: Callable[[], None]) -> None:
        self._queue.append(callback)

    @property
    def pending(self) -> int:
        """Number of callbacks waiting to run."""
        return len(self._queue)

    def run_pending(self) -> int:
        """Run the callbacks queued so far, one turn only.

        Callbacks scheduled while this turn runs wait for the next one.

        Returns:
            Number of callbacks run.
        """
        count = len(self._queue)
        for _ in range(count):
            self._queue.popleft()()
        return count

    def run_until_idle(self) -> int:
        """Run callbacks until the queue is empty.

        Returns:
            Number of callbacks run.
        """
        count = 0
        while self._queue:
            self._queue.popleft()()
            count += 1
        return count
