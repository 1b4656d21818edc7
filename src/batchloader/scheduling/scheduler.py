"""Schedule functions: decide when an accumulated batch is dispatched.

A schedule function accepts a zero-argument callback and must invoke it
exactly once, asynchronously, no sooner than the current synchronous turn
completes. Every load() issued before the callback fires joins the batch.

Example:
    >>> loader = DataLoader(fetch_users)                         # next loop iteration
    >>> loader = DataLoader(fetch_users, schedule_fn=call_later(0.005))  # 5ms window
"""

from __future__ import annotations

import asyncio
from collections import deque
from typing import Callable, TypeAlias

Callback: TypeAlias = Callable[[], None]
ScheduleFn: TypeAlias = Callable[[Callback], None]


def call_soon(callback: Callback) -> None:
    """Run callback on the next iteration of the running event loop."""
    asyncio.get_running_loop().call_soon(callback)


def call_later(delay: float) -> ScheduleFn:
    """Schedule function that waits delay seconds, widening the batching window."""
    if delay < 0:
        raise ValueError(f"delay must be non-negative: {delay}")

    def schedule(callback: Callback) -> None:
        asyncio.get_running_loop().call_later(delay, callback)

    return schedule


class ManualScheduler:
    """Deterministic schedule function for tests.

    Queues callbacks instead of running them; the test decides when batches
    dispatch by calling step() or flush().

    Example:
        >>> scheduler = ManualScheduler()
        >>> loader = DataLoader(fetch, schedule_fn=scheduler)
        >>> fut = loader.load(1)
        >>> scheduler.pending
        1
        >>> scheduler.flush()
    """

    __slots__ = ("_queue", "scheduled")

    def __init__(self) -> None:
        self._queue: deque[Callback] = deque()
        self.scheduled = 0

    def __call__(self, callback: Callback) -> None:
        self._queue.append(callback)
        self.scheduled += 1

    @property
    def pending(self) -> int:
        return len(self._queue)

    def step(self) -> bool:
        """Run the oldest queued callback. Returns False if nothing was queued."""
        if not self._queue:
            return False
        self._queue.popleft()()
        return True

    def flush(self) -> int:
        """Run queued callbacks, including ones queued while flushing. Returns count run."""
        ran = 0
        while self.step():
            ran += 1
        return ran
