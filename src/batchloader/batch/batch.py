"""Batch accumulator: keys collected since the last dispatch.

A Batch holds the ordered keys and, index-aligned with them, the futures
handed out for those keys. Cache hits observed while the batch was current
queue a replay callback instead of a key. Once dispatched a batch is closed:
no key may join it and its futures are settled exactly once.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Callable, Generic, TypeVar

from batchloader.errors import Result

from .futures import fail, settle

K = TypeVar("K")
V = TypeVar("V")


@dataclass(slots=True, eq=False)
class Batch(Generic[K, V]):
    """Keys and pending futures for one invocation of the batch function."""

    keys: list[K] = field(default_factory=list)
    futures: list[asyncio.Future[V]] = field(default_factory=list)
    cache_hits: list[Callable[[], None]] | None = None
    dispatched: bool = False

    def __len__(self) -> int:
        return len(self.keys)

    def accepts(self, max_size: float) -> bool:
        """Whether a new key may join: still open and below max_size."""
        return not self.dispatched and len(self.keys) < max_size

    def add(self, key: K, future: asyncio.Future[V]) -> None:
        if self.dispatched:
            raise RuntimeError("Cannot add keys to a dispatched batch")
        self.keys.append(key)
        self.futures.append(future)

    def on_finish(self, callback: Callable[[], None]) -> None:
        """Queue a cache-hit replay to run once this batch finishes dispatching."""
        if self.cache_hits is None:
            self.cache_hits = []
        self.cache_hits.append(callback)

    def replay_cache_hits(self) -> int:
        """Run queued replays once. Returns how many ran."""
        callbacks, self.cache_hits = self.cache_hits or [], None
        for callback in callbacks:
            callback()
        return len(callbacks)

    def settle(self, values: Sequence[object]) -> int:
        """Settle futures index-aligned with values. Returns the number of failed keys."""
        failed = 0
        for future, value in zip(self.futures, values, strict=True):
            outcome = Result.from_outcome(value)
            failed += outcome.is_err()
            settle(future, outcome)
        return failed

    def fail(self, error: BaseException) -> None:
        for future in self.futures:
            fail(future, error)

    def cancel(self) -> None:
        for future in self.futures:
            future.cancel()
