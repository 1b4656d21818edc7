"""DataLoader: per-key loads coalesced into batched fetches, memoized per key.

Every load() issued in the same scheduling turn joins one batch; the batch
function is called once with the ordered keys and must return one value (or
error) per key. Results are cached as futures, so a key requested while its
fetch is still in flight shares that fetch.

Example:
    >>> async def fetch_users(ids: list[int]) -> list[User | Exception]:
    ...     rows = await db.fetch_users(ids)
    ...     by_id = {r.id: r for r in rows}
    ...     return [by_id.get(i, LookupError(i)) for i in ids]
    >>>
    >>> users = DataLoader(fetch_users, max_batch_size=100)
    >>> a, b = await asyncio.gather(users.load(1), users.load(2))  # one fetch: [1, 2]
    >>> await users.load(1)                                         # cached, no fetch
"""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Awaitable, Hashable, Iterable, Mapping, Sequence
from dataclasses import asdict, dataclass
from typing import Any, Callable, Generic, TypeAlias, TypeVar

from batchloader.batch import Batch, completed, relay, silence
from batchloader.cache import CacheStore, MemoryStore
from batchloader.errors import Err, InvalidArgument, InvalidResult, Ok, Result, error_code
from batchloader.observability import get_logger
from batchloader.scheduling import ScheduleFn, call_soon

from .options import LoaderOptions

K = TypeVar("K")
V = TypeVar("V")

BatchValues: TypeAlias = Sequence[Any]
BatchFn: TypeAlias = Callable[[list[Any]], Awaitable[BatchValues] | BatchValues]


@dataclass(slots=True)
class LoaderStats:
    """Counters for one loader instance."""
    batches: int = 0          # batch function invocations
    keys: int = 0             # keys sent to the batch function
    cache_hits: int = 0
    failed_batches: int = 0

    def as_dict(self) -> dict[str, int]:
        return asdict(self)


class DataLoader(Generic[K, V]):
    """Batching, deduplicating, caching loader over a batch function.

    Args:
        batch_fn: Called with a list of keys; returns (an awaitable of) a sequence
            of the same length holding, per key, a value, an exception instance,
            or an Ok/Err Result
        cache: Memoize results per cache key (default from settings: True)
        cache_key_fn: Derives the cache key from a load key (default: identity)
        max_batch_size: Max keys per batch function call (default: unbounded)
        schedule_fn: Decides when a batch dispatches (default: next loop iteration)
        cache_map: Custom CacheStore (requires cache enabled)
        name: Label used in log context (default: batch_fn's qualified name)

    Raises:
        InvalidArgument: on any invalid option

    All operations must be called from code running in an asyncio event loop.
    """

    __slots__ = ("_batch_fn", "_schedule", "_key_fn", "_max_batch_size", "_store", "_batch", "_tasks",
                 "_name", "_log", "stats")

    def __init__(
        self,
        batch_fn: BatchFn,
        *,
        cache: bool | None = None,
        cache_key_fn: Callable[[K], Hashable] | None = None,
        max_batch_size: int | float | None = None,
        schedule_fn: ScheduleFn | None = None,
        cache_map: CacheStore[V] | None = None,
        name: str | None = None,
    ) -> None:
        opts = LoaderOptions.build(
            batch_fn, cache=cache, cache_key_fn=cache_key_fn, max_batch_size=max_batch_size,
            schedule_fn=schedule_fn, cache_map=cache_map, name=name,
        )
        self._batch_fn: BatchFn = opts.batch_fn
        self._schedule: ScheduleFn = opts.schedule_fn or call_soon
        self._key_fn: Callable[[K], Hashable] = opts.cache_key_fn or _identity
        self._max_batch_size: int | float = opts.max_batch_size
        self._store: CacheStore[V] | None = (
            (opts.cache_map if opts.cache_map is not None else MemoryStore()) if opts.cache else None
        )
        self._batch: Batch[K, V] | None = None
        self._tasks: set[asyncio.Task[None]] = set()
        self._name = opts.name or getattr(batch_fn, "__qualname__", type(batch_fn).__name__)
        self._log = get_logger("batchloader", loader=self._name)
        self.stats = LoaderStats()

    # ─── Properties ──────────────────────────────────────────────────

    @property
    def name(self) -> str:
        return self._name

    @property
    def cache_enabled(self) -> bool:
        return self._store is not None

    @property
    def cache_map(self) -> CacheStore[V] | None:
        """The cache store, or None when caching is disabled."""
        return self._store

    @property
    def max_batch_size(self) -> int | float:
        return self._max_batch_size

    # ─── Loading ─────────────────────────────────────────────────────

    def load(self, key: K) -> asyncio.Future[V]:
        """Request the value for key. Returns a future settled when its batch dispatches.

        Raises:
            InvalidArgument: key is None, or its cache key is not hashable
        """
        if key is None:
            raise InvalidArgument(f"The loader.load() function must be called with a value, but got: {key!r}.")
        cache_key = self._cache_key(key)
        loop = asyncio.get_running_loop()
        batch = self._current_batch()

        if self._store is not None and (cached := self._store.get(cache_key)) is not None:
            hit: asyncio.Future[V] = loop.create_future()
            batch.on_finish(lambda: relay(cached, hit))
            self.stats.cache_hits += 1
            return hit

        future: asyncio.Future[V] = loop.create_future()
        batch.add(key, future)
        if self._store is not None:
            self._store.set(cache_key, future)
        # Callers cancelling their await must not cancel the shared fetch result
        return asyncio.shield(future)

    def load_many(self, keys: Sequence[K]) -> asyncio.Future[list[V | BaseException]]:
        """Load every key in one turn. Each position holds the value or the exception for that key.

        The returned future does not fail because of per-key errors.

        Raises:
            InvalidArgument: keys is not a sequence
        """
        return asyncio.gather(*self._load_each(keys, "load_many"), return_exceptions=True)

    def load_many_results(self, keys: Sequence[K]) -> asyncio.Task[list[Result[V, BaseException]]]:
        """Like load_many, with each outcome as Ok(value) or Err(exception)."""
        gathered = asyncio.gather(*self._load_each(keys, "load_many_results"), return_exceptions=True)
        return asyncio.get_running_loop().create_task(_as_results(gathered))

    def _load_each(self, keys: Sequence[K], method: str) -> list[asyncio.Future[V]]:
        if not _is_sequence(keys):
            raise InvalidArgument(f"The loader.{method}() function must be called with a sequence of keys, but got: {keys!r}.")
        loop = asyncio.get_running_loop()
        futures: list[asyncio.Future[V]] = []
        for key in keys:
            try:
                futures.append(self.load(key))
            except Exception as e:
                # Rejected key or failing cache_key_fn: recorded at its position
                futures.append(completed(loop, Err(e)))
        return futures

    # ─── Cache Operations ─────────────────────────────────────────────

    def clear(self, key: K) -> DataLoader[K, V]:
        """Remove key's cache entry so the next load fetches again. No-op if absent."""
        if self._store is not None:
            self._store.delete(self._cache_key(key))
        return self

    def clear_many(self, keys: Iterable[K]) -> DataLoader[K, V]:
        for key in keys:
            self.clear(key)
        return self

    def clear_all(self) -> DataLoader[K, V]:
        if self._store is not None:
            self._store.clear()
        return self

    def prime(self, key: K, value: V | BaseException | Result[V, Any] | Awaitable[V]) -> DataLoader[K, V]:
        """Seed the cache for key without fetching. Never overwrites an existing entry.

        value may be a plain value, an exception (cached as a failure), an Ok/Err
        Result, or an awaitable whose outcome becomes the entry.
        """
        if self._store is not None and self._store.get(cache_key := self._cache_key(key)) is None:
            self._store.set(cache_key, _primed(asyncio.get_running_loop(), value))
        elif inspect.iscoroutine(value):
            # Never scheduled, so never awaited
            value.close()
        return self

    def prime_many(self, entries: Mapping[K, Any] | Iterable[tuple[K, Any]]) -> DataLoader[K, V]:
        items = entries.items() if isinstance(entries, Mapping) else entries
        for key, value in items:
            self.prime(key, value)
        return self

    # ─── Batching ─────────────────────────────────────────────────────

    def _cache_key(self, key: K) -> Hashable:
        cache_key = self._key_fn(key)
        if self._store is not None:
            try:
                hash(cache_key)
            except TypeError:
                raise InvalidArgument(
                    f"Cache key {cache_key!r} for {key!r} is not hashable; pass a cache_key_fn."
                ) from None
        return cache_key

    def _current_batch(self) -> Batch[K, V]:
        """Open batch with room for a key, or a fresh one scheduled for dispatch exactly once."""
        if (batch := self._batch) is not None and batch.accepts(self._max_batch_size):
            return batch
        batch = Batch()
        self._schedule(lambda: self._dispatch(batch))
        self._batch = batch
        self._log.debug("batch scheduled")
        return batch

    def _dispatch(self, batch: Batch[K, V]) -> None:
        batch.dispatched = True
        if self._batch is batch:
            self._batch = None
        if not batch.keys:
            batch.replay_cache_hits()
            return

        keys = list(batch.keys)
        self.stats.batches += 1
        self.stats.keys += len(keys)
        self._log.debug("batch dispatched", size=len(keys))
        try:
            pending = self._batch_fn(keys)
        except Exception as e:
            self._fail(batch, e)
            return

        if inspect.isawaitable(pending):
            task = asyncio.get_running_loop().create_task(self._await_values(batch, pending))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)
        else:
            self._complete(batch, pending)

    async def _await_values(self, batch: Batch[K, V], pending: Awaitable[BatchValues]) -> None:
        try:
            values = await pending
        except asyncio.CancelledError:
            batch.replay_cache_hits()
            self._purge(batch)
            batch.cancel()
            raise
        except Exception as e:
            self._fail(batch, e)
            return
        self._complete(batch, values)

    def _complete(self, batch: Batch[K, V], values: object) -> None:
        if not _is_sequence(values):
            self._fail(batch, InvalidResult.not_a_sequence(batch.keys, values))
            return
        if len(values) != len(batch.keys):  # type: ignore[arg-type]
            self._fail(batch, InvalidResult.length_mismatch(batch.keys, values))  # type: ignore[arg-type]
            return
        batch.replay_cache_hits()
        batch.settle(values)  # type: ignore[arg-type]

    def _fail(self, batch: Batch[K, V], error: BaseException) -> None:
        """Fail every key in batch with error and drop their entries so a later load retries."""
        self.stats.failed_batches += 1
        self._log.warning("batch failed", size=len(batch), error=str(error), error_code=str(error_code(error)))
        batch.replay_cache_hits()
        self._purge(batch)
        batch.fail(error)

    def _purge(self, batch: Batch[K, V]) -> None:
        if self._store is None:
            return
        for key, future in zip(batch.keys, batch.futures):
            cache_key = self._key_fn(key)
            # Entry may have been cleared and replaced by a newer load
            if self._store.get(cache_key) is future:
                self._store.delete(cache_key)

    def __repr__(self) -> str:
        return (f"DataLoader(name={self._name!r}, cache={self.cache_enabled}, "
                f"max_batch_size={self._max_batch_size})")


def _identity(key: K) -> K:
    return key


def _is_sequence(value: object) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray))


def _primed(loop: asyncio.AbstractEventLoop, value: object) -> asyncio.Future[Any]:
    if isinstance(value, Result):
        return completed(loop, value)
    if isinstance(value, BaseException):
        return completed(loop, Err(value))
    if inspect.isawaitable(value):
        future = asyncio.ensure_future(value)
        silence(future)
        return future
    return completed(loop, Ok(value))


async def _as_results(gathered: Awaitable[list[Any]]) -> list[Result[Any, BaseException]]:
    return [Err(v) if isinstance(v, BaseException) else Ok(v) for v in await gathered]
