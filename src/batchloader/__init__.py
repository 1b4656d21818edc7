"""batchloader - Batching, deduplicating, caching loader for asyncio.

Request items one key at a time; every request issued in the same event loop
turn is coalesced into a single call of your batch function, duplicate keys
are fetched once, and results are memoized per key.

Quick Start:
    >>> from batchloader import DataLoader
    >>>
    >>> async def fetch_users(ids: list[int]) -> list[dict | Exception]:
    ...     rows = {r["id"]: r for r in await db.select_users(ids)}
    ...     return [rows.get(i, LookupError(f"user {i}")) for i in ids]
    >>>
    >>> users = DataLoader(fetch_users, max_batch_size=100)
    >>> alice, bob = await asyncio.gather(users.load(1), users.load(2))  # one fetch
    >>> await users.load_many([1, 2, 3])   # 1 and 2 cached, fetches [3]

Explicit outcomes:
    >>> from batchloader import Ok, Err
    >>> async def fetch(keys):
    ...     return [Ok(k * 2) if k > 0 else Err(ValueError(k)) for k in keys]

Cache control:
    >>> users.prime(4, {"id": 4}).clear(1)
    >>> users.clear_all()

Testing:
    >>> from batchloader.testing import ManualScheduler, RecordingBatchFn
    >>> fetch, scheduler = RecordingBatchFn(compute=str), ManualScheduler()
    >>> loader = DataLoader(fetch, schedule_fn=scheduler)
    >>> fut = loader.load(1); scheduler.flush(); await fut
    '1'
"""

from __future__ import annotations

__version__ = "0.1.0"

# Loader
from .loader import BatchFn, DataLoader, LoaderOptions, LoaderStats

# Errors
from .errors import (
    Err,
    ErrorCode,
    InvalidArgument,
    InvalidResult,
    LoaderError,
    Ok,
    Result,
    UpstreamError,
)

# Cache
from .cache import BaseStore, CacheStore, MemoryStore

# Scheduling
from .scheduling import ManualScheduler, ScheduleFn, call_later, call_soon

# Configuration
from .config import LoaderSettings, clear_settings_cache, get_settings

# Logging
from .observability import configure_logging, get_logger

__all__ = [
    "__version__",
    # Loader
    "DataLoader", "LoaderOptions", "LoaderStats", "BatchFn",
    # Errors
    "ErrorCode", "LoaderError", "InvalidArgument", "InvalidResult", "UpstreamError",
    "Result", "Ok", "Err",
    # Cache
    "CacheStore", "BaseStore", "MemoryStore",
    # Scheduling
    "ScheduleFn", "call_soon", "call_later", "ManualScheduler",
    # Configuration
    "LoaderSettings", "get_settings", "clear_settings_cache",
    # Logging
    "configure_logging", "get_logger",
]
