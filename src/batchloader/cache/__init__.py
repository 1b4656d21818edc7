"""Per-loader cache of key -> future.

Stores:
    - MemoryStore: dict-backed (default)
    - any object satisfying the CacheStore protocol (pass as cache_map=)
"""

from .store import BaseStore, CacheStore, MemoryStore

__all__ = [
    "CacheStore",
    "BaseStore",
    "MemoryStore",
]
