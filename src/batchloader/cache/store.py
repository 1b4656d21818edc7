"""Cache store: derived cache key -> future of the loaded value.

Entries hold futures, not values, so a pending load is shared by every
caller that asks for the same key before it settles. Entries never expire;
they live until cleared explicitly or purged by a failed batch.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Hashable, Iterator
from typing import TYPE_CHECKING, Generic, Protocol, TypeVar, runtime_checkable

if TYPE_CHECKING:
    import asyncio

V = TypeVar("V")


@runtime_checkable
class CacheStore(Protocol[V]):
    """Protocol for cache stores (enables custom implementations)."""

    def get(self, key: Hashable) -> asyncio.Future[V] | None: ...
    def set(self, key: Hashable, value: asyncio.Future[V]) -> None: ...
    def delete(self, key: Hashable) -> bool: ...
    def clear(self) -> None: ...
    def __len__(self) -> int: ...
    def __contains__(self, key: object) -> bool: ...


class BaseStore(ABC, Generic[V]):
    """Abstract base for stores; derives membership from get."""

    @abstractmethod
    def get(self, key: Hashable) -> asyncio.Future[V] | None:
        """Get the entry for key, or None."""
        ...

    @abstractmethod
    def set(self, key: Hashable, value: asyncio.Future[V]) -> None:
        """Store entry, replacing any existing one."""
        ...

    @abstractmethod
    def delete(self, key: Hashable) -> bool:
        """Remove entry. Returns True if it existed."""
        ...

    @abstractmethod
    def clear(self) -> None:
        ...

    @abstractmethod
    def __len__(self) -> int: ...

    def __contains__(self, key: object) -> bool:
        return self.get(key) is not None  # type: ignore[arg-type]


class MemoryStore(BaseStore[V]):
    """Dict-backed store owned by a single loader.

    No locking: every mutation happens on the event loop thread between
    suspension points.

    Example:
        >>> store = MemoryStore()
        >>> store.set("user:1", fut)
        >>> store.get("user:1") is fut
        True
    """

    __slots__ = ("_entries",)

    def __init__(self) -> None:
        self._entries: dict[Hashable, asyncio.Future[V]] = {}

    def get(self, key: Hashable) -> asyncio.Future[V] | None:
        return self._entries.get(key)

    def set(self, key: Hashable, value: asyncio.Future[V]) -> None:
        self._entries[key] = value

    def delete(self, key: Hashable) -> bool:
        return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        self._entries.clear()

    def keys(self) -> Iterator[Hashable]:
        return iter(list(self._entries))

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def stats(self) -> dict[str, int]:
        """Entry counts by state, for monitoring."""
        pending = sum(1 for f in self._entries.values() if not f.done())
        failed = sum(1 for f in self._entries.values() if f.done() and not f.cancelled() and f.exception() is not None)
        return {
            "total_entries": len(self._entries),
            "pending_entries": pending,
            "failed_entries": failed,
            "resolved_entries": len(self._entries) - pending - failed,
        }
