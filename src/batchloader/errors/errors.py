"""Error kinds raised by the loader.

Every loader exception carries an ErrorCode for programmatic handling.
Errors produced by a batch function are never wrapped: they reach the
caller's future verbatim. Only non-exception Err payloads are wrapped in
UpstreamError so that futures always fail with an exception.
"""

from __future__ import annotations

from collections.abc import Sequence
from enum import StrEnum
from typing import Self

# Listings in error messages are truncated past this many items
_MAX_LISTED = 50


class ErrorCode(StrEnum):
    """Machine-readable classification of loader failures."""
    INVALID_ARGUMENT = "INVALID_ARGUMENT"
    INVALID_RESULT = "INVALID_RESULT"
    UPSTREAM = "UPSTREAM"
    UNKNOWN = "UNKNOWN"


class LoaderError(Exception):
    """Base class for all loader errors."""

    code: ErrorCode = ErrorCode.UNKNOWN

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class InvalidArgument(LoaderError, TypeError, ValueError):
    """Bad constructor option or method argument. Raised synchronously."""

    code = ErrorCode.INVALID_ARGUMENT


class InvalidResult(LoaderError, TypeError):
    """Batch function returned something other than one value per key."""

    code = ErrorCode.INVALID_RESULT

    def __init__(self, message: str, keys: Sequence[object], values: object) -> None:
        self.keys = list(keys)
        self.values = values
        super().__init__(message)

    @classmethod
    def not_a_sequence(cls, keys: Sequence[object], values: object) -> Self:
        return cls(
            "DataLoader must be constructed with a function which accepts a sequence of keys "
            "and returns an awaitable sequence of values, but the function did not return "
            f"a sequence: {values!r}.",
            keys, values,
        )

    @classmethod
    def length_mismatch(cls, keys: Sequence[object], values: Sequence[object]) -> Self:
        return cls(
            "DataLoader must be constructed with a function which accepts a sequence of keys "
            "and returns an awaitable sequence of values, but the function returned a sequence "
            f"of length {len(values)} for {len(keys)} keys (length mismatch)."
            f"\n\nKeys:\n{_listing(keys)}"
            f"\n\nValues:\n{_listing(values)}",
            keys, values,
        )


class UpstreamError(LoaderError):
    """Wraps a non-exception error payload placed by the batch function."""

    code = ErrorCode.UPSTREAM

    __slots__ = ("payload",)

    def __init__(self, payload: object) -> None:
        self.payload = payload
        super().__init__(f"Batch function reported an error: {payload!r}")


def error_code(exc: BaseException) -> ErrorCode:
    """Code of a loader error, UPSTREAM for anything raised by user code."""
    return exc.code if isinstance(exc, LoaderError) else ErrorCode.UPSTREAM


def _listing(items: Sequence[object]) -> str:
    shown = ", ".join(repr(i) for i in items[:_MAX_LISTED])
    return f"[{shown}, ...]" if len(items) > _MAX_LISTED else f"[{shown}]"
