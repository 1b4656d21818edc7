"""asyncio.Future helpers used to settle and relay per-key outcomes."""

from __future__ import annotations

import asyncio
from typing import TypeVar

from batchloader.errors import Result, UpstreamError

T = TypeVar("T")


def settle(future: asyncio.Future[T], outcome: Result[T, object]) -> bool:
    """Resolve or fail future from outcome. No-op on a future that is already done.

    Returns True if the future was settled by this call.
    """
    if future.done():
        return False
    if outcome.is_ok():
        future.set_result(outcome.unwrap())
    else:
        error = outcome.unwrap_err()
        _set_exception(future, error if isinstance(error, BaseException) else UpstreamError(error))
    return True


def fail(future: asyncio.Future[T], error: BaseException) -> bool:
    if future.done():
        return False
    _set_exception(future, error)
    return True


def _set_exception(future: asyncio.Future[T], error: BaseException) -> None:
    if isinstance(error, StopIteration):
        # Futures refuse StopIteration
        wrapped = UpstreamError(error)
        wrapped.__cause__ = error
        error = wrapped
    future.set_exception(error)
    # Delivered through the caller-facing handle; the source itself never warns
    future.exception()


def relay(source: asyncio.Future[T], target: asyncio.Future[T]) -> None:
    """Copy source's outcome into target, now if source is done, else on completion."""
    if source.done():
        _copy(source, target)
    else:
        source.add_done_callback(lambda s: _copy(s, target))


def _copy(source: asyncio.Future[T], target: asyncio.Future[T]) -> None:
    if source.cancelled():
        target.cancel()
        return
    # exception() also marks the source's error as retrieved
    if (error := source.exception()) is not None:
        if not target.done():
            target.set_exception(error)
    elif not target.done():
        target.set_result(source.result())


def completed(loop: asyncio.AbstractEventLoop, outcome: Result[T, object]) -> asyncio.Future[T]:
    """Already-settled future. A failed one never warns if left unobserved."""
    future: asyncio.Future[T] = loop.create_future()
    settle(future, outcome)
    return future


def silence(future: asyncio.Future[T]) -> None:
    """Mark future's eventual exception as retrieved."""
    if future.done():
        if not future.cancelled():
            future.exception()
    else:
        future.add_done_callback(silence)
