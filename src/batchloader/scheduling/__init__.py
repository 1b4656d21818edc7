"""Schedule functions controlling when batches dispatch."""

from .scheduler import Callback, ManualScheduler, ScheduleFn, call_later, call_soon

__all__ = [
    "Callback",
    "ScheduleFn",
    "ManualScheduler",
    "call_later",
    "call_soon",
]
