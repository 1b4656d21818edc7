"""Test helpers: recording batch function and deterministic scheduling."""

from batchloader.scheduling import ManualScheduler

from .mock import Call, RecordingBatchFn

__all__ = [
    "Call",
    "ManualScheduler",
    "RecordingBatchFn",
]
