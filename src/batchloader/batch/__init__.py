"""Batch accumulation and future settlement."""

from .batch import Batch
from .futures import completed, fail, relay, settle, silence

__all__ = [
    "Batch",
    "completed",
    "fail",
    "relay",
    "settle",
    "silence",
]
