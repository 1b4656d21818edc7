"""Loader engine: DataLoader and its validated options."""

from .loader import BatchFn, DataLoader, LoaderStats
from .options import LoaderOptions

__all__ = [
    "BatchFn",
    "DataLoader",
    "LoaderOptions",
    "LoaderStats",
]
