"""Shared fixtures: fresh settings and a captured log sink per test."""

from __future__ import annotations

from collections.abc import Iterator

import pytest

from batchloader.config import clear_settings_cache
from batchloader.observability import MemoryRenderer, reset_logging, use_renderer
from batchloader.testing import ManualScheduler, RecordingBatchFn


@pytest.fixture(autouse=True)
def clean_settings() -> Iterator[None]:
    """Reload settings from the (possibly monkeypatched) environment for each test."""
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture(autouse=True)
def log_sink() -> Iterator[MemoryRenderer]:
    """Capture log entries instead of writing to stderr."""
    sink = use_renderer(MemoryRenderer(), level="DEBUG")
    yield sink  # type: ignore[misc]
    reset_logging()


@pytest.fixture
def double() -> RecordingBatchFn:
    """Batch function mapping every key k to k * 2."""
    return RecordingBatchFn(compute=lambda k: k * 2)  # type: ignore[operator]


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()
