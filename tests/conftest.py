# tests/conftest.py - v2
"""Shared test fixtures for unit and integration tests.

Provides a controllable clock, a memory cache store driven by it, and a
mocked datastore client. No network access: all remote I/O is mocked.
"""

from __future__ import annotations

import logging
from unittest.mock import AsyncMock

import pytest

from silvererp.cache.memory_store import MemoryCacheStore
from silvererp.datastore.base_client import BaseDataClient
from silvererp.logging.context import clear_context
from silvererp.logging.logger import ROOT_LOGGER


class FakeClock:
    """Monotonic clock advanced by hand."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


# === FIXTURES: Cache ===


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(clock: FakeClock) -> MemoryCacheStore:
    """Memory store with the default 120 s TTL and 0.75 refresh ratio."""
    return MemoryCacheStore(clock=clock)


# === FIXTURES: Datastore ===


@pytest.fixture
def mock_client() -> AsyncMock:
    """Datastore client whose every method is an AsyncMock.

    Reads default to empty results; set ``return_value`` per test.
    """
    client = AsyncMock(spec=BaseDataClient)
    client.select.return_value = []
    client.select_one.return_value = None
    client.count.return_value = 0
    client.insert.return_value = []
    client.update.return_value = []
    client.delete.return_value = None
    client.rpc.return_value = None
    return client


@pytest.fixture(autouse=True)
def _reset_logging():
    """Undo setup_logging and context changes made by a test."""
    yield
    clear_context()
    root = logging.getLogger(ROOT_LOGGER)
    root.handlers.clear()
    root.setLevel(logging.NOTSET)
