"""Global pytest configuration and fixtures."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from tests.fakes import FakeCache, FakeCustomerStore, ManualClock


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "integration: tests that need Docker for PostgreSQL and Redis"
    )


@pytest.fixture
def clock() -> ManualClock:
    """A clock that only moves when told to."""
    return ManualClock(datetime(2024, 1, 1, 12, 0, 0, tzinfo=UTC))


@pytest.fixture
def fake_cache(clock: ManualClock) -> FakeCache:
    """In-memory cache that expires entries against the manual clock."""
    return FakeCache(clock)


@pytest.fixture
def store() -> FakeCustomerStore:
    """In-memory customer store that counts its calls."""
    return FakeCustomerStore()
