"""Pytest configuration for repository test runs."""

from __future__ import annotations

import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest


def pytest_sessionstart() -> None:
    """Add src directory to sys.path for test imports."""
    project_root = Path(__file__).resolve().parent.parent
    for path in (project_root / "src", project_root):
        if str(path) not in sys.path:
            sys.path.insert(0, str(path))


class FrozenClock:
    """Settable clock passed to the store in place of datetime.now."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def fake_client():
    """Return an empty in-memory DynamoDB client."""
    from tests.fake_dynamodb import FakeDynamoClient

    return FakeDynamoClient()


@pytest.fixture
def clock() -> FrozenClock:
    """Return a clock frozen shortly after the sample record's modified time."""
    return FrozenClock(datetime(2025, 3, 1, 12, 5, tzinfo=timezone.utc))


@pytest.fixture
def store(fake_client, clock):
    """Return a store wired to the fake client and frozen clock."""
    from core.config import DmpStoreConfig
    from store.dmp_store import DmpStore

    config = DmpStoreConfig(table_name="dmps-test", domain_name="dmptool.example.org")
    return DmpStore(config, client=fake_client, clock=clock)
