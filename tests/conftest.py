"""Global test fixtures and utilities for progress tracker tests"""
import pytest
from datetime import datetime, timedelta

from src.leaderboard.remote_store import InMemoryLeaderboardStore
from src.services.container import build_container
from src.storage.json_store import JsonDocumentStore
from src.tracking.activity_log import ActivityLog


class FakeClock:
    """Callable clock that only moves when told to"""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


# ============================================================================
# Time Fixtures
# ============================================================================

@pytest.fixture
def fixed_now():
    """Wednesday mid-month, mid-morning"""
    return datetime(2025, 10, 15, 9, 0, 0)


@pytest.fixture
def clock(fixed_now):
    return FakeClock(fixed_now)


# ============================================================================
# Storage Fixtures
# ============================================================================

@pytest.fixture
def data_dir(tmp_path):
    path = tmp_path / "data"
    path.mkdir()
    return path


@pytest.fixture
def json_store(data_dir):
    return JsonDocumentStore(data_dir)


@pytest.fixture
def activity_log(json_store):
    return ActivityLog(json_store)


@pytest.fixture
def first_exercise(activity_log):
    return activity_log.exercises[0]


# ============================================================================
# Service Fixtures
# ============================================================================

@pytest.fixture
def remote_store():
    return InMemoryLeaderboardStore()


@pytest.fixture
def container(data_dir, remote_store, clock):
    """Fully wired container over a temp directory and in-memory leaderboard"""
    return build_container(data_dir, remote=remote_store, clock=clock)
