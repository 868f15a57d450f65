"""Unit tests for the Leaderboard Synchronizer (src/leaderboard/synchronizer.py)"""
import pytest
from datetime import datetime, timedelta
from unittest.mock import AsyncMock

import httpx

from src.exceptions import RemoteStoreError
from src.leaderboard.remote_store import InMemoryLeaderboardStore, RestLeaderboardStore
from src.leaderboard.synchronizer import LeaderboardSynchronizer
from src.models.activity import TimeSlot
from src.models.leaderboard import LeaderboardEntry
from src.resilience.circuit_breaker import create_breaker

MONTH = "2025-10"


def entry(device_id, sessions, month_year=MONTH):
    return LeaderboardEntry(device_id=device_id, username=device_id.lower(),
                            total_sessions=sessions, month_year=month_year)


class FailingStore(InMemoryLeaderboardStore):
    """In-memory store whose reads and deletes fail like an unreachable server"""

    async def fetch_top(self, month_year, limit):
        raise RemoteStoreError("fetch_top failed", service="leaderboard", status_code=503)

    async def delete(self, device_id=None, month_year=None):
        raise RemoteStoreError("delete failed", service="leaderboard", status_code=503)


@pytest.fixture
def make_sync(json_store, activity_log, clock):
    def _make(remote=None, limit=100, refresh_interval=300):
        return LeaderboardSynchronizer(
            json_store,
            remote if remote is not None else InMemoryLeaderboardStore(),
            activity_log,
            refresh_interval=refresh_interval,
            limit=limit,
            clock=clock,
        )
    return _make


def complete_n(activity_log, exercise, n, at):
    for i in range(n):
        activity_log.record_completion(exercise.id, 60, TimeSlot.QUICK, at - timedelta(minutes=i))


# ============================================================================
# Identity and Opt-in Tests
# ============================================================================

def test_device_id_stable_across_reloads(make_sync):
    first = make_sync()
    second = make_sync()

    assert first.device_id == second.device_id
    assert first.device_id == first.device_id.upper()


@pytest.mark.asyncio
async def test_opted_out_push_and_pull_are_noops(make_sync):
    remote = InMemoryLeaderboardStore()
    sync = make_sync(remote)

    assert await sync.sync() is False
    assert await sync.refresh(force=True) is False
    assert remote.rows == []
    assert sync.error_message is None


@pytest.mark.asyncio
async def test_opt_in_pushes_and_pulls(make_sync, activity_log, first_exercise, fixed_now):
    remote = InMemoryLeaderboardStore()
    complete_n(activity_log, first_exercise, 3, fixed_now)
    sync = make_sync(remote)

    assert await sync.opt_in("  neo ", "se")

    assert sync.has_joined_leaderboard
    assert sync.profile.username == "neo"
    assert sync.profile.country_code == "SE"
    assert remote.rows[0].total_sessions == 3
    assert remote.rows[0].month_year == MONTH
    assert sync.user_position_in_leaderboard == 1


@pytest.mark.asyncio
async def test_opt_out(make_sync):
    sync = make_sync()
    await sync.opt_in("neo")

    sync.opt_out()

    assert not sync.has_joined_leaderboard
    assert make_sync().profile.opted_into_leaderboard is False


# ============================================================================
# Ranking Tests
# ============================================================================

@pytest.mark.asyncio
async def test_ties_keep_distinct_positions(make_sync):
    remote = InMemoryLeaderboardStore([entry("A", 50), entry("B", 50), entry("C", 30)])
    sync = make_sync(remote)
    await sync.opt_in("neo")

    ranked = [(e.device_id, e.rank) for e in sync.entries if e.device_id in {"A", "B", "C"}]

    assert ranked == [("A", 1), ("B", 2), ("C", 3)]


@pytest.mark.asyncio
async def test_own_rank_outside_top_n(make_sync, activity_log, first_exercise, fixed_now):
    """Top-2 of [50, 50] with own 40 sessions gives rank 3"""
    remote = InMemoryLeaderboardStore([entry("A", 50), entry("B", 50)])
    complete_n(activity_log, first_exercise, 40, fixed_now)
    sync = make_sync(remote, limit=2)

    await sync.opt_in("neo")

    assert [e.device_id for e in sync.entries] == ["A", "B"]
    assert sync.user_rank == 3
    assert sync.user_position_in_leaderboard == 3


@pytest.mark.asyncio
async def test_cache_reload_rederives_rank(make_sync, json_store):
    remote = InMemoryLeaderboardStore([entry("A", 50), entry("B", 20)])
    sync = make_sync(remote)
    await sync.opt_in("neo")

    raw = json_store.path_for("leaderboard_cache.json").read_text()
    reloaded = make_sync(remote)

    assert '"rank": null' in raw
    assert [e.rank for e in reloaded.entries] == [1, 2, 3]


# ============================================================================
# Pull Policy Tests
# ============================================================================

@pytest.mark.asyncio
async def test_refresh_throttled_unless_forced(make_sync, clock):
    remote = InMemoryLeaderboardStore()
    sync = make_sync(remote, refresh_interval=300)
    await sync.opt_in("neo")
    remote.fetch_top = AsyncMock(return_value=[])

    clock.advance(seconds=60)
    assert await sync.refresh() is False
    remote.fetch_top.assert_not_called()

    assert await sync.refresh(force=True) is True
    clock.advance(seconds=301)
    assert await sync.refresh() is True
    assert remote.fetch_top.await_count == 2


@pytest.mark.asyncio
async def test_refresh_single_flight(make_sync):
    sync = make_sync()
    await sync.opt_in("neo")

    async with sync._pull_lock:
        assert sync.is_loading
        assert await sync.refresh(force=True) is False

    assert not sync.is_loading


@pytest.mark.asyncio
async def test_failed_pull_keeps_cache(make_sync, json_store):
    healthy = InMemoryLeaderboardStore([entry("A", 50)])
    await make_sync(healthy).opt_in("neo")

    sync = make_sync(FailingStore())
    cached = [e.device_id for e in sync.entries]

    assert await sync.refresh(force=True) is False
    assert [e.device_id for e in sync.entries] == cached
    assert sync.error_message is not None
    assert sync.last_refresh is None


@pytest.mark.asyncio
async def test_failed_push_sets_error(make_sync):
    remote = InMemoryLeaderboardStore()
    sync = make_sync(remote)
    await sync.opt_in("neo")
    remote.upsert = AsyncMock(side_effect=RemoteStoreError("upsert failed", service="leaderboard"))

    assert await sync.sync() is False
    assert "leaderboard" in sync.error_message


@pytest.fixture
def joined_rest_sync(make_sync):
    """Opt in against a healthy store, then reload the profile and cache over a REST store"""
    async def _make(handler):
        await make_sync(InMemoryLeaderboardStore([entry("A", 50), entry("B", 20)])).opt_in("neo")
        remote = RestLeaderboardStore(
            base_url="https://example.supabase.co",
            api_key="test-key",
            breaker=create_breaker("test_sync_rest", fail_max=5, reset_timeout=60),
            transport=httpx.MockTransport(handler),
        )
        return make_sync(remote)
    return _make


@pytest.mark.asyncio
async def test_rest_push_unavailable_sets_error(joined_rest_sync):
    sync = await joined_rest_sync(lambda request: httpx.Response(503))
    cached = [e.device_id for e in sync.entries]

    assert await sync.sync() is False

    assert "leaderboard" in sync.error_message
    assert [e.device_id for e in sync.entries] == cached
    await sync.remote.aclose()


@pytest.mark.asyncio
@pytest.mark.parametrize("status_code,body", [
    (503, {"json": {"message": "unavailable"}}),
    (200, {"text": "<html>proxy login</html>"}),
    (200, {"json": [{"device_id": "C", "total_sessions": -4, "month_year": MONTH}]}),
])
async def test_rest_pull_failure_keeps_cache(joined_rest_sync, json_store, status_code, body):
    sync = await joined_rest_sync(lambda request: httpx.Response(status_code, **body))
    cached = [(e.device_id, e.rank) for e in sync.entries]

    assert await sync.refresh(force=True) is False

    assert sync.error_message is not None
    assert [(e.device_id, e.rank) for e in sync.entries] == cached
    assert len(json_store.load("leaderboard_cache.json", list, list)) == len(cached)
    await sync.remote.aclose()


@pytest.mark.asyncio
async def test_rest_completion_failure_reports_unsynced(joined_rest_sync):
    sync = await joined_rest_sync(lambda request: httpx.Response(502))

    assert await sync.handle_exercise_completion() is False
    assert sync.error_message is not None
    assert not sync.is_loading
    await sync.remote.aclose()


@pytest.mark.asyncio
async def test_successful_pull_clears_error(make_sync):
    sync = make_sync()
    await sync.opt_in("neo")
    sync.error_message = "stale"

    await sync.refresh(force=True)

    assert sync.error_message is None


# ============================================================================
# Month Rollover Tests
# ============================================================================

@pytest.mark.asyncio
async def test_month_rollover_pushes_new_row(make_sync, activity_log, first_exercise, clock, fixed_now):
    remote = InMemoryLeaderboardStore()
    complete_n(activity_log, first_exercise, 5, fixed_now)
    sync = make_sync(remote)
    await sync.opt_in("neo")

    clock.now = datetime(2025, 11, 1, 8, 0)
    activity_log.record_completion(first_exercise.id, 60, TimeSlot.QUICK, clock.now)
    await sync.sync()

    rows = {r.month_year: r.total_sessions for r in remote.rows}
    assert rows == {"2025-10": 5, "2025-11": 1}
    assert sync.profile.last_synced_month == "2025-11"


@pytest.mark.asyncio
async def test_update_profile_pushes_when_opted_in(make_sync):
    remote = InMemoryLeaderboardStore()
    sync = make_sync(remote)
    await sync.opt_in("neo")

    assert await sync.update_profile(username="trinity", country_code="us")

    assert remote.rows[0].username == "trinity"
    assert remote.rows[0].country_code == "US"


# ============================================================================
# Reset Tests
# ============================================================================

@pytest.mark.asyncio
async def test_reset_local_profile_keeps_device_id(make_sync):
    sync = make_sync(InMemoryLeaderboardStore([entry("A", 50)]))
    await sync.opt_in("neo")
    device_id = sync.device_id

    sync.reset_local_profile()

    assert sync.device_id == device_id
    assert sync.profile.username is None
    assert not sync.profile.opted_into_leaderboard
    assert sync.entries == []
    assert make_sync().entries == []


@pytest.mark.asyncio
async def test_reset_leaderboard_clears_remote(make_sync):
    remote = InMemoryLeaderboardStore([entry("A", 50)])
    sync = make_sync(remote)
    await sync.opt_in("neo")

    assert await sync.reset_leaderboard()

    assert remote.rows == []
    assert not sync.has_joined_leaderboard


@pytest.mark.asyncio
async def test_reset_leaderboard_failure_keeps_local_state(make_sync):
    sync = make_sync(FailingStore())
    await sync.opt_in("neo")

    assert await sync.reset_leaderboard() is False

    assert sync.has_joined_leaderboard
    assert sync.error_message is not None
