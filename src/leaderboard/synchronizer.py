"""
Leaderboard Synchronizer

Local-first sync between this device's activity and the monthly remote
leaderboard.

Protocol:
- Identity: a random device id, generated once and stored in user_profile.json
- Opt-in gate: push and pull are no-ops while opted out
- Push: upsert (device_id, month_year) with sessions recomputed from the
  activity log (completions this calendar month), so rollover needs no reset
- Pull: top-N for the month, rank = 1-based position (ties not collapsed),
  own rank = rows with strictly more sessions + 1
- Throttle: pulls within LEADERBOARD_REFRESH_INTERVAL of the last successful
  pull are skipped unless forced
- Single-flight: a pull requested while another is in flight is skipped
- Cache: shown on load, fully replaced on a successful pull, kept on failure

Remote failures never raise out of this class; they set error_message.
"""

import asyncio
import logging
from datetime import datetime
from typing import Callable, List, Optional
from uuid import uuid4

from src.config import LEADERBOARD_LIMIT, LEADERBOARD_REFRESH_INTERVAL
from src.exceptions import RemoteStoreError
from src.leaderboard.remote_store import LeaderboardStore
from src.models.leaderboard import LeaderboardEntry, UserProfile, current_month_year
from src.resilience.metrics import record_pull, record_push
from src.storage.json_store import JsonDocumentStore
from src.tracking.activity_log import ActivityLog

logger = logging.getLogger(__name__)

PROFILE_FILE = "user_profile.json"
CACHE_FILE = "leaderboard_cache.json"


def new_device_id() -> str:
    return str(uuid4()).upper()


def _ranked(rows: List[LeaderboardEntry]) -> List[LeaderboardEntry]:
    """Assign rank = 1-based position; equal session counts keep distinct ranks"""
    return [row.model_copy(update={"rank": position}) for position, row in enumerate(rows, start=1)]


class LeaderboardSynchronizer:
    """Owns the UserProfile and the leaderboard cache"""

    def __init__(
        self,
        store: JsonDocumentStore,
        remote: LeaderboardStore,
        activity_log: ActivityLog,
        refresh_interval: float = LEADERBOARD_REFRESH_INTERVAL,
        limit: int = LEADERBOARD_LIMIT,
        clock: Callable[[], datetime] = datetime.now
    ):
        self.store = store
        self.remote = remote
        self.activity_log = activity_log
        self.refresh_interval = refresh_interval
        self.limit = limit
        self.clock = clock

        self.profile: UserProfile = self.store.load(
            PROFILE_FILE,
            UserProfile,
            lambda: UserProfile(device_id=new_device_id()),
            persist_default=True,
        )
        self.entries: List[LeaderboardEntry] = _ranked(
            self.store.load(CACHE_FILE, List[LeaderboardEntry], list)
        )
        self.user_rank: Optional[int] = None
        self.error_message: Optional[str] = None
        self.last_refresh: Optional[datetime] = None
        self._pull_lock = asyncio.Lock()

        logger.info(
            f"Leaderboard ready for device {self.profile.device_id} "
            f"(opted_in={self.profile.opted_into_leaderboard}, {len(self.entries)} cached rows)"
        )

    # ------------------------------------------------------------------
    # Profile
    # ------------------------------------------------------------------

    def _save_profile(self) -> None:
        self.store.save(PROFILE_FILE, self.profile, UserProfile)

    def _save_cache(self) -> None:
        # rank is query-time only
        unranked = [entry.model_copy(update={"rank": None}) for entry in self.entries]
        self.store.save(CACHE_FILE, unranked, List[LeaderboardEntry])

    @property
    def device_id(self) -> str:
        return self.profile.device_id

    @property
    def has_joined_leaderboard(self) -> bool:
        return self.profile.opted_into_leaderboard and self.profile.has_completed_setup

    @property
    def is_loading(self) -> bool:
        return self._pull_lock.locked()

    @property
    def user_position_in_leaderboard(self) -> Optional[int]:
        """Own rank in the cached snapshot, else the separately computed rank"""
        for entry in self.entries:
            if entry.device_id == self.profile.device_id:
                return entry.rank
        return self.user_rank

    async def opt_in(self, username: str, country_code: Optional[str] = None) -> bool:
        """
        Join the leaderboard, then push and force a pull

        Returns:
            True when both push and pull succeeded
        """
        self.profile = self.profile.model_copy(update={
            "username": username.strip(),
            "country_code": country_code.upper() if country_code else None,
            "opted_into_leaderboard": True,
        })
        self._save_profile()
        logger.info(f"Device {self.device_id} opted into leaderboard as '{username}'")

        pushed = await self.sync()
        pulled = await self.refresh(force=True)
        return pushed and pulled

    def opt_out(self) -> None:
        self.profile = self.profile.model_copy(update={"opted_into_leaderboard": False})
        self._save_profile()
        logger.info(f"Device {self.device_id} opted out of leaderboard")

    async def update_profile(
        self,
        username: Optional[str] = None,
        country_code: Optional[str] = None
    ) -> bool:
        """Change display fields locally; pushes when opted in"""
        updates = {}
        if username is not None:
            updates["username"] = username.strip()
        if country_code is not None:
            updates["country_code"] = country_code.upper()
        if updates:
            self.profile = self.profile.model_copy(update=updates)
            self._save_profile()

        if not self.profile.opted_into_leaderboard:
            return True
        return await self.sync()

    # ------------------------------------------------------------------
    # Push
    # ------------------------------------------------------------------

    async def sync(self) -> bool:
        """
        Push this device's monthly session count

        Returns:
            True on success; False when opted out or the remote call failed
        """
        if not self.profile.opted_into_leaderboard:
            logger.debug("Not opted into leaderboard, skipping push")
            record_push("skipped")
            return False

        now = self.clock()
        month_year = current_month_year(now)
        if self.profile.is_new_month(now):
            logger.info(
                f"Leaderboard month rollover: {self.profile.last_synced_month or 'none'} -> {month_year}"
            )
            self.profile = self.profile.model_copy(update={"last_synced_month": month_year})
            self._save_profile()

        entry = LeaderboardEntry(
            device_id=self.profile.device_id,
            username=self.profile.username,
            country_code=self.profile.country_code,
            total_sessions=self.activity_log.monthly_completion_count(now),
            month_year=month_year,
            last_updated=now,
        )

        try:
            await self.remote.upsert(entry)
        except RemoteStoreError as e:
            self.error_message = e.user_message
            record_push("failure")
            logger.warning(f"Leaderboard push failed: {e.message}")
            return False

        self.error_message = None
        record_push("success")
        logger.info(f"Pushed {entry.total_sessions} sessions for {month_year}")
        return True

    # ------------------------------------------------------------------
    # Pull
    # ------------------------------------------------------------------

    def _is_throttled(self, now: datetime) -> bool:
        if self.last_refresh is None:
            return False
        return (now - self.last_refresh).total_seconds() < self.refresh_interval

    async def refresh(self, force: bool = False) -> bool:
        """
        Pull the ranked snapshot for the current month

        Args:
            force: Ignore the refresh throttle (after opt-in or a push)

        Returns:
            True when the cache was replaced
        """
        if not self.profile.opted_into_leaderboard:
            logger.debug("Not opted into leaderboard, skipping pull")
            record_pull("skipped")
            return False

        now = self.clock()
        if not force and self._is_throttled(now):
            logger.debug("Leaderboard pull throttled")
            record_pull("throttled")
            return False

        if self._pull_lock.locked():
            logger.debug("Leaderboard pull already in flight, skipping")
            record_pull("in_flight")
            return False

        async with self._pull_lock:
            month_year = current_month_year(now)
            try:
                rows = await self.remote.fetch_top(month_year, self.limit)
                ranked = _ranked(rows)
                user_rank = await self._own_rank(ranked, month_year)
            except RemoteStoreError as e:
                self.error_message = e.user_message
                record_pull("failure")
                logger.warning(f"Leaderboard pull failed, keeping {len(self.entries)} cached rows: {e.message}")
                return False

            self.entries = ranked
            self.user_rank = user_rank
            self.last_refresh = now
            self.error_message = None
            self._save_cache()

        record_pull("success")
        logger.info(f"Refreshed leaderboard for {month_year}: {len(ranked)} rows, own rank {user_rank}")
        return True

    async def _own_rank(self, ranked: List[LeaderboardEntry], month_year: str) -> Optional[int]:
        for entry in ranked:
            if entry.device_id == self.profile.device_id:
                return entry.rank

        own = await self.remote.fetch_entry(self.profile.device_id, month_year)
        if own is None:
            return None
        return await self.remote.count_above(month_year, own.total_sessions) + 1

    async def handle_exercise_completion(self) -> bool:
        """
        Push the new count, then force a pull regardless of push outcome

        Returns:
            Whether the push succeeded
        """
        pushed = await self.sync()
        await self.refresh(force=True)
        return pushed

    # ------------------------------------------------------------------
    # Reset
    # ------------------------------------------------------------------

    def reset_local_profile(self) -> None:
        """Opt out and clear display fields and cache; device id is kept"""
        self.profile = UserProfile(device_id=self.profile.device_id)
        self.entries = []
        self.user_rank = None
        self.last_refresh = None
        self.error_message = None
        self._save_profile()
        self._save_cache()
        logger.info(f"Reset local leaderboard profile for {self.device_id}")

    async def reset_leaderboard(self) -> bool:
        """Delete every remote row, then reset the local profile"""
        try:
            await self.remote.delete()
        except RemoteStoreError as e:
            self.error_message = e.user_message
            logger.error(f"Failed to clear remote leaderboard: {e.message}")
            return False

        self.reset_local_profile()
        return True
