"""
Service Container - Dependency Injection Container

Simple DI container that owns one instance of each store and service.
Uses lazy loading to only instantiate services when first accessed.
There is no global container: callers build one and pass it along.
"""

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional
import logging

import pybreaker

from src.config import (
    DAILY_GOAL,
    LEADERBOARD_API_KEY,
    LEADERBOARD_URL,
    QUICK_SLOT_COOLDOWN_MINUTES,
)
from src.leaderboard.remote_store import (
    InMemoryLeaderboardStore,
    LeaderboardStore,
    RestLeaderboardStore,
)
from src.resilience.circuit_breaker import create_breaker
from src.storage.json_store import JsonDocumentStore, ensure_data_dir

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    """
    Simple dependency injection container for services.

    Services are lazy-loaded on first access via properties.
    Infrastructure dependencies (document store, remote leaderboard) are injected.
    """

    # Infrastructure dependencies (injected)
    store: JsonDocumentStore
    remote: LeaderboardStore
    daily_goal: int = DAILY_GOAL
    cooldown_minutes: int = QUICK_SLOT_COOLDOWN_MINUTES
    clock: Callable[[], datetime] = datetime.now

    # Services (lazy-loaded via properties)
    _activity_log: Optional[object] = field(default=None, init=False, repr=False)
    _scheduler: Optional[object] = field(default=None, init=False, repr=False)
    _streaks: Optional[object] = field(default=None, init=False, repr=False)
    _ledger: Optional[object] = field(default=None, init=False, repr=False)
    _goals: Optional[object] = field(default=None, init=False, repr=False)
    _leaderboard: Optional[object] = field(default=None, init=False, repr=False)
    _progress_service: Optional[object] = field(default=None, init=False, repr=False)

    @property
    def activity_log(self):
        if self._activity_log is None:
            from src.tracking.activity_log import ActivityLog
            self._activity_log = ActivityLog(self.store)
            logger.debug("ActivityLog instantiated")
        return self._activity_log

    @property
    def scheduler(self):
        if self._scheduler is None:
            from src.scheduling.time_slots import TimeSlotScheduler
            self._scheduler = TimeSlotScheduler(self.activity_log, self.cooldown_minutes)
            logger.debug("TimeSlotScheduler instantiated")
        return self._scheduler

    @property
    def streaks(self):
        if self._streaks is None:
            from src.gamification.streak_system import StreakEngine
            self._streaks = StreakEngine(self.store)
            logger.debug("StreakEngine instantiated")
        return self._streaks

    @property
    def ledger(self):
        if self._ledger is None:
            from src.gamification.reward_ledger import RewardLedger
            self._ledger = RewardLedger(self.store)
            logger.debug("RewardLedger instantiated")
        return self._ledger

    @property
    def goals(self):
        if self._goals is None:
            from src.gamification.goals import GoalsManager
            self._goals = GoalsManager(self.store)
            logger.debug("GoalsManager instantiated")
        return self._goals

    @property
    def leaderboard(self):
        if self._leaderboard is None:
            from src.leaderboard.synchronizer import LeaderboardSynchronizer
            self._leaderboard = LeaderboardSynchronizer(
                self.store, self.remote, self.activity_log, clock=self.clock
            )
            logger.debug("LeaderboardSynchronizer instantiated")
        return self._leaderboard

    @property
    def progress_service(self):
        """Get ProgressService instance (lazy-loaded)"""
        if self._progress_service is None:
            from src.services.progress_service import ProgressService
            self._progress_service = ProgressService(
                activity_log=self.activity_log,
                scheduler=self.scheduler,
                streaks=self.streaks,
                ledger=self.ledger,
                goals=self.goals,
                leaderboard=self.leaderboard,
                daily_goal=self.daily_goal,
                clock=self.clock,
            )
            logger.debug("ProgressService instantiated")
        return self._progress_service

    async def aclose(self) -> None:
        await self.remote.aclose()


def create_remote_store(
    base_url: str = LEADERBOARD_URL,
    api_key: str = LEADERBOARD_API_KEY,
    breaker: Optional[pybreaker.CircuitBreaker] = None
) -> LeaderboardStore:
    """REST store when a leaderboard URL is configured, in-memory otherwise"""
    if base_url:
        logger.info(f"Using REST leaderboard store at {base_url}")
        return RestLeaderboardStore(
            base_url=base_url,
            api_key=api_key,
            breaker=breaker if breaker is not None else create_breaker("leaderboard_store"),
        )
    logger.warning("LEADERBOARD_URL not set - leaderboard rows are NOT shared across devices")
    return InMemoryLeaderboardStore()


def build_container(
    data_path: Optional[Path] = None,
    remote: Optional[LeaderboardStore] = None,
    **kwargs
) -> ServiceContainer:
    """
    Build a container over a data directory.

    Args:
        data_path: Directory for the JSON documents (defaults to DATA_PATH)
        remote: Leaderboard store (defaults to create_remote_store())
        **kwargs: Forwarded to ServiceContainer (daily_goal, cooldown_minutes, clock)

    Returns:
        ServiceContainer: A new, independent container
    """
    path = ensure_data_dir(data_path)
    container = ServiceContainer(
        store=JsonDocumentStore(path),
        remote=remote if remote is not None else create_remote_store(),
        **kwargs
    )
    logger.info(f"Service container initialized at {path}")
    return container
