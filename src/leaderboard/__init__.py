"""
Monthly leaderboard

- Remote store contract with REST and in-memory implementations
- Local-first synchronizer with throttled, single-flight pulls
"""

from src.leaderboard.remote_store import (
    InMemoryLeaderboardStore,
    LeaderboardStore,
    RestLeaderboardStore,
)
from src.leaderboard.synchronizer import LeaderboardSynchronizer

__all__ = [
    "LeaderboardStore",
    "RestLeaderboardStore",
    "InMemoryLeaderboardStore",
    "LeaderboardSynchronizer",
]
