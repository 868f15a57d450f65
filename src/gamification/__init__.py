"""
Gamification system for the posture progress tracker

This package turns the activity log into progress signals:
- XP and leveling (immutable level catalog)
- Daily streak tracking per activity type
- Idempotent reward ledger (daily goal, extras, streak milestones)
- Achievements and coin rewards
- Custom goals
"""

from src.gamification.xp_system import calculate_level_from_xp, create_default_levels
from src.gamification.streak_system import StreakEngine
from src.gamification.achievement_system import check_and_award_achievements
from src.gamification.reward_ledger import RewardLedger, STREAK_MILESTONES
from src.gamification.goals import GoalsManager

__all__ = [
    "calculate_level_from_xp",
    "create_default_levels",
    "StreakEngine",
    "check_and_award_achievements",
    "RewardLedger",
    "STREAK_MILESTONES",
    "GoalsManager",
]
