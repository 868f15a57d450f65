"""
ProgressService - Activity Pipeline

Consumes the "exercise completed", "check-in" and "app data reset" events and
drives every derived value from the activity log:

    completion → activity log append → streak recompute → ledger award pass
    → achievements → goal progress → leaderboard push, then forced pull

Also exposes the read-side queries (streaks, level progress, slot
availability, goal progress, leaderboard snapshot).
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Optional
from uuid import UUID

from src.config import DAILY_GOAL
from src.gamification.achievement_system import check_and_award_achievements
from src.gamification.goals import GoalsManager
from src.gamification.reward_ledger import RewardLedger
from src.gamification.streak_system import StreakEngine
from src.leaderboard.synchronizer import LeaderboardSynchronizer
from src.models.activity import TimeSlot
from src.models.streak import StreakType
from src.scheduling.time_slots import SLOT_ORDER, TimeSlotScheduler, current_time_slot
from src.tracking.activity_log import ActivityLog

logger = logging.getLogger(__name__)

# Streak that drives the milestone bonuses
MILESTONE_STREAK_TYPE = StreakType.EXERCISES


class ProgressService:
    """
    Service for the progress pipeline.

    Responsibilities:
    - Append activity and recompute streaks
    - Run the idempotent award rules exactly once per event
    - Evaluate achievements and project goal progress
    - Signal the leaderboard after completions
    """

    def __init__(
        self,
        activity_log: ActivityLog,
        scheduler: TimeSlotScheduler,
        streaks: StreakEngine,
        ledger: RewardLedger,
        goals: GoalsManager,
        leaderboard: LeaderboardSynchronizer,
        daily_goal: int = DAILY_GOAL,
        clock: Callable[[], datetime] = datetime.now
    ):
        self.activity_log = activity_log
        self.scheduler = scheduler
        self.streaks = streaks
        self.ledger = ledger
        self.goals = goals
        self.leaderboard = leaderboard
        self.daily_goal = daily_goal
        self.clock = clock
        logger.debug("ProgressService initialized")

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    async def record_exercise_completion(
        self,
        exercise_id: UUID,
        duration_seconds: int,
        time_slot: TimeSlot,
        completed_at: Optional[datetime] = None
    ) -> Dict[str, Any]:
        """
        Process one exercise completion end to end.

        Args:
            exercise_id: Catalog exercise that was completed
            duration_seconds: Actual time spent
            time_slot: Slot the completion counts toward
            completed_at: Defaults to now

        Returns:
            {
                'completion_id': UUID,
                'xp_awarded': int,
                'level_up': bool,
                'new_level': int,
                'current_streak': int,
                'achievements_unlocked': list[str],
                'leaderboard_synced': bool
            }

        Raises:
            ValidationError: Unknown exercise or negative duration
        """
        now = self.clock()
        completed_at = completed_at or now
        old_level = self.ledger.progress.level

        completion = self.activity_log.record_completion(
            exercise_id, duration_seconds, time_slot, completed_at
        )
        self._recompute_streaks()

        xp_awarded = self.ledger.award_completion()

        day = completed_at.date()
        current_streak = self.streaks.current_streak(MILESTONE_STREAK_TYPE, now.date())
        xp_awarded += self.ledger.process_daily_progress(
            day=day,
            daily_goal=self.daily_goal,
            completions=self.activity_log.completion_count(day),
            current_streak=current_streak,
            today=now.date(),
        )

        unlocked = self._check_achievements(now)
        self.goals.update_all_goal_progress(self.activity_log, self.streaks, now)

        leaderboard_synced = await self.leaderboard.handle_exercise_completion()

        logger.info(
            f"Processed completion {completion.id}: +{xp_awarded} XP, "
            f"streak {current_streak}, {len(unlocked)} achievements"
        )
        return {
            "completion_id": completion.id,
            "xp_awarded": xp_awarded,
            "level_up": self.ledger.progress.level > old_level,
            "new_level": self.ledger.progress.level,
            "current_streak": current_streak,
            "achievements_unlocked": [a.title for a in unlocked],
            "leaderboard_synced": leaderboard_synced,
        }

    def record_check_in(self, timestamp: Optional[datetime] = None) -> Dict[str, Any]:
        """Append a posture check-in and refresh derived values"""
        now = self.clock()
        check_in = self.activity_log.add_check_in(timestamp or now)
        self._recompute_streaks()

        unlocked = self._check_achievements(now)
        self.goals.update_all_goal_progress(self.activity_log, self.streaks, now)

        posture_streak = self.streaks.current_streak(StreakType.POSTURE_CHECKS, now.date())
        return {
            "check_in_id": check_in.id,
            "check_ins_today": len(self.activity_log.check_ins_on(now.date())),
            "posture_streak": posture_streak,
            "achievements_unlocked": [a.title for a in unlocked],
        }

    async def reset_all_data(self) -> None:
        """
        Clear the activity log and every derived aggregate.

        Watermarks return to their initial state, goals return to defaults.
        The leaderboard identity is kept; when opted in, the zeroed monthly
        count is pushed.
        """
        self.activity_log.reset()
        self.streaks.reset()
        self.goals.reset()
        self.ledger.reset()
        await self.leaderboard.sync()
        logger.info("All app data reset")

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _recompute_streaks(self) -> None:
        self.streaks.recompute(self.activity_log.check_ins, self.activity_log.completions)

    def achievement_context(self, now: Optional[datetime] = None) -> Dict[str, int]:
        now = now or self.clock()
        return {
            "total_check_ins": len(self.activity_log.check_ins),
            "check_ins_last_week": len(self.activity_log.check_ins_since(now - timedelta(days=7))),
            "total_exercises": len(self.activity_log.completions),
            "posture_streak": self.streaks.current_streak(StreakType.POSTURE_CHECKS, now.date()),
            "level": self.ledger.progress.level,
        }

    def _check_achievements(self, now: datetime):
        return check_and_award_achievements(self.ledger, self.achievement_context(now))

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_streaks(self, now: Optional[datetime] = None) -> Dict[str, Dict[str, int]]:
        now = now or self.clock()
        return {
            streak_type.value: {
                "current": self.streaks.current_streak(streak_type, now.date()),
                "longest": self.streaks.longest_streak(streak_type),
            }
            for streak_type in StreakType
        }

    def get_level_progress(self) -> Dict[str, Any]:
        level = self.ledger.current_level()
        upcoming = self.ledger.next_level()
        return {
            "xp": self.ledger.progress.xp,
            "coins": self.ledger.progress.coins,
            "level": level.number,
            "title": level.title,
            "next_level": upcoming.number if upcoming else None,
            "next_level_xp": upcoming.xp_required if upcoming else None,
            "progress": self.ledger.progress_to_next_level(),
        }

    def get_slot_status(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        now = now or self.clock()
        slots = {}
        for slot in SLOT_ORDER:
            availability = self.scheduler.can_start(slot, now)
            slots[slot.value] = {
                "completed_today": self.scheduler.is_time_slot_completed(slot, now),
                "can_start": availability.can_start,
                "remaining": availability.remaining,
                "available_in": self.scheduler.time_until_available(slot, now),
            }

        current = current_time_slot(now)
        next_slot = self.scheduler.next_available_slot(now)
        return {
            "current": current.value if current else None,
            "next": next_slot.slot.value,
            "next_available_at": next_slot.available_at,
            "slots": slots,
        }

    def get_goal_progress(self) -> Dict[str, Any]:
        return {
            "goals": [
                {
                    "title": g.title,
                    "current": g.current_progress,
                    "target": g.target_value,
                    "percentage": g.progress_percentage,
                    "completed": g.is_completed,
                }
                for g in self.goals.get_active_goals()
            ],
            "stats": self.goals.get_completion_stats(),
        }

    def get_leaderboard(self) -> Dict[str, Any]:
        return {
            "joined": self.leaderboard.has_joined_leaderboard,
            "entries": self.leaderboard.entries,
            "own_rank": self.leaderboard.user_position_in_leaderboard,
            "error": self.leaderboard.error_message,
        }
