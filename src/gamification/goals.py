"""
Custom Goals

CRUD over user-defined goals plus the read-side progress projection.
current_progress is always recomputed from the activity log and streaks;
it is never incremented directly by events.

Missing goal ids are declined (False) and logged, never raised.
"""

from datetime import datetime, timedelta
from typing import Dict, List, Optional
from uuid import UUID
import logging

from src.models.goal import CustomGoal, GoalTimePeriod, GoalType, default_goals
from src.models.streak import StreakType
from src.gamification.streak_system import StreakEngine
from src.storage.json_store import JsonDocumentStore
from src.tracking.activity_log import ActivityLog

logger = logging.getLogger(__name__)

GOALS_FILE = "custom_goals.json"


class GoalsManager:
    """Owns custom_goals.json"""

    def __init__(self, store: JsonDocumentStore):
        self.store = store
        self._goals: List[CustomGoal] = self.store.load(
            GOALS_FILE, List[CustomGoal], default_goals, persist_default=True
        )
        logger.info(f"Loaded {len(self._goals)} goals")

    def _save(self) -> None:
        self.store.save(GOALS_FILE, self._goals, List[CustomGoal])

    def _index_of(self, goal_id: UUID) -> Optional[int]:
        for i, goal in enumerate(self._goals):
            if goal.id == goal_id:
                return i
        logger.warning(f"Goal {goal_id} not found")
        return None

    @property
    def goals(self) -> List[CustomGoal]:
        return list(self._goals)

    def get_goal(self, goal_id: UUID) -> Optional[CustomGoal]:
        return next((g for g in self._goals if g.id == goal_id), None)

    def add_goal(self, goal: CustomGoal) -> CustomGoal:
        self._goals.append(goal)
        self._save()
        logger.info(f"Added goal: {goal.title}")
        return goal

    def update_goal(self, goal: CustomGoal) -> bool:
        index = self._index_of(goal.id)
        if index is None:
            return False
        self._goals[index] = goal.model_copy(update={"updated_at": datetime.now()})
        self._save()
        logger.info(f"Updated goal: {goal.title}")
        return True

    def delete_goal(self, goal_id: UUID) -> bool:
        index = self._index_of(goal_id)
        if index is None:
            return False
        removed = self._goals.pop(index)
        self._save()
        logger.info(f"Deleted goal: {removed.title}")
        return True

    def toggle_goal_active(self, goal_id: UUID) -> bool:
        index = self._index_of(goal_id)
        if index is None:
            return False
        goal = self._goals[index]
        self._goals[index] = goal.model_copy(
            update={"is_active": not goal.is_active, "updated_at": datetime.now()}
        )
        self._save()
        logger.info(f"Toggled goal {goal.title}: active={not goal.is_active}")
        return True

    def update_goal_progress(self, goal_id: UUID, progress: int) -> bool:
        index = self._index_of(goal_id)
        if index is None:
            return False
        self._goals[index] = self._goals[index].model_copy(
            update={"current_progress": max(0, progress), "updated_at": datetime.now()}
        )
        self._save()
        return True

    def get_active_goals(self) -> List[CustomGoal]:
        return [g for g in self._goals if g.is_active]

    def get_goals_by_type(self, goal_type: GoalType) -> List[CustomGoal]:
        return [g for g in self._goals if g.type == goal_type]

    def get_goals_by_time_period(self, time_period: GoalTimePeriod) -> List[CustomGoal]:
        return [g for g in self._goals if g.time_period == time_period]

    def reset_progress_for_time_period(self, time_period: GoalTimePeriod) -> None:
        now = datetime.now()
        self._goals = [
            g.model_copy(update={"current_progress": 0, "updated_at": now})
            if g.time_period == time_period else g
            for g in self._goals
        ]
        self._save()
        logger.info(f"Reset progress for {time_period.value} goals")

    def calculate_progress_for_goal(
        self,
        goal: CustomGoal,
        activity_log: ActivityLog,
        streaks: StreakEngine,
        now: Optional[datetime] = None
    ) -> int:
        """
        Project current progress for a goal from the activity log

        Daily types count today, weekly types count the trailing 7 days,
        total types count everything, and streak goals use the current
        posture-check streak.
        """
        now = now or datetime.now()
        week_ago = now - timedelta(days=7)

        if goal.type == GoalType.DAILY_POSTURE_CHECKS:
            return len(activity_log.check_ins_on(now.date()))
        if goal.type == GoalType.DAILY_EXERCISES:
            return activity_log.completion_count(now.date())
        if goal.type == GoalType.WEEKLY_POSTURE_CHECKS:
            return len(activity_log.check_ins_since(week_ago))
        if goal.type == GoalType.WEEKLY_EXERCISES:
            return len(activity_log.completions_since(week_ago))
        if goal.type == GoalType.STREAK_DAYS:
            return streaks.current_streak(StreakType.POSTURE_CHECKS, now.date())
        if goal.type == GoalType.TOTAL_POSTURE_CHECKS:
            return len(activity_log.check_ins)
        if goal.type == GoalType.TOTAL_EXERCISES:
            return len(activity_log.completions)
        return 0

    def update_all_goal_progress(
        self,
        activity_log: ActivityLog,
        streaks: StreakEngine,
        now: Optional[datetime] = None
    ) -> List[CustomGoal]:
        """Recompute current_progress for every goal and save once"""
        self._goals = [
            g.model_copy(update={
                "current_progress": max(0, self.calculate_progress_for_goal(g, activity_log, streaks, now))
            })
            for g in self._goals
        ]
        self._save()
        logger.debug("Updated progress for all goals")
        return self.goals

    def get_completion_stats(self) -> Dict[str, float]:
        """
        Completion summary over active goals

        Returns:
            {'completed': int, 'total': int, 'percentage': float 0.0-1.0}
        """
        active = self.get_active_goals()
        completed = sum(1 for g in active if g.is_completed)
        total = len(active)
        return {
            "completed": completed,
            "total": total,
            "percentage": completed / total if total > 0 else 0.0,
        }

    def reset(self) -> None:
        self._goals = default_goals()
        self._save()
        logger.info("Reset all goals to defaults")
