"""Custom goal models"""
from datetime import datetime
from enum import Enum
from uuid import UUID, uuid4
from pydantic import BaseModel, Field


class GoalTimePeriod(str, Enum):
    DAILY = "Daily"
    WEEKLY = "Weekly"
    MONTHLY = "Monthly"
    YEARLY = "Yearly"


class GoalType(str, Enum):
    """What a custom goal counts"""
    DAILY_POSTURE_CHECKS = "Daily Posture Checks"
    DAILY_EXERCISES = "Daily Exercises"
    WEEKLY_POSTURE_CHECKS = "Weekly Posture Checks"
    WEEKLY_EXERCISES = "Weekly Exercises"
    STREAK_DAYS = "Streak Days"
    TOTAL_POSTURE_CHECKS = "Total Posture Checks"
    TOTAL_EXERCISES = "Total Exercises"

    @property
    def default_target(self) -> int:
        return _DEFAULT_TARGETS[self]

    @property
    def suggested_time_period(self) -> GoalTimePeriod:
        if self in (GoalType.WEEKLY_POSTURE_CHECKS, GoalType.WEEKLY_EXERCISES):
            return GoalTimePeriod.WEEKLY
        if self in (GoalType.TOTAL_POSTURE_CHECKS, GoalType.TOTAL_EXERCISES):
            return GoalTimePeriod.MONTHLY
        return GoalTimePeriod.DAILY


_DEFAULT_TARGETS = {
    GoalType.DAILY_POSTURE_CHECKS: 5,
    GoalType.DAILY_EXERCISES: 2,
    GoalType.WEEKLY_POSTURE_CHECKS: 25,
    GoalType.WEEKLY_EXERCISES: 10,
    GoalType.STREAK_DAYS: 7,
    GoalType.TOTAL_POSTURE_CHECKS: 100,
    GoalType.TOTAL_EXERCISES: 50,
}


class CustomGoal(BaseModel):
    """A user-defined target; current_progress is recomputed from the activity log"""
    id: UUID = Field(default_factory=uuid4)
    type: GoalType
    target_value: int = Field(ge=1)
    time_period: GoalTimePeriod
    title: str
    description: str = ""
    is_active: bool = True
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)
    current_progress: int = Field(default=0, ge=0)

    @property
    def is_completed(self) -> bool:
        return self.current_progress >= self.target_value

    @property
    def progress_percentage(self) -> float:
        """Progress from 0.0 to 1.0"""
        if self.target_value <= 0:
            return 0.0
        return min(1.0, self.current_progress / self.target_value)


def default_goals() -> list[CustomGoal]:
    """Goals created for new users"""
    return [
        CustomGoal(
            type=GoalType.DAILY_POSTURE_CHECKS,
            target_value=GoalType.DAILY_POSTURE_CHECKS.default_target,
            time_period=GoalType.DAILY_POSTURE_CHECKS.suggested_time_period,
            title="Daily Posture Checks",
            description="Check your posture throughout the day",
        ),
        CustomGoal(
            type=GoalType.DAILY_EXERCISES,
            target_value=GoalType.DAILY_EXERCISES.default_target,
            time_period=GoalType.DAILY_EXERCISES.suggested_time_period,
            title="Daily Exercises",
            description="Complete posture exercises daily",
        ),
        CustomGoal(
            type=GoalType.STREAK_DAYS,
            target_value=GoalType.STREAK_DAYS.default_target,
            time_period=GoalType.STREAK_DAYS.suggested_time_period,
            title="Streak Goal",
            description="Maintain a daily streak",
        ),
    ]
