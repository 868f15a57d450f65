"""Streak models"""
from datetime import date as dt_date
from enum import Enum
from uuid import UUID, uuid4
from pydantic import BaseModel, Field


class StreakType(str, Enum):
    """Activity types tracked by the streak engine"""
    POSTURE_CHECKS = "posture_checks"
    EXERCISES = "exercises"
    COMBINED = "combined"  # posture check AND exercise on the same day

    @property
    def display_name(self) -> str:
        return {
            StreakType.POSTURE_CHECKS: "Posture Checks",
            StreakType.EXERCISES: "Exercises",
            StreakType.COMBINED: "Combined",
        }[self]


class StreakRecord(BaseModel):
    """Whether the daily goal for one streak type was met on one day"""
    id: UUID = Field(default_factory=uuid4)
    date: dt_date
    completed: bool
    type: StreakType


class StreakStats(BaseModel):
    """Aggregate streak statistics for one streak type"""
    type: StreakType
    current_streak: int = 0
    longest_streak: int = 0
    total_completed_days: int = 0
    total_posture_checks: int = 0
    total_exercises: int = 0
