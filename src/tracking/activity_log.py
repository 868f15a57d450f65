"""
Activity Log

Append-only record of posture check-ins and exercise completions, plus the
exercise catalog. This is the source of truth every derived value (streaks,
XP, goal progress, monthly sessions) is recomputed from.

Files:
- checkins.json: list of check-ins
- exercises.json: {exercises, completions}
"""
import logging
from datetime import date, datetime, timedelta
from typing import Optional
from uuid import UUID

from src.exceptions import ValidationError
from src.models.activity import (
    CheckIn,
    Exercise,
    ExerciseCompletion,
    ExerciseLog,
    TimeSlot,
    default_exercises,
)
from src.storage.json_store import JsonDocumentStore

logger = logging.getLogger(__name__)

CHECKINS_FILE = "checkins.json"
EXERCISES_FILE = "exercises.json"


class ActivityLog:
    """Owns check-ins, the exercise catalog and completions"""

    def __init__(self, store: JsonDocumentStore):
        self.store = store
        self._check_ins: list[CheckIn] = []
        self._exercises: list[Exercise] = []
        self._completions: list[ExerciseCompletion] = []
        self.load()

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def load(self) -> None:
        self._check_ins = self.store.load(CHECKINS_FILE, list[CheckIn], list)
        exercise_log = self.store.load(
            EXERCISES_FILE,
            ExerciseLog,
            lambda: ExerciseLog(exercises=default_exercises()),
            persist_default=True,
        )
        self._exercises = exercise_log.exercises or default_exercises()
        self._completions = exercise_log.completions
        logger.info(
            f"Loaded {len(self._check_ins)} check-ins, {len(self._exercises)} exercises "
            f"and {len(self._completions)} completions"
        )

    def _save_check_ins(self) -> None:
        self.store.save(CHECKINS_FILE, self._check_ins, list[CheckIn])

    def _save_exercises(self) -> None:
        self.store.save(
            EXERCISES_FILE,
            ExerciseLog(exercises=self._exercises, completions=self._completions),
            ExerciseLog,
        )

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @property
    def check_ins(self) -> list[CheckIn]:
        return list(self._check_ins)

    @property
    def exercises(self) -> list[Exercise]:
        return list(self._exercises)

    @property
    def completions(self) -> list[ExerciseCompletion]:
        return list(self._completions)

    def exercise(self, exercise_id: UUID) -> Optional[Exercise]:
        return next((e for e in self._exercises if e.id == exercise_id), None)

    def exercise_by_title(self, title: str) -> Optional[Exercise]:
        title = title.strip().lower()
        return next((e for e in self._exercises if e.title.lower() == title), None)

    def completions_for(self, exercise_id: UUID) -> list[ExerciseCompletion]:
        return [c for c in self._completions if c.exercise_id == exercise_id]

    def completions_on(self, day: date) -> list[ExerciseCompletion]:
        return [c for c in self._completions if c.completed_at.date() == day]

    def completion_count(self, day: date) -> int:
        return len(self.completions_on(day))

    def check_ins_on(self, day: date) -> list[CheckIn]:
        return [c for c in self._check_ins if c.timestamp.date() == day]

    def check_ins_since(self, start: datetime) -> list[CheckIn]:
        return [c for c in self._check_ins if c.timestamp >= start]

    def completions_since(self, start: datetime) -> list[ExerciseCompletion]:
        return [c for c in self._completions if c.completed_at >= start]

    def weekly_completions(self, now: Optional[datetime] = None) -> list[ExerciseCompletion]:
        """Completions in the current Monday-based calendar week"""
        now = now or datetime.now()
        week_start = datetime.combine(now.date() - timedelta(days=now.weekday()), datetime.min.time())
        week_end = week_start + timedelta(days=7)
        return [c for c in self._completions if week_start <= c.completed_at < week_end]

    def monthly_completion_count(self, now: Optional[datetime] = None) -> int:
        """Completions from the start of the current calendar month up to now"""
        now = now or datetime.now()
        month_start = datetime(now.year, now.month, 1)
        return sum(1 for c in self._completions if month_start <= c.completed_at <= now)

    # ------------------------------------------------------------------
    # Appends
    # ------------------------------------------------------------------

    def add_check_in(self, timestamp: Optional[datetime] = None) -> CheckIn:
        check_in = CheckIn(timestamp=timestamp or datetime.now())
        self._check_ins.append(check_in)
        self._save_check_ins()
        logger.info(f"Added check-in at {check_in.timestamp}")
        return check_in

    def record_completion(
        self,
        exercise_id: UUID,
        duration_seconds: int,
        time_slot: TimeSlot,
        completed_at: Optional[datetime] = None
    ) -> ExerciseCompletion:
        """
        Append an exercise completion

        Raises:
            ValidationError: exercise_id is not in the catalog
        """
        if self.exercise(exercise_id) is None:
            raise ValidationError(
                f"Unknown exercise {exercise_id}",
                field="exercise_id",
                value=str(exercise_id),
            )

        completion = ExerciseCompletion(
            exercise_id=exercise_id,
            completed_at=completed_at or datetime.now(),
            duration_seconds=duration_seconds,
            time_slot=time_slot,
        )
        self._completions.append(completion)
        self._save_exercises()
        logger.info(
            f"Recorded completion for exercise {exercise_id} - "
            f"{duration_seconds}s in {time_slot.value} slot"
        )
        return completion

    def reset(self) -> None:
        """Clear every check-in and completion; the exercise catalog is kept"""
        self._check_ins = []
        self._completions = []
        self._save_check_ins()
        self._save_exercises()
        logger.info("Reset activity log")
