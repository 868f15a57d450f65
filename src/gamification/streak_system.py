"""
Daily Streak Tracking System

Derives per-type daily streak records from the activity log and answers
current/longest streak questions.

Streak types:
- posture_checks: at least one check-in that day
- exercises: at least one exercise completion that day
- combined: both on the same day

Rules:
- One record per (date, type); writing a day again replaces it
- Current streak tolerates "today not done yet": yesterday still counts
- Longest streak is a strict max-run scan with no gap tolerance
"""

from datetime import date, datetime, timedelta
from typing import Iterable, List, Optional
import logging

from src.models.activity import CheckIn, ExerciseCompletion
from src.models.streak import StreakRecord, StreakStats, StreakType
from src.storage.json_store import JsonDocumentStore

logger = logging.getLogger(__name__)

STREAKS_FILE = "streaks.json"


class StreakEngine:
    """Owns streaks.json; every record is re-derivable from the activity log"""

    def __init__(self, store: JsonDocumentStore):
        self.store = store
        self._records: List[StreakRecord] = self.store.load(STREAKS_FILE, List[StreakRecord], list)
        logger.info(f"Loaded {len(self._records)} streak records")

    def _save(self) -> None:
        self.store.save(STREAKS_FILE, self._records, List[StreakRecord])

    @property
    def records(self) -> List[StreakRecord]:
        return list(self._records)

    def _records_for(self, streak_type: StreakType) -> List[StreakRecord]:
        return [r for r in self._records if r.type == streak_type]

    def _upsert(self, day: date, completed: bool, streak_type: StreakType) -> None:
        for i, record in enumerate(self._records):
            if record.date == day and record.type == streak_type:
                self._records[i] = record.model_copy(update={"completed": completed})
                return
        self._records.append(StreakRecord(date=day, completed=completed, type=streak_type))

    def add_streak(self, day: date, completed: bool, streak_type: StreakType) -> None:
        """Record whether streak_type was met on day, replacing any earlier record"""
        self._upsert(day, completed, streak_type)
        self._save()
        logger.debug(f"Streak record {streak_type.value} {day}: completed={completed}")

    def recompute(
        self,
        check_ins: Iterable[CheckIn],
        completions: Iterable[ExerciseCompletion]
    ) -> None:
        """
        Rebuild daily records for every day present in either log

        Args:
            check_ins: All posture check-ins
            completions: All exercise completions
        """
        check_in_days = {c.timestamp.date() for c in check_ins}
        exercise_days = {c.completed_at.date() for c in completions}

        for day in sorted(check_in_days | exercise_days):
            had_check_ins = day in check_in_days
            had_exercises = day in exercise_days
            self._upsert(day, had_check_ins, StreakType.POSTURE_CHECKS)
            self._upsert(day, had_exercises, StreakType.EXERCISES)
            self._upsert(day, had_check_ins and had_exercises, StreakType.COMBINED)

        self._save()
        logger.info(
            f"Recomputed streaks over {len(check_in_days | exercise_days)} days "
            f"({len(self._records)} records)"
        )

    def current_streak(self, streak_type: StreakType, today: Optional[date] = None) -> int:
        """
        Count consecutive completed days ending today or yesterday

        Walks records newest first. A completed record aged 0 or 1 day
        (relative to the running cursor) extends the streak and moves the
        cursor back; yesterday not completed or any larger gap ends it.
        An unfinished today is skipped rather than breaking the streak.

        Example:
            Completed on today-1 and today, nothing on today-2: returns 2
        """
        today = today or date.today()
        records = sorted(
            (r for r in self._records_for(streak_type) if r.date <= today),
            key=lambda r: r.date,
            reverse=True
        )

        streak = 0
        cursor = today
        for record in records:
            days_ago = (cursor - record.date).days
            if days_ago > 1:
                break
            if record.completed:
                streak += 1
                cursor = record.date
            elif days_ago == 1:
                break
        return streak

    def longest_streak(self, streak_type: StreakType) -> int:
        """Longest run of completed records on consecutive calendar days"""
        longest = 0
        run = 0
        previous: Optional[date] = None
        for record in sorted(self._records_for(streak_type), key=lambda r: r.date):
            if not record.completed:
                run = 0
            elif previous is not None and run > 0 and record.date - previous == timedelta(days=1):
                run += 1
            else:
                run = 1
            longest = max(longest, run)
            previous = record.date
        return longest

    def total_completed_days(self, streak_type: StreakType) -> int:
        return sum(1 for r in self._records_for(streak_type) if r.completed)

    def get_stats(
        self,
        streak_type: StreakType,
        check_ins: Iterable[CheckIn] = (),
        completions: Iterable[ExerciseCompletion] = (),
        today: Optional[date] = None
    ) -> StreakStats:
        return StreakStats(
            type=streak_type,
            current_streak=self.current_streak(streak_type, today),
            longest_streak=self.longest_streak(streak_type),
            total_completed_days=self.total_completed_days(streak_type),
            total_posture_checks=len(list(check_ins)),
            total_exercises=len(list(completions)),
        )

    def streaks_between(
        self,
        start: date,
        end: date,
        streak_type: StreakType
    ) -> List[StreakRecord]:
        """Records for streak_type with start <= date <= end, oldest first"""
        return sorted(
            (r for r in self._records_for(streak_type) if start <= r.date <= end),
            key=lambda r: r.date
        )

    def reset(self) -> None:
        self._records = []
        self._save()
        logger.info(f"Reset streak records at {datetime.now().isoformat()}")
