"""
Time-Slot Scheduler

Answers "which exercise slot is active, available, or cooling down" from the
completion log and the wall clock. Nothing here is persisted.

Slots (checked in this order):
- Quick: hours 0-23, gated by a cooldown after each completion
- Full: hours 6-23, once per day

Hours before 6 AM have no current slot. Callers treat that as its own state,
distinct from "every slot completed today".
"""

from datetime import datetime, timedelta
from typing import NamedTuple, Optional
import logging

from src.config import QUICK_SLOT_COOLDOWN_MINUTES
from src.models.activity import TimeSlot
from src.tracking.activity_log import ActivityLog

logger = logging.getLogger(__name__)

# (start_hour, end_hour), both inclusive
SLOT_HOURS: dict[TimeSlot, tuple[int, int]] = {
    TimeSlot.QUICK: (0, 23),
    TimeSlot.FULL: (6, 23),
}
SLOT_ORDER: list[TimeSlot] = [TimeSlot.QUICK, TimeSlot.FULL]

DEAD_ZONE_END_HOUR = 6


class SlotAvailability(NamedTuple):
    can_start: bool
    remaining: Optional[timedelta] = None


class NextSlot(NamedTuple):
    slot: TimeSlot
    available_at: datetime


def format_time_interval(seconds: float) -> str:
    """
    Format a duration for display

    Example:
        >>> format_time_interval(8100)
        '2h 15m'
        >>> format_time_interval(900)
        '15m'
    """
    total_minutes = max(0, int(seconds)) // 60
    hours, minutes = divmod(total_minutes, 60)
    if hours > 0:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"


def is_active(slot: TimeSlot, at: datetime) -> bool:
    """True iff the hour falls inside the slot's [start, end] range"""
    start, end = SLOT_HOURS[slot]
    return start <= at.hour <= end


def current_time_slot(at: datetime) -> Optional[TimeSlot]:
    """First active slot, or None during the early-morning dead zone"""
    if at.hour < DEAD_ZONE_END_HOUR:
        return None
    for slot in SLOT_ORDER:
        if is_active(slot, at):
            return slot
    return None


def time_slot_has_passed(slot: TimeSlot, at: datetime) -> bool:
    """True once the clock is past the slot's end boundary (end hour, minute 59)"""
    _, end = SLOT_HOURS[slot]
    return at.hour > end or (at.hour == end and at.minute >= 59)


def _slot_start(slot: TimeSlot, day: datetime) -> datetime:
    start, _ = SLOT_HOURS[slot]
    return day.replace(hour=start, minute=0, second=0, microsecond=0)


class TimeSlotScheduler:
    """Slot availability over the activity log's completions"""

    def __init__(
        self,
        activity_log: ActivityLog,
        cooldown_minutes: int = QUICK_SLOT_COOLDOWN_MINUTES
    ):
        self.activity_log = activity_log
        self.cooldown_minutes = cooldown_minutes

    def last_completion_time(self, slot: TimeSlot, at: datetime) -> Optional[datetime]:
        """Most recent completion of slot on at's calendar day, not after at"""
        times = [
            c.completed_at
            for c in self.activity_log.completions_on(at.date())
            if c.time_slot == slot and c.completed_at <= at
        ]
        return max(times) if times else None

    def completed_time_slots(self, at: datetime) -> set[TimeSlot]:
        return {c.time_slot for c in self.activity_log.completions_on(at.date())}

    def is_time_slot_completed(self, slot: TimeSlot, at: datetime) -> bool:
        return slot in self.completed_time_slots(at)

    def can_start(
        self,
        slot: TimeSlot,
        at: datetime,
        cooldown_minutes: Optional[int] = None
    ) -> SlotAvailability:
        """
        Check the cooldown since the slot's last completion today

        Args:
            slot: Slot to check
            at: Wall-clock time
            cooldown_minutes: Overrides the scheduler default

        Returns:
            SlotAvailability(True, None) when startable, otherwise
            SlotAvailability(False, remaining)
        """
        if cooldown_minutes is None:
            cooldown_minutes = self.cooldown_minutes

        last = self.last_completion_time(slot, at)
        if last is None:
            return SlotAvailability(True, None)

        cooldown = timedelta(minutes=cooldown_minutes)
        elapsed = at - last
        if elapsed >= cooldown:
            return SlotAvailability(True, None)

        remaining = cooldown - elapsed
        logger.debug(f"{slot.value} slot cooling down, {format_time_interval(remaining.total_seconds())} left")
        return SlotAvailability(False, remaining)

    def next_available_slot(self, at: datetime) -> NextSlot:
        """
        First slot not yet completed today and when its window opens

        Falls back to tomorrow at the first slot's start hour when nothing is
        left today.
        """
        completed = self.completed_time_slots(at)
        tomorrow = _slot_start(SLOT_ORDER[0], at + timedelta(days=1))

        for slot in SLOT_ORDER:
            if slot in completed:
                continue
            if is_active(slot, at):
                return NextSlot(slot, at)
            start = _slot_start(slot, at)
            if at < start:
                return NextSlot(slot, start)
            return NextSlot(slot, tomorrow)

        return NextSlot(SLOT_ORDER[0], tomorrow)

    def time_until_available(self, slot: TimeSlot, at: datetime) -> timedelta:
        """Time until slot can be started; zero when it can start now"""
        if not is_active(slot, at):
            start = _slot_start(slot, at)
            if at >= start:
                start += timedelta(days=1)
            return start - at

        availability = self.can_start(slot, at)
        if availability.can_start:
            return timedelta(0)
        return availability.remaining
