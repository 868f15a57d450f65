"""
XP and Leveling System

Immutable level catalog and the level math built on it.

Leveling Curve (20 levels, level 1 starts at 0 XP):
- Level 2-5: +100 XP per level
- Level 6-10: +150 XP per level
- Level 11-15: +200 XP per level
- Level 16-20: +250 XP per level

Coin rewards paid once when a level is reached:
- Level 2-5: 10 coins
- Level 6-10: 20 coins
- Level 11-15: 30 coins
- Level 16-20: 50 coins
"""

from typing import Dict, List, Optional, Sequence
import logging

from src.models.progress import Level

logger = logging.getLogger(__name__)

LEVEL_TITLES: List[tuple] = [
    ("Neck Rookie", "Just getting started"),
    ("Posture Learner", "Finding your rhythm"),
    ("Stance Scout", "Tracking your habits"),
    ("Alignment Apprentice", "Noticing the gains"),
    ("Strain Slayer", "Tension is easing"),
    ("Habit Builder", "Consistency is coming"),
    ("Alignment Advocate", "Your posture inspires"),
    ("Neck Defender", "Daily moves on lock"),
    ("Posture Protector", "You catch the slouch"),
    ("Routine Hero", "No days skipped"),
    ("Balance Keeper", "Strong and centered"),
    ("Form Guardian", "Precision with every rep"),
    ("Mobility Mentor", "Sharing what works"),
    ("Core Champion", "Neck and core synced"),
    ("Focus Veteran", "Locked into progress"),
    ("Resilience Expert", "Bounce back instantly"),
    ("Discipline Master", "Habits are automatic"),
    ("Mindful Pro", "Every lift is intentional"),
    ("Posture Sage", "You teach through example"),
    ("Neck Legend", "Posture perfected"),
]


def _increment_for(level_number: int) -> int:
    if level_number <= 5:
        return 100
    if level_number <= 10:
        return 150
    if level_number <= 15:
        return 200
    return 250


def _coins_for(level_number: int) -> int:
    if level_number == 1:
        return 0
    if level_number <= 5:
        return 10
    if level_number <= 10:
        return 20
    if level_number <= 15:
        return 30
    return 50


def create_default_levels() -> List[Level]:
    """Build the 20-level catalog"""
    levels = []
    xp_required = 0
    for index, (title, description) in enumerate(LEVEL_TITLES):
        number = index + 1
        if number > 1:
            xp_required += _increment_for(number)
        levels.append(
            Level(
                number=number,
                xp_required=xp_required,
                coins_reward=_coins_for(number),
                title=title,
                description=description,
            )
        )
    return levels


def validate_level_catalog(levels: Sequence[Level]) -> bool:
    """
    Check the catalog invariants the level-up loop relies on

    - Non-empty, numbered 1..N in order
    - Level 1 requires 0 XP
    - xp_required strictly increasing
    """
    if not levels:
        return False
    if levels[0].number != 1 or levels[0].xp_required != 0:
        return False
    for prev, cur in zip(levels, levels[1:]):
        if cur.number != prev.number + 1 or cur.xp_required <= prev.xp_required:
            return False
    return True


def level_for_xp(levels: Sequence[Level], xp: int) -> Level:
    """Largest level whose xp_required <= xp"""
    current = levels[0]
    for level in levels:
        if level.xp_required <= xp:
            current = level
        else:
            break
    return current


def get_level(levels: Sequence[Level], number: int) -> Optional[Level]:
    return next((lvl for lvl in levels if lvl.number == number), None)


def get_next_level(levels: Sequence[Level], number: int) -> Optional[Level]:
    """Level after number, or None at max level"""
    return get_level(levels, number + 1)


def get_progress_to_next_level(levels: Sequence[Level], xp: int, level_number: int) -> float:
    """
    Fraction of the way from the current level's threshold to the next

    Returns:
        0.0-1.0; 1.0 at max level
    """
    current = get_level(levels, level_number)
    upcoming = get_next_level(levels, level_number)
    if current is None or upcoming is None:
        return 1.0

    span = upcoming.xp_required - current.xp_required
    if span <= 0:
        return 1.0
    return max(0.0, min(1.0, (xp - current.xp_required) / span))


def calculate_level_from_xp(total_xp: int, levels: Optional[Sequence[Level]] = None) -> Dict[str, any]:
    """
    Calculate level info from XP

    Returns:
        {
            'current_level': int,
            'title': str,
            'xp_in_current_level': int,
            'xp_to_next_level': int (0 at max level),
            'total_xp_for_next_level': int or None at max level,
            'progress': float
        }
    """
    levels = levels or create_default_levels()
    current = level_for_xp(levels, total_xp)
    upcoming = get_next_level(levels, current.number)

    return {
        "current_level": current.number,
        "title": current.title,
        "xp_in_current_level": total_xp - current.xp_required,
        "xp_to_next_level": max(0, upcoming.xp_required - total_xp) if upcoming else 0,
        "total_xp_for_next_level": upcoming.xp_required if upcoming else None,
        "progress": get_progress_to_next_level(levels, total_xp, current.number),
    }
