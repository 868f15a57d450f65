"""
Achievement System

Default achievement and reward catalogs, plus criteria evaluation.

Achievements (criteria evaluated against an activity snapshot):
- First Check: at least one posture check-in
- Daily Streak: posture-check streak of 7 days
- Exercise Enthusiast: 10 exercise completions
- Week Warrior: 50 posture check-ins within the last 7 days
- Posture Pro: reach level 5

Unlocks and purchases go through the RewardLedger, which owns the
one-way state transitions and the XP/coin accounting.
"""

from typing import TYPE_CHECKING, Callable, Dict, List
import logging

from src.models.progress import Achievement, Reward

if TYPE_CHECKING:
    from src.gamification.reward_ledger import RewardLedger

logger = logging.getLogger(__name__)


# key -> criteria; checked by the function registered for criteria['type']
ACHIEVEMENT_CRITERIA: Dict[str, Dict] = {
    "first_check": {"type": "check_in_count", "value": 1},
    "daily_streak": {"type": "posture_streak", "value": 7},
    "exercise_enthusiast": {"type": "exercise_count", "value": 10},
    "week_warrior": {"type": "weekly_check_ins", "value": 50},
    "posture_pro": {"type": "level", "value": 5},
}


def create_default_achievements() -> List[Achievement]:
    return [
        Achievement(
            key="first_check",
            title="First Check",
            description="Complete your first posture check",
            xp_reward=10,
        ),
        Achievement(
            key="daily_streak",
            title="Daily Streak",
            description="Complete 7 days in a row",
            xp_reward=50,
        ),
        Achievement(
            key="exercise_enthusiast",
            title="Exercise Enthusiast",
            description="Complete 10 exercises",
            xp_reward=30,
        ),
        Achievement(
            key="week_warrior",
            title="Week Warrior",
            description="Complete 50 posture checks in a week",
            xp_reward=75,
        ),
        Achievement(
            key="posture_pro",
            title="Posture Pro",
            description="Reach level 5",
            xp_reward=0,
        ),
    ]


def create_default_rewards() -> List[Reward]:
    return [
        Reward(title="Custom Theme", description="Personalize the app colors", cost=50),
        Reward(title="Advanced Tips", description="In-depth posture guidance", cost=120),
        Reward(title="Exclusive Badge", description="Show off your dedication", cost=250),
        Reward(title="Premium Features", description="Everything unlocked", cost=500),
    ]


def _check_threshold(context_key: str) -> Callable[[Dict, Dict], bool]:
    def check(criteria: Dict, context: Dict) -> bool:
        return context.get(context_key, 0) >= criteria["value"]
    return check


CRITERIA_CHECKS: Dict[str, Callable[[Dict, Dict], bool]] = {
    "check_in_count": _check_threshold("total_check_ins"),
    "posture_streak": _check_threshold("posture_streak"),
    "exercise_count": _check_threshold("total_exercises"),
    "weekly_check_ins": _check_threshold("check_ins_last_week"),
    "level": _check_threshold("level"),
}


def is_criteria_met(achievement_key: str, context: Dict) -> bool:
    criteria = ACHIEVEMENT_CRITERIA.get(achievement_key)
    if criteria is None:
        return False
    check = CRITERIA_CHECKS.get(criteria["type"])
    if check is None:
        logger.warning(f"Unknown criteria type {criteria['type']} for {achievement_key}")
        return False
    return check(criteria, context)


def check_and_award_achievements(ledger: "RewardLedger", context: Dict) -> List[Achievement]:
    """
    Unlock every locked achievement whose criteria are now met

    Args:
        ledger: Reward ledger owning achievement state
        context: Activity snapshot, e.g.
            {
                'total_check_ins': int,
                'check_ins_last_week': int,
                'total_exercises': int,
                'posture_streak': int,
                'level': int
            }

    Returns:
        Achievements unlocked by this call
    """
    newly_unlocked = []

    for achievement in ledger.achievements:
        if achievement.is_unlocked:
            continue
        if not is_criteria_met(achievement.key, context):
            continue

        result = ledger.unlock_achievement(achievement.id)
        if result.succeeded:
            newly_unlocked.append(ledger.get_achievement(achievement.id))

    # Posture Pro depends on level, which the unlocks above may have raised
    if newly_unlocked and context.get("level") != ledger.progress.level:
        newly_unlocked.extend(
            check_and_award_achievements(ledger, {**context, "level": ledger.progress.level})
        )

    if newly_unlocked:
        logger.info(f"Unlocked {len(newly_unlocked)} achievements: {[a.title for a in newly_unlocked]}")
    return newly_unlocked


def get_achievement_progress(ledger: "RewardLedger", context: Dict) -> List[Dict]:
    """
    Progress toward each achievement

    Returns:
        [{'key', 'title', 'is_unlocked', 'current', 'target', 'percentage'}]
    """
    context_keys = {
        "check_in_count": "total_check_ins",
        "posture_streak": "posture_streak",
        "exercise_count": "total_exercises",
        "weekly_check_ins": "check_ins_last_week",
        "level": "level",
    }
    progress = []
    for achievement in ledger.achievements:
        criteria = ACHIEVEMENT_CRITERIA.get(achievement.key, {"type": None, "value": 1})
        target = criteria["value"]
        current = context.get(context_keys.get(criteria["type"], ""), 0)
        progress.append({
            "key": achievement.key,
            "title": achievement.title,
            "is_unlocked": achievement.is_unlocked,
            "current": min(current, target),
            "target": target,
            "percentage": 100 if achievement.is_unlocked else int(min(current, target) / target * 100),
        })
    return progress


def format_achievement_unlock_message(achievement: Achievement) -> str:
    message = f"🏆 Achievement unlocked: {achievement.title}\n{achievement.description}"
    if achievement.xp_reward:
        message += f"\n+{achievement.xp_reward} XP"
    return message
