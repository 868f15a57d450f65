"""Unit tests for Achievement System (src/gamification/achievement_system.py)"""
import pytest

from src.gamification.achievement_system import (
    check_and_award_achievements,
    create_default_achievements,
    create_default_rewards,
    format_achievement_unlock_message,
    get_achievement_progress,
    is_criteria_met,
)
from src.gamification.reward_ledger import RewardLedger


@pytest.fixture
def ledger(json_store):
    return RewardLedger(json_store)


def make_context(**overrides):
    context = {
        "total_check_ins": 0,
        "check_ins_last_week": 0,
        "total_exercises": 0,
        "posture_streak": 0,
        "level": 1,
    }
    context.update(overrides)
    return context


# ============================================================================
# Catalog Tests
# ============================================================================

def test_default_catalogs():
    achievements = create_default_achievements()
    rewards = create_default_rewards()

    assert [a.key for a in achievements] == [
        "first_check", "daily_streak", "exercise_enthusiast", "week_warrior", "posture_pro"
    ]
    assert all(not a.is_unlocked for a in achievements)
    assert [r.cost for r in rewards] == [50, 120, 250, 500]


def test_catalog_ids_are_unique_per_call():
    first = create_default_achievements()
    second = create_default_achievements()

    assert {a.id for a in first}.isdisjoint({a.id for a in second})


# ============================================================================
# Criteria Tests
# ============================================================================

@pytest.mark.parametrize("key,context_key,value", [
    ("first_check", "total_check_ins", 1),
    ("daily_streak", "posture_streak", 7),
    ("exercise_enthusiast", "total_exercises", 10),
    ("week_warrior", "check_ins_last_week", 50),
    ("posture_pro", "level", 5),
])
def test_criteria_thresholds(key, context_key, value):
    assert is_criteria_met(key, make_context(**{context_key: value}))
    assert not is_criteria_met(key, make_context(**{context_key: value - 1}))


def test_unknown_achievement_key():
    assert not is_criteria_met("does_not_exist", make_context(total_check_ins=100))


# ============================================================================
# Awarding Tests
# ============================================================================

def test_first_check_unlocks_once(ledger):
    context = make_context(total_check_ins=1)

    first = check_and_award_achievements(ledger, context)
    second = check_and_award_achievements(ledger, context)

    assert [a.key for a in first] == ["first_check"]
    assert second == []
    assert ledger.progress.xp == 10


def test_nothing_met(ledger):
    assert check_and_award_achievements(ledger, make_context()) == []
    assert ledger.progress.xp == 0


def test_unlock_xp_can_unlock_level_achievement(ledger):
    """XP from the first round of unlocks raises the level into Posture Pro"""
    ledger.add_xp(300, "setup")
    assert ledger.progress.level == 4

    context = make_context(
        total_check_ins=50,
        check_ins_last_week=50,
        total_exercises=10,
        posture_streak=7,
        level=ledger.progress.level,
    )
    unlocked = check_and_award_achievements(ledger, context)

    assert ledger.progress.level == 5
    assert {a.key for a in unlocked} == {
        "first_check", "daily_streak", "exercise_enthusiast", "week_warrior", "posture_pro"
    }
    assert all(a.is_unlocked for a in ledger.achievements)


def test_achievement_progress(ledger):
    check_and_award_achievements(ledger, make_context(total_check_ins=1))

    progress = {p["key"]: p for p in get_achievement_progress(ledger, make_context(
        total_check_ins=1, total_exercises=4
    ))}

    assert progress["first_check"]["percentage"] == 100
    assert progress["exercise_enthusiast"]["current"] == 4
    assert progress["exercise_enthusiast"]["percentage"] == 40
    assert progress["posture_pro"]["target"] == 5


def test_format_unlock_message():
    achievement = create_default_achievements()[0]

    message = format_achievement_unlock_message(achievement)

    assert "First Check" in message
    assert "+10 XP" in message
