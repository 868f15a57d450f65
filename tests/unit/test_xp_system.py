"""Unit tests for XP and Leveling System (src/gamification/xp_system.py)"""
import pytest

from src.gamification.xp_system import (
    calculate_level_from_xp,
    create_default_levels,
    get_next_level,
    get_progress_to_next_level,
    level_for_xp,
    validate_level_catalog,
)
from src.models.progress import Level


@pytest.fixture
def levels():
    return create_default_levels()


# ============================================================================
# Catalog Tests
# ============================================================================

def test_default_catalog_shape(levels):
    assert len(levels) == 20
    assert levels[0].xp_required == 0
    assert levels[0].title == "Neck Rookie"
    assert levels[-1].title == "Neck Legend"
    assert validate_level_catalog(levels)


def test_default_catalog_thresholds(levels):
    thresholds = [lvl.xp_required for lvl in levels]
    assert thresholds[:6] == [0, 100, 200, 300, 400, 550]
    assert thresholds[10] == 400 + 5 * 150 + 200
    assert thresholds[-1] == 400 + 5 * 150 + 5 * 200 + 5 * 250


def test_validate_rejects_non_increasing():
    levels = [
        Level(number=1, xp_required=0, title="One"),
        Level(number=2, xp_required=100, title="Two"),
        Level(number=3, xp_required=100, title="Three"),
    ]
    assert not validate_level_catalog(levels)
    assert not validate_level_catalog([])
    assert not validate_level_catalog([Level(number=1, xp_required=10, title="One")])


# ============================================================================
# Level Math Tests
# ============================================================================

def test_level_for_xp(levels):
    assert level_for_xp(levels, 0).number == 1
    assert level_for_xp(levels, 99).number == 1
    assert level_for_xp(levels, 100).number == 2
    assert level_for_xp(levels, 549).number == 5
    assert level_for_xp(levels, 10_000).number == 20


def test_progress_to_next_level(levels):
    assert get_progress_to_next_level(levels, 50, 1) == 0.5
    assert get_progress_to_next_level(levels, 400 + 75, 5) == 0.5
    assert get_progress_to_next_level(levels, 10_000, 20) == 1.0


def test_next_level_none_at_max(levels):
    assert get_next_level(levels, 19).number == 20
    assert get_next_level(levels, 20) is None


def test_calculate_level_from_xp():
    result = calculate_level_from_xp(150)

    assert result["current_level"] == 2
    assert result["title"] == "Posture Learner"
    assert result["xp_in_current_level"] == 50
    assert result["xp_to_next_level"] == 50
    assert result["total_xp_for_next_level"] == 200
    assert result["progress"] == 0.5


def test_calculate_level_at_max():
    result = calculate_level_from_xp(50_000)

    assert result["current_level"] == 20
    assert result["xp_to_next_level"] == 0
    assert result["total_xp_for_next_level"] is None
    assert result["progress"] == 1.0
