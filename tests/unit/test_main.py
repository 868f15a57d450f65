"""Tests for the command-line entry point (src/main.py)"""
import pytest

import src.config as config
from src.leaderboard.remote_store import InMemoryLeaderboardStore
from src.main import build_parser, main


@pytest.fixture(autouse=True)
def offline_leaderboard(monkeypatch):
    monkeypatch.setattr("src.services.container.create_remote_store", InMemoryLeaderboardStore)
    monkeypatch.setattr(config, "LEADERBOARD_URL", "")


def test_parser_requires_command():
    with pytest.raises(SystemExit):
        build_parser().parse_args([])


def test_parser_complete_defaults():
    args = build_parser().parse_args(["complete", "Chin Tucks"])

    assert args.slot == "Quick"
    assert args.duration is None
    assert args.force is False


@pytest.mark.asyncio
async def test_check_in_then_status(tmp_path, capsys):
    data = str(tmp_path / "data")

    assert await main(["--data-path", data, "check-in"]) == 0
    assert await main(["--data-path", data, "status"]) == 0

    out = capsys.readouterr().out
    assert "Check-in recorded" in out
    assert "First Check" in out
    assert "posture_checks: 1 current" in out


@pytest.mark.asyncio
async def test_complete_known_exercise(tmp_path, capsys):
    data = str(tmp_path / "data")

    assert await main(["--data-path", data, "complete", "chin tucks"]) == 0

    assert "Chin Tucks done: +2 XP" in capsys.readouterr().out


@pytest.mark.asyncio
async def test_complete_respects_cooldown(tmp_path, capsys):
    data = str(tmp_path / "data")
    await main(["--data-path", data, "complete", "Chin Tucks"])

    assert await main(["--data-path", data, "complete", "Chin Tucks"]) == 1
    assert await main(["--data-path", data, "complete", "Chin Tucks", "--force"]) == 0

    assert "cooling down" in capsys.readouterr().out


@pytest.mark.asyncio
async def test_complete_unknown_exercise(tmp_path, capsys):
    assert await main(["--data-path", str(tmp_path), "complete", "Handstand"]) == 1

    assert "Unknown exercise" in capsys.readouterr().out


@pytest.mark.asyncio
async def test_leaderboard_before_joining(tmp_path, capsys):
    assert await main(["--data-path", str(tmp_path), "leaderboard"]) == 0

    assert "haven't joined" in capsys.readouterr().out


@pytest.mark.asyncio
async def test_configuration_error_reported(tmp_path, capsys, monkeypatch):
    monkeypatch.setattr(config, "DAILY_GOAL", 0)

    assert await main(["--data-path", str(tmp_path), "status"]) == 1

    assert "not properly configured" in capsys.readouterr().out


@pytest.mark.asyncio
async def test_reset_with_confirmation_flag(tmp_path, capsys):
    data = str(tmp_path / "data")
    await main(["--data-path", data, "check-in"])

    assert await main(["--data-path", data, "reset", "--yes"]) == 0
    assert await main(["--data-path", data, "status"]) == 0

    out = capsys.readouterr().out
    assert "All data reset" in out
    assert "posture_checks: 0 current" in out
