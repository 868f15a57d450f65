"""Tests for configuration validation"""
import pytest

import src.config as config
from src.config import validate_config
from src.exceptions import ConfigurationError


class TestConfigValidation:
    """Test validate_config against module-level settings"""

    def test_defaults_are_valid(self, monkeypatch):
        """Test that the shipped defaults pass validation"""
        monkeypatch.setattr(config, "LOG_LEVEL", "INFO")
        monkeypatch.setattr(config, "DAILY_GOAL", 3)
        monkeypatch.setattr(config, "QUICK_SLOT_COOLDOWN_MINUTES", 60)
        monkeypatch.setattr(config, "LEADERBOARD_LIMIT", 100)
        monkeypatch.setattr(config, "LEADERBOARD_URL", "")
        monkeypatch.setattr(config, "LEADERBOARD_API_KEY", "")

        validate_config()

    def test_unknown_log_level(self, monkeypatch):
        """Test that an unknown LOG_LEVEL is rejected"""
        monkeypatch.setattr(config, "LOG_LEVEL", "CHATTY")

        with pytest.raises(ConfigurationError) as exc_info:
            validate_config()

        assert exc_info.value.config_key == "LOG_LEVEL"

    def test_lowercase_log_level_accepted(self, monkeypatch):
        """Test that log level names are case-insensitive"""
        monkeypatch.setattr(config, "LOG_LEVEL", "debug")
        monkeypatch.setattr(config, "LEADERBOARD_URL", "")

        validate_config()

    def test_daily_goal_must_be_positive(self, monkeypatch):
        monkeypatch.setattr(config, "DAILY_GOAL", 0)

        with pytest.raises(ConfigurationError) as exc_info:
            validate_config()

        assert exc_info.value.config_key == "DAILY_GOAL"

    def test_negative_cooldown(self, monkeypatch):
        monkeypatch.setattr(config, "QUICK_SLOT_COOLDOWN_MINUTES", -1)

        with pytest.raises(ConfigurationError) as exc_info:
            validate_config()

        assert exc_info.value.config_key == "QUICK_SLOT_COOLDOWN_MINUTES"

    def test_leaderboard_limit_must_be_positive(self, monkeypatch):
        monkeypatch.setattr(config, "LEADERBOARD_LIMIT", 0)

        with pytest.raises(ConfigurationError):
            validate_config()

    def test_leaderboard_url_requires_api_key(self, monkeypatch):
        """Test that a remote leaderboard without credentials is rejected"""
        monkeypatch.setattr(config, "LEADERBOARD_URL", "https://example.supabase.co")
        monkeypatch.setattr(config, "LEADERBOARD_API_KEY", "")

        with pytest.raises(ConfigurationError) as exc_info:
            validate_config()

        assert exc_info.value.config_key == "LEADERBOARD_API_KEY"
        assert exc_info.value.user_message == "The app is not properly configured."
