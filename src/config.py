"""Configuration management"""
import os
from pathlib import Path
from dotenv import load_dotenv

from src.exceptions import ConfigurationError

load_dotenv()

# Storage
DATA_PATH: Path = Path(os.getenv("DATA_PATH", "./data"))

# Logging
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

# Daily targets
DAILY_GOAL: int = int(os.getenv("DAILY_GOAL", "3"))
QUICK_SLOT_COOLDOWN_MINUTES: int = int(os.getenv("QUICK_SLOT_COOLDOWN_MINUTES", "60"))

# XP awards
COMPLETION_XP: int = int(os.getenv("COMPLETION_XP", "2"))
DAILY_GOAL_XP: int = int(os.getenv("DAILY_GOAL_XP", "20"))
EXTRA_EXERCISE_XP: int = int(os.getenv("EXTRA_EXERCISE_XP", "5"))

# Leaderboard (PostgREST-compatible endpoint, e.g. a Supabase project)
# Leave LEADERBOARD_URL empty to run with the in-memory store.
LEADERBOARD_URL: str = os.getenv("LEADERBOARD_URL", "")
LEADERBOARD_API_KEY: str = os.getenv("LEADERBOARD_API_KEY", "")
LEADERBOARD_TABLE: str = os.getenv("LEADERBOARD_TABLE", "leaderboard_users")
LEADERBOARD_LIMIT: int = int(os.getenv("LEADERBOARD_LIMIT", "100"))
LEADERBOARD_REFRESH_INTERVAL: float = float(os.getenv("LEADERBOARD_REFRESH_INTERVAL", "300"))
LEADERBOARD_TIMEOUT: float = float(os.getenv("LEADERBOARD_TIMEOUT", "10"))


# Validation
def validate_config() -> None:
    """Validate configuration values"""
    if LOG_LEVEL.upper() not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
        raise ConfigurationError(f"Unknown LOG_LEVEL: {LOG_LEVEL}", config_key="LOG_LEVEL")
    if DAILY_GOAL < 1:
        raise ConfigurationError("DAILY_GOAL must be at least 1", config_key="DAILY_GOAL")
    if QUICK_SLOT_COOLDOWN_MINUTES < 0:
        raise ConfigurationError(
            "QUICK_SLOT_COOLDOWN_MINUTES cannot be negative",
            config_key="QUICK_SLOT_COOLDOWN_MINUTES"
        )
    if LEADERBOARD_LIMIT < 1:
        raise ConfigurationError("LEADERBOARD_LIMIT must be positive", config_key="LEADERBOARD_LIMIT")
    if LEADERBOARD_URL and not LEADERBOARD_API_KEY:
        raise ConfigurationError(
            "LEADERBOARD_API_KEY is required when LEADERBOARD_URL is set",
            config_key="LEADERBOARD_API_KEY"
        )
