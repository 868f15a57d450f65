"""Leaderboard models: local profile and remote rows"""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field


def current_month_year(now: Optional[datetime] = None) -> str:
    """
    Canonical monthly epoch key, "YYYY-MM"

    Python dates are always proleptic Gregorian, so the key does not depend
    on the device locale or calendar system.
    """
    now = now or datetime.now()
    return f"{now.year:04d}-{now.month:02d}"


class UserProfile(BaseModel):
    """Local profile for leaderboard participation"""
    device_id: str
    username: Optional[str] = None
    country_code: Optional[str] = None
    opted_into_leaderboard: bool = False
    last_synced_month: Optional[str] = None

    @property
    def has_completed_setup(self) -> bool:
        return bool(self.username)

    def is_new_month(self, now: Optional[datetime] = None) -> bool:
        if self.last_synced_month is None:
            return True
        return self.last_synced_month != current_month_year(now)


class LeaderboardEntry(BaseModel):
    """
    One row per (device_id, month_year) in the remote store

    Field names match the remote column names. rank is assigned at query
    time and is never sent to the store.
    """
    device_id: str
    username: Optional[str] = None
    country_code: Optional[str] = None
    total_sessions: int = Field(default=0, ge=0)
    month_year: str
    last_updated: datetime = Field(default_factory=datetime.now)
    rank: Optional[int] = None

    @property
    def display_name(self) -> str:
        return self.username or "Anonymous"

    @property
    def flag_emoji(self) -> str:
        """Regional-indicator flag for a two-letter country code"""
        if not self.country_code:
            return "🌍"
        return "".join(chr(127397 + ord(c)) for c in self.country_code.upper())

    def to_row(self) -> dict:
        """Serialize for upsert (no rank)"""
        return self.model_dump(mode="json", exclude={"rank"})
