"""Gamification models: progress, levels, achievements, rewards"""
from datetime import date, datetime
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4
from pydantic import BaseModel, Field


class UserProgress(BaseModel):
    """Single mutable XP / coin / level accumulator"""
    id: UUID = Field(default_factory=uuid4)
    xp: int = 0
    coins: int = 0
    level: int = 1
    total_xp_earned: int = 0
    total_coins_earned: int = 0
    last_updated: datetime = Field(default_factory=datetime.now)


class RewardWatermarks(BaseModel):
    """How much of each recurring award has already been paid"""
    last_goal_award_date: Optional[date] = None
    extras_award_date: Optional[date] = None
    extras_paid: int = 0
    highest_streak_awarded: int = 0


class ProgressDocument(BaseModel):
    """On-disk layout of user_progress.json"""
    progress: UserProgress = Field(default_factory=UserProgress)
    watermarks: RewardWatermarks = Field(default_factory=RewardWatermarks)


class Level(BaseModel):
    """Immutable level catalog entry"""
    number: int
    xp_required: int
    coins_reward: int = 0
    title: str
    description: str = ""

    model_config = {"frozen": True}


class Achievement(BaseModel):
    """Achievement that unlocks once and stays unlocked"""
    id: UUID = Field(default_factory=uuid4)
    key: str
    title: str
    description: str
    xp_reward: int = 0
    is_unlocked: bool = False
    unlocked_at: Optional[datetime] = None


class Reward(BaseModel):
    """Reward bought once with coins"""
    id: UUID = Field(default_factory=uuid4)
    title: str
    description: str
    cost: int
    is_purchased: bool = False
    purchased_at: Optional[datetime] = None


class TransactionStatus(str, Enum):
    """Outcome of a one-way unlock or purchase"""
    UNLOCKED = "unlocked"
    PURCHASED = "purchased"
    ALREADY_DONE = "already_done"
    DECLINED = "declined"
    NOT_FOUND = "not_found"


class TransactionResult(BaseModel):
    """Result returned by unlock/purchase calls (never raised)"""
    status: TransactionStatus
    item_id: UUID
    message: str = ""
    coins_balance: Optional[int] = None

    @property
    def succeeded(self) -> bool:
        return self.status in (TransactionStatus.UNLOCKED, TransactionStatus.PURCHASED)


class ProgressEvent(BaseModel):
    """Published to ledger subscribers whenever progress changes"""
    reason: str
    progress: UserProgress
    old_level: int
    new_level: int

    @property
    def leveled_up(self) -> bool:
        return self.new_level > self.old_level
