"""
Reward Ledger

Single owner of UserProgress (XP, coins, level) and every rule that pays into it.

Award rules are idempotent per qualifying event through persisted watermarks:
- Daily goal: paid once per calendar day (last_goal_award_date)
- Extra exercises: paid per unit above the daily goal (extras_paid, reset daily)
- Streak milestones: paid once per threshold (highest_streak_awarded)

Level-up cascade:
- After any XP gain, advance while XP >= the next level's threshold
- Each level reached pays its coin reward exactly once
- Subscribers receive a ProgressEvent for every change

Achievements and rewards are one-way transitions; repeating one reports
ALREADY_DONE, and a purchase without enough coins is DECLINED with no mutation.
"""

from datetime import date, datetime
from typing import Callable, List, Optional, Tuple
from uuid import UUID
import logging

from src.config import COMPLETION_XP, DAILY_GOAL_XP, EXTRA_EXERCISE_XP
from src.gamification.achievement_system import create_default_achievements, create_default_rewards
from src.gamification.xp_system import (
    create_default_levels,
    get_level,
    get_next_level,
    get_progress_to_next_level,
    validate_level_catalog,
)
from src.models.progress import (
    Achievement,
    Level,
    ProgressDocument,
    ProgressEvent,
    Reward,
    RewardWatermarks,
    TransactionResult,
    TransactionStatus,
    UserProgress,
)
from src.storage.json_store import JsonDocumentStore

logger = logging.getLogger(__name__)

PROGRESS_FILE = "user_progress.json"
LEVELS_FILE = "levels.json"
ACHIEVEMENTS_FILE = "achievements.json"
REWARDS_FILE = "rewards.json"

# (streak length in days, XP bonus), ascending
STREAK_MILESTONES: List[Tuple[int, int]] = [
    (3, 40),
    (7, 60),
    (14, 90),
    (30, 140),
    (60, 200),
    (90, 260),
]

ProgressSubscriber = Callable[[ProgressEvent], None]


class RewardLedger:
    """Mutable XP / coin / level accumulator with idempotent award rules"""

    def __init__(
        self,
        store: JsonDocumentStore,
        completion_xp: int = COMPLETION_XP,
        daily_goal_xp: int = DAILY_GOAL_XP,
        extra_exercise_xp: int = EXTRA_EXERCISE_XP
    ):
        self.store = store
        self.completion_xp = completion_xp
        self.daily_goal_xp = daily_goal_xp
        self.extra_exercise_xp = extra_exercise_xp
        self._subscribers: List[ProgressSubscriber] = []
        self.load()

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def load(self) -> None:
        document = self.store.load(PROGRESS_FILE, ProgressDocument, ProgressDocument)
        self.progress: UserProgress = document.progress
        self.watermarks: RewardWatermarks = document.watermarks

        levels = self.store.load(LEVELS_FILE, List[Level], create_default_levels, persist_default=True)
        if not validate_level_catalog(levels):
            logger.error("Level catalog on disk is invalid, restoring defaults")
            levels = create_default_levels()
            self.store.save(LEVELS_FILE, levels, List[Level])
        self.levels: List[Level] = levels

        self._achievements: List[Achievement] = self.store.load(
            ACHIEVEMENTS_FILE, List[Achievement], create_default_achievements, persist_default=True
        )
        self._rewards: List[Reward] = self.store.load(
            REWARDS_FILE, List[Reward], create_default_rewards, persist_default=True
        )
        logger.info(
            f"Loaded progress: level {self.progress.level}, {self.progress.xp} XP, "
            f"{self.progress.coins} coins"
        )

    def _save_progress(self) -> None:
        self.progress.last_updated = datetime.now()
        self.store.save(
            PROGRESS_FILE,
            ProgressDocument(progress=self.progress, watermarks=self.watermarks),
            ProgressDocument,
        )

    def _save_achievements(self) -> None:
        self.store.save(ACHIEVEMENTS_FILE, self._achievements, List[Achievement])

    def _save_rewards(self) -> None:
        self.store.save(REWARDS_FILE, self._rewards, List[Reward])

    # ------------------------------------------------------------------
    # Subscribers
    # ------------------------------------------------------------------

    def subscribe(self, callback: ProgressSubscriber) -> None:
        if callback not in self._subscribers:
            self._subscribers.append(callback)

    def unsubscribe(self, callback: ProgressSubscriber) -> None:
        if callback in self._subscribers:
            self._subscribers.remove(callback)

    def _publish(self, reason: str, old_level: int) -> None:
        event = ProgressEvent(
            reason=reason,
            progress=self.progress.model_copy(),
            old_level=old_level,
            new_level=self.progress.level,
        )
        for callback in list(self._subscribers):
            try:
                callback(event)
            except Exception as e:
                logger.error(f"Progress subscriber failed for '{reason}': {e}", exc_info=True)

    # ------------------------------------------------------------------
    # XP and levels
    # ------------------------------------------------------------------

    def _apply_level_ups(self) -> List[Level]:
        """Advance through every level whose threshold XP now meets"""
        reached = []
        while True:
            upcoming = get_next_level(self.levels, self.progress.level)
            if upcoming is None or self.progress.xp < upcoming.xp_required:
                break
            self.progress.level = upcoming.number
            self.progress.coins += upcoming.coins_reward
            self.progress.total_coins_earned += upcoming.coins_reward
            reached.append(upcoming)
        return reached

    def add_xp(self, amount: int, source: str) -> ProgressEvent:
        """
        Add XP, cascade level-ups, save and notify subscribers

        Args:
            amount: XP to add (non-positive amounts are ignored)
            source: Human-readable reason, e.g. "Streak milestone 7"

        Returns:
            The published ProgressEvent
        """
        old_level = self.progress.level
        if amount <= 0:
            return ProgressEvent(reason=source, progress=self.progress.model_copy(),
                                 old_level=old_level, new_level=old_level)

        self.progress.xp += amount
        self.progress.total_xp_earned += amount
        reached = self._apply_level_ups()
        self._save_progress()

        logger.info(f"Added {amount} XP from {source}: total {self.progress.xp}")
        for level in reached:
            logger.info(f"Leveled up to {level.number} ({level.title}), +{level.coins_reward} coins")

        self._publish(source, old_level)
        return ProgressEvent(reason=source, progress=self.progress.model_copy(),
                             old_level=old_level, new_level=self.progress.level)

    def award_completion(self) -> int:
        """Flat XP for one appended exercise completion"""
        self.add_xp(self.completion_xp, "Exercise completion")
        return self.completion_xp

    def current_level(self) -> Level:
        return get_level(self.levels, self.progress.level) or self.levels[0]

    def next_level(self) -> Optional[Level]:
        return get_next_level(self.levels, self.progress.level)

    def progress_to_next_level(self) -> float:
        return get_progress_to_next_level(self.levels, self.progress.xp, self.progress.level)

    # ------------------------------------------------------------------
    # Watermarked award rules
    # ------------------------------------------------------------------

    def award_daily_goal(
        self,
        completions_today: int,
        daily_goal: int,
        today: Optional[date] = None
    ) -> int:
        """
        Pay the daily-goal bonus the first time today's completions reach the goal

        Returns:
            XP awarded (0 when not reached or already paid today)
        """
        today = today or date.today()
        if completions_today < daily_goal:
            return 0
        if self.watermarks.last_goal_award_date == today:
            return 0

        self.watermarks.last_goal_award_date = today
        self.add_xp(self.daily_goal_xp, "Daily goal reached")
        return self.daily_goal_xp

    def award_extra_exercises(
        self,
        completions_today: int,
        daily_goal: int,
        today: Optional[date] = None
    ) -> int:
        """
        Pay a smaller bonus for each completion beyond the daily goal

        Only units not already paid today are paid. The counter restarts
        when the stored day is not today.
        """
        today = today or date.today()
        if self.watermarks.extras_award_date != today:
            self.watermarks.extras_award_date = today
            self.watermarks.extras_paid = 0

        new_extras = (completions_today - daily_goal) - self.watermarks.extras_paid
        if new_extras <= 0:
            self._save_progress()
            return 0

        self.watermarks.extras_paid += new_extras
        amount = new_extras * self.extra_exercise_xp
        self.add_xp(amount, f"{new_extras} extra exercises")
        return amount

    def award_streak_milestones(self, current_streak: int) -> int:
        """
        Pay every milestone <= current_streak that is above the stored highest

        Example:
            Streak jumps from 2 to 10 with nothing paid yet: pays the 3-day
            and 7-day bonuses (100 XP) and stores 7.
        """
        total = 0
        for threshold, bonus in STREAK_MILESTONES:
            if threshold > current_streak:
                break
            if threshold <= self.watermarks.highest_streak_awarded:
                continue
            self.watermarks.highest_streak_awarded = threshold
            self.add_xp(bonus, f"Streak milestone {threshold}")
            total += bonus
        return total

    def process_daily_progress(
        self,
        day: date,
        daily_goal: int,
        completions: int,
        current_streak: int,
        today: Optional[date] = None
    ) -> int:
        """Run every watermarked rule for today; any other day is ignored"""
        today = today or date.today()
        if day != today:
            logger.debug(f"Skipping daily progress for {day}, not today")
            return 0

        awarded = self.award_daily_goal(completions, daily_goal, today)
        awarded += self.award_extra_exercises(completions, daily_goal, today)
        awarded += self.award_streak_milestones(current_streak)
        return awarded

    # ------------------------------------------------------------------
    # Achievements and rewards
    # ------------------------------------------------------------------

    @property
    def achievements(self) -> List[Achievement]:
        return list(self._achievements)

    @property
    def rewards(self) -> List[Reward]:
        return list(self._rewards)

    def get_achievement(self, achievement_id: UUID) -> Optional[Achievement]:
        return next((a for a in self._achievements if a.id == achievement_id), None)

    def get_reward(self, reward_id: UUID) -> Optional[Reward]:
        return next((r for r in self._rewards if r.id == reward_id), None)

    def unlock_achievement(self, achievement_id: UUID) -> TransactionResult:
        for i, achievement in enumerate(self._achievements):
            if achievement.id != achievement_id:
                continue
            if achievement.is_unlocked:
                return TransactionResult(
                    status=TransactionStatus.ALREADY_DONE,
                    item_id=achievement_id,
                    message=f"{achievement.title} already unlocked",
                    coins_balance=self.progress.coins,
                )

            self._achievements[i] = achievement.model_copy(
                update={"is_unlocked": True, "unlocked_at": datetime.now()}
            )
            self._save_achievements()
            logger.info(f"Unlocked achievement: {achievement.title}")
            if achievement.xp_reward > 0:
                self.add_xp(achievement.xp_reward, f"Achievement: {achievement.title}")

            return TransactionResult(
                status=TransactionStatus.UNLOCKED,
                item_id=achievement_id,
                message=f"Unlocked {achievement.title}",
                coins_balance=self.progress.coins,
            )

        logger.warning(f"Achievement {achievement_id} not found")
        return TransactionResult(status=TransactionStatus.NOT_FOUND, item_id=achievement_id,
                                 message="Achievement not found")

    def purchase_reward(self, reward_id: UUID) -> TransactionResult:
        for i, reward in enumerate(self._rewards):
            if reward.id != reward_id:
                continue
            if reward.is_purchased:
                return TransactionResult(
                    status=TransactionStatus.ALREADY_DONE,
                    item_id=reward_id,
                    message=f"{reward.title} already purchased",
                    coins_balance=self.progress.coins,
                )
            if self.progress.coins < reward.cost:
                logger.info(
                    f"Declined {reward.title}: costs {reward.cost}, balance {self.progress.coins}"
                )
                return TransactionResult(
                    status=TransactionStatus.DECLINED,
                    item_id=reward_id,
                    message=f"Not enough coins for {reward.title}",
                    coins_balance=self.progress.coins,
                )

            old_level = self.progress.level
            self.progress.coins -= reward.cost
            self._rewards[i] = reward.model_copy(
                update={"is_purchased": True, "purchased_at": datetime.now()}
            )
            self._save_rewards()
            self._save_progress()
            logger.info(f"Purchased reward {reward.title} for {reward.cost} coins")
            self._publish(f"Purchased {reward.title}", old_level)

            return TransactionResult(
                status=TransactionStatus.PURCHASED,
                item_id=reward_id,
                message=f"Purchased {reward.title}",
                coins_balance=self.progress.coins,
            )

        logger.warning(f"Reward {reward_id} not found")
        return TransactionResult(status=TransactionStatus.NOT_FOUND, item_id=reward_id,
                                 message="Reward not found")

    # ------------------------------------------------------------------
    # Reset
    # ------------------------------------------------------------------

    def reset(self) -> None:
        """Progress, watermarks, achievements and rewards back to initial state"""
        old_level = self.progress.level
        self.progress = UserProgress()
        self.watermarks = RewardWatermarks()
        self._achievements = create_default_achievements()
        self._rewards = create_default_rewards()
        self._save_progress()
        self._save_achievements()
        self._save_rewards()
        logger.info("Reset gamification progress")
        self._publish("Reset", old_level)
