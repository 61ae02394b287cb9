"""
CompletionService - Habit Completion Transaction

Logs one habit completion and applies its gamification effects as a single
unit of work:

    habit lock -> streak ledger lock -> duplicate check -> log insert
    -> streak update -> reward -> user balance lock -> level progression
    -> commit

Any failure rolls back every write made in the transaction. Locks are
always taken in the order habit -> streak ledger -> user balance, so two
requests for the same habit are fully serialized and requests for different
habits of one user only meet at the balance lock.
"""

import logging
import time
from datetime import date
from enum import Enum
from typing import Any, Callable, Optional

from src.db.store import Store
from src.exceptions import (
    ConflictError,
    HabitAlreadyLoggedError,
    HabitNotFoundError,
    InternalError,
    RecordNotFoundError,
)
from src.gamification.config import DEFAULT_CONFIG, GamificationConfig
from src.gamification.rewards import compute_reward
from src.gamification.streak_system import apply_completion, empty_ledger
from src.gamification.xp_system import apply_xp_gain
from src.models.completion import CompletionResult, GamificationSummary, StreakSnapshot
from src.observability import metrics
from src.utils.datetime_helpers import parse_log_date, utc_today
from src.validators import is_valid_uuid

logger = logging.getLogger(__name__)


class CompletionStage(str, Enum):
    """Progress of one completion transaction"""
    STARTED = "started"
    HABIT_LOCKED = "habit_locked"
    STREAK_LOCKED = "streak_locked"
    DUPLICATE_CHECKED = "duplicate_checked"
    LOG_INSERTED = "log_inserted"
    REWARD_COMPUTED = "reward_computed"
    USER_LOCKED = "user_locked"
    LEVEL_APPLIED = "level_applied"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


class CompletionService:
    """
    Service for logging habit completions.

    Responsibilities:
    - Lock habit, streak ledger and user balance in a fixed order
    - Reject duplicate completions for the same date
    - Update streaks, award XP/HP and apply level-ups atomically
    """

    def __init__(
        self,
        store: Store,
        config: GamificationConfig = DEFAULT_CONFIG,
        today: Callable[[], date] = utc_today
    ):
        """
        Initialize CompletionService.

        Args:
            store: Transactional store
            config: Reward and leveling rules
            today: Source of the server's current date
        """
        self.store = store
        self.config = config
        self.today = today

    async def log_completion(
        self,
        user_id: str,
        habit_id: str,
        log_date: Optional[Any] = None
    ) -> CompletionResult:
        """
        Log a habit completion and award its rewards.

        Args:
            user_id: Authenticated caller
            habit_id: Habit being completed
            log_date: Date to log; missing or invalid values mean today

        Returns:
            CompletionResult with the new log, streak pair and gamification summary

        Raises:
            HabitNotFoundError: Habit missing or owned by someone else
            HabitAlreadyLoggedError: Completion already logged for that date
            InternalError: Balance row missing or unexpected storage failure
        """
        today = self.today()
        target_date = parse_log_date(log_date, today)
        stage = CompletionStage.STARTED
        frequency = "unknown"
        start_time = time.perf_counter()

        try:
            if not is_valid_uuid(habit_id):
                raise HabitNotFoundError(habit_id, user_id=user_id, operation="log_completion")

            async with self.store.transaction() as tx:
                habit = await tx.lock_habit(habit_id, user_id)
                if habit is None:
                    raise HabitNotFoundError(habit_id, user_id=user_id, operation="log_completion")
                frequency = habit.frequency
                stage = CompletionStage.HABIT_LOCKED

                ledger = await tx.lock_streak_ledger(habit_id, user_id)
                if ledger is None:
                    logger.warning(
                        f"No streak ledger for habit {habit_id}, user {user_id}. Creating default."
                    )
                    ledger = empty_ledger(habit_id, user_id)
                    await tx.create_streak_ledger(ledger)
                stage = CompletionStage.STREAK_LOCKED

                if await tx.find_log(habit_id, target_date):
                    raise HabitAlreadyLoggedError(
                        habit_id, target_date, user_id=user_id, operation="log_completion"
                    )
                stage = CompletionStage.DUPLICATE_CHECKED

                log = await tx.insert_log(habit_id, user_id, target_date)
                stage = CompletionStage.LOG_INSERTED

                ledger = apply_completion(ledger, target_date, today)
                await tx.save_streak_ledger(ledger)

                reward = compute_reward(habit.frequency, ledger.current_streak, self.config)
                stage = CompletionStage.REWARD_COMPUTED

                balance = await tx.lock_user_balance(user_id)
                if balance is None:
                    raise InternalError(
                        f"Balance row missing for user {user_id}",
                        user_id=user_id,
                        operation="log_completion",
                        context={"habit_id": habit_id, "stage": stage.value}
                    )
                stage = CompletionStage.USER_LOCKED

                progress = apply_xp_gain(balance.level, balance.xp, reward.xp_earned, self.config)
                new_balance = balance.model_copy(update={
                    "xp": progress.new_xp,
                    "level": progress.new_level,
                    "hp": balance.hp + reward.hp_earned + progress.hp_bonus,
                })
                await tx.save_user_balance(new_balance)
                stage = CompletionStage.LEVEL_APPLIED

            stage = CompletionStage.COMMITTED

        except (RecordNotFoundError, ConflictError) as e:
            outcome = "not_found" if isinstance(e, RecordNotFoundError) else "conflict"
            metrics.habit_completions_total.labels(frequency=frequency, outcome=outcome).inc()
            raise
        except InternalError:
            metrics.habit_completions_total.labels(frequency=frequency, outcome="error").inc()
            raise
        except Exception as e:
            metrics.habit_completions_total.labels(frequency=frequency, outcome="error").inc()
            raise InternalError(
                f"Completion transaction failed at stage {stage.value}: {e}",
                user_id=user_id,
                operation="log_completion",
                context={"habit_id": habit_id, "log_date": str(target_date), "stage": stage.value},
                cause=e
            ) from e
        finally:
            metrics.habit_completion_duration_seconds.observe(time.perf_counter() - start_time)
            if stage != CompletionStage.COMMITTED:
                logger.debug(
                    f"Completion for habit {habit_id} {CompletionStage.ROLLED_BACK.value} "
                    f"after stage {stage.value}"
                )

        metrics.habit_completions_total.labels(frequency=frequency, outcome="logged").inc()
        metrics.gamification_xp_awarded_total.labels(frequency=frequency).inc(reward.xp_earned)
        metrics.gamification_hp_awarded_total.labels(source="completion").inc(reward.hp_earned)
        if progress.leveled_up:
            metrics.gamification_level_ups_total.inc(progress.new_level - balance.level)
            metrics.gamification_hp_awarded_total.labels(source="level_up").inc(progress.hp_bonus)
            logger.info(f"User {user_id} leveled up from {balance.level} to {progress.new_level}!")

        logger.info(
            f"Logged habit {habit_id} for {target_date} (user {user_id}): "
            f"streak {ledger.current_streak}/{ledger.longest_streak}, "
            f"+{reward.xp_earned} XP, +{reward.hp_earned + progress.hp_bonus} HP, "
            f"level {progress.new_level}"
        )

        return CompletionResult(
            log=log,
            streak=StreakSnapshot(
                habit_id=habit_id,
                current_streak=ledger.current_streak,
                longest_streak=ledger.longest_streak,
            ),
            gamification=GamificationSummary(
                xp_earned=reward.xp_earned,
                hp_earned=reward.hp_earned,
                level_up=progress.leveled_up,
                new_level=progress.new_level if progress.leveled_up else None,
                current_level=new_balance.level,
                current_xp=new_balance.xp,
                current_hp=new_balance.hp,
            ),
        )
