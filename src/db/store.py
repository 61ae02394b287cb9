"""
Storage seam for the completion and redemption transactions

A store hands out units of work. Every lock taken through a unit of work is
exclusive and held until the unit of work ends; writes become visible only
when the block exits cleanly and are discarded if it raises.

Lock order used by every caller: habit -> streak ledger -> user balance.
"""

import logging
from contextlib import asynccontextmanager
from datetime import date
from typing import AsyncContextManager, AsyncGenerator, Optional, Protocol

import psycopg
from psycopg import errors

from src.db import queries
from src.db.connection import db
from src.exceptions import HabitAlreadyLoggedError, RewardAlreadyUnlockedError, wrap_external_exception
from src.models.habit import CompletionLog, Habit, HabitWithStreak, LogEntry, StreakLedger
from src.models.user import User, UserBalance

logger = logging.getLogger(__name__)


class UnitOfWork(Protocol):
    """Operations available inside one transaction"""

    async def lock_habit(self, habit_id: str, user_id: str) -> Optional[Habit]:
        """Lock the habit row owned by user_id"""
        ...

    async def save_habit(self, habit: Habit) -> Habit:
        """Persist the editable fields of a locked habit"""
        ...

    async def lock_streak_ledger(self, habit_id: str, user_id: str) -> Optional[StreakLedger]:
        """Lock the habit's streak ledger"""
        ...

    async def create_streak_ledger(self, ledger: StreakLedger) -> None:
        """Insert a ledger; it stays locked by this unit of work"""
        ...

    async def find_log(self, habit_id: str, log_date: date) -> Optional[str]:
        """Id of the completion log at (habit, date), if any"""
        ...

    async def insert_log(self, habit_id: str, user_id: str, log_date: date) -> CompletionLog:
        """Insert a completion log; raises HabitAlreadyLoggedError on duplicates"""
        ...

    async def save_streak_ledger(self, ledger: StreakLedger) -> None:
        """Persist ledger state"""
        ...

    async def lock_user_balance(self, user_id: str) -> Optional[UserBalance]:
        """Lock the user's balance row"""
        ...

    async def save_user_balance(self, balance: UserBalance) -> None:
        """Persist xp, hp, level and active title"""
        ...

    async def has_unlocked_reward(self, user_id: str, reward_id: str) -> bool:
        """Whether the user already owns the reward"""
        ...

    async def insert_unlocked_reward(self, user_id: str, reward_id: str) -> None:
        """Record ownership; raises RewardAlreadyUnlockedError on duplicates"""
        ...


class Store(Protocol):
    """Transactional store plus the plain CRUD reads and writes"""

    def transaction(self) -> AsyncContextManager[UnitOfWork]:
        """Open a unit of work"""
        ...

    async def create_user(self, username: str) -> User:
        ...

    async def get_user_balance(self, user_id: str) -> Optional[UserBalance]:
        ...

    async def create_habit(
        self,
        user_id: str,
        name: str,
        description: Optional[str],
        frequency: str,
        target: Optional[int],
        goal_id: Optional[str],
    ) -> Habit:
        ...

    async def list_habits(self, user_id: str, today: date) -> list[HabitWithStreak]:
        ...

    async def delete_habit(self, user_id: str, habit_id: str) -> bool:
        ...

    async def list_logs(
        self,
        user_id: str,
        habit_id: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[LogEntry]:
        ...

    async def list_unlocked_rewards(self, user_id: str) -> list[dict]:
        ...

    async def ping(self) -> bool:
        """Whether the backing storage is reachable"""
        ...


# ==========================================
# PostgreSQL
# ==========================================

class PostgresUnitOfWork:
    """Unit of work over one psycopg cursor inside conn.transaction()"""

    def __init__(self, cur: psycopg.AsyncCursor):
        self.cur = cur

    async def lock_habit(self, habit_id: str, user_id: str) -> Optional[Habit]:
        return await queries.lock_habit(self.cur, habit_id, user_id)

    async def save_habit(self, habit: Habit) -> Habit:
        return await queries.update_habit(self.cur, habit)

    async def lock_streak_ledger(self, habit_id: str, user_id: str) -> Optional[StreakLedger]:
        return await queries.lock_streak_ledger(self.cur, habit_id, user_id)

    async def create_streak_ledger(self, ledger: StreakLedger) -> None:
        # A freshly inserted row is locked by the inserting transaction
        await queries.insert_streak_ledger(self.cur, ledger)

    async def find_log(self, habit_id: str, log_date: date) -> Optional[str]:
        return await queries.find_completion_log(self.cur, habit_id, log_date)

    async def insert_log(self, habit_id: str, user_id: str, log_date: date) -> CompletionLog:
        try:
            return await queries.insert_completion_log(self.cur, habit_id, user_id, log_date)
        except errors.UniqueViolation as e:
            raise HabitAlreadyLoggedError(
                habit_id,
                log_date,
                user_id=user_id,
                operation="insert_log",
                cause=e
            ) from e

    async def save_streak_ledger(self, ledger: StreakLedger) -> None:
        await queries.update_streak_ledger(self.cur, ledger)

    async def lock_user_balance(self, user_id: str) -> Optional[UserBalance]:
        return await queries.lock_user_balance(self.cur, user_id)

    async def save_user_balance(self, balance: UserBalance) -> None:
        await queries.update_user_balance(self.cur, balance)

    async def has_unlocked_reward(self, user_id: str, reward_id: str) -> bool:
        return await queries.has_unlocked_reward(self.cur, user_id, reward_id)

    async def insert_unlocked_reward(self, user_id: str, reward_id: str) -> None:
        try:
            await queries.insert_unlocked_reward(self.cur, user_id, reward_id)
        except errors.UniqueViolation as e:
            raise RewardAlreadyUnlockedError(
                reward_id,
                user_id=user_id,
                operation="insert_unlocked_reward",
                cause=e
            ) from e


class PostgresStore:
    """Store backed by the global psycopg connection pool shared with src.db.queries"""

    @asynccontextmanager
    async def transaction(self) -> AsyncGenerator[PostgresUnitOfWork, None]:
        try:
            async with db.transaction() as cur:
                yield PostgresUnitOfWork(cur)
        except psycopg.Error as e:
            raise wrap_external_exception(e, operation="transaction") from e

    async def create_user(self, username: str) -> User:
        return await queries.create_user(username)

    async def get_user_balance(self, user_id: str) -> Optional[UserBalance]:
        return await queries.get_user_balance(user_id)

    async def create_habit(
        self,
        user_id: str,
        name: str,
        description: Optional[str],
        frequency: str,
        target: Optional[int],
        goal_id: Optional[str],
    ) -> Habit:
        return await queries.create_habit(user_id, name, description, frequency, target, goal_id)

    async def list_habits(self, user_id: str, today: date) -> list[HabitWithStreak]:
        return await queries.get_user_habits(user_id, today)

    async def delete_habit(self, user_id: str, habit_id: str) -> bool:
        return await queries.delete_habit(user_id, habit_id)

    async def list_logs(
        self,
        user_id: str,
        habit_id: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[LogEntry]:
        return await queries.get_user_logs(user_id, habit_id, start_date, end_date)

    async def list_unlocked_rewards(self, user_id: str) -> list[dict]:
        return await queries.get_unlocked_rewards(user_id)

    async def ping(self) -> bool:
        return await db.ping()
