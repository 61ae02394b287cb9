"""
In-process store

Implements the same unit-of-work contract as PostgresStore with per-key
asyncio locks and buffered writes. Nothing is persisted, so it backs tests
and STORAGE_BACKEND=memory for local development only.
"""

import asyncio
import logging
from collections import defaultdict
from contextlib import asynccontextmanager
from datetime import date, datetime, timezone
from typing import AsyncGenerator, Dict, List, Optional, Set, Tuple
from uuid import uuid4

from src.exceptions import HabitAlreadyLoggedError, RewardAlreadyUnlockedError
from src.models.habit import CompletionLog, Habit, HabitWithStreak, LogEntry, StreakLedger
from src.models.user import User, UserBalance

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


class MemoryUnitOfWork:
    """Locks held and writes staged for one transaction"""

    def __init__(self, store: "InMemoryStore"):
        self.store = store
        self._held: List[asyncio.Lock] = []
        self._held_keys: Set[str] = set()
        self._habits: Dict[str, Habit] = {}
        self._streaks: Dict[str, StreakLedger] = {}
        self._logs: List[CompletionLog] = []
        self._balances: Dict[str, UserBalance] = {}
        self._unlocked: Dict[Tuple[str, str], datetime] = {}

    async def _acquire(self, key: str) -> None:
        # Simulated storage round trip so concurrent transactions interleave
        await asyncio.sleep(0)
        if key in self._held_keys:
            return
        lock = self.store._locks[key]
        await lock.acquire()
        self._held.append(lock)
        self._held_keys.add(key)

    def _release_all(self) -> None:
        for lock in reversed(self._held):
            lock.release()
        self._held.clear()
        self._held_keys.clear()

    def _commit(self) -> None:
        store = self.store
        store.habits.update(self._habits)
        store.streaks.update(self._streaks)
        for log in self._logs:
            store.logs[log.id] = log
            store._log_index.add((log.habit_id, log.log_date))
        for user_id, balance in self._balances.items():
            user = store.users[user_id]
            store.users[user_id] = user.model_copy(update={
                "xp": balance.xp,
                "hp": balance.hp,
                "level": balance.level,
                "active_title": balance.active_title,
            })
        store.unlocked.update(self._unlocked)

    async def lock_habit(self, habit_id: str, user_id: str) -> Optional[Habit]:
        await self._acquire(f"habit:{habit_id}")
        habit = self._habits.get(habit_id) or self.store.habits.get(habit_id)
        if habit is None or habit.user_id != user_id:
            return None
        return habit.model_copy()

    async def save_habit(self, habit: Habit) -> Habit:
        await asyncio.sleep(0)
        saved = habit.model_copy(update={"updated_at": _now()})
        self._habits[habit.id] = saved
        return saved.model_copy()

    async def lock_streak_ledger(self, habit_id: str, user_id: str) -> Optional[StreakLedger]:
        await self._acquire(f"streak:{habit_id}")
        ledger = self._streaks.get(habit_id) or self.store.streaks.get(habit_id)
        if ledger is None or ledger.user_id != user_id:
            return None
        return ledger.model_copy()

    async def create_streak_ledger(self, ledger: StreakLedger) -> None:
        await self._acquire(f"streak:{ledger.habit_id}")
        self._streaks[ledger.habit_id] = ledger.model_copy()

    async def find_log(self, habit_id: str, log_date: date) -> Optional[str]:
        await asyncio.sleep(0)
        for log in self._logs:
            if log.habit_id == habit_id and log.log_date == log_date:
                return log.id
        for log in self.store.logs.values():
            if log.habit_id == habit_id and log.log_date == log_date:
                return log.id
        return None

    async def insert_log(self, habit_id: str, user_id: str, log_date: date) -> CompletionLog:
        await asyncio.sleep(0)
        staged = any(log.habit_id == habit_id and log.log_date == log_date for log in self._logs)
        if staged or (habit_id, log_date) in self.store._log_index:
            raise HabitAlreadyLoggedError(habit_id, log_date, user_id=user_id, operation="insert_log")

        log = CompletionLog(
            id=str(uuid4()),
            habit_id=habit_id,
            user_id=user_id,
            log_date=log_date,
            created_at=_now(),
        )
        self._logs.append(log)
        return log

    async def save_streak_ledger(self, ledger: StreakLedger) -> None:
        await asyncio.sleep(0)
        self._streaks[ledger.habit_id] = ledger.model_copy()

    async def lock_user_balance(self, user_id: str) -> Optional[UserBalance]:
        await self._acquire(f"user:{user_id}")
        if user_id in self._balances:
            return self._balances[user_id].model_copy()
        user = self.store.users.get(user_id)
        if user is None:
            return None
        return UserBalance(
            user_id=user.id,
            xp=user.xp,
            hp=user.hp,
            level=user.level,
            active_title=user.active_title,
        )

    async def save_user_balance(self, balance: UserBalance) -> None:
        await asyncio.sleep(0)
        self._balances[balance.user_id] = balance.model_copy()

    async def has_unlocked_reward(self, user_id: str, reward_id: str) -> bool:
        key = (user_id, reward_id)
        return key in self._unlocked or key in self.store.unlocked

    async def insert_unlocked_reward(self, user_id: str, reward_id: str) -> None:
        if await self.has_unlocked_reward(user_id, reward_id):
            raise RewardAlreadyUnlockedError(reward_id, user_id=user_id, operation="insert_unlocked_reward")
        self._unlocked[(user_id, reward_id)] = _now()


class InMemoryStore:
    """Dictionary-backed store (NOT persisted)"""

    def __init__(self):
        self.users: Dict[str, User] = {}
        self.habits: Dict[str, Habit] = {}
        self.streaks: Dict[str, StreakLedger] = {}
        self.logs: Dict[str, CompletionLog] = {}
        self.unlocked: Dict[Tuple[str, str], datetime] = {}
        self._log_index: Set[Tuple[str, date]] = set()
        self._locks: Dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)
        logger.warning("InMemoryStore initialized - data is NOT persisted")

    @asynccontextmanager
    async def transaction(self) -> AsyncGenerator[MemoryUnitOfWork, None]:
        uow = MemoryUnitOfWork(self)
        try:
            yield uow
            uow._commit()
        finally:
            uow._release_all()

    async def create_user(self, username: str) -> User:
        user = User(id=str(uuid4()), username=username, created_at=_now())
        self.users[user.id] = user
        logger.info(f"Created user {user.id} ({username})")
        return user

    async def get_user_balance(self, user_id: str) -> Optional[UserBalance]:
        user = self.users.get(user_id)
        if user is None:
            return None
        return UserBalance(
            user_id=user.id,
            xp=user.xp,
            hp=user.hp,
            level=user.level,
            active_title=user.active_title,
        )

    async def create_habit(
        self,
        user_id: str,
        name: str,
        description: Optional[str] = None,
        frequency: str = "daily",
        target: Optional[int] = 1,
        goal_id: Optional[str] = None,
    ) -> Habit:
        now = _now()
        habit = Habit(
            id=str(uuid4()),
            user_id=user_id,
            name=name,
            description=description,
            frequency=frequency,
            target=target,
            goal_id=goal_id,
            created_at=now,
            updated_at=now,
        )
        self.habits[habit.id] = habit
        self.streaks[habit.id] = StreakLedger(habit_id=habit.id, user_id=user_id)
        logger.info(f"Created habit {habit.id} ({frequency}) for user {user_id}")
        return habit

    async def list_habits(self, user_id: str, today: date) -> list[HabitWithStreak]:
        rows = []
        for habit in self.habits.values():
            if habit.user_id != user_id:
                continue
            ledger = self.streaks.get(habit.id)
            rows.append(HabitWithStreak(
                **habit.model_dump(),
                current_streak=ledger.current_streak if ledger else 0,
                longest_streak=ledger.longest_streak if ledger else 0,
                last_logged_date=ledger.last_logged_date if ledger else None,
                is_logged_today=(habit.id, today) in self._log_index,
            ))
        rows.sort(key=lambda h: h.created_at, reverse=True)
        return rows

    async def delete_habit(self, user_id: str, habit_id: str) -> bool:
        habit = self.habits.get(habit_id)
        if habit is None or habit.user_id != user_id:
            return False

        async with self._locks[f"habit:{habit_id}"]:
            del self.habits[habit_id]
            self.streaks.pop(habit_id, None)
            for log_id in [log.id for log in self.logs.values() if log.habit_id == habit_id]:
                log = self.logs.pop(log_id)
                self._log_index.discard((habit_id, log.log_date))

        self._locks.pop(f"habit:{habit_id}", None)
        self._locks.pop(f"streak:{habit_id}", None)
        logger.info(f"Deleted habit {habit_id} for user {user_id}")
        return True

    async def list_logs(
        self,
        user_id: str,
        habit_id: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[LogEntry]:
        entries = []
        for log in self.logs.values():
            if log.user_id != user_id:
                continue
            if habit_id and log.habit_id != habit_id:
                continue
            if start_date and log.log_date < start_date:
                continue
            if end_date and log.log_date > end_date:
                continue
            entries.append(LogEntry(
                id=log.id,
                habit_id=log.habit_id,
                habit_name=self.habits[log.habit_id].name,
                log_date=log.log_date,
                created_at=log.created_at,
            ))
        # log_date DESC, then habit name ASC
        entries.sort(key=lambda e: e.habit_name)
        entries.sort(key=lambda e: e.log_date, reverse=True)
        return entries

    async def list_unlocked_rewards(self, user_id: str) -> list[dict]:
        rows = [
            {"reward_id": reward_id, "unlocked_at": unlocked_at}
            for (owner, reward_id), unlocked_at in self.unlocked.items()
            if owner == user_id
        ]
        rows.sort(key=lambda r: r["unlocked_at"], reverse=True)
        return rows

    async def ping(self) -> bool:
        return True
