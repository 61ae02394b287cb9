"""
HabitService - Users, Habits and Logs

Plain create/read/update/delete operations around the completion transaction.
Habit edits lock the habit row, so they serialize with completions of that habit.
"""

import logging
from datetime import date
from typing import Callable, Dict, List, Optional

from src.db.store import Store
from src.exceptions import (
    HabitNotFoundError,
    InternalError,
    RecordNotFoundError,
    UserNotFoundError,
    ValidationError,
)
from src.gamification.config import DEFAULT_CONFIG, GamificationConfig
from src.gamification.xp_system import xp_to_next_level
from src.models.habit import Habit, HabitWithStreak, LogEntry
from src.models.user import User
from src.utils.datetime_helpers import parse_date_filter, utc_today
from src.validators import HabitInput, HabitUpdate, is_valid_uuid

logger = logging.getLogger(__name__)


class HabitService:
    """
    Service for habit management.

    Responsibilities:
    - User registration and balance reads
    - Habit creation (with its streak ledger), editing, listing and deletion
    - Completion log listing with filters
    """

    def __init__(
        self,
        store: Store,
        config: GamificationConfig = DEFAULT_CONFIG,
        today: Callable[[], date] = utc_today
    ):
        self.store = store
        self.config = config
        self.today = today

    async def create_user(self, username: str) -> User:
        """Register a user with an empty balance"""
        username = username.strip()
        if not username:
            raise ValidationError(message="Username is required", field="username", operation="create_user")
        return await self.store.create_user(username)

    async def get_balance(self, user_id: str) -> Dict:
        """
        Get a user's XP, HP and level

        Returns:
            {
                'user_id': str,
                'xp': int,
                'hp': int,
                'level': int,
                'xp_to_next_level': int,
                'active_title': Optional[str]
            }
        """
        balance = await self.store.get_user_balance(user_id) if is_valid_uuid(user_id) else None
        if balance is None:
            raise UserNotFoundError(user_id, operation="get_balance")

        return {
            "user_id": balance.user_id,
            "xp": balance.xp,
            "hp": balance.hp,
            "level": balance.level,
            "xp_to_next_level": xp_to_next_level(balance.level, balance.xp, self.config),
            "active_title": balance.active_title,
        }

    async def create_habit(self, user_id: str, habit: HabitInput) -> Habit:
        """Create a habit and its zero-initialized streak ledger"""
        if not is_valid_uuid(user_id) or await self.store.get_user_balance(user_id) is None:
            raise UserNotFoundError(user_id, operation="create_habit")

        return await self.store.create_habit(
            user_id,
            habit.name,
            habit.description,
            habit.frequency,
            habit.target,
            habit.goal_id,
        )

    async def list_habits(self, user_id: str) -> List[HabitWithStreak]:
        """User's habits with streak data, newest first"""
        if not is_valid_uuid(user_id):
            return []
        return await self.store.list_habits(user_id, self.today())

    async def update_habit(self, user_id: str, habit_id: str, update: HabitUpdate) -> Habit:
        """
        Edit name, description, frequency, target or goal of a habit

        Streak and log history are kept as they are; a frequency change only
        affects rewards of later completions.

        Raises:
            ValidationError: No fields sent
            HabitNotFoundError: Habit missing or owned by someone else
        """
        changes = update.changes()
        if not changes:
            raise ValidationError(message="No valid fields provided for update", operation="update_habit")
        if not (is_valid_uuid(user_id) and is_valid_uuid(habit_id)):
            raise HabitNotFoundError(habit_id, user_id=user_id, operation="update_habit")

        try:
            async with self.store.transaction() as tx:
                habit = await tx.lock_habit(habit_id, user_id)
                if habit is None:
                    raise HabitNotFoundError(habit_id, user_id=user_id, operation="update_habit")
                updated = await tx.save_habit(habit.model_copy(update=changes))
        except (RecordNotFoundError, InternalError):
            raise
        except Exception as e:
            raise InternalError(
                f"Habit update failed: {e}",
                user_id=user_id,
                operation="update_habit",
                context={"habit_id": habit_id, "fields": sorted(changes)},
                cause=e
            ) from e

        logger.info(f"Updated habit {habit_id} ({', '.join(sorted(changes))}) for user {user_id}")
        return updated

    async def delete_habit(self, user_id: str, habit_id: str) -> None:
        """Delete a habit with its streak ledger and logs"""
        if not (is_valid_uuid(user_id) and is_valid_uuid(habit_id)):
            raise HabitNotFoundError(habit_id, user_id=user_id, operation="delete_habit")
        if not await self.store.delete_habit(user_id, habit_id):
            raise HabitNotFoundError(habit_id, user_id=user_id, operation="delete_habit")

    async def list_logs(
        self,
        user_id: str,
        habit_id: Optional[str] = None,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None
    ) -> List[LogEntry]:
        """
        User's completion logs, newest date first

        Args:
            user_id: Owner
            habit_id: Only logs of this habit
            start_date: Inclusive YYYY-MM-DD lower bound
            end_date: Inclusive YYYY-MM-DD upper bound

        Raises:
            ValidationError: Malformed date filter or habit id
        """
        start = parse_date_filter(start_date, "start_date")
        end = parse_date_filter(end_date, "end_date")
        if habit_id and not is_valid_uuid(habit_id):
            raise ValidationError(message="must be a UUID", field="habit_id", value=habit_id, operation="list_logs")
        if not is_valid_uuid(user_id):
            return []

        logs = await self.store.list_logs(user_id, habit_id, start, end)
        logger.debug(f"Found {len(logs)} logs for user {user_id}")
        return logs
