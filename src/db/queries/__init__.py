"""
Database queries - Re-export all functions.

All imports like 'from src.db.queries import create_habit' resolve here.

Module organization:
- users.py: User creation and XP/HP/level balance
- habits.py: Habits, streak ledgers, completion logs
- rewards.py: Unlocked rewards
"""

# User operations
from src.db.queries.users import (
    create_user,
    get_user_balance,
    lock_user_balance,
    update_user_balance,
)

# Habit operations
from src.db.queries.habits import (
    lock_habit,
    update_habit,
    lock_streak_ledger,
    insert_streak_ledger,
    update_streak_ledger,
    find_completion_log,
    insert_completion_log,
    create_habit,
    get_user_habits,
    delete_habit,
    get_user_logs,
)

# Reward operations
from src.db.queries.rewards import (
    has_unlocked_reward,
    insert_unlocked_reward,
    get_unlocked_rewards,
)

__all__ = [
    "create_user",
    "get_user_balance",
    "lock_user_balance",
    "update_user_balance",
    "lock_habit",
    "update_habit",
    "lock_streak_ledger",
    "insert_streak_ledger",
    "update_streak_ledger",
    "find_completion_log",
    "insert_completion_log",
    "create_habit",
    "get_user_habits",
    "delete_habit",
    "get_user_logs",
    "has_unlocked_reward",
    "insert_unlocked_reward",
    "get_unlocked_rewards",
]
