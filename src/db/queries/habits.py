"""Habit, streak ledger and completion log database queries"""
import logging
from datetime import date
from typing import Optional

import psycopg

from src.db.connection import db
from src.models.habit import CompletionLog, Habit, HabitWithStreak, LogEntry, StreakLedger

logger = logging.getLogger(__name__)


_HABIT_COLUMNS = """
    id::text AS id, user_id::text AS user_id, name, description, frequency,
    target, goal_id::text AS goal_id, created_at, updated_at
"""


# ==========================================
# Locking reads and writes (caller owns the transaction)
# ==========================================

async def lock_habit(cur: psycopg.AsyncCursor, habit_id: str, user_id: str) -> Optional[Habit]:
    """Lock the habit row if it exists and belongs to the user"""
    await cur.execute(
        f"""
        SELECT {_HABIT_COLUMNS}
        FROM habits
        WHERE id = %s AND user_id = %s
        FOR UPDATE
        """,
        (habit_id, user_id)
    )
    row = await cur.fetchone()
    return Habit(**row) if row else None


async def lock_streak_ledger(
    cur: psycopg.AsyncCursor,
    habit_id: str,
    user_id: str
) -> Optional[StreakLedger]:
    """Lock the habit's streak ledger row"""
    await cur.execute(
        """
        SELECT habit_id::text AS habit_id, user_id::text AS user_id,
               current_streak, longest_streak, last_logged_date
        FROM habit_streaks
        WHERE habit_id = %s AND user_id = %s
        FOR UPDATE
        """,
        (habit_id, user_id)
    )
    row = await cur.fetchone()
    return StreakLedger(**row) if row else None


async def insert_streak_ledger(cur: psycopg.AsyncCursor, ledger: StreakLedger) -> None:
    """Insert a streak ledger row"""
    await cur.execute(
        """
        INSERT INTO habit_streaks (habit_id, user_id, current_streak, longest_streak, last_logged_date)
        VALUES (%s, %s, %s, %s, %s)
        """,
        (
            ledger.habit_id,
            ledger.user_id,
            ledger.current_streak,
            ledger.longest_streak,
            ledger.last_logged_date,
        )
    )


async def update_streak_ledger(cur: psycopg.AsyncCursor, ledger: StreakLedger) -> None:
    """Persist streak ledger state"""
    await cur.execute(
        """
        UPDATE habit_streaks
        SET current_streak = %s,
            longest_streak = %s,
            last_logged_date = %s,
            updated_at = CURRENT_TIMESTAMP
        WHERE habit_id = %s AND user_id = %s
        """,
        (
            ledger.current_streak,
            ledger.longest_streak,
            ledger.last_logged_date,
            ledger.habit_id,
            ledger.user_id,
        )
    )


async def find_completion_log(cur: psycopg.AsyncCursor, habit_id: str, log_date: date) -> Optional[str]:
    """Return the id of the completion log at (habit, date), if any"""
    await cur.execute(
        "SELECT id::text AS id FROM habit_logs WHERE habit_id = %s AND log_date = %s",
        (habit_id, log_date)
    )
    row = await cur.fetchone()
    return row["id"] if row else None


async def insert_completion_log(
    cur: psycopg.AsyncCursor,
    habit_id: str,
    user_id: str,
    log_date: date
) -> CompletionLog:
    """
    Insert a completion log

    Raises:
        psycopg.errors.UniqueViolation: (habit_id, log_date) already logged
    """
    await cur.execute(
        """
        INSERT INTO habit_logs (habit_id, user_id, log_date)
        VALUES (%s, %s, %s)
        RETURNING id::text AS id, habit_id::text AS habit_id, user_id::text AS user_id,
                  log_date, created_at
        """,
        (habit_id, user_id, log_date)
    )
    row = await cur.fetchone()
    return CompletionLog(**row)


async def update_habit(cur: psycopg.AsyncCursor, habit: Habit) -> Habit:
    """Persist the editable fields of a locked habit row"""
    await cur.execute(
        f"""
        UPDATE habits
        SET name = %s,
            description = %s,
            frequency = %s,
            target = %s,
            goal_id = %s,
            updated_at = CURRENT_TIMESTAMP
        WHERE id = %s AND user_id = %s
        RETURNING {_HABIT_COLUMNS}
        """,
        (habit.name, habit.description, habit.frequency, habit.target, habit.goal_id, habit.id, habit.user_id)
    )
    return Habit(**await cur.fetchone())


# ==========================================
# Habit CRUD
# ==========================================

async def create_habit(
    user_id: str,
    name: str,
    description: Optional[str] = None,
    frequency: str = "daily",
    target: Optional[int] = 1,
    goal_id: Optional[str] = None
) -> Habit:
    """
    Create a habit together with its zero-initialized streak ledger

    Both rows are written in one transaction.
    """
    async with db.transaction() as cur:
        await cur.execute(
            f"""
            INSERT INTO habits (user_id, name, description, frequency, target, goal_id)
            VALUES (%s, %s, %s, %s, %s, %s)
            RETURNING {_HABIT_COLUMNS}
            """,
            (user_id, name, description, frequency, target, goal_id)
        )
        habit = Habit(**await cur.fetchone())
        await insert_streak_ledger(cur, StreakLedger(habit_id=habit.id, user_id=user_id))

    logger.info(f"Created habit {habit.id} ({habit.frequency}) for user {user_id}")
    return habit


async def get_user_habits(user_id: str, today: date) -> list[HabitWithStreak]:
    """
    Get all habits for a user with streak data, newest first

    Args:
        user_id: Owner
        today: Date used for is_logged_today
    """
    async with db.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                """
                SELECT h.id::text AS id, h.user_id::text AS user_id, h.name, h.description,
                       h.frequency, h.target, h.goal_id::text AS goal_id,
                       h.created_at, h.updated_at,
                       COALESCE(s.current_streak, 0) AS current_streak,
                       COALESCE(s.longest_streak, 0) AS longest_streak,
                       s.last_logged_date,
                       EXISTS (
                           SELECT 1 FROM habit_logs hl
                           WHERE hl.habit_id = h.id AND hl.log_date = %s
                       ) AS is_logged_today
                FROM habits h
                LEFT JOIN habit_streaks s ON s.habit_id = h.id
                WHERE h.user_id = %s
                ORDER BY h.created_at DESC
                """,
                (today, user_id)
            )
            rows = await cur.fetchall()
            return [HabitWithStreak(**row) for row in rows]


async def delete_habit(user_id: str, habit_id: str) -> bool:
    """
    Delete a habit (streak ledger and logs cascade)

    Returns:
        True if a habit was deleted
    """
    async with db.transaction() as cur:
        await cur.execute(
            "DELETE FROM habits WHERE id = %s AND user_id = %s",
            (habit_id, user_id)
        )
        deleted = cur.rowcount > 0

    if deleted:
        logger.info(f"Deleted habit {habit_id} for user {user_id}")
    return deleted


async def get_user_logs(
    user_id: str,
    habit_id: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None
) -> list[LogEntry]:
    """
    Get completion logs for a user

    Args:
        user_id: Owner
        habit_id: Only logs of this habit
        start_date: Inclusive lower bound on log_date
        end_date: Inclusive upper bound on log_date

    Returns:
        Logs ordered by log_date DESC, then habit name
    """
    query = """
        SELECT hl.id::text AS id, hl.habit_id::text AS habit_id, h.name AS habit_name,
               hl.log_date, hl.created_at
        FROM habit_logs hl
        JOIN habits h ON hl.habit_id = h.id
        WHERE hl.user_id = %s
    """
    params: list = [user_id]

    if habit_id:
        query += " AND hl.habit_id = %s"
        params.append(habit_id)
    if start_date:
        query += " AND hl.log_date >= %s"
        params.append(start_date)
    if end_date:
        query += " AND hl.log_date <= %s"
        params.append(end_date)

    query += " ORDER BY hl.log_date DESC, h.name ASC"

    async with db.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(query, tuple(params))
            rows = await cur.fetchall()
            return [LogEntry(**row) for row in rows]
