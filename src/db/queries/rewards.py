"""Unlocked reward database queries"""
import logging

import psycopg

from src.db.connection import db

logger = logging.getLogger(__name__)


async def has_unlocked_reward(cur: psycopg.AsyncCursor, user_id: str, reward_id: str) -> bool:
    """Check ownership inside the caller's transaction"""
    await cur.execute(
        "SELECT 1 FROM user_unlocked_rewards WHERE user_id = %s AND reward_id = %s",
        (user_id, reward_id)
    )
    return await cur.fetchone() is not None


async def insert_unlocked_reward(cur: psycopg.AsyncCursor, user_id: str, reward_id: str) -> None:
    """
    Record a redeemed reward

    Raises:
        psycopg.errors.UniqueViolation: reward already owned
    """
    await cur.execute(
        "INSERT INTO user_unlocked_rewards (user_id, reward_id) VALUES (%s, %s)",
        (user_id, reward_id)
    )


async def get_unlocked_rewards(user_id: str) -> list[dict]:
    """
    Get rewards owned by the user, newest first

    Returns:
        [{'reward_id': str, 'unlocked_at': datetime}, ...]
    """
    async with db.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                """
                SELECT reward_id, unlocked_at
                FROM user_unlocked_rewards
                WHERE user_id = %s
                ORDER BY unlocked_at DESC
                """,
                (user_id,)
            )
            rows = await cur.fetchall()
            return [dict(row) for row in rows]
