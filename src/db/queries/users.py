"""User and balance database queries"""
import logging
from typing import Optional

import psycopg

from src.db.connection import db
from src.models.user import User, UserBalance

logger = logging.getLogger(__name__)


async def create_user(username: str) -> User:
    """Create a user with an empty balance (xp 0, hp 0, level 1)"""
    async with db.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                """
                INSERT INTO users (username, xp, hp, level)
                VALUES (%s, 0, 0, 1)
                RETURNING id::text AS id, username, xp, hp, level, active_title, created_at
                """,
                (username,)
            )
            row = await cur.fetchone()
            await conn.commit()

    logger.info(f"Created user {row['id']} ({username})")
    return User(**row)


async def get_user_balance(user_id: str) -> Optional[UserBalance]:
    """Read the user's balance without locking"""
    async with db.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                """
                SELECT id::text AS user_id, xp, hp, level, active_title
                FROM users
                WHERE id = %s
                """,
                (user_id,)
            )
            row = await cur.fetchone()
            return UserBalance(**row) if row else None


async def lock_user_balance(cur: psycopg.AsyncCursor, user_id: str) -> Optional[UserBalance]:
    """Lock the user row and return its balance"""
    await cur.execute(
        """
        SELECT id::text AS user_id, xp, hp, level, active_title
        FROM users
        WHERE id = %s
        FOR UPDATE
        """,
        (user_id,)
    )
    row = await cur.fetchone()
    return UserBalance(**row) if row else None


async def update_user_balance(cur: psycopg.AsyncCursor, balance: UserBalance) -> None:
    """Persist xp, hp, level and active title"""
    await cur.execute(
        """
        UPDATE users
        SET xp = %s,
            hp = %s,
            level = %s,
            active_title = %s,
            updated_at = CURRENT_TIMESTAMP
        WHERE id = %s
        """,
        (balance.xp, balance.hp, balance.level, balance.active_title, balance.user_id)
    )
