"""PostgreSQL connection pool"""
import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional
import psycopg
from psycopg.rows import dict_row
from psycopg_pool import AsyncConnectionPool
from src.config import DATABASE_URL, DB_POOL_MIN_SIZE, DB_POOL_MAX_SIZE

logger = logging.getLogger(__name__)


class Database:
    """Owns the async pool; every connection uses dict rows"""

    def __init__(self, connection_string: str = DATABASE_URL):
        self.connection_string = connection_string
        self._pool: Optional[AsyncConnectionPool] = None

    async def init_pool(self) -> None:
        """Open the pool (min/max size from DB_POOL_MIN_SIZE/DB_POOL_MAX_SIZE)"""
        logger.info(f"Opening database pool ({DB_POOL_MIN_SIZE}-{DB_POOL_MAX_SIZE} connections)")
        self._pool = AsyncConnectionPool(
            self.connection_string,
            min_size=DB_POOL_MIN_SIZE,
            max_size=DB_POOL_MAX_SIZE,
            open=False
        )
        await self._pool.open()

    async def close_pool(self) -> None:
        if self._pool:
            logger.info("Closing database pool")
            await self._pool.close()
            self._pool = None

    @asynccontextmanager
    async def connection(self) -> AsyncGenerator[psycopg.AsyncConnection, None]:
        """Borrow a connection from the pool"""
        if not self._pool:
            raise RuntimeError("Database pool not initialized")

        async with self._pool.connection() as conn:
            conn.row_factory = dict_row
            yield conn

    @asynccontextmanager
    async def transaction(self) -> AsyncGenerator[psycopg.AsyncCursor, None]:
        """
        Cursor inside one transaction

        Commits when the block exits cleanly, rolls back on any exception.
        Row locks taken with SELECT ... FOR UPDATE are held until then.
        """
        async with self.connection() as conn:
            async with conn.transaction():
                async with conn.cursor() as cur:
                    yield cur

    async def ping(self) -> bool:
        """True when a round trip to the server succeeds"""
        try:
            async with self.connection() as conn:
                await conn.execute("SELECT 1")
            return True
        except (psycopg.Error, RuntimeError) as e:
            logger.warning(f"Database ping failed: {e}")
            return False


# Global database instance
db = Database()
