"""Database connection management.

This module provides the asyncpg connection pool shared by the post store and
the schema initializer.
"""
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import asyncpg

logger = logging.getLogger(__name__)


class DatabaseConnection:
    """Database connection manager."""

    def __init__(
        self,
        connection_string: str,
        pool_size: int = 1,
        connection_timeout: float = 30,
        command_timeout: float = 60,
    ):
        self.connection_string = connection_string
        self.pool_size = pool_size
        self.connection_timeout = connection_timeout
        self.command_timeout = command_timeout
        self._pool: Optional[asyncpg.Pool] = None

    async def initialize(self) -> None:
        """Initialize database connection pool."""
        try:
            self._pool = await asyncpg.create_pool(
                self.connection_string,
                min_size=1,
                max_size=self.pool_size,
                timeout=self.connection_timeout,
                command_timeout=self.command_timeout,
                # PgBouncer in transaction mode rejects named prepared statements
                statement_cache_size=0,
            )
            logger.debug(f"資料庫連接池已初始化，池大小: {self.pool_size}")
        except Exception as e:
            logger.error(f"初始化資料庫連接池失敗: {e}")
            raise

    async def close(self) -> None:
        """Close database connection pool."""
        if self._pool:
            await self._pool.close()
            self._pool = None
            logger.debug("資料庫連接池已關閉")

    async def __aenter__(self) -> "DatabaseConnection":
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    @property
    def pool(self) -> asyncpg.Pool:
        """Get connection pool."""
        if not self._pool:
            raise RuntimeError("資料庫連接池未初始化")
        return self._pool

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[asyncpg.Connection]:
        """Acquire database connection from pool."""
        async with self.pool.acquire() as connection:
            yield connection

    async def execute(self, query: str, *args) -> str:
        """Execute SQL command."""
        async with self.acquire() as connection:
            return await connection.execute(query, *args)

    async def fetch(self, query: str, *args) -> list:
        """Fetch multiple rows."""
        async with self.acquire() as connection:
            return await connection.fetch(query, *args)

    async def fetchrow(self, query: str, *args) -> Optional[asyncpg.Record]:
        """Fetch single row."""
        async with self.acquire() as connection:
            return await connection.fetchrow(query, *args)

    async def fetchval(self, query: str, *args):
        """Fetch single value."""
        async with self.acquire() as connection:
            return await connection.fetchval(query, *args)
