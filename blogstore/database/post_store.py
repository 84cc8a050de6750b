"""Post database store.

This module provides database operations for Post rows over a direct
PostgreSQL connection.
"""
import asyncio
import logging
from contextlib import asynccontextmanager, contextmanager
from datetime import date
from typing import AsyncIterator, Iterator, Optional

import asyncpg

from ..lib.errors import NETWORK_ERROR, StorageError
from ..models.post import POST_COLUMNS, UPDATABLE_COLUMNS
from .connection import DatabaseConnection

logger = logging.getLogger(__name__)


@contextmanager
def translate_database_errors() -> Iterator[None]:
    """Re-raise asyncpg and socket failures as StorageError."""
    try:
        yield
    except asyncpg.PostgresError as e:
        raise StorageError(
            getattr(e, "message", None) or str(e) or type(e).__name__,
            code=e.sqlstate,
            details=getattr(e, "detail", None),
            hint=getattr(e, "hint", None),
        ) from e
    except (OSError, asyncio.TimeoutError, asyncpg.InterfaceError) as e:
        raise StorageError(f"Network error: {str(e) or type(e).__name__}", code=NETWORK_ERROR) from e


def _rows_affected(status: str) -> int:
    # asyncpg returns command tags such as "DELETE 1"
    return int(status.split()[-1])


class PostgresPostStore:
    """Post 資料庫操作類別."""

    def __init__(self, db: DatabaseConnection, table: str = "blogs"):
        self.db = db
        self.table = table

    async def exists(self, post_id: str) -> bool:
        """
        檢查文章 ID 是否已存在.

        Args:
            post_id: 文章 ID

        Returns:
            bool: 是否存在
        """
        query = f"SELECT EXISTS(SELECT 1 FROM {self.table} WHERE id = $1)"
        with translate_database_errors():
            return bool(await self.db.fetchval(query, post_id))

    async def insert(self, row: dict) -> dict:
        """
        插入新文章記錄.

        Args:
            row: 欄位值，鍵為 POST_COLUMNS 的子集

        Returns:
            dict: 資料庫回傳的完整記錄

        Raises:
            StorageError: 主鍵重複 (23505) 或其他資料庫錯誤
        """
        columns = [column for column in POST_COLUMNS if column in row]
        values = [_to_db_value(column, row[column]) for column in columns]
        column_list = ", ".join(columns)
        placeholders = ", ".join(f"${index}" for index in range(1, len(columns) + 1))

        query = f"""
            INSERT INTO {self.table} ({column_list})
            VALUES ({placeholders})
            RETURNING *
        """

        with translate_database_errors():
            record = await self.db.fetchrow(query, *values)

        logger.info(f"成功插入文章: {row.get('id')}")
        return dict(record)

    async def select_all(self) -> list[dict]:
        """取得所有文章，依日期由新到舊排序."""
        query = f"SELECT * FROM {self.table} ORDER BY date DESC"

        with translate_database_errors():
            records = await self.db.fetch(query)

        return [dict(record) for record in records]

    async def select_one(self, post_id: str) -> Optional[dict]:
        """根據 ID 取得文章."""
        query = f"SELECT * FROM {self.table} WHERE id = $1"

        with translate_database_errors():
            record = await self.db.fetchrow(query, post_id)

        return dict(record) if record else None

    async def update(self, post_id: str, changes: dict) -> Optional[dict]:
        """
        更新文章欄位.

        Args:
            post_id: 文章 ID
            changes: 要更新的欄位，僅接受 UPDATABLE_COLUMNS

        Returns:
            Optional[dict]: 更新後的記錄，找不到文章時為 None
        """
        columns = [column for column in UPDATABLE_COLUMNS if column in changes]
        if not columns:
            return await self.select_one(post_id)

        assignments = ", ".join(
            f"{column} = ${index}" for index, column in enumerate(columns, start=2)
        )
        query = f"UPDATE {self.table} SET {assignments} WHERE id = $1 RETURNING *"

        with translate_database_errors():
            record = await self.db.fetchrow(query, post_id, *(changes[c] for c in columns))

        if record:
            logger.info(f"成功更新文章: {post_id}")
            return dict(record)

        logger.warning(f"未找到要更新的文章: {post_id}")
        return None

    async def delete(self, post_id: str) -> bool:
        """
        刪除文章.

        Returns:
            bool: 是否成功刪除
        """
        query = f"DELETE FROM {self.table} WHERE id = $1"

        with translate_database_errors():
            status = await self.db.execute(query, post_id)

        if _rows_affected(status) > 0:
            logger.info(f"成功刪除文章: {post_id}")
            return True

        logger.warning(f"未找到要刪除的文章: {post_id}")
        return False


def _to_db_value(column: str, value):
    if column == "date" and isinstance(value, str):
        return date.fromisoformat(value)
    return value


@asynccontextmanager
async def open_postgres_store(
    database_url: str,
    table: str = "blogs",
    connection_timeout: float = 30,
    query_timeout: float = 60,
) -> AsyncIterator[PostgresPostStore]:
    """Open a single-connection store for one operation and close it afterwards."""
    db = DatabaseConnection(
        database_url,
        pool_size=1,
        connection_timeout=connection_timeout,
        command_timeout=query_timeout,
    )

    with translate_database_errors():
        try:
            await db.initialize()
        except ValueError as e:
            # asyncpg parses the DSN lazily and rejects malformed parts with ValueError
            raise StorageError(f"Invalid database URL: {e}", code="INVALID_DSN") from e

    try:
        yield PostgresPostStore(db, table)
    finally:
        await db.close()
