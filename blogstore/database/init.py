"""Database initialization.

This module provides DDL scripts for the posts table and its RLS policies.
"""
import logging
from typing import Optional

from ..lib.troubleshooting import rls_policies
from ..models.post import LEGACY_READ_TIME_COLUMNS, READ_TIME_COLUMN
from .connection import DatabaseConnection

logger = logging.getLogger(__name__)


class DatabaseInitializer:
    """資料庫初始化類別."""

    def __init__(self, db: DatabaseConnection, table: str = "blogs"):
        self.db = db
        self.table = table

    async def create_tables(self, policy_mode: Optional[str] = None) -> None:
        """
        建立文章資料表.

        Args:
            policy_mode: "development" 或 "production" 時一併套用 RLS 政策
        """
        await self._create_posts_table()
        await self._migrate_legacy_read_time()
        await self._create_triggers()
        await self._create_indexes()

        if policy_mode:
            await self.apply_policies(policy_mode)

        logger.info(f"{self.table} 資料表建立完成")

    async def _create_posts_table(self) -> None:
        """建立文章表格."""
        ddl = f"""
        CREATE TABLE IF NOT EXISTS {self.table} (
            id TEXT PRIMARY KEY,
            title TEXT NOT NULL,
            excerpt TEXT NOT NULL DEFAULT '',
            content TEXT NOT NULL,
            category TEXT NOT NULL DEFAULT '',
            author TEXT NOT NULL DEFAULT '',
            date DATE NOT NULL DEFAULT CURRENT_DATE,
            {READ_TIME_COLUMN} TEXT,
            created_at TIMESTAMPTZ DEFAULT NOW(),
            updated_at TIMESTAMPTZ DEFAULT NOW()
        );
        """

        await self.db.execute(ddl)
        logger.info(f"建立 {self.table} 表格")

    async def _migrate_legacy_read_time(self) -> None:
        """將舊版閱讀時間欄位更名為 read_time."""
        columns = await self.get_columns()

        if READ_TIME_COLUMN not in columns:
            legacy = next((name for name in LEGACY_READ_TIME_COLUMNS if name in columns), None)
            if legacy:
                await self.db.execute(
                    f'ALTER TABLE {self.table} RENAME COLUMN "{legacy}" TO {READ_TIME_COLUMN};'
                )
                logger.info(f"欄位 {legacy} 已更名為 {READ_TIME_COLUMN}")
            else:
                await self.db.execute(
                    f"ALTER TABLE {self.table} ADD COLUMN {READ_TIME_COLUMN} TEXT;"
                )
                logger.info(f"新增欄位 {READ_TIME_COLUMN}")
            return

        for legacy in LEGACY_READ_TIME_COLUMNS:
            if legacy in columns:
                logger.warning(f"舊版欄位 {legacy} 仍存在，已不再寫入")

    async def _create_triggers(self) -> None:
        """建立觸發器."""
        function_ddl = """
        CREATE OR REPLACE FUNCTION update_updated_at()
        RETURNS TRIGGER AS $$
        BEGIN
            NEW.updated_at = NOW();
            RETURN NEW;
        END;
        $$ LANGUAGE plpgsql;
        """

        await self.db.execute(function_ddl)

        trigger_ddl = f"""
        DROP TRIGGER IF EXISTS {self.table}_updated_at ON {self.table};
        CREATE TRIGGER {self.table}_updated_at
            BEFORE UPDATE ON {self.table}
            FOR EACH ROW
            EXECUTE FUNCTION update_updated_at();
        """

        await self.db.execute(trigger_ddl)
        logger.info("建立 updated_at 觸發器")

    async def _create_indexes(self) -> None:
        """建立索引."""
        indexes = [
            f"CREATE INDEX IF NOT EXISTS idx_{self.table}_date ON {self.table}(date DESC);",
            f"CREATE INDEX IF NOT EXISTS idx_{self.table}_category ON {self.table}(category);",
        ]

        for index_ddl in indexes:
            await self.db.execute(index_ddl)

        logger.info("建立所有索引")

    async def apply_policies(self, mode: str) -> None:
        """套用 RLS 政策."""
        for statement in rls_policies(self.table, mode):
            await self.db.execute(statement)

        logger.info(f"已套用 {mode} RLS 政策")

    async def drop_tables(self) -> None:
        """刪除文章資料表（用於測試或重置）."""
        await self.db.execute(f"DROP TABLE IF EXISTS {self.table} CASCADE;")
        logger.warning(f"{self.table} 資料表已刪除")

    async def check_table_exists(self) -> bool:
        """檢查表格是否存在."""
        query = """
        SELECT EXISTS (
            SELECT FROM information_schema.tables
            WHERE table_schema = 'public'
            AND table_name = $1
        );
        """

        return await self.db.fetchval(query, self.table)

    async def get_columns(self) -> list[str]:
        """取得資料表欄位名稱."""
        query = """
        SELECT column_name FROM information_schema.columns
        WHERE table_schema = 'public' AND table_name = $1
        ORDER BY ordinal_position;
        """

        rows = await self.db.fetch(query, self.table)
        return [row["column_name"] for row in rows]

    async def get_table_info(self) -> dict:
        """取得資料表資訊."""
        if not await self.check_table_exists():
            return {"exists": False, "row_count": 0}

        count = await self.db.fetchval(f"SELECT COUNT(*) FROM {self.table};")
        return {"exists": True, "row_count": count}
