"""Troubleshooting catalogue.

Quick-fix steps shown next to classified storage failures, and the
row-level security policy sets the schema initializer can apply.
"""
from dataclasses import dataclass

from ..models.outcome import ErrorCategory

CORS_GUIDE = "CORS_TROUBLESHOOTING.md"
DEPLOYMENT_GUIDE = "DEPLOYMENT_GUIDE.md"
SUPABASE_STATUS_URL = "https://status.supabase.com/"


@dataclass(frozen=True)
class QuickFix:
    """單一錯誤分類的快速修復步驟."""

    title: str
    steps: tuple[str, ...]
    learn_more: str


def rls_policies(table: str, mode: str) -> list[str]:
    """
    產生 RLS 政策 SQL.

    Args:
        table: 資料表名稱
        mode: "development" 允許公開寫入；"production" 僅允許已驗證使用者寫入

    Returns:
        list[str]: 依序執行的 SQL 指令
    """
    if mode == "development":
        write_check = "true"
        prefix = "Allow public"
    elif mode == "production":
        write_check = "auth.role() = 'authenticated'"
        prefix = "Allow authenticated"
    else:
        raise ValueError(f"未知的政策模式: {mode}")

    return [
        f"ALTER TABLE {table} ENABLE ROW LEVEL SECURITY",
        f'DROP POLICY IF EXISTS "Allow public read access" ON {table}',
        f'CREATE POLICY "Allow public read access" ON {table} FOR SELECT USING (true)',
        f'DROP POLICY IF EXISTS "{prefix} insert" ON {table}',
        f'CREATE POLICY "{prefix} insert" ON {table} FOR INSERT WITH CHECK ({write_check})',
        f'DROP POLICY IF EXISTS "{prefix} update" ON {table}',
        f'CREATE POLICY "{prefix} update" ON {table} FOR UPDATE USING ({write_check})',
        f'DROP POLICY IF EXISTS "{prefix} delete" ON {table}',
        f'CREATE POLICY "{prefix} delete" ON {table} FOR DELETE USING ({write_check})',
    ]


def quick_fix_for(category: ErrorCategory, table: str = "blogs") -> QuickFix:
    """Return the quick-fix steps for a storage failure category."""
    if category == ErrorCategory.CORS:
        return QuickFix(
            title="Fix CORS Error",
            steps=(
                "Open the Supabase SQL Editor",
                f"Run: ALTER TABLE {table} ENABLE ROW LEVEL SECURITY;",
                f'Add SELECT policy: CREATE POLICY "Allow public read" ON {table} FOR SELECT USING (true);',
                f'Add INSERT policy: CREATE POLICY "Allow public insert" ON {table} FOR INSERT WITH CHECK (true);',
                "Retry the operation",
            ),
            learn_more=CORS_GUIDE,
        )

    if category == ErrorCategory.RLS:
        return QuickFix(
            title="Fix RLS Permission Error",
            steps=(
                "Open the Supabase SQL Editor",
                f"Check existing policies: SELECT * FROM pg_policies WHERE tablename = '{table}';",
                "Add missing policies for INSERT, UPDATE, or DELETE (blog init-db --policies ...)",
                f"Or temporarily disable RLS for testing: ALTER TABLE {table} DISABLE ROW LEVEL SECURITY;",
                "Remember to re-enable RLS for production!",
            ),
            learn_more=CORS_GUIDE,
        )

    if category == ErrorCategory.NETWORK:
        return QuickFix(
            title="Fix Network Error",
            steps=(
                "Check your internet connection",
                "Verify BLOG_SUPABASE_URL / BLOG_DATABASE_URL",
                "Ensure the Supabase URL starts with https://",
                f"Check Supabase status at {SUPABASE_STATUS_URL}",
            ),
            learn_more=DEPLOYMENT_GUIDE,
        )

    raise ValueError(f"沒有 {category} 分類的快速修復步驟")
