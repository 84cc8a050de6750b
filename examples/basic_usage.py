#!/usr/bin/env python3
"""
blogstore 基本使用範例

此範例展示最基本的使用方式：載入配置、建立文章、列出文章、更新與刪除。
執行前請先設定 BLOG_SUPABASE_KEY，或將 context 改為 ExecutionContext.RENDER 以直連資料庫。
"""

import asyncio
import logging
import sys
from pathlib import Path

# 添加專案根目錄到 Python 路徑
sys.path.append(str(Path(__file__).parent.parent))

from blogstore.database.store import ExecutionContext
from blogstore.lib.config_loader import ConfigLoader
from blogstore.models.post import PostInput, PostUpdate
from blogstore.services.post_repository import PostRepository


async def basic_usage_example(context: ExecutionContext = ExecutionContext.INTERACTIVE):
    """基本 CRUD 範例"""
    print("blogstore 基本使用範例")
    print("=" * 50)

    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")

    # 1. 載入配置並建立 repository
    print("\n步驟 1: 載入配置...")
    config = await ConfigLoader().load_config()
    repository = PostRepository.for_context(context, config)
    print(f"   執行環境: {context}")

    # 2. 建立文章；重複標題會得到 -1、-2 等後綴
    print("\n步驟 2: 建立文章...")
    created = await repository.create(
        PostInput(
            title="Hello from blogstore",
            content="This post was created by the basic usage example.",
            excerpt="A first post",
            author="Example Script",
        )
    )
    if not created.ok:
        print(f"   建立失敗: {created.error.title} - {created.error.message}")
        if created.error.help_link:
            print(f"   參考: {created.error.help_link}")
        return

    post = created.data
    print(f"   已建立 {post.id} ({post.read_time})，頁面路徑 {post.path}")

    # 3. 列出所有文章
    print("\n步驟 3: 列出文章...")
    listed = await repository.read_all()
    for item in listed.data or []:
        print(f"   {item.date}  {item.id}")

    # 4. 更新內容，閱讀時間會重新計算
    print("\n步驟 4: 更新文章...")
    updated = await repository.update(post.id, PostUpdate(content="Updated body. " * 150))
    if updated.ok:
        print(f"   新的閱讀時間: {updated.data.read_time}")

    # 5. 刪除文章
    print("\n步驟 5: 刪除文章...")
    deleted = await repository.delete(post.id)
    print(f"   {'已刪除' if deleted.ok else deleted.error.message}")


if __name__ == "__main__":
    asyncio.run(basic_usage_example())
