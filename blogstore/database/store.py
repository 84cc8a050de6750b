"""Storage bindings for the post repository.

The repository depends only on the PostStore protocol. Which binding it
receives depends on the execution context: interactive operations go through
the PostgREST gateway with the publishable key, render-time operations use a
direct PostgreSQL connection.
"""
from enum import Enum
from functools import partial
from typing import AsyncContextManager, Callable, Optional, Protocol

from ..models.config import ConfigKey, get_int
from .post_store import open_postgres_store
from .rest_store import open_rest_store


class PostStore(Protocol):
    """Row-level operations on the posts table."""

    async def exists(self, post_id: str) -> bool:
        ...

    async def insert(self, row: dict) -> dict:
        ...

    async def select_all(self) -> list[dict]:
        ...

    async def select_one(self, post_id: str) -> Optional[dict]:
        ...

    async def update(self, post_id: str, changes: dict) -> Optional[dict]:
        ...

    async def delete(self, post_id: str) -> bool:
        ...


# Opens an ephemeral store handle for a single operation
StoreFactory = Callable[[], AsyncContextManager[PostStore]]


class ExecutionContext(Enum):
    """執行環境枚舉."""

    INTERACTIVE = "interactive"
    RENDER = "render"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def from_string(cls, context: str) -> "ExecutionContext":
        for item in cls:
            if item.value == context.lower():
                return item
        raise ValueError(f"無效的執行環境: {context}")


def store_factory(context: ExecutionContext, config: dict[str, str]) -> StoreFactory:
    """
    依執行環境建立儲存層工廠.

    Args:
        context: 執行環境
        config: 已載入的配置

    Returns:
        StoreFactory: 每次呼叫開啟一個新的儲存層連線
    """
    table = config.get(ConfigKey.BLOG_TABLE, "blogs")

    if context == ExecutionContext.RENDER:
        return partial(
            open_postgres_store,
            config[ConfigKey.DATABASE_URL],
            table,
            connection_timeout=get_int(config, ConfigKey.DATABASE_CONNECTION_TIMEOUT),
            query_timeout=get_int(config, ConfigKey.DATABASE_QUERY_TIMEOUT),
        )

    return partial(
        open_rest_store,
        config[ConfigKey.SUPABASE_URL],
        config.get(ConfigKey.SUPABASE_KEY, ""),
        table,
        timeout=get_int(config, ConfigKey.REST_TIMEOUT),
    )
