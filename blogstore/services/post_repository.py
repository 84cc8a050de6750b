"""Post repository service.

Create, read, update and delete blog posts against an injected store.
Storage failures never escape: every operation returns an OperationResult
carrying either the data or a formatted, classified error.
"""
import logging
from datetime import date
from typing import Callable, Optional

from ..database.store import ExecutionContext, StoreFactory, store_factory
from ..lib.error_handler import (
    ErrorHandler,
    conflict_error,
    invalid_input_error,
    not_found_error,
    slug_exhausted_error,
)
from ..lib.errors import BlogStoreError, SlugAllocationError, StorageError
from ..lib.read_time import estimate_read_time
from ..lib.slug import generate_slug
from ..models.config import ConfigKey, get_int
from ..models.outcome import OperationResult
from ..models.post import READ_TIME_COLUMN, Post, PostInput, PostUpdate
from .slug_resolver import SlugResolver

logger = logging.getLogger(__name__)


class PostRepository:
    """文章 CRUD 服務."""

    def __init__(
        self,
        open_store: StoreFactory,
        slug_resolver: Optional[SlugResolver] = None,
        error_handler: Optional[ErrorHandler] = None,
        create_retries: int = 3,
        today: Callable[[], date] = date.today,
    ):
        self._open_store = open_store
        self.slug_resolver = slug_resolver or SlugResolver()
        self.error_handler = error_handler or ErrorHandler()
        self.create_retries = create_retries
        self._today = today

    @classmethod
    def for_context(cls, context: ExecutionContext, config: dict[str, str]) -> "PostRepository":
        """Build a repository bound to the store of the given execution context."""
        return cls(
            store_factory(context, config),
            slug_resolver=SlugResolver(get_int(config, ConfigKey.SLUG_MAX_ATTEMPTS)),
            error_handler=ErrorHandler(
                environment=config.get(ConfigKey.BLOG_ENVIRONMENT, "production"),
                table=config.get(ConfigKey.BLOG_TABLE, "blogs"),
            ),
            create_retries=get_int(config, ConfigKey.POST_CREATE_RETRIES),
        )

    def _fail(self, error: BlogStoreError, operation: str) -> OperationResult:
        return OperationResult.failure(self.error_handler.handle(error, operation))

    async def create(self, post_input: PostInput) -> OperationResult[Post]:
        """
        新增文章.

        The id is derived from the title and made unique against the store.
        If another writer takes the same id between the probe and the insert,
        resolution is repeated up to `create_retries` times before a conflict
        is reported. Existing rows are never overwritten.

        Args:
            post_input: 文章內容

        Returns:
            OperationResult[Post]: 新增的文章或錯誤
        """
        base_slug = generate_slug(post_input.title)
        if not base_slug:
            return OperationResult.failure(
                invalid_input_error("Title must contain at least one letter or digit.")
            )

        read_time = post_input.read_time or estimate_read_time(post_input.content)

        try:
            async with self._open_store() as store:
                for attempt in range(1, self.create_retries + 2):
                    slug = await self.slug_resolver.resolve(store, base_slug)
                    row = {
                        "id": slug,
                        "title": post_input.title,
                        "excerpt": post_input.excerpt,
                        "content": post_input.content,
                        "category": post_input.category,
                        "author": post_input.author,
                        "date": self._today().isoformat(),
                        READ_TIME_COLUMN: read_time,
                    }

                    try:
                        record = await store.insert(row)
                    except StorageError as e:
                        if not e.is_unique_violation:
                            raise
                        logger.warning(f"slug {slug} 已被其他請求使用 (第 {attempt} 次嘗試)")
                        continue

                    return OperationResult.success(Post.from_row(record))

        except SlugAllocationError as e:
            return OperationResult.failure(slug_exhausted_error(e))
        except BlogStoreError as e:
            return self._fail(e, "create")

        logger.error(f"新增文章失敗，slug 衝突重試已用盡: {base_slug}")
        return OperationResult.failure(conflict_error(base_slug))

    async def read_all(self) -> OperationResult[list[Post]]:
        """
        取得所有文章，依日期由新到舊排序.

        Posts sharing a date come back in the store's natural order.
        """
        try:
            async with self._open_store() as store:
                rows = await store.select_all()
        except BlogStoreError as e:
            return self._fail(e, "read_all")

        return OperationResult.success([Post.from_row(row) for row in rows])

    async def read_one(self, post_id: str) -> OperationResult[Post]:
        """根據 ID 取得文章."""
        try:
            async with self._open_store() as store:
                row = await store.select_one(post_id)
        except BlogStoreError as e:
            return self._fail(e, "read_one")

        if row is None:
            logger.warning(f"找不到文章: {post_id}")
            return OperationResult.failure(not_found_error(post_id))

        return OperationResult.success(Post.from_row(row))

    async def update(self, post_id: str, post_update: PostUpdate) -> OperationResult[Post]:
        """
        更新文章.

        Only supplied fields change. When content changes the read time is
        recomputed from it.
        """
        changes = post_update.changed_fields()
        if not changes:
            return await self.read_one(post_id)

        if "content" in changes:
            changes[READ_TIME_COLUMN] = estimate_read_time(changes["content"])

        try:
            async with self._open_store() as store:
                row = await store.update(post_id, changes)
        except BlogStoreError as e:
            return self._fail(e, "update")

        if row is None:
            return OperationResult.failure(not_found_error(post_id))

        return OperationResult.success(Post.from_row(row))

    async def delete(self, post_id: str) -> OperationResult[None]:
        """刪除文章."""
        try:
            async with self._open_store() as store:
                deleted = await store.delete(post_id)
        except BlogStoreError as e:
            return self._fail(e, "delete")

        if not deleted:
            return OperationResult.failure(not_found_error(post_id))

        return OperationResult.success()

