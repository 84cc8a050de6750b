"""Unique slug resolution.

Probes the store for a free identifier. The check and the later insert are
not atomic: two concurrent creations can both see a candidate as free. The
primary-key constraint on the posts table is the authoritative guard, and
the repository retries when it loses that race.
"""
import logging

from ..database.store import PostStore
from ..lib.errors import SlugAllocationError
from ..lib.slug import is_valid_slug, suffixed_slug

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 1000


class SlugResolver:
    """Slug 唯一性解析服務."""

    def __init__(self, max_attempts: int = DEFAULT_MAX_ATTEMPTS):
        if max_attempts < 1:
            raise ValueError("max_attempts 必須為正整數")
        self.max_attempts = max_attempts

    async def resolve(self, store: PostStore, base_slug: str) -> str:
        """
        取得目前未被使用的 slug.

        Tries `base_slug`, then `base_slug-1`, `base_slug-2`, ... up to
        `max_attempts` suffixed candidates.

        Args:
            store: 儲存層
            base_slug: 由標題產生的 slug

        Returns:
            str: 未被使用的 slug

        Raises:
            SlugAllocationError: 超過探測上限
            ValueError: base_slug 格式無效
        """
        if not is_valid_slug(base_slug):
            raise ValueError(f"無效的 slug: {base_slug!r}")

        if not await store.exists(base_slug):
            return base_slug

        for counter in range(1, self.max_attempts + 1):
            candidate = suffixed_slug(base_slug, counter)
            if not await store.exists(candidate):
                logger.debug(f"slug {base_slug} 已存在，改用 {candidate}")
                return candidate

        logger.error(f"無法為 {base_slug} 配置唯一 slug，已嘗試 {self.max_attempts} 次")
        raise SlugAllocationError(base_slug, self.max_attempts)
