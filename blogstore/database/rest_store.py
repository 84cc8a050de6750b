"""PostgREST post store.

This module talks to the Supabase REST gateway (`/rest/v1/<table>`) with the
publishable key. Every request is subject to the table's row-level security
policies.
"""
import asyncio
import json
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional

import aiohttp

from ..lib.errors import NETWORK_ERROR, ConfigurationError, StorageError
from ..models.post import POST_COLUMNS, UPDATABLE_COLUMNS

logger = logging.getLogger(__name__)

RETURN_REPRESENTATION = "return=representation"


def storage_error_from_payload(status: int, payload: Any) -> StorageError:
    """
    將 PostgREST 錯誤回應轉為 StorageError.

    Args:
        status: HTTP 狀態碼
        payload: 解析後的 JSON 物件或原始文字

    Returns:
        StorageError: 帶有 code/details/hint 的錯誤
    """
    if isinstance(payload, dict):
        return StorageError(
            payload.get("message") or f"HTTP {status}",
            code=payload.get("code"),
            details=payload.get("details"),
            hint=payload.get("hint"),
        )

    text = str(payload).strip() if payload else ""
    return StorageError(text or f"HTTP {status}", code=str(status))


class RestPostStore:
    """透過 PostgREST 操作文章資料表."""

    def __init__(self, session: aiohttp.ClientSession, base_url: str, table: str = "blogs"):
        self.session = session
        self.endpoint = f"{base_url.rstrip('/')}/rest/v1/{table}"

    async def _request(
        self,
        method: str,
        params: Optional[dict] = None,
        payload: Optional[dict] = None,
        prefer: Optional[str] = None,
    ) -> Any:
        headers = {"Prefer": prefer} if prefer else {}

        try:
            async with self.session.request(
                method, self.endpoint, params=params, json=payload, headers=headers
            ) as response:
                if response.status == 204:
                    return []

                body = await _read_body(response)

                if response.status >= 400:
                    raise storage_error_from_payload(response.status, body)

                # PostgREST answers table requests with a JSON array; anything
                # else means the URL points at some other site
                if not isinstance(body, list):
                    logger.error(f"非預期的回應 ({response.status}): {str(body)[:200]}")
                    raise StorageError(
                        f"Unexpected response from {self.endpoint}", code=str(response.status)
                    )

                return body

        except aiohttp.ClientError as e:
            raise StorageError(f"Network error: {e}", code=NETWORK_ERROR) from e
        except asyncio.TimeoutError as e:
            raise StorageError("Network error: request timed out", code=NETWORK_ERROR) from e

    async def exists(self, post_id: str) -> bool:
        rows = await self._request(
            "GET", params={"select": "id", "id": f"eq.{post_id}", "limit": "1"}
        )
        return bool(rows)

    async def insert(self, row: dict) -> dict:
        """
        插入新文章記錄.

        Raises:
            StorageError: 主鍵重複時 code 為 23505
        """
        payload = {column: row[column] for column in POST_COLUMNS if column in row}
        rows = await self._request("POST", payload=payload, prefer=RETURN_REPRESENTATION)

        if not rows:
            # RLS can hide the inserted row from the returned representation
            raise StorageError("Insert returned no row; check the SELECT policy", code="PGRST116")

        logger.info(f"成功插入文章: {row.get('id')}")
        return rows[0]

    async def select_all(self) -> list[dict]:
        return await self._request("GET", params={"select": "*", "order": "date.desc"})

    async def select_one(self, post_id: str) -> Optional[dict]:
        rows = await self._request("GET", params={"select": "*", "id": f"eq.{post_id}"})
        return rows[0] if rows else None

    async def update(self, post_id: str, changes: dict) -> Optional[dict]:
        payload = {column: changes[column] for column in UPDATABLE_COLUMNS if column in changes}
        if not payload:
            return await self.select_one(post_id)

        rows = await self._request(
            "PATCH", params={"id": f"eq.{post_id}"}, payload=payload, prefer=RETURN_REPRESENTATION
        )

        if rows:
            logger.info(f"成功更新文章: {post_id}")
            return rows[0]

        logger.warning(f"未找到要更新的文章: {post_id}")
        return None

    async def delete(self, post_id: str) -> bool:
        rows = await self._request(
            "DELETE", params={"id": f"eq.{post_id}"}, prefer=RETURN_REPRESENTATION
        )

        if rows:
            logger.info(f"成功刪除文章: {post_id}")
            return True

        logger.warning(f"未找到要刪除的文章: {post_id}")
        return False


async def _read_body(response: aiohttp.ClientResponse) -> Any:
    text = await response.text()
    try:
        return json.loads(text)
    except ValueError:
        return text


@asynccontextmanager
async def open_rest_store(
    base_url: str,
    api_key: str,
    table: str = "blogs",
    timeout: float = 30,
) -> AsyncIterator[RestPostStore]:
    """Open an HTTP session for one operation and close it afterwards."""
    if not api_key:
        raise ConfigurationError("Missing Supabase key: set BLOG_SUPABASE_KEY to the project's publishable key")

    headers = {
        "apikey": api_key,
        "Authorization": f"Bearer {api_key}",
        "Accept": "application/json",
    }

    async with aiohttp.ClientSession(
        timeout=aiohttp.ClientTimeout(total=timeout), headers=headers
    ) as session:
        yield RestPostStore(session, base_url, table)
