"""Shared fixtures.

InMemoryPostStore mimics the posts table closely enough for repository
tests: it enforces the primary key, keeps insertion order for rows sharing a
date, and can be told to fail the next call.
"""
from contextlib import asynccontextmanager
from datetime import date
from typing import Optional

import pytest

from blogstore.lib.errors import UNIQUE_VIOLATION, StorageError
from blogstore.services.post_repository import PostRepository
from blogstore.services.slug_resolver import SlugResolver


class InMemoryPostStore:
    """In-memory stand-in for the posts table."""

    def __init__(self):
        self.rows: dict[str, dict] = {}
        self.probed: list[str] = []
        self.fail_with: Optional[Exception] = None
        # ids inserted by a "concurrent writer" right before our insert lands
        self.racing_ids: list[str] = []
        self.opened = 0
        self.closed = 0

    def _maybe_fail(self) -> None:
        if self.fail_with is not None:
            raise self.fail_with

    async def exists(self, post_id: str) -> bool:
        self._maybe_fail()
        self.probed.append(post_id)
        return post_id in self.rows

    async def insert(self, row: dict) -> dict:
        self._maybe_fail()
        if self.racing_ids and row["id"] == self.racing_ids[0]:
            racing_id = self.racing_ids.pop(0)
            self.rows[racing_id] = {**row, "title": "Concurrent writer"}

        if row["id"] in self.rows:
            raise StorageError(
                'duplicate key value violates unique constraint "blogs_pkey"',
                code=UNIQUE_VIOLATION,
                details=f"Key (id)=({row['id']}) already exists.",
            )

        stored = dict(row)
        self.rows[row["id"]] = stored
        return dict(stored)

    async def select_all(self) -> list[dict]:
        self._maybe_fail()
        # sorted() is stable: same-day rows keep insertion order
        return sorted((dict(r) for r in self.rows.values()), key=lambda r: r["date"], reverse=True)

    async def select_one(self, post_id: str) -> Optional[dict]:
        self._maybe_fail()
        row = self.rows.get(post_id)
        return dict(row) if row else None

    async def update(self, post_id: str, changes: dict) -> Optional[dict]:
        self._maybe_fail()
        if post_id not in self.rows:
            return None
        self.rows[post_id].update(changes)
        return dict(self.rows[post_id])

    async def delete(self, post_id: str) -> bool:
        self._maybe_fail()
        return self.rows.pop(post_id, None) is not None

    def add(self, post_id: str, post_date: str = "2024-01-01", **fields) -> None:
        self.rows[post_id] = {
            "id": post_id,
            "title": fields.get("title", post_id.replace("-", " ").title()),
            "excerpt": fields.get("excerpt", ""),
            "content": fields.get("content", "Body"),
            "category": fields.get("category", "Development"),
            "author": fields.get("author", "Tester"),
            "date": post_date,
            "read_time": fields.get("read_time", "1 min read"),
        }

    @asynccontextmanager
    async def open(self):
        self.opened += 1
        try:
            yield self
        finally:
            self.closed += 1


@pytest.fixture
def store() -> InMemoryPostStore:
    return InMemoryPostStore()


@pytest.fixture
def repository(store: InMemoryPostStore) -> PostRepository:
    return PostRepository(
        store.open,
        slug_resolver=SlugResolver(max_attempts=1000),
        create_retries=3,
        today=lambda: date(2024, 2, 1),
    )
