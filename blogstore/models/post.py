"""Post data model.

This module defines the Post data class and the create/update payloads.
"""
from dataclasses import dataclass, fields
from datetime import datetime
from enum import Enum
from typing import Any, Optional

# Canonical column name for the read-time estimate
READ_TIME_COLUMN = "read_time"

# Spellings used by earlier revisions of the blogs table
LEGACY_READ_TIME_COLUMNS = ("readTime", "readtime")

POST_COLUMNS = (
    "id",
    "title",
    "excerpt",
    "content",
    "category",
    "author",
    "date",
    READ_TIME_COLUMN,
)

# Columns a client may change after creation
UPDATABLE_COLUMNS = ("title", "excerpt", "content", "category", "author", READ_TIME_COLUMN)


class PostCategory(Enum):
    """文章分類建議值."""

    AI_DEVELOPMENT = "AI Development"
    DEVELOPMENT = "Development"
    TUTORIAL = "Tutorial"
    OPEN_SOURCE = "Open Source"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def suggestions(cls) -> list[str]:
        """Return category names offered to authors."""
        return [item.value for item in cls]


@dataclass
class Post:
    """部落格文章資料模型."""

    id: str
    title: str
    excerpt: str
    content: str
    category: str
    author: str
    date: str
    read_time: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def path(self) -> str:
        """Detail page route for this post."""
        return f"/posts/{self.id}"

    def to_dict(self) -> dict:
        """Convert post to dictionary."""
        return {
            "id": self.id,
            "title": self.title,
            "excerpt": self.excerpt,
            "content": self.content,
            "category": self.category,
            "author": self.author,
            "date": self.date,
            "read_time": self.read_time,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    @classmethod
    def from_row(cls, row: Any) -> "Post":
        """
        從資料列建立文章.

        Accepts asyncpg records and PostgREST JSON objects. Timestamps may
        arrive as datetime objects or ISO strings; `date` as a date object
        or a `YYYY-MM-DD` string. Legacy read-time column spellings are
        mapped onto `read_time`.
        """
        data = dict(row)

        read_time = data.get(READ_TIME_COLUMN)
        if read_time is None:
            for legacy in LEGACY_READ_TIME_COLUMNS:
                if data.get(legacy) is not None:
                    read_time = data[legacy]
                    break

        post_date = data.get("date")
        if post_date is not None and not isinstance(post_date, str):
            post_date = post_date.isoformat()

        return cls(
            id=data["id"],
            title=data.get("title") or "",
            excerpt=data.get("excerpt") or "",
            content=data.get("content") or "",
            category=data.get("category") or "",
            author=data.get("author") or "",
            date=post_date or "",
            read_time=read_time or "",
            created_at=_parse_timestamp(data.get("created_at")),
            updated_at=_parse_timestamp(data.get("updated_at")),
        )

    def same_content_as(self, other: "Post") -> bool:
        """Compare every client-visible field except server-assigned ones."""
        ignored = {"date", "created_at", "updated_at"}
        return all(
            getattr(self, f.name) == getattr(other, f.name)
            for f in fields(self)
            if f.name not in ignored
        )


@dataclass
class PostInput:
    """新增文章的輸入資料."""

    title: str
    content: str
    excerpt: str = ""
    category: str = PostCategory.DEVELOPMENT.value
    author: str = ""
    read_time: Optional[str] = None


@dataclass
class PostUpdate:
    """更新文章的部分輸入資料，None 代表不修改."""

    title: Optional[str] = None
    content: Optional[str] = None
    excerpt: Optional[str] = None
    category: Optional[str] = None
    author: Optional[str] = None
    read_time: Optional[str] = None

    def changed_fields(self) -> dict[str, str]:
        """Return only the fields that were supplied."""
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name) is not None
        }

    def is_empty(self) -> bool:
        return not self.changed_fields()


def _parse_timestamp(value: Any) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    # PostgREST emits a trailing Z or +00:00 offset
    return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
