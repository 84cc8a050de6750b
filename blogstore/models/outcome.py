"""Operation outcome models.

This module defines the result type returned by every repository operation
and the structured error shown to users.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class ErrorCategory(Enum):
    """錯誤分類枚舉."""

    CORS = "cors"
    RLS = "rls"
    NETWORK = "network"
    GENERIC = "generic"
    NOT_FOUND = "not_found"
    INVALID_INPUT = "invalid_input"
    SLUG_EXHAUSTED = "slug_exhausted"
    CONFLICT = "conflict"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def from_string(cls, category: str) -> "ErrorCategory":
        """Create category from string."""
        for item in cls:
            if item.value == category.lower():
                return item
        raise ValueError(f"無效的錯誤分類: {category}")


@dataclass(frozen=True)
class FormattedError:
    """使用者可讀的錯誤資訊."""

    title: str
    message: str
    category: ErrorCategory
    help_link: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "title": self.title,
            "message": self.message,
            "category": self.category.value,
            "help_link": self.help_link,
        }


@dataclass
class OperationResult(Generic[T]):
    """Outcome of a repository operation: data on success, error on failure."""

    data: Optional[T] = None
    error: Optional[FormattedError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, data: Optional[T] = None) -> "OperationResult[T]":
        return cls(data=data)

    @classmethod
    def failure(cls, error: FormattedError) -> "OperationResult[T]":
        return cls(error=error)
