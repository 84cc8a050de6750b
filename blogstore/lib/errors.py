"""
Custom Exception Classes for blogstore

This module defines the exceptions raised by storage bindings and services.
The post repository catches them at its boundary and turns them into
structured results.
"""
from typing import Optional

# PostgreSQL SQLSTATE codes the repository reacts to
UNIQUE_VIOLATION = "23505"
INSUFFICIENT_PRIVILEGE = "42501"

# Code attached to transport failures that never reached the database
NETWORK_ERROR = "NETWORK_ERROR"


class BlogStoreError(Exception):
    """Base exception for all blogstore errors."""
    pass


class ConfigurationError(BlogStoreError):
    """Raised when required settings for a storage binding are missing."""
    pass


class StorageError(BlogStoreError):
    """資料庫或傳輸層失敗."""

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[str] = None,
        hint: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details
        self.hint = hint

    @property
    def is_unique_violation(self) -> bool:
        return self.code == UNIQUE_VIOLATION

    def __str__(self) -> str:
        if self.code:
            return f"{self.code}: {self.message}"
        return self.message


class SlugAllocationError(BlogStoreError):
    """Raised when no free slug was found within the probe limit."""

    def __init__(self, base_slug: str, attempts: int):
        super().__init__(
            f"Could not allocate a unique identifier for '{base_slug}' after {attempts} attempts"
        )
        self.base_slug = base_slug
        self.attempts = attempts
