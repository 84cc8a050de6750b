"""Slug utilities.

Turn post titles into URL-safe identifiers.
"""
import re

SLUG_PATTERN = re.compile(r"^[a-z0-9]+(-[a-z0-9]+)*$")


def generate_slug(title: str) -> str:
    """
    從標題產生 URL 安全的識別碼.

    Args:
        title: 文章標題

    Returns:
        str: 小寫、以連字號分隔的 slug；標題沒有可用字元時為空字串
    """
    slug = title.lower()
    slug = re.sub(r"[^a-z0-9\s-]", "", slug)
    slug = re.sub(r"\s+", "-", slug)
    slug = re.sub(r"-+", "-", slug)
    return slug.strip("-")


def is_valid_slug(value: str) -> bool:
    """Check that a value is a non-empty, normalized slug."""
    return bool(SLUG_PATTERN.match(value))


def suffixed_slug(base_slug: str, counter: int) -> str:
    return f"{base_slug}-{counter}"
