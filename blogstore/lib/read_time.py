"""Reading time estimation."""
import math

WORDS_PER_MINUTE = 200


def count_words(content: str) -> int:
    """Count whitespace-separated words."""
    return len(content.split())


def estimate_read_time(content: str) -> str:
    """
    估算閱讀時間.

    Args:
        content: 文章內容

    Returns:
        str: 例如 "3 min read"，最少 1 分鐘
    """
    minutes = max(1, math.ceil(count_words(content) / WORDS_PER_MINUTE))
    return f"{minutes} min read"
