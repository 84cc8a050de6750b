"""Storage failure classification.

This module maps failures raised by the storage bindings onto user-facing
categories with troubleshooting guidance. Classification only decides what
text is shown; it never changes retry behaviour or control flow.
"""
import logging
import re
from typing import Any

from ..models.outcome import ErrorCategory, FormattedError
from .errors import INSUFFICIENT_PRIVILEGE, SlugAllocationError
from .troubleshooting import CORS_GUIDE, DEPLOYMENT_GUIDE, quick_fix_for

logger = logging.getLogger(__name__)

CORS_MARKERS = ("cors", "cross-origin", "access-control-allow-origin")
RLS_MARKERS = ("row-level security", "policy")
NETWORK_MARKERS = (
    "network",
    "failed to fetch",
    "networkerror",
    "err_failed",
    "connection refused",
    "cannot connect to host",
    "connection reset",
)

_RLS_WORD = re.compile(r"\brls\b")


def _error_message(error: Any) -> str:
    message = getattr(error, "message", None)
    if isinstance(message, str) and message:
        return message
    return str(error)


def _normalized(error: Any) -> str:
    """Message and string form of the failure, lowercased."""
    if error is None:
        return ""
    return f"{_error_message(error)} {error}".lower()


def _error_code(error: Any) -> str:
    # asyncpg exceptions expose the SQLSTATE as `sqlstate`
    code = getattr(error, "code", None) or getattr(error, "sqlstate", None)
    return str(code) if code else ""


def is_cors_error(error: Any) -> bool:
    """Check whether the failure is a cross-origin rejection."""
    normalized = _normalized(error)
    return any(marker in normalized for marker in CORS_MARKERS)


def is_rls_error(error: Any) -> bool:
    """Check whether a row-level security policy rejected the operation."""
    if error is None:
        return False

    if _error_code(error) == INSUFFICIENT_PRIVILEGE:
        return True

    message = _error_message(error).lower()
    return any(marker in message for marker in RLS_MARKERS) or bool(_RLS_WORD.search(message))


def is_network_error(error: Any) -> bool:
    """Check whether the failure happened while sending or receiving."""
    normalized = _normalized(error)
    return any(marker in normalized for marker in NETWORK_MARKERS)


def classify_error(error: Any) -> ErrorCategory:
    """
    分類儲存層錯誤.

    Precedence: CORS, then RLS, then network; anything else is generic.
    """
    if error is None:
        return ErrorCategory.GENERIC
    if is_cors_error(error):
        return ErrorCategory.CORS
    if is_rls_error(error):
        return ErrorCategory.RLS
    if is_network_error(error):
        return ErrorCategory.NETWORK
    return ErrorCategory.GENERIC


def format_error(error: Any) -> FormattedError:
    """Build the short title/message pair shown in the UI."""
    category = classify_error(error)

    if category == ErrorCategory.CORS:
        return FormattedError(
            title="CORS Policy Error",
            message=(
                "Unable to connect to Supabase. Please check your RLS policies. "
                f"See {CORS_GUIDE} for help."
            ),
            category=category,
            help_link=CORS_GUIDE,
        )

    if category == ErrorCategory.RLS:
        return FormattedError(
            title="Permission Denied",
            message=(
                "Row Level Security policy blocks this operation. "
                "Please configure your RLS policies."
            ),
            category=category,
            help_link=CORS_GUIDE,
        )

    if category == ErrorCategory.NETWORK:
        return FormattedError(
            title="Network Error",
            message="Unable to reach Supabase. Check your connection and configuration.",
            category=category,
        )

    message = _error_message(error) if error is not None else ""
    return FormattedError(
        title="Error",
        message=message or "An unexpected error occurred. Please try again.",
        category=category,
    )


def get_enhanced_error_message(error: Any, table: str = "blogs") -> str:
    """
    產生含排除步驟的完整錯誤說明.

    Args:
        error: 原始錯誤
        table: 資料表名稱，用於 SQL 範例

    Returns:
        str: 多行說明文字
    """
    if error is None:
        return "An unknown error occurred. Please try again."

    category = classify_error(error)

    if category == ErrorCategory.GENERIC:
        return (
            f"Error: {_error_message(error)}\n\n"
            "If this error persists, please check:\n"
            "- Your Supabase configuration\n"
            "- Environment variables are set correctly\n"
            "- RLS policies are configured\n\n"
            f"See {CORS_GUIDE} and {DEPLOYMENT_GUIDE} for help."
        )

    headline = {
        ErrorCategory.CORS: "CORS Policy Error: Unable to connect to Supabase.",
        ErrorCategory.RLS: "Permission Error: Row Level Security policy blocks this operation.",
        ErrorCategory.NETWORK: "Network Error: Unable to reach Supabase.",
    }[category]

    fix = quick_fix_for(category, table)
    steps = "\n".join(f"{number}. {step}" for number, step in enumerate(fix.steps, 1))
    return f"{headline}\n\nQuick Fix:\n{steps}\n\nSee {fix.learn_more} for detailed instructions."


def not_found_error(post_id: str) -> FormattedError:
    return FormattedError(
        title="Post Not Found",
        message=f"No post with id '{post_id}' exists.",
        category=ErrorCategory.NOT_FOUND,
    )


def invalid_input_error(message: str) -> FormattedError:
    return FormattedError(title="Invalid Input", message=message, category=ErrorCategory.INVALID_INPUT)


def slug_exhausted_error(error: SlugAllocationError) -> FormattedError:
    return FormattedError(
        title="Could Not Allocate Identifier",
        message=f"Could not allocate a unique identifier for '{error.base_slug}'. Try a different title.",
        category=ErrorCategory.SLUG_EXHAUSTED,
    )


def conflict_error(base_slug: str) -> FormattedError:
    return FormattedError(
        title="Identifier Conflict",
        message=(
            f"Another post claimed an identifier derived from '{base_slug}' at the same time. "
            "Please try again."
        ),
        category=ErrorCategory.CONFLICT,
    )


class ErrorHandler:
    """錯誤處理器，依執行環境決定是否輸出診斷資訊."""

    def __init__(self, environment: str = "production", table: str = "blogs"):
        self.environment = environment
        self.table = table

    @property
    def diagnostics_enabled(self) -> bool:
        return self.environment == "development"

    def log_error_details(self, error: Any, operation: str) -> None:
        """Write classification details to the diagnostic log in development."""
        if not self.diagnostics_enabled:
            return

        logger.info(f"儲存層錯誤 ({operation}): {error!r}")
        logger.info(
            "錯誤類型: "
            f"cors={is_cors_error(error)}, rls={is_rls_error(error)}, network={is_network_error(error)}"
        )
        logger.info(f"排除建議:\n{get_enhanced_error_message(error, self.table)}")

    def handle(self, error: Any, operation: str) -> FormattedError:
        """Log and format a storage failure."""
        logger.error(f"{operation} 失敗: {error}")
        self.log_error_details(error, operation)
        return format_error(error)
