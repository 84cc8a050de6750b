"""Console utilities for safe character output.

This module provides utilities for handling console output with proper encoding.
"""
import sys
from typing import Any


def safe_echo(message: Any, **kwargs) -> None:
    """
    安全輸出訊息，處理編碼問題.

    Post titles and content may contain characters the terminal encoding
    cannot represent.

    Args:
        message: 要輸出的訊息
        **kwargs: 額外參數傳給 print
    """
    try:
        print(message, **kwargs)
    except UnicodeEncodeError:
        if isinstance(message, str):
            safe_message = message.encode("ascii", "replace").decode("ascii")
            print(f"[ENCODING_ISSUE] {safe_message}", **kwargs)
        else:
            print(f"[OUTPUT] {message!r}", **kwargs)


def echo_with_prefix(prefix: str, message: str) -> None:
    """輸出帶前綴的訊息，例如 [CREATE] ..."""
    safe_echo(f"[{prefix}] {message}")


def setup_console_encoding() -> None:
    """設定控制台編碼."""
    if sys.platform == "win32":
        for stream in (sys.stdout, sys.stderr):
            if hasattr(stream, "reconfigure"):
                stream.reconfigure(encoding="utf-8")
