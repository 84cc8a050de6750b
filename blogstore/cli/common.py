"""Shared helpers for CLI commands."""
import asyncio
import logging
from typing import Awaitable, Callable, NoReturn, TypeVar

import typer

from ..database.store import ExecutionContext
from ..lib.config_loader import ConfigLoader
from ..lib.console import safe_echo
from ..models.outcome import FormattedError, OperationResult
from ..services.post_repository import PostRepository

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Global options set by the main callback
cli_state = {
    "config_file": None,
    "log_level": "INFO",
    "context": ExecutionContext.INTERACTIVE.value,
}


async def load_config() -> dict[str, str]:
    """Load configuration honouring the global --config-file option."""
    config_loader = ConfigLoader()
    return await config_loader.load_config(config_file=cli_state["config_file"])


def current_context() -> ExecutionContext:
    return ExecutionContext.from_string(cli_state["context"])


def run_operation(
    operation: Callable[[PostRepository], Awaitable[OperationResult[T]]]
) -> OperationResult[T]:
    """Run a repository operation; exit on invalid configuration."""
    try:
        config = asyncio.run(load_config())
    except ValueError as e:
        safe_echo(f"[ERROR] Invalid configuration: {e!s}")
        logger.error(f"Configuration failed: {e}")
        raise typer.Exit(1)

    repository = PostRepository.for_context(current_context(), config)
    return asyncio.run(operation(repository))


def render_error(error: FormattedError) -> None:
    """Print a formatted error, with a troubleshooting link when one applies."""
    safe_echo(f"[ERROR] {error.title}")
    safe_echo(error.message)
    if error.help_link:
        safe_echo(f"[HELP] See {error.help_link} or run: blog troubleshoot {error.category}")


def fail_with(error: FormattedError) -> NoReturn:
    render_error(error)
    raise typer.Exit(1)
