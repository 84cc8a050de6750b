"""Blog CLI main entry point.

This module provides the main CLI application using Typer.
"""
import logging
from pathlib import Path
from typing import Optional

import typer

from ..database.store import ExecutionContext
from ..lib.console import setup_console_encoding
from .common import cli_state
from .config_command import config
from .db_command import init_db, status
from .post_commands import create, delete, list_posts, seed, show, update
from .troubleshoot_command import troubleshoot

setup_console_encoding()

# Create main app
app = typer.Typer(
    name="blog",
    help="Blog post management: create, list, update and delete posts in the hosted database",
    no_args_is_help=True,
)

# Add subcommands
app.add_typer(config, name="config", help="Configuration management")
app.command()(create)
app.command("list")(list_posts)
app.command()(show)
app.command()(update)
app.command()(delete)
app.command()(seed)
app.command("init-db")(init_db)
app.command()(status)
app.command()(troubleshoot)


# Global options
@app.callback()
def main(
    config_file: Optional[Path] = typer.Option(None, "--config-file", help="Configuration file path"),
    log_level: str = typer.Option(
        "INFO", "--log-level", help="Log level [DEBUG|INFO|WARNING|ERROR]"
    ),
    context: str = typer.Option(
        ExecutionContext.INTERACTIVE.value,
        "--context",
        help="Storage binding [interactive (REST gateway)|render (direct database)]",
    ),
):
    """Blog - manage posts stored in Supabase."""
    try:
        ExecutionContext.from_string(context)
    except ValueError:
        raise typer.BadParameter(f"Unknown context: {context}", param_hint="--context")

    # Setup logging
    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    # Store global options
    cli_state["config_file"] = config_file
    cli_state["log_level"] = log_level
    cli_state["context"] = context


if __name__ == "__main__":
    app()
