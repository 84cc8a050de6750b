"""Database and status commands implementation."""
import asyncio
import logging
from typing import Any

import typer

from ..database.connection import DatabaseConnection
from ..database.init import DatabaseInitializer
from ..database.post_store import translate_database_errors
from ..database.store import ExecutionContext
from ..lib.console import safe_echo
from ..lib.error_handler import format_error
from ..lib.errors import StorageError
from ..models.config import ConfigKey, get_int
from ..services.post_repository import PostRepository
from .common import fail_with, load_config, render_error

logger = logging.getLogger(__name__)

POLICY_MODES = ("development", "production", "none")


async def _async_init_db(policy_mode: str) -> dict[str, Any]:
    config = await load_config()
    table = config.get(ConfigKey.BLOG_TABLE, "blogs")

    db = DatabaseConnection(
        config[ConfigKey.DATABASE_URL],
        connection_timeout=get_int(config, ConfigKey.DATABASE_CONNECTION_TIMEOUT),
        command_timeout=get_int(config, ConfigKey.DATABASE_QUERY_TIMEOUT),
    )

    with translate_database_errors():
        async with db:
            initializer = DatabaseInitializer(db, table)
            await initializer.create_tables(None if policy_mode == "none" else policy_mode)
            info = await initializer.get_table_info()

    return {"table": table, **info}


def init_db(
    policies: str = typer.Option(
        "none", "--policies", help="RLS policies to apply [development|production|none]"
    ),
):
    """Create the posts table, its trigger and indexes."""
    if policies not in POLICY_MODES:
        safe_echo(f"[ERROR] Unknown policy mode: {policies} (choose from {', '.join(POLICY_MODES)})")
        raise typer.Exit(1)

    safe_echo("[INIT] Initializing database schema")

    try:
        info = asyncio.run(_async_init_db(policies))
    except StorageError as e:
        logger.error(f"Init command failed: {e}")
        fail_with(format_error(e))
    except ValueError as e:
        safe_echo(f"[ERROR] Invalid configuration: {e!s}")
        raise typer.Exit(1)

    safe_echo(f"[SUCCESS] Table '{info['table']}' ready ({info['row_count']} posts)")
    if policies != "none":
        safe_echo(f"[SUCCESS] Applied {policies} RLS policies")


async def _async_status() -> dict[ExecutionContext, Any]:
    config = await load_config()
    results = {}

    for context in ExecutionContext:
        repository = PostRepository.for_context(context, config)
        results[context] = await repository.read_all()

    return results


def status():
    """Check that both execution contexts can reach the store."""
    safe_echo("[STATUS] Checking storage connectivity")

    try:
        results = asyncio.run(_async_status())
    except ValueError as e:
        safe_echo(f"[ERROR] Invalid configuration: {e!s}")
        raise typer.Exit(1)

    healthy = True
    for context, result in results.items():
        if result.ok:
            safe_echo(f"[OK] {context}: {len(result.data)} posts")
        else:
            healthy = False
            safe_echo(f"[FAIL] {context}")
            render_error(result.error)

    if not healthy:
        raise typer.Exit(1)
