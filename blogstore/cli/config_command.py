"""Config command implementation."""
import asyncio
import logging
from typing import Optional

import typer

from ..lib.config_loader import ConfigLoader
from ..lib.console import safe_echo
from ..models.config import display_value
from .common import cli_state

logger = logging.getLogger(__name__)

# Create config subapp
config = typer.Typer(help="Configuration management")


async def _async_show_config() -> tuple[dict[str, str], list[str]]:
    config_loader = ConfigLoader()
    config_data = await config_loader.load_config(config_file=cli_state["config_file"])
    return config_data, config_loader.get_config_sources()


@config.command()
def show(key: Optional[str] = typer.Argument(None, help="Specific configuration key")):
    """Show configuration."""
    try:
        config_data, sources = asyncio.run(_async_show_config())
    except ValueError as e:
        safe_echo(f"[ERROR] Invalid configuration: {e!s}")
        logger.error(f"Config show command failed: {e}")
        raise typer.Exit(1)

    if key:
        if key in config_data:
            value = display_value(key, config_data[key])
            safe_echo(f"{key} = {value}")
        else:
            safe_echo(f"[WARNING] Configuration key '{key}' not found")
            safe_echo("Available keys:")
            for k in sorted(config_data.keys()):
                safe_echo(f"  - {k}")
        return

    safe_echo("\nCurrent Configuration:")
    safe_echo("=" * 50)

    # Group configurations by category
    categories: dict[str, list[tuple[str, str]]] = {}
    for k, v in config_data.items():
        category = k.split(".")[0] if "." in k else "general"
        categories.setdefault(category, []).append((k, v))

    for category, items in sorted(categories.items()):
        safe_echo(f"\n[{category.upper()}]")
        for k, v in sorted(items):
            shown = display_value(k, v)
            safe_echo(f"  {k} = {shown}")

    safe_echo("=" * 50)
    safe_echo(f"Sources: {', '.join(sources)}")
