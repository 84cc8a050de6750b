"""Troubleshoot command implementation."""
from typing import Optional

import typer

from ..lib.console import safe_echo
from ..lib.troubleshooting import quick_fix_for, rls_policies
from ..models.outcome import ErrorCategory

FIXABLE = (ErrorCategory.CORS, ErrorCategory.RLS, ErrorCategory.NETWORK)


def troubleshoot(
    category: str = typer.Argument(..., help="Failure category [cors|rls|network]"),
    sql: Optional[str] = typer.Option(
        None, "--sql", help="Also print RLS policy SQL [development|production]"
    ),
    table: str = typer.Option("blogs", "--table", help="Posts table name"),
):
    """Show quick-fix steps for a failure category."""
    try:
        error_category = ErrorCategory.from_string(category)
    except ValueError:
        error_category = None

    if error_category not in FIXABLE:
        safe_echo(f"[ERROR] No quick fix for '{category}' (choose from cors, rls, network)")
        raise typer.Exit(1)

    fix = quick_fix_for(error_category, table)

    safe_echo(fix.title)
    safe_echo("=" * len(fix.title))
    for number, step in enumerate(fix.steps, 1):
        safe_echo(f"{number}. {step}")
    safe_echo(f"\nLearn more: {fix.learn_more}")

    if sql:
        try:
            statements = rls_policies(table, sql)
        except ValueError:
            safe_echo(f"[ERROR] Unknown policy mode: {sql}")
            raise typer.Exit(1)

        safe_echo(f"\n-- {sql.capitalize()} RLS policies")
        for statement in statements:
            safe_echo(f"{statement};")
