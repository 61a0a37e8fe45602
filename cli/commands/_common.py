"""
Shared CLI plumbing: settings, logging, store factory.
"""

import sys
from typing import Any

import typer
from rich.console import Console
from rich.markup import escape

from reorder.config import Settings
from reorder.core.errors import ConfigError
from reorder.logging_config import setup_logging
from reorder.store import AuditStore, PostgresAuditStore

console = Console()
err_console = Console(stderr=True)


def load_settings(**overrides: Any) -> Settings:
    """Settings from the environment with CLI overrides. Exits 2 on bad config."""
    try:
        return Settings.from_env().with_overrides(**overrides)
    except ConfigError as e:
        err_console.print(f"[red]Configuration error:[/red] {e}")
        raise typer.Exit(2)


def configure_logging(settings: Settings, json_output: bool = False) -> None:
    # JSON command output owns stdout; the log stream moves to stderr.
    stream = sys.stderr if json_output else sys.stdout
    setup_logging(settings.log_level, settings.log_format, stream=stream)


def open_store(settings: Settings) -> AuditStore:
    return PostgresAuditStore.connect(settings)


def print_context(settings: Settings) -> None:
    """Header naming the database and table a command works on, without the password."""
    ctx = settings.redacted()
    console.print(
        f"[dim]Database:[/dim] {escape(str(ctx['user']))}@{escape(str(ctx['host']))}:{ctx['port']}"
        f"/{escape(str(ctx['dbname']))} [dim](url {ctx['database_url']})[/dim]"
    )
    console.print(
        f"[dim]Table:[/dim] {ctx['table']} ({ctx['entity_column']}, {ctx['content_column']})"
        f"  [dim]delete policy:[/dim] {ctx['delete_policy']}\n"
    )
