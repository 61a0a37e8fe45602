"""
Candidates command: list entities whose audit history needs reconciliation
"""

import json
from itertools import islice
from typing import Optional

import typer
from rich.table import Table

from reorder.core.errors import ReorderError

from . import _common
from ._common import console, err_console


def candidates_command(
    limit: Optional[int] = typer.Option(None, "--limit", "-n", help="Show at most N entities"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """
    List entity ids with more than one audit row sharing a revision.

    Examples:
        reorder candidates
        reorder candidates --limit 20
        reorder candidates --json
    """
    settings = _common.load_settings()
    _common.configure_logging(settings, json_output)

    try:
        with _common.open_store(settings) as store:
            ids = list(islice(store.candidates(), limit) if limit else store.candidates())
    except ReorderError as e:
        if json_output:
            print(json.dumps({"error": str(e)}))
        else:
            err_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(2)

    if json_output:
        print(json.dumps({"candidates": ids, "count": len(ids)}, indent=2))
        return

    if not ids:
        console.print("[green]No candidate entities[/green]")
        return

    table = Table(title=f"Candidates: {settings.table}")
    table.add_column("Entity ID", style="cyan", justify="right")
    for entity_id in ids:
        table.add_row(str(entity_id))
    console.print(table)
    console.print(f"\n[bold]Total candidates:[/bold] {len(ids)}")
