"""
Run command: reconcile audit order and commit corrections
"""

import json
from typing import List, Optional

import typer
from rich.table import Table

from reorder.config import parse_delete_policy
from reorder.core.errors import ConfigError, ReorderError
from reorder.driver import RunSummary, run

from . import _common
from ._common import console, err_console


def _render(summary: RunSummary) -> None:
    if summary.dry_run:
        console.print("[yellow]Dry run: every correction was rolled back[/yellow]")
    else:
        console.print("[green]✓ Reconciliation committed[/green]")
    console.print(f"  Entities: [cyan]{summary.entities}[/cyan]")
    console.print(f"  Corrections emitted: [cyan]{summary.corrections_emitted}[/cyan]")
    console.print(f"  Corrections applied: [cyan]{summary.corrections_applied}[/cyan]")

    table = Table(title="Entity Outcomes")
    table.add_column("Outcome", style="green")
    table.add_column("Count", style="cyan", justify="right")
    for outcome, count in summary.outcome_counts().items():
        table.add_row(outcome, str(count))
    console.print(table)

    if summary.manual_fix_entities:
        console.print("\n[bold red]Entities needing manual fix:[/bold red]")
        console.print(", ".join(str(i) for i in summary.manual_fix_entities))


def run_command(
    dry_run: bool = typer.Option(False, "--dry-run", help="Apply corrections, then roll back"),
    entity: Optional[List[int]] = typer.Option(
        None, "--entity", "-e", help="Reconcile only this entity id (repeatable)"
    ),
    delete_policy: Optional[str] = typer.Option(
        None, "--delete-policy", help="DELETE renumbering: history (default) or rescan"
    ),
    strict: bool = typer.Option(False, "--strict", help="Exit 1 when any entity needs manual fix"),
    json_output: bool = typer.Option(False, "--json", help="Output summary as JSON"),
):
    """
    Replay every candidate entity and commit order corrections in one transaction.

    Examples:
        reorder run --dry-run
        reorder run
        reorder run --entity 429854 --entity 429855
        reorder run --delete-policy rescan --json
    """
    try:
        policy = parse_delete_policy(delete_policy) if delete_policy else None
    except ConfigError as e:
        err_console.print(f"[red]Configuration error:[/red] {e}")
        raise typer.Exit(2)
    settings = _common.load_settings(delete_policy=policy)
    _common.configure_logging(settings, json_output)
    if not json_output:
        _common.print_context(settings)

    try:
        with _common.open_store(settings) as store:
            store.ping()
            summary = run(
                store,
                delete_policy=settings.delete_policy,
                entity_ids=list(entity) if entity else None,
                dry_run=dry_run,
            )
    except ReorderError as e:
        if json_output:
            print(json.dumps({"error": str(e), "committed": False}))
        else:
            err_console.print(f"[red]Fatal:[/red] {e}")
            err_console.print("[red]Run aborted, nothing committed[/red]")
        raise typer.Exit(2)

    if json_output:
        output = summary.to_dict()
        output["reports"] = [r.to_dict() for r in summary.reports]
        print(json.dumps(output, indent=2))
    else:
        _render(summary)

    if strict and summary.manual_fix_entities:
        raise typer.Exit(1)
