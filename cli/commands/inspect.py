"""
Inspect command: show one entity's revisions and the corrections replay would emit
"""

import json
from dataclasses import replace
from typing import Dict, List

import typer
from rich.table import Table

from reorder.core.errors import ReorderError
from reorder.core.revision import RevisionTuple, rev_type_label
from reorder.driver import EntityPlan, plan_entity
from reorder.logging_config import quieted
from reorder.replay.engine import DeletePolicy

from . import _common
from ._common import console, err_console


def _plans(revisions: List[RevisionTuple], policies: List[DeletePolicy]) -> Dict[DeletePolicy, EntityPlan]:
    # Replay mutates order_id; every policy gets its own copy.
    with quieted("reorder.driver", "reorder.replay"):
        return {
            policy: plan_entity([replace(r) for r in revisions], policy)
            for policy in policies
        }


def inspect_command(
    entity_id: int = typer.Argument(..., help="Entity id to inspect"),
    compare: bool = typer.Option(
        False, "--compare", "-c", help="Plan with both delete policies and show both"
    ),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """
    Replay one entity without writing and show the planned corrections.

    Examples:
        reorder inspect 429854
        reorder inspect 429854 --compare
        reorder inspect 429854 --json
    """
    settings = _common.load_settings()
    _common.configure_logging(settings, json_output)
    if not json_output:
        _common.print_context(settings)

    try:
        with _common.open_store(settings) as store:
            revisions = store.load_revisions(entity_id)
        policies = list(DeletePolicy) if compare else [settings.delete_policy]
        plans = _plans(revisions, policies)
    except ReorderError as e:
        if json_output:
            print(json.dumps({"error": str(e), "entity_id": entity_id}))
        else:
            err_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(2)

    if json_output:
        output = {
            "entity_id": entity_id,
            "revisions": len(revisions),
            "plans": {
                policy.value: {
                    "outcome": plan.outcome.value,
                    "corrections": [c.to_dict() for c in plan.corrections],
                }
                for policy, plan in plans.items()
            },
        }
        print(json.dumps(output, indent=2))
        return

    if not revisions:
        console.print(f"[yellow]No audit rows for entity {entity_id}[/yellow]")
        return

    table = Table(title=f"Entity {entity_id}: {len(revisions)} revisions")
    table.add_column("Row", style="dim", justify="right")
    table.add_column("Rev", style="cyan", justify="right")
    table.add_column("Type", style="green")
    table.add_column("Order", style="yellow", justify="right")
    table.add_column("Line")
    for r in revisions:
        order = "null" if r.order_id is None else str(r.order_id)
        table.add_row(str(r.row_number), str(r.rev), rev_type_label(r.rev_type), order, r.content)
    console.print(table)

    for policy, plan in plans.items():
        ctable = Table(title=f"Planned corrections ({policy.value}): {plan.outcome.value}")
        ctable.add_column("Category", style="green")
        ctable.add_column("Rev", style="cyan", justify="right")
        ctable.add_column("Type")
        ctable.add_column("From", justify="right")
        ctable.add_column("To", style="yellow", justify="right")
        ctable.add_column("Line")
        for c in plan.corrections:
            previous = "null" if c.previous is None else str(c.previous)
            ctable.add_row(c.category, str(c.rev), rev_type_label(c.rev_type), previous, str(c.order), c.content)
        console.print(ctable)

    if compare and len(plans) > 1:
        keys = {
            policy: [(c.rev, c.rev_type, c.content, c.order) for c in plan.corrections]
            for policy, plan in plans.items()
        }
        if keys[DeletePolicy.HISTORY] == keys[DeletePolicy.RESCAN]:
            console.print("[green]Delete policies agree for this entity[/green]")
        else:
            console.print("[bold yellow]Delete policies disagree for this entity, validate by hand[/bold yellow]")
