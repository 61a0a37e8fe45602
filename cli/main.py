#!/usr/bin/env python3
"""
Reorder CLI - Audit order reconciliation

Main entrypoint for the reorder command-line tool.
"""

import typer
from rich.console import Console
from rich.table import Table

from cli.commands import candidates, inspect, run

# Initialize Typer app
app = typer.Typer(
    name="reorder",
    help="Audit order reconciliation for address-line history",
    add_completion=False,
)

# Console for rich output
console = Console()

app.command(name="run")(run.run_command)
app.command(name="candidates")(candidates.candidates_command)
app.command(name="inspect")(inspect.inspect_command)


@app.command()
def version():
    """Show version information."""
    from cli import __version__
    from reorder import __version__ as engine_version

    table = Table(show_header=False, box=None)
    table.add_row("[bold]Reorder CLI[/bold]", f"v{__version__}")
    table.add_row("Engine", f"v{engine_version}")

    console.print(table)


def main():
    """Main entrypoint."""
    app()


if __name__ == "__main__":
    main()
