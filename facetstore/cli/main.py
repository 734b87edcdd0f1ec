#!/usr/bin/env python3
"""
facetstore CLI

Main entrypoint for the facetstore command-line tool.
"""

import typer
from rich.console import Console
from rich.table import Table

from .commands import records, table

app = typer.Typer(
    name="facetstore",
    help="Inspect and manage event-sourced facet tables",
    add_completion=False,
)

console = Console()

app.add_typer(table.app, name="table", help="Table management")

app.command(name="state")(records.state_command)
app.command(name="records")(records.records_command)


@app.command()
def version():
    """Show version information."""
    from facetstore import __version__

    info = Table(show_header=False, box=None)
    info.add_row("[bold]facetstore[/bold]", f"v{__version__}")
    console.print(info)


def main():
    """Main entrypoint."""
    app()


if __name__ == "__main__":
    main()
