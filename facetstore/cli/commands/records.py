"""
Record inspection commands: state, records
"""

import json
from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table

from ...core.canonical import canonical_json_str, canonicalize
from ...core.errors import FacetStoreError
from ...core.records import Record
from ._options import EndpointOption, RegionOption, TableOption, store_config

console = Console()


def state_command(
    facet: str = typer.Argument(..., help="Facet name"),
    id: str = typer.Argument(..., help="Item id"),
    table: str = TableOption,
    endpoint: Optional[str] = EndpointOption,
    region: str = RegionOption,
):
    """
    Print the state record of an item as JSON.

    Examples:
        facetstore state BANK_ACCOUNT 123 --table events
    """
    try:
        gateway = store_config(table, endpoint, region).gateway(facet)
        record = gateway.get_state(id)
    except FacetStoreError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(2)

    if record is None:
        console.print(f"[yellow]No state for[/yellow] {facet}/{id}")
        raise typer.Exit(1)
    print(json.dumps(canonicalize(record.to_item()), indent=2, ensure_ascii=False))


def records_command(
    facet: str = typer.Argument(..., help="Facet name"),
    id: str = typer.Argument(..., help="Item id, or index value with --index"),
    prefix: Optional[str] = typer.Option(
        None, "--prefix", "-p", help="Only records whose ordering key starts with this (e.g. OUTBOUND)"
    ),
    index: Optional[str] = typer.Option(None, "--index", "-i", help="Query a secondary index group"),
    table: str = TableOption,
    endpoint: Optional[str] = EndpointOption,
    region: str = RegionOption,
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """
    List every record of an item, ordered by sort key.

    Examples:
        facetstore records BANK_ACCOUNT 123
        facetstore records BANK_ACCOUNT 123 --prefix OUTBOUND
        facetstore records BANK_ACCOUNT test@example.com --index byCustomerEmail --json
    """
    try:
        gateway = store_config(table, endpoint, region).gateway(facet)
        if index and prefix:
            records = gateway.query_records_by_secondary_index_and_range_prefix(prefix, index, id)
        elif index:
            records = gateway.query_records_by_secondary_index(index, id)
        elif prefix:
            records = gateway.query_records_by_range_prefix(prefix, id)
        else:
            records = gateway.query_records(id)
    except FacetStoreError as e:
        if json_output:
            print(json.dumps({"error": str(e)}))
        else:
            console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(2)

    records = sorted(records, key=lambda r: (r.seq, r.rng))
    if json_output:
        print(json.dumps(
            {"records": [canonicalize(r.to_item()) for r in records], "count": len(records)},
            indent=2,
            ensure_ascii=False,
        ))
        return

    if not records:
        console.print("[yellow]No records[/yellow]")
        return
    console.print(_records_table(records, title=records[0].id))
    console.print(f"\n[bold]Total records:[/bold] {len(records)}")


def _records_table(records: List[Record], title: str) -> Table:
    table = Table(title=title)
    table.add_column("Seq", style="cyan")
    table.add_column("Key", style="green")
    table.add_column("Type", style="yellow")
    table.add_column("Date", style="dim")
    table.add_column("Item")
    for r in records:
        item = canonical_json_str(r.item)
        table.add_row(str(r.seq), r.rng, r.typ, r.date, item if len(item) <= 80 else item[:77] + "...")
    return table
