"""
Table commands: create
"""

from typing import Optional

import boto3
import typer
from botocore.exceptions import BotoCoreError, ClientError
from rich.console import Console

from ...store.dynamodb import create_table
from ._options import EndpointOption, RegionOption, TableOption

app = typer.Typer()
console = Console()


@app.command()
def create(
    table: str = TableOption,
    endpoint: Optional[str] = EndpointOption,
    region: str = RegionOption,
):
    """
    Create a table with the _id/_rng key schema (on-demand billing).

    Examples:
        facetstore table create --table events
        facetstore table create --table events --endpoint http://localhost:8000
    """
    try:
        client = boto3.client("dynamodb", endpoint_url=endpoint, region_name=region)
        create_table(client, table)
    except (BotoCoreError, ClientError) as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(2)
    console.print(f"[green]Created table[/green] {table}")
