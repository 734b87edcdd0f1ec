"""
Options shared by commands that talk to a table.
"""

import typer

from ...config import StoreConfig

TableOption = typer.Option(..., "--table", "-t", envvar="FACETSTORE_TABLE", help="DynamoDB table name")
EndpointOption = typer.Option(
    None, "--endpoint", envvar="FACETSTORE_DYNAMODB_ENDPOINT", help="DynamoDB endpoint URL"
)
RegionOption = typer.Option("us-east-1", "--region", envvar="AWS_REGION", help="AWS region")


def store_config(table: str, endpoint: str, region: str) -> StoreConfig:
    return StoreConfig(table=table, endpoint_url=endpoint, region=region)
