"""
Store configuration.

Environment Variables:
    FACETSTORE_TABLE: DynamoDB table name (required)
    FACETSTORE_DYNAMODB_ENDPOINT: Endpoint override (DynamoDB Local, LocalStack)
    AWS_REGION: AWS region - default: us-east-1
"""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from .core.errors import ConfigError
from .store.dynamodb import DynamoDBGateway


@dataclass(frozen=True)
class StoreConfig:
    table: str
    endpoint_url: Optional[str] = None
    region: str = "us-east-1"

    def __post_init__(self) -> None:
        if not self.table:
            raise ConfigError("FACETSTORE_TABLE is not set")

    @staticmethod
    def from_env(environ: Optional[Mapping[str, str]] = None) -> "StoreConfig":
        env = os.environ if environ is None else environ
        return StoreConfig(
            table=env.get("FACETSTORE_TABLE", ""),
            endpoint_url=env.get("FACETSTORE_DYNAMODB_ENDPOINT") or None,
            region=env.get("AWS_REGION") or "us-east-1",
        )

    def gateway(self, facet: str, client=None) -> DynamoDBGateway:
        """Build a DynamoDB gateway for ``facet`` on the configured table."""
        return DynamoDBGateway(
            table=self.table,
            facet=facet,
            client=client,
            endpoint_url=self.endpoint_url,
            region=self.region,
        )
