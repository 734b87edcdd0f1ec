"""
Storage gateways.

This module provides:
- Gateway: Abstract storage interface and shared commit validation
- DynamoDBGateway: DynamoDB table (TransactWriteItems)
- MemoryGateway / MemoryTable: In-process backend for tests and local runs
"""

from .gateway import Gateway, MAX_TRANSACTION_ITEMS
from .memory import MemoryGateway, MemoryTable
from .dynamodb import DynamoDBGateway, create_table

__all__ = [
    "Gateway",
    "MAX_TRANSACTION_ITEMS",
    "MemoryGateway",
    "MemoryTable",
    "DynamoDBGateway",
    "create_table",
]
