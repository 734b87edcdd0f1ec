"""
DynamoDB-backed gateway.

One table holds every facet. Items are keyed by:
    _id   partition key: "{facet}/{id}" or "{facet}/{index}/{value}"
    _rng  sort key: "STATE" | "INBOUND/..." | "OUTBOUND/..."

Commits use TransactWriteItems, which evaluates each item's condition
against that item only and applies all puts or none.

Reads use ConsistentRead so a caller always sees its own last commit.
"""

import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional

import boto3
from boto3.dynamodb.types import TypeDeserializer, TypeSerializer
from botocore.exceptions import BotoCoreError, ClientError

from ..core.errors import (
    BackendUnavailable,
    FacetStoreError,
    OptimisticConcurrencyConflict,
    ValidationError,
)
from ..core.records import STATE_KEY, Record
from .gateway import Gateway

logger = logging.getLogger(__name__)

_serializer = TypeSerializer()
_deserializer = TypeDeserializer()

# Cancellation reasons that mean "someone else got there first".
_CONFLICT_REASONS = ("ConditionalCheckFailed", "TransactionConflict")


class DynamoDBGateway(Gateway):
    """
    Gateway over a DynamoDB table.

    The boto3 client is thread-safe; one gateway can be shared by every
    thread of a process. The gateway holds no other mutable state.
    """

    def __init__(
        self,
        table: str,
        facet: str,
        client: Any = None,
        endpoint_url: Optional[str] = None,
        region: Optional[str] = None,
    ) -> None:
        """
        Initialize DynamoDB gateway.

        Args:
            table: DynamoDB table name
            facet: Facet this gateway reads and writes
            client: Existing boto3 DynamoDB client (created when None)
            endpoint_url: DynamoDB endpoint (DynamoDB Local, LocalStack, ...)
            region: AWS region

        Raises:
            BackendUnavailable: If the client cannot be created
        """
        super().__init__(facet)
        self.table = table
        if client is None:
            try:
                client = boto3.client("dynamodb", endpoint_url=endpoint_url, region_name=region)
            except (BotoCoreError, ClientError) as e:
                raise BackendUnavailable(f"Failed to create DynamoDB client: {e}") from e
        self.client = client

    def get_state(self, id: str) -> Optional[Record]:
        try:
            response = self.client.get_item(
                TableName=self.table,
                Key={"_id": {"S": self.group_id(id)}, "_rng": {"S": STATE_KEY}},
                ConsistentRead=True,
            )
        except (BotoCoreError, ClientError) as e:
            raise _backend_error(e, f"Failed to get state of {self.group_id(id)}") from e

        item = response.get("Item")
        if not item:
            return None
        return Record.from_item(deserialize_item(item))

    def _query(self, group_id: str, range_prefix: Optional[str] = None) -> List[Record]:
        condition = "#_id = :_id"
        names = {"#_id": "_id"}
        values: Dict[str, Any] = {":_id": {"S": group_id}}
        if range_prefix is not None:
            condition += " and begins_with(#_rng, :_rng)"
            names["#_rng"] = "_rng"
            values[":_rng"] = {"S": range_prefix}

        records = []
        try:
            # Query returns at most 1MB per call; the paginator follows LastEvaluatedKey.
            paginator = self.client.get_paginator("query")
            for page in paginator.paginate(
                TableName=self.table,
                KeyConditionExpression=condition,
                ExpressionAttributeNames=names,
                ExpressionAttributeValues=values,
                ConsistentRead=True,
            ):
                for item in page.get("Items", []):
                    records.append(Record.from_item(deserialize_item(item)))
        except (BotoCoreError, ClientError) as e:
            raise _backend_error(e, f"Failed to query {group_id}") from e
        return records

    def _commit(
        self,
        state: Record,
        previous_seq: int,
        inbound: List[Record],
        outbound: List[Record],
        index: List[Record],
    ) -> None:
        transact_items = (
            [self._put_new(r) for r in inbound]
            + [self._put_new(r) for r in outbound]
            + [self._put(r) for r in index]
            + [self._put_state(state, previous_seq)]
        )
        try:
            self.client.transact_write_items(TransactItems=transact_items)
        except ClientError as e:
            if not _is_validation(e) and _is_conflict(e):
                logger.info(
                    "Commit rejected by write condition",
                    extra={"group_id": state.id, "previous_seq": previous_seq},
                )
                raise OptimisticConcurrencyConflict(state.id, previous_seq) from e
            raise _backend_error(e, f"Failed to commit {state.id}") from e
        except BotoCoreError as e:
            raise _backend_error(e, f"Failed to commit {state.id}") from e

    def _put(self, record: Record) -> Dict[str, Any]:
        """Unconditional put (last write wins). Used for index projections."""
        return {"Put": {"TableName": self.table, "Item": serialize_item(record.to_item())}}

    def _put_new(self, record: Record) -> Dict[str, Any]:
        """Put only if the key does not exist yet."""
        return {
            "Put": {
                "TableName": self.table,
                "Item": serialize_item(record.to_item()),
                "ConditionExpression": "attribute_not_exists(#_id)",
                "ExpressionAttributeNames": {"#_id": "_id"},
            }
        }

    def _put_state(self, record: Record, previous_seq: int) -> Dict[str, Any]:
        """Put the state if there is none yet or the stored sequence is ``previous_seq``."""
        return {
            "Put": {
                "TableName": self.table,
                "Item": serialize_item(record.to_item()),
                "ConditionExpression": "attribute_not_exists(#_id) OR #_seq = :_seq",
                "ExpressionAttributeNames": {"#_id": "_id", "#_seq": "_seq"},
                "ExpressionAttributeValues": {":_seq": {"N": str(previous_seq)}},
            }
        }


def _is_conflict(e: ClientError) -> bool:
    error = e.response.get("Error", {})
    code = error.get("Code", "")
    if code == "ConditionalCheckFailedException":
        return True
    if code != "TransactionCanceledException":
        return False
    reasons = e.response.get("CancellationReasons") or []
    if reasons:
        return any(r.get("Code") in _CONFLICT_REASONS for r in reasons)
    # Some endpoints only report the reasons inside the message.
    message = error.get("Message", "")
    return any(reason in message for reason in _CONFLICT_REASONS)


def _is_validation(e: ClientError) -> bool:
    """True for requests DynamoDB will never accept (oversized item, repeated key, bad key)."""
    error = e.response.get("Error", {})
    code = error.get("Code", "")
    if code == "ValidationException":
        return True
    if code != "TransactionCanceledException":
        return False
    reasons = e.response.get("CancellationReasons") or []
    if reasons:
        return any(r.get("Code") == "ValidationError" for r in reasons)
    return "ValidationError" in error.get("Message", "")


def _backend_error(e: Exception, message: str) -> FacetStoreError:
    if isinstance(e, ClientError) and _is_validation(e):
        return ValidationError(f"{message}: {e}")
    return BackendUnavailable(f"{message}: {e}")


def serialize_item(item: Dict[str, Any]) -> Dict[str, Any]:
    """
    Python values -> DynamoDB attribute values. Floats are stored as Decimal.

    Raises:
        ValidationError: A value DynamoDB cannot store (NaN, Infinity, unsupported type)
    """
    try:
        return {k: _serializer.serialize(_to_dynamo(v)) for k, v in item.items()}
    except (TypeError, ArithmeticError) as e:
        raise ValidationError(f"cannot store item: {e}") from e


def deserialize_item(item: Dict[str, Any]) -> Dict[str, Any]:
    """DynamoDB attribute values -> Python values. Numbers come back as int or float."""
    return {k: _from_dynamo(_deserializer.deserialize(v)) for k, v in item.items()}


def _to_dynamo(value: Any) -> Any:
    if isinstance(value, bool):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    if isinstance(value, dict):
        return {k: _to_dynamo(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_to_dynamo(v) for v in value]
    return value


def _from_dynamo(value: Any) -> Any:
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    if isinstance(value, dict):
        return {k: _from_dynamo(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_from_dynamo(v) for v in value]
    if isinstance(value, set):
        return {_from_dynamo(v) for v in value}
    return value


def create_table(client: Any, table: str) -> None:
    """
    Create a facet table with the _id/_rng key schema and on-demand billing.

    Waits until the table is active.
    """
    client.create_table(
        TableName=table,
        KeySchema=[
            {"AttributeName": "_id", "KeyType": "HASH"},
            {"AttributeName": "_rng", "KeyType": "RANGE"},
        ],
        AttributeDefinitions=[
            {"AttributeName": "_id", "AttributeType": "S"},
            {"AttributeName": "_rng", "AttributeType": "S"},
        ],
        BillingMode="PAY_PER_REQUEST",
    )
    client.get_waiter("table_exists").wait(TableName=table)
    logger.info("Created table", extra={"table": table})
