"""
Change relay: DynamoDB stream -> EventBridge.

Outbound records are written by the facet in the same transaction as the
state. This handler consumes the table's stream, picks out outbound
records, strips the envelope and publishes the payload to EventBridge.

Delivery is at-least-once: a publish failure raises, so the stream batch is
not acknowledged and will be delivered again. Records published before the
failure in the same batch are published again on retry.
"""

import functools
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..core.canonical import canonical_json_str
from ..core.errors import FacetStoreError
from ..core.records import ENVELOPE_FIELDS, OUTBOUND_PREFIX
from ..logging_config import setup_logging
from ..store.dynamodb import deserialize_item
from .config import RelayConfig

logger = logging.getLogger(__name__)


class RelayPublishError(FacetStoreError):
    """Raised when EventBridge rejects or fails a publish. The batch must be retried."""
    pass


@dataclass(frozen=True)
class OutboundMessage:
    """
    An outbound record ready to publish.

    Fields:
        group_id: _id of the record (for logging)
        detail_type: _typ of the record
        detail: Payload without envelope fields
    """
    group_id: str
    detail_type: str
    detail: Dict[str, Any]


def outbound_from_stream_record(record: Dict[str, Any]) -> Optional[OutboundMessage]:
    """
    Extract an outbound message from one stream record.

    Returns None for anything that is not a complete outbound record: other
    record kinds, removals, and images missing _facet, _typ or a payload.
    """
    image = (record.get("dynamodb") or {}).get("NewImage")
    if not image:
        return None
    if not _string_attr(image, "_rng").startswith(OUTBOUND_PREFIX):
        return None
    if not _string_attr(image, "_facet") or not _string_attr(image, "_typ"):
        return None

    item = deserialize_item(image)
    detail = {k: v for k, v in item.items() if k not in ENVELOPE_FIELDS}
    if not detail:
        return None
    return OutboundMessage(
        group_id=_string_attr(image, "_id"),
        detail_type=item["_typ"],
        detail=detail,
    )


def _string_attr(image: Dict[str, Any], name: str) -> str:
    return (image.get(name) or {}).get("S") or ""


class OutboundRelay:
    """Publishes outbound records from DynamoDB stream batches to EventBridge."""

    def __init__(self, config: RelayConfig, client: Any = None) -> None:
        """
        Args:
            config: Validated relay configuration
            client: boto3 EventBridge client (created when None)
        """
        self.config = config
        self.client = client if client is not None else boto3.client("events")

    def handle(self, event: Dict[str, Any]) -> int:
        """
        Process one stream batch.

        Returns:
            Number of events published

        Raises:
            RelayPublishError: On the first failed publish
        """
        records: List[Dict[str, Any]] = event.get("Records") or []
        logger.info("processing records", extra={"count": len(records)})
        published = 0
        for record in records:
            message = outbound_from_stream_record(record)
            if message is None:
                continue
            logger.info(
                "publishing outbound event",
                extra={"group_id": message.group_id, "typ": message.detail_type},
            )
            self.publish(message)
            published += 1
            logger.info(
                "published outbound event",
                extra={"group_id": message.group_id, "typ": message.detail_type, "count": 1},
            )
        logger.info("processed records", extra={"count": len(records), "published": published})
        return published

    def publish(self, message: OutboundMessage) -> None:
        entry = {
            "EventBusName": self.config.target_bus_name,
            "Source": self.config.event_source,
            "DetailType": message.detail_type,
            "Detail": canonical_json_str(message.detail),
        }
        try:
            response = self.client.put_events(Entries=[entry])
        except (BotoCoreError, ClientError) as e:
            raise RelayPublishError(f"Failed to publish {message.detail_type}: {e}") from e

        errors = [
            e["ErrorMessage"] for e in response.get("Entries", []) if e.get("ErrorMessage")
        ]
        if errors:
            raise RelayPublishError(", ".join(errors))
        if response.get("FailedEntryCount", 0):
            raise RelayPublishError(f"Failed to publish {message.detail_type}")


@functools.lru_cache(maxsize=1)
def _default_relay() -> OutboundRelay:
    # Cold start: a missing setting fails every invocation with ConfigError.
    setup_logging()
    return OutboundRelay(RelayConfig.from_env())


def lambda_handler(event: Dict[str, Any], context: Any) -> None:
    """AWS Lambda entry point for a DynamoDB stream event source mapping."""
    _default_relay().handle(event)
