"""
Change relay: publishes outbound records from the table stream to EventBridge.
"""

from .config import RelayConfig
from .handler import OutboundMessage, OutboundRelay, RelayPublishError, lambda_handler, outbound_from_stream_record

__all__ = [
    "RelayConfig",
    "OutboundMessage",
    "OutboundRelay",
    "RelayPublishError",
    "lambda_handler",
    "outbound_from_stream_record",
]
