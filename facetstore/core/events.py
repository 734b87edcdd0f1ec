"""
Event model.

Inbound events are accepted inputs that may change state; outbound events
are notifications emitted by update rules. Both are a type tag plus a
payload.
"""

import dataclasses
from dataclasses import dataclass, field
from typing import Any, Dict


@dataclass(frozen=True)
class Event:
    """
    Immutable event.

    Fields:
        type: Event type tag (e.g., "TRANSACTION_ACCEPTED", "accountOverdrawn")
        payload: Event data, either a dict or a dataclass instance
    """
    type: str
    payload: Any = field(default_factory=dict)

    def payload_dict(self) -> Dict[str, Any]:
        """Payload as a plain dict, ready to be stored next to a record envelope."""
        return payload_to_dict(self.payload)


def payload_to_dict(payload: Any) -> Dict[str, Any]:
    """
    Convert a payload to a plain dict.

    Accepts dicts, dataclass instances and objects with a to_dict() method.
    """
    if payload is None:
        return {}
    if isinstance(payload, dict):
        return dict(payload)
    if dataclasses.is_dataclass(payload) and not isinstance(payload, type):
        return dataclasses.asdict(payload)
    to_dict = getattr(payload, "to_dict", None)
    if callable(to_dict):
        return dict(to_dict())
    raise TypeError(f"unsupported payload type: {type(payload).__name__}")
