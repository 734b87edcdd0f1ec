"""
Core primitives.

This module provides:
- Record: Stored envelope + item, and the key scheme
- Event: Inbound and outbound events
- Processor: Pure reduction of events into state
- Canonical: Deterministic serialization
- Clock: Record timestamp sources
- Errors: The facetstore exception hierarchy
"""

from .events import Event, payload_to_dict
from .records import (
    Record,
    STATE_KEY,
    INBOUND_PREFIX,
    OUTBOUND_PREFIX,
    ENVELOPE_FIELDS,
    facet_id,
    secondary_index_id,
    new_state_record,
    new_inbound_record,
    new_outbound_record,
    new_index_record,
    is_state_record,
    is_inbound_record,
    is_outbound_record,
)
from .processor import Processor, ProcessResult, Rule, Initializer, Transition, UnknownEventPolicy
from .canonical import canonicalize, canonical_json_bytes, canonical_json_str
from .clock import SystemClock, FixedClock
from .errors import (
    FacetStoreError,
    ValidationError,
    TransactionTooLarge,
    UnknownEventTypeError,
    OptimisticConcurrencyConflict,
    BackendUnavailable,
    RuleExecutionError,
    ConfigError,
)

__all__ = [
    "Event",
    "payload_to_dict",
    "Record",
    "STATE_KEY",
    "INBOUND_PREFIX",
    "OUTBOUND_PREFIX",
    "ENVELOPE_FIELDS",
    "facet_id",
    "secondary_index_id",
    "new_state_record",
    "new_inbound_record",
    "new_outbound_record",
    "new_index_record",
    "is_state_record",
    "is_inbound_record",
    "is_outbound_record",
    "Processor",
    "ProcessResult",
    "Rule",
    "Initializer",
    "Transition",
    "UnknownEventPolicy",
    "canonicalize",
    "canonical_json_bytes",
    "canonical_json_str",
    "SystemClock",
    "FixedClock",
    "FacetStoreError",
    "ValidationError",
    "TransactionTooLarge",
    "UnknownEventTypeError",
    "OptimisticConcurrencyConflict",
    "BackendUnavailable",
    "RuleExecutionError",
    "ConfigError",
]
