"""
facetstore

Event-sourced aggregate store: state, inbound events and outbound events for
one entity committed atomically with optimistic concurrency.
"""

__version__ = "0.1.0"

from .core import (
    Event,
    Processor,
    ProcessResult,
    Transition,
    UnknownEventPolicy,
    Record,
    FacetStoreError,
    ValidationError,
    TransactionTooLarge,
    UnknownEventTypeError,
    OptimisticConcurrencyConflict,
    BackendUnavailable,
    RuleExecutionError,
    ConfigError,
)
from .facet import Facet, GetOutput, ChangeOutput, IndexFunc

__all__ = [
    "Event",
    "Processor",
    "ProcessResult",
    "Transition",
    "UnknownEventPolicy",
    "Record",
    "Facet",
    "GetOutput",
    "ChangeOutput",
    "IndexFunc",
    "FacetStoreError",
    "ValidationError",
    "TransactionTooLarge",
    "UnknownEventTypeError",
    "OptimisticConcurrencyConflict",
    "BackendUnavailable",
    "RuleExecutionError",
    "ConfigError",
]
