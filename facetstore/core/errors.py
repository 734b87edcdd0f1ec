"""
Exception types for facetstore.

Every error raised by the library derives from FacetStoreError so callers
can tell library failures apart from their own. The subclasses tell the
caller what to do next: fix the call, re-read and retry, back off, or give up.
"""

from typing import Optional


class FacetStoreError(Exception):
    """Base class for all facetstore errors."""
    pass


class ValidationError(FacetStoreError):
    """Raised when records are malformed or belong to another facet. Never retried."""
    pass


class TransactionTooLarge(ValidationError):
    """Raised when a commit would exceed the backend's transaction item limit."""

    def __init__(self, attempted: int, limit: int) -> None:
        super().__init__(
            f"cannot exceed maximum transaction count of {limit}. "
            f"The transaction attempted to write {attempted}."
        )
        self.attempted = attempted
        self.limit = limit


class UnknownEventTypeError(ValidationError):
    """Raised when no rule is registered for an event type and the policy is strict."""

    def __init__(self, event_type: str) -> None:
        super().__init__(f"no rule registered for event type: {event_type}")
        self.event_type = event_type


class OptimisticConcurrencyConflict(FacetStoreError):
    """
    Raised when the state write lost a race.

    Another writer committed first, or an inbound/outbound key already
    exists. Re-read the state, recompute and try again.
    """

    def __init__(self, group_id: str, previous_seq: int, message: Optional[str] = None) -> None:
        super().__init__(
            message
            or f"concurrent modification of {group_id!r}: expected previous seq {previous_seq}"
        )
        self.group_id = group_id
        self.previous_seq = previous_seq


class BackendUnavailable(FacetStoreError):
    """Raised on transport or backend failures. Retryable with backoff."""
    pass


class RuleExecutionError(FacetStoreError):
    """
    Raised when an update rule rejects an event.

    The original exception is kept as ``original`` and chained as
    ``__cause__``. Nothing is committed.
    """

    def __init__(self, event_type: str, original: BaseException) -> None:
        super().__init__(str(original))
        self.event_type = event_type
        self.original = original


class ConfigError(FacetStoreError):
    """Raised when required configuration is missing or invalid."""
    pass
