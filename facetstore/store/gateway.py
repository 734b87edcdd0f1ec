"""
Gateway abstract interface.

Defines the contract every storage backend implements, and the commit
validation they share.
"""

import logging
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

from ..core.errors import TransactionTooLarge, ValidationError
from ..core.records import (
    Record,
    facet_id,
    is_inbound_record,
    is_outbound_record,
    is_state_record,
    secondary_index_id,
)

logger = logging.getLogger(__name__)

# DynamoDB TransactWriteItems limit this store was designed around.
MAX_TRANSACTION_ITEMS = 25


class Gateway(ABC):
    """
    Storage interface for one facet.

    All implementations must guarantee:
    - Strongly consistent reads
    - All-or-nothing commits
    - Inbound and outbound records are never overwritten
    - The state record is replaced only when the caller's previous sequence
      matches the stored one
    - No internal retries; every failure is surfaced to the caller
    """

    def __init__(self, facet: str) -> None:
        self.facet = facet

    def put_state(
        self,
        state: Record,
        previous_seq: int,
        inbound: Sequence[Record] = (),
        outbound: Sequence[Record] = (),
        index: Sequence[Record] = (),
    ) -> None:
        """
        Validate and atomically commit a state transition.

        Args:
            state: New state record
            previous_seq: Sequence the caller read before computing ``state``
            inbound: New inbound records
            outbound: New outbound records
            index: Secondary index projections of ``state``

        Raises:
            ValidationError: Records malformed or from another facet (no I/O)
            TransactionTooLarge: More than MAX_TRANSACTION_ITEMS records (no I/O)
            OptimisticConcurrencyConflict: A write condition failed; nothing written
            BackendUnavailable: Transport or backend failure
        """
        self.validate(state, inbound, outbound, index)
        self._commit(state, previous_seq, list(inbound), list(outbound), list(index))
        logger.debug(
            "Committed state",
            extra={
                "group_id": state.id,
                "seq": state.seq,
                "previous_seq": previous_seq,
                "inbound": len(inbound),
                "outbound": len(outbound),
                "index": len(index),
            },
        )

    def validate(
        self,
        state: Record,
        inbound: Sequence[Record],
        outbound: Sequence[Record],
        index: Sequence[Record],
    ) -> None:
        """Check record shapes, facets and transaction size before any I/O."""
        if not is_state_record(state):
            raise ValidationError("put_state: invalid state record")
        if state.facet != self.facet:
            raise ValidationError(
                f'put_state: state record has mismatched facet. '
                f'Expected: "{self.facet}", got: "{state.facet}"'
            )
        if any(not is_inbound_record(r) for r in inbound):
            raise ValidationError("put_state: invalid inbound record")
        if any(r.facet != self.facet for r in inbound):
            raise ValidationError("put_state: invalid facet for inbound record")
        if any(not is_outbound_record(r) for r in outbound):
            raise ValidationError("put_state: invalid outbound record")
        if any(r.facet != self.facet for r in outbound):
            raise ValidationError("put_state: invalid facet for outbound record")

        count = 1 + len(inbound) + len(outbound) + len(index)
        if count > MAX_TRANSACTION_ITEMS:
            raise TransactionTooLarge(count, MAX_TRANSACTION_ITEMS)

        # A transaction may touch each key once.
        seen = set()
        for r in [state, *inbound, *outbound, *index]:
            key = (r.id, r.rng)
            if key in seen:
                raise ValidationError(f"put_state: duplicate record key {r.id} {r.rng}")
            seen.add(key)

    def group_id(self, id: str) -> str:
        return facet_id(self.facet, id)

    def index_group_id(self, index_name: str, id: str) -> str:
        return secondary_index_id(self.facet, index_name, id)

    @abstractmethod
    def get_state(self, id: str) -> Optional[Record]:
        """
        Strongly consistent read of a group's state record.

        Returns:
            The state record, or None if the group has never been written
        """
        ...

    @abstractmethod
    def _commit(
        self,
        state: Record,
        previous_seq: int,
        inbound: List[Record],
        outbound: List[Record],
        index: List[Record],
    ) -> None:
        """Write validated records in one atomic, conditional transaction."""
        ...

    @abstractmethod
    def _query(self, group_id: str, range_prefix: Optional[str] = None) -> List[Record]:
        """Strongly consistent query of one partition, optionally by _rng prefix."""
        ...

    def query_records(self, id: str) -> List[Record]:
        """All records (state, inbound, outbound) of a group, in backend order."""
        return self._query(self.group_id(id))

    def query_records_by_secondary_index(self, index_name: str, id: str) -> List[Record]:
        """All records stored under a secondary index group."""
        return self._query(self.index_group_id(index_name, id))

    def query_records_by_range_prefix(self, prefix: str, id: str) -> List[Record]:
        """Records of a group whose _rng starts with ``prefix``."""
        return self._query(self.group_id(id), prefix)

    def query_records_by_secondary_index_and_range_prefix(
        self, prefix: str, index_name: str, id: str
    ) -> List[Record]:
        """Records of a secondary index group whose _rng starts with ``prefix``."""
        return self._query(self.index_group_id(index_name, id), prefix)
