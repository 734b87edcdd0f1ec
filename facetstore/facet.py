"""
Facet: the aggregate facade.

A facet is one kind of entity stored in the table. Each instance is a group
of records:
- a STATE record holding the up-to-date item
- one INBOUND record per accepted event
- OUTBOUND records for the notifications state transitions emitted
- optional secondary index projections of the state

Outbound records are written in the same transaction as the state, so a
notification can never be lost or sent for a change that did not commit.
A change relay tails the table and publishes them.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional, Sequence

from .core.clock import SystemClock
from .core.errors import ValidationError
from .core.events import Event, payload_to_dict
from .core.processor import Processor
from .core.records import (
    Record,
    is_inbound_record,
    is_outbound_record,
    is_state_record,
    new_inbound_record,
    new_outbound_record,
    new_state_record,
)
from .logging_config import get_logger
from .store.gateway import Gateway

# Builds a secondary index projection of a new state record, or None to skip.
IndexFunc = Callable[[Record], Optional[Record]]


@dataclass(frozen=True)
class GetOutput:
    """
    A stored record split into envelope and item.

    Fields:
        record: Envelope only (item is empty)
        item: State value or event payload
    """
    record: Record
    item: Any


@dataclass(frozen=True)
class ChangeOutput:
    """
    Result of a committed change.

    Fields:
        seq: Sequence of the new state record; pass it to append_to()
        item: New state
        past_outbound_events: Emissions recomputed from history (recalculate only)
        new_outbound_events: Emissions written by this change
    """
    seq: int
    item: Any
    past_outbound_events: List[Event] = field(default_factory=list)
    new_outbound_events: List[Event] = field(default_factory=list)


@dataclass
class _Records:
    state: Optional[Record]
    inbound: List[Record]
    outbound: List[Record]


class Facet:
    """
    Read, compute and commit for one facet.

    No method retries. On OptimisticConcurrencyConflict the caller re-reads
    and decides whether the change still makes sense.
    """

    def __init__(
        self,
        name: str,
        gateway: Gateway,
        processor: Processor,
        index_funcs: Sequence[IndexFunc] = (),
        clock: Any = None,
        state_type: Optional[type] = None,
    ) -> None:
        """
        Args:
            name: Facet name; prefix of every _id and stored in _facet
            gateway: Storage gateway bound to the same facet
            processor: Update rules for the facet's events
            index_funcs: Secondary index projections written with each state
            clock: Object with now() -> datetime (default: SystemClock)
            state_type: Optional state class with to_dict() and from_dict()
        """
        if gateway.facet != name:
            raise ValidationError(
                f'gateway is bound to facet "{gateway.facet}", expected "{name}"'
            )
        self.name = name
        self.gateway = gateway
        self.processor = processor
        self.index_funcs = list(index_funcs)
        self.clock = clock or SystemClock()
        self.state_type = state_type

    def get(self, id: str) -> Optional[GetOutput]:
        """Current state of an item, or None if it has never been written."""
        record = self.gateway.get_state(id)
        if record is None:
            return None
        return GetOutput(record=record.envelope(), item=self._decode_state(record.item))

    def query(self, index_name: str, id: str) -> List[GetOutput]:
        """Records stored under a secondary index. Items are returned as stored."""
        records = self.gateway.query_records_by_secondary_index(index_name, id)
        return [_to_output(r) for r in records]

    def query_by_range(self, prefix: str, id: str) -> List[GetOutput]:
        """Records of an item whose ordering key starts with ``prefix``."""
        records = self.gateway.query_records_by_range_prefix(prefix, id)
        return [_to_output(r) for r in records]

    def append(self, id: str, *events: Event) -> ChangeOutput:
        """
        Append events to an item.

        Two round trips: one to read the state, one to commit. Rules only
        see the state record; use recalculate() to replay history.
        """
        current = self.get(id)
        state = current.item if current else None
        seq = current.record.seq if current else 0
        return self.append_to(id, state, seq, *events)

    def append_to(self, id: str, state: Any, seq: int, *events: Event) -> ChangeOutput:
        """
        Append events to an item the caller has already read.

        One round trip. Commits only if the stored sequence is still ``seq``.

        Args:
            id: Item id
            state: State as last read (None for a new item)
            seq: Sequence of that state (0 for a new item)
            *events: New inbound events
        """
        return self._calculate(id, state, seq, [], list(events))

    def recalculate(self, id: str, *events: Event) -> ChangeOutput:
        """
        Rebuild the state from every inbound record, then apply ``events``.

        Reads the whole group. The stored state is ignored; only its
        sequence is used for the concurrency check.
        """
        records = self._records(id)
        seq = records.state.seq if records.state else 0
        past = [Event(type=r.typ, payload=dict(r.item)) for r in records.inbound]
        logger = get_logger(__name__, group_id=self.gateway.group_id(id))
        logger.debug("Recalculating", extra={"past_events": len(past)})
        return self._calculate(id, None, seq, past, list(events))

    def _records(self, id: str) -> _Records:
        result = _Records(state=None, inbound=[], outbound=[])
        for r in self.gateway.query_records(id):
            if is_inbound_record(r):
                result.inbound.append(r)
            elif is_outbound_record(r):
                result.outbound.append(r)
            elif is_state_record(r):
                result.state = r
        # Stable sort: equal sequences keep backend order.
        result.inbound.sort(key=lambda r: r.seq)
        return result

    def _calculate(
        self,
        id: str,
        state: Any,
        seq: int,
        past_events: List[Event],
        new_events: List[Event],
    ) -> ChangeOutput:
        result = self.processor.process(state, past_events, new_events)

        # One instant for every record of the commit.
        now = self.clock.now()
        new_seq = seq + len(new_events)
        state_record = new_state_record(
            self.name, id, new_seq, self._encode_state(result.state), now
        )
        inbound = [
            new_inbound_record(self.name, id, seq + 1 + i, e.type, e.payload_dict(), now)
            for i, e in enumerate(new_events)
        ]
        outbound = [
            new_outbound_record(self.name, id, new_seq, i, e.type, e.payload_dict(), now)
            for i, e in enumerate(result.new_outbound_events)
        ]
        index = [r for r in (f(state_record) for f in self.index_funcs) if r is not None]

        self.gateway.put_state(state_record, seq, inbound, outbound, index)
        logger = get_logger(__name__, group_id=state_record.id)
        logger.debug(
            "Appended events",
            extra={
                "seq": new_seq,
                "events": len(new_events),
                "outbound_events": len(outbound),
            },
        )
        return ChangeOutput(
            seq=new_seq,
            item=result.state,
            past_outbound_events=result.past_outbound_events,
            new_outbound_events=result.new_outbound_events,
        )

    def _encode_state(self, state: Any) -> dict:
        if self.state_type is not None and isinstance(state, self.state_type):
            return dict(state.to_dict())
        try:
            return payload_to_dict(state)
        except TypeError as e:
            raise ValidationError(f"{self.name}: cannot store state: {e}") from e

    def _decode_state(self, item: dict) -> Any:
        if self.state_type is None:
            return item
        return self.state_type.from_dict(item)


def _to_output(record: Record) -> GetOutput:
    return GetOutput(record=record.envelope(), item=record.item)
