"""
Record model and key scheme.

Every record in a facet table shares one envelope:

    _id     group id (partition key): "{facet}/{id}" or "{facet}/{index}/{value}"
    _rng    ordering key (sort key): "STATE" | "INBOUND/{type}/{seq}"
            | "OUTBOUND/{type}/{seq}/{index}"
    _facet  facet name
    _typ    record type name
    _ts     millisecond timestamp
    _date   ISO-8601 date
    _seq    sequence number

The record's item (state value or event payload) is stored flattened next
to the envelope. The key scheme is shared with the change relay and must
not change.
"""

import dataclasses
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Mapping, Union

from .errors import ValidationError

STATE_KEY = "STATE"
INBOUND_PREFIX = "INBOUND"
OUTBOUND_PREFIX = "OUTBOUND"

ENVELOPE_FIELDS = ("_id", "_rng", "_facet", "_typ", "_ts", "_date", "_seq")

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


@dataclass(frozen=True)
class Record:
    """
    One stored item: envelope plus item.

    Fields:
        id: Group id (_id)
        rng: Ordering key (_rng)
        facet: Facet name (_facet)
        typ: Record type name (_typ)
        ts: Millisecond timestamp (_ts)
        date: ISO-8601 date string (_date)
        seq: Sequence number (_seq)
        item: State value or event payload
    """
    id: str
    rng: str
    facet: str
    typ: str
    ts: int
    date: str
    seq: int
    item: Dict[str, Any] = field(default_factory=dict)

    def to_item(self) -> Dict[str, Any]:
        """Flatten to the stored attribute map."""
        out: Dict[str, Any] = dict(self.item)
        out.update(
            {
                "_id": self.id,
                "_rng": self.rng,
                "_facet": self.facet,
                "_typ": self.typ,
                "_ts": self.ts,
                "_date": self.date,
                "_seq": self.seq,
            }
        )
        return out

    @staticmethod
    def from_item(data: Mapping[str, Any]) -> "Record":
        """Split a stored attribute map into envelope and item."""
        try:
            return Record(
                id=data["_id"],
                rng=data["_rng"],
                facet=data["_facet"],
                typ=data["_typ"],
                ts=int(data["_ts"]),
                date=data["_date"],
                seq=int(data["_seq"]),
                item={k: v for k, v in data.items() if k not in ENVELOPE_FIELDS},
            )
        except KeyError as e:
            raise ValidationError(f"record is missing envelope field {e.args[0]}") from e

    def envelope(self) -> "Record":
        """Copy of this record without its item."""
        return dataclasses.replace(self, item={})


RecordLike = Union[Record, Mapping[str, Any]]


def facet_id(facet: str, id: str) -> str:
    return f"{facet}/{id}"


def secondary_index_id(facet: str, index_name: str, index_value: str) -> str:
    return f"{facet}/{index_name}/{index_value}"


def inbound_range_key(type: str, seq: int) -> str:
    return f"{INBOUND_PREFIX}/{type}/{seq}"


def outbound_range_key(type: str, seq: int, index: int) -> str:
    return f"{OUTBOUND_PREFIX}/{type}/{seq}/{index}"


def timestamp_ms(time: datetime) -> int:
    """Milliseconds since the epoch. Naive datetimes are taken as UTC."""
    return (_utc(time) - _EPOCH) // timedelta(milliseconds=1)


def iso_date(time: datetime) -> str:
    """ISO-8601 in UTC with millisecond precision, e.g. 2020-01-01T00:00:00.000Z."""
    return _utc(time).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _utc(time: datetime) -> datetime:
    if time.tzinfo is None:
        return time.replace(tzinfo=timezone.utc)
    return time.astimezone(timezone.utc)


def _new_record(
    facet: str,
    id: str,
    seq: int,
    rng: str,
    type: str,
    item: Mapping[str, Any],
    time: datetime,
) -> Record:
    clash = [k for k in item if k in ENVELOPE_FIELDS]
    if clash:
        raise ValidationError(f"item uses reserved envelope fields: {', '.join(sorted(clash))}")
    return Record(
        id=facet_id(facet, id),
        rng=rng,
        facet=facet,
        typ=type,
        ts=timestamp_ms(time),
        date=iso_date(time),
        seq=seq,
        item=dict(item),
    )


def new_state_record(
    facet: str, id: str, seq: int, item: Mapping[str, Any], time: datetime
) -> Record:
    """Create the state record of a group. Its type name is the facet name."""
    return _new_record(facet, id, seq, STATE_KEY, facet, item, time)


def new_inbound_record(
    facet: str, id: str, seq: int, type: str, item: Mapping[str, Any], time: datetime
) -> Record:
    """Create an inbound record for the event accepted at ``seq``."""
    return _new_record(facet, id, seq, inbound_range_key(type, seq), type, item, time)


def new_outbound_record(
    facet: str,
    id: str,
    seq: int,
    index: int,
    type: str,
    item: Mapping[str, Any],
    time: datetime,
) -> Record:
    """
    Create an outbound record.

    ``seq`` is the sequence of the transition that emitted the event and
    ``index`` keeps several emissions of one transition apart.
    """
    return _new_record(facet, id, seq, outbound_range_key(type, seq, index), type, item, time)


def new_index_record(state: Record, index_name: str, index_value: str) -> Record:
    """Copy a state record into the secondary index group ``{facet}/{index_name}/{index_value}``."""
    return dataclasses.replace(
        state,
        id=secondary_index_id(state.facet, index_name, index_value),
        item=dict(state.item),
    )


def _rng(r: RecordLike) -> str:
    if isinstance(r, Record):
        return r.rng
    return str(r.get("_rng", ""))


def is_state_record(r: RecordLike) -> bool:
    return _rng(r) == STATE_KEY


def is_inbound_record(r: RecordLike) -> bool:
    return _rng(r).startswith(INBOUND_PREFIX)


def is_outbound_record(r: RecordLike) -> bool:
    return _rng(r).startswith(OUTBOUND_PREFIX)
