"""
Tests for the record model and key scheme.

The key scheme is shared with the change relay, so these tests pin the
exact strings.
"""

from datetime import datetime, timedelta, timezone

import pytest

from facetstore.core.errors import ValidationError
from facetstore.core.records import (
    Record,
    facet_id,
    is_inbound_record,
    is_outbound_record,
    is_state_record,
    iso_date,
    new_inbound_record,
    new_index_record,
    new_outbound_record,
    new_state_record,
    secondary_index_id,
    timestamp_ms,
)

T0 = datetime(2023, 5, 17, 12, 30, 45, 123000, tzinfo=timezone.utc)


def test_group_ids():
    assert facet_id("ACCOUNT", "abc") == "ACCOUNT/abc"
    assert secondary_index_id("ACCOUNT", "byEmail", "a@b.c") == "ACCOUNT/byEmail/a@b.c"


def test_state_record_envelope():
    r = new_state_record("ACCOUNT", "abc", 3, {"balance": 10}, T0)

    assert r.to_item() == {
        "_id": "ACCOUNT/abc",
        "_rng": "STATE",
        "_facet": "ACCOUNT",
        "_typ": "ACCOUNT",
        "_ts": 1684326645123,
        "_date": "2023-05-17T12:30:45.123Z",
        "_seq": 3,
        "balance": 10,
    }


def test_inbound_and_outbound_keys():
    i = new_inbound_record("ACCOUNT", "abc", 7, "TRANSACTION", {"amount": 5}, T0)
    o = new_outbound_record("ACCOUNT", "abc", 7, 2, "overdrawn", {"accountId": "abc"}, T0)

    assert i.rng == "INBOUND/TRANSACTION/7"
    assert i.typ == "TRANSACTION"
    assert o.rng == "OUTBOUND/overdrawn/7/2"
    assert o.typ == "overdrawn"
    assert o.seq == 7


def test_classification_by_key_prefix():
    s = new_state_record("F", "1", 0, {}, T0)
    i = new_inbound_record("F", "1", 1, "X", {}, T0)
    o = new_outbound_record("F", "1", 1, 0, "Y", {}, T0)

    assert (is_state_record(s), is_inbound_record(s), is_outbound_record(s)) == (True, False, False)
    assert (is_state_record(i), is_inbound_record(i), is_outbound_record(i)) == (False, True, False)
    assert (is_state_record(o), is_inbound_record(o), is_outbound_record(o)) == (False, False, True)

    # Raw stored maps classify the same way
    assert is_outbound_record({"_rng": "OUTBOUND/Y/1/0"})
    assert not is_state_record({})


def test_from_item_splits_envelope_and_item():
    r = new_outbound_record("F", "1", 4, 0, "Y", {"a": 1, "b": [1, 2]}, T0)

    back = Record.from_item(r.to_item())

    assert back == r
    assert back.envelope().item == {}


def test_from_item_requires_envelope():
    with pytest.raises(ValidationError, match="_seq"):
        Record.from_item({"_id": "F/1", "_rng": "STATE", "_facet": "F", "_typ": "F", "_ts": 0, "_date": ""})


def test_item_cannot_overwrite_envelope():
    with pytest.raises(ValidationError, match="_seq"):
        new_state_record("F", "1", 0, {"_seq": 99}, T0)


def test_index_record_copies_state_under_index_group():
    s = new_state_record("ACCOUNT", "abc", 2, {"email": "a@b.c"}, T0)

    idx = new_index_record(s, "byEmail", "a@b.c")

    assert idx.id == "ACCOUNT/byEmail/a@b.c"
    assert idx.rng == "STATE"
    assert idx.seq == 2
    assert idx.item == s.item
    assert idx.item is not s.item


def test_time_encoding():
    naive = datetime(1970, 1, 1, 0, 0, 1)
    offset = datetime(2023, 5, 17, 14, 30, 45, 123000, tzinfo=timezone(timedelta(hours=2)))

    assert timestamp_ms(naive) == 1000
    assert iso_date(naive) == "1970-01-01T00:00:01.000Z"
    assert timestamp_ms(offset) == timestamp_ms(T0)
    assert iso_date(offset) == "2023-05-17T12:30:45.123Z"
