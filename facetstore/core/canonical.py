"""
Canonical serialization.

Deterministic JSON for anything that leaves the process as text (relay
event bodies, CLI output) and for comparing states in tests.
"""

import json
from decimal import Decimal
from typing import Any


def canonicalize(obj: Any) -> Any:
    """
    Convert arbitrary nested dict/list to canonical form.

    Rules:
    - dict keys sorted alphabetically
    - tuples and sets converted to lists (sets sorted)
    - Decimal converted to int when integral, else float

    DynamoDB hands numbers back as Decimal; canonical form hides that.
    """
    if isinstance(obj, dict):
        return {k: canonicalize(obj[k]) for k in sorted(obj.keys())}
    if isinstance(obj, (list, tuple)):
        return [canonicalize(x) for x in obj]
    if isinstance(obj, (set, frozenset)):
        return [canonicalize(x) for x in sorted(obj)]
    if isinstance(obj, Decimal):
        return int(obj) if obj == obj.to_integral_value() else float(obj)
    return obj


def canonical_json_str(obj: Any) -> str:
    """
    Deterministic JSON string.

    Guarantees:
    - sort_keys=True
    - separators remove whitespace
    - ensure_ascii=False keeps UTF-8 stable
    """
    canon = canonicalize(obj)
    return json.dumps(canon, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def canonical_json_bytes(obj: Any) -> bytes:
    """UTF-8 encoded canonical_json_str."""
    return canonical_json_str(obj).encode("utf-8")
