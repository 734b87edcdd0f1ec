"""
In-memory gateway for tests and local development.

Provides the same commit semantics as DynamoDBGateway:
- all conditions are checked before anything is written
- inbound/outbound keys must not exist
- the state write requires no state, or a matching sequence

All data is lost on process exit.
"""

import copy
import logging
import threading
from typing import Any, Dict, List, Optional, Tuple

from ..core.errors import OptimisticConcurrencyConflict
from ..core.records import STATE_KEY, Record
from .gateway import Gateway

logger = logging.getLogger(__name__)

Key = Tuple[str, str]


class MemoryTable:
    """
    A thread-safe map of (_id, _rng) -> stored item.

    Share one table between several gateways to model several facets, or
    several processes writing the same facet.
    """

    def __init__(self) -> None:
        self._items: Dict[Key, Dict[str, Any]] = {}
        self._lock = threading.Lock()

    def get(self, key: Key) -> Optional[Dict[str, Any]]:
        with self._lock:
            item = self._items.get(key)
            return copy.deepcopy(item) if item is not None else None

    def query(self, group_id: str, range_prefix: Optional[str] = None) -> List[Dict[str, Any]]:
        with self._lock:
            return [
                copy.deepcopy(item)
                for (pk, sk), item in sorted(self._items.items())
                if pk == group_id and (range_prefix is None or sk.startswith(range_prefix))
            ]

    def transact(self, puts: List[Tuple[Dict[str, Any], Optional[int], bool]]) -> bool:
        """
        Apply puts atomically.

        Each put is (item, expected_seq, must_not_exist):
        - must_not_exist: the key must be absent
        - expected_seq: the key must be absent or carry this _seq

        Returns:
            True if every condition held and all items were written,
            False if any condition failed (nothing written)
        """
        with self._lock:
            for item, expected_seq, must_not_exist in puts:
                existing = self._items.get((item["_id"], item["_rng"]))
                if existing is None:
                    continue
                if must_not_exist:
                    return False
                if expected_seq is not None and existing.get("_seq") != expected_seq:
                    return False
            for item, _, _ in puts:
                self._items[(item["_id"], item["_rng"])] = copy.deepcopy(item)
            return True

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)


class MemoryGateway(Gateway):
    """Gateway over a MemoryTable."""

    def __init__(self, facet: str, table: Optional[MemoryTable] = None) -> None:
        super().__init__(facet)
        self.table = table if table is not None else MemoryTable()

    def get_state(self, id: str) -> Optional[Record]:
        item = self.table.get((self.group_id(id), STATE_KEY))
        return Record.from_item(item) if item is not None else None

    def _query(self, group_id: str, range_prefix: Optional[str] = None) -> List[Record]:
        return [Record.from_item(item) for item in self.table.query(group_id, range_prefix)]

    def _commit(
        self,
        state: Record,
        previous_seq: int,
        inbound: List[Record],
        outbound: List[Record],
        index: List[Record],
    ) -> None:
        puts = (
            [(r.to_item(), None, True) for r in inbound]
            + [(r.to_item(), None, True) for r in outbound]
            + [(r.to_item(), None, False) for r in index]
            + [(state.to_item(), previous_seq, False)]
        )
        if not self.table.transact(puts):
            logger.info(
                "Commit rejected by write condition",
                extra={"group_id": state.id, "previous_seq": previous_seq},
            )
            raise OptimisticConcurrencyConflict(state.id, previous_seq)
