from __future__ import annotations

from collections import Counter, OrderedDict
from typing import Dict, List

from utp_gateway.core.errors import SettlementNotFoundError
from utp_gateway.models.settlement import SettlementRecord

"""In-memory settlement records, bounded with FIFO eviction.

Records are mutated in place by the dispatcher after insertion; the store
only tracks identity and insertion order. No locking: a single logical
writer per record is assumed.
"""

DEFAULT_STORE_LIMIT = 10000


class SettlementStore:
    def __init__(self, limit: int = DEFAULT_STORE_LIMIT):
        if limit <= 0:
            raise ValueError("store limit must be positive")
        self._limit = limit
        self._records: "OrderedDict[str, SettlementRecord]" = OrderedDict()

    @property
    def limit(self) -> int:
        return self._limit

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, settlement_id: object) -> bool:
        return settlement_id in self._records

    def add(self, record: SettlementRecord) -> None:
        self._records[record.settlement_id] = record
        while len(self._records) > self._limit:
            self._records.popitem(last=False)

    def get(self, settlement_id: str) -> SettlementRecord:
        try:
            return self._records[settlement_id]
        except KeyError:
            raise SettlementNotFoundError(
                f"Settlement {settlement_id} not found"
            ) from None

    def for_merchant(self, merchant_id: str, limit: int = 50) -> List[SettlementRecord]:
        """Newest insertion first."""
        out: List[SettlementRecord] = []
        if limit <= 0:
            return out
        for record in reversed(self._records.values()):
            if record.merchant_id == merchant_id:
                out.append(record)
                if len(out) >= limit:
                    break
        return out

    def count_by_status(self) -> Dict[str, int]:
        return dict(Counter(r.status for r in self._records.values()))
