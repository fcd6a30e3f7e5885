from __future__ import annotations

from collections import OrderedDict
from typing import List

from utp_gateway.core.errors import ConversionNotFoundError
from utp_gateway.models.conversion import ConversionResult

"""Bounded log of executed conversions.

Insertion-ordered; once `limit` entries are held, each append evicts the
oldest insertion (not the oldest `computed_at`).
"""

DEFAULT_HISTORY_LIMIT = 10000


class ConversionHistoryStore:
    def __init__(self, limit: int = DEFAULT_HISTORY_LIMIT):
        if limit <= 0:
            raise ValueError("history limit must be positive")
        self._limit = limit
        self._entries: "OrderedDict[str, ConversionResult]" = OrderedDict()

    @property
    def limit(self) -> int:
        return self._limit

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, conversion_id: object) -> bool:
        return conversion_id in self._entries

    def append(self, result: ConversionResult) -> None:
        self._entries[result.conversion_id] = result
        while len(self._entries) > self._limit:
            self._entries.popitem(last=False)

    def get(self, conversion_id: str) -> ConversionResult:
        try:
            return self._entries[conversion_id]
        except KeyError:
            raise ConversionNotFoundError(
                f"Conversion {conversion_id} not found"
            ) from None

    def recent(self, limit: int = 100) -> List[ConversionResult]:
        """Newest first."""
        if limit <= 0:
            return []
        out: List[ConversionResult] = []
        for result in reversed(self._entries.values()):
            out.append(result)
            if len(out) >= limit:
                break
        return out
