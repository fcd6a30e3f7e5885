"""Money / rounding helpers.

Centralized so conversion, settlement, and the HTTP layer use identical
rounding semantics: 2 dp for money, 5 dp for rates.
"""

from __future__ import annotations
from decimal import Decimal, ROUND_HALF_UP


def _quantize(value: float, exp: str) -> float:
    return float(Decimal(str(value)).quantize(Decimal(exp), rounding=ROUND_HALF_UP))


def round2(value: float) -> float:
    return _quantize(value, "0.01")


def round5(value: float) -> float:
    return _quantize(value, "0.00001")
