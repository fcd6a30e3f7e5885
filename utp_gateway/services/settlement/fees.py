"""Settlement method catalogue and fee arithmetic.

`calculate_fees` is pure: no I/O, no randomness, no rounding. Display
rounding happens at the edges so `total_fee == settlement_fee + tax` holds
exactly.
"""

from __future__ import annotations

import math
from typing import Dict, List

from utp_gateway.core.errors import (
    AmountOutOfRangeError,
    InvalidAmountError,
    UnknownMethodError,
)
from utp_gateway.models.constants import GST_RATE
from utp_gateway.models.settlement import FeeQuote, SettlementMethodConfig

SETTLEMENT_METHODS: Dict[str, SettlementMethodConfig] = {
    cfg.code: cfg
    for cfg in (
        SettlementMethodConfig(
            code="inr_upi",
            display_name="UPI Transfer",
            kind="fiat",
            currency="INR",
            fee_rate=0.001,
            min_amount=10,
            max_amount=100000,
            typical_latency="< 2 seconds",
        ),
        SettlementMethodConfig(
            code="inr_neft",
            display_name="NEFT Transfer",
            kind="fiat",
            currency="INR",
            fee_rate=0.002,
            min_amount=1,
            max_amount=10000000,
            typical_latency="< 24 hours",
        ),
        SettlementMethodConfig(
            code="binr_transfer",
            display_name="BINR Token Transfer",
            kind="digital",
            currency="BINR",
            fee_rate=0.001,
            min_amount=1,
            max_amount=1000000,
            typical_latency="< 5 seconds",
        ),
        SettlementMethodConfig(
            code="bgt_transfer",
            display_name="Gold Token Transfer",
            kind="asset",
            currency="BGT",
            fee_rate=0.0015,
            min_amount=0.1,
            max_amount=1000,
            typical_latency="< 10 seconds",
        ),
        SettlementMethodConfig(
            code="mixed_settlement",
            display_name="Mixed Settlement",
            kind="hybrid",
            currency="MIXED",
            fee_rate=0.002,
            min_amount=50,
            max_amount=500000,
            typical_latency="< 15 seconds",
        ),
    )
}


def get_method(code: str) -> SettlementMethodConfig:
    try:
        return SETTLEMENT_METHODS[code]
    except (KeyError, TypeError):
        raise UnknownMethodError(
            f"Invalid settlement method: {code}", field="settlement_method"
        ) from None


def list_methods() -> List[SettlementMethodConfig]:
    return list(SETTLEMENT_METHODS.values())


def validate_amount(amount: float, method: SettlementMethodConfig) -> None:
    """Inclusive bounds check against the method's limits."""
    if amount is None or not math.isfinite(amount) or amount <= 0:
        raise InvalidAmountError("Amount must be a positive number", field="amount")
    if amount < method.min_amount:
        raise AmountOutOfRangeError(
            f"Amount below minimum for {method.code}: {method.min_amount}",
            field="amount",
        )
    if amount > method.max_amount:
        raise AmountOutOfRangeError(
            f"Amount above maximum for {method.code}: {method.max_amount}",
            field="amount",
        )


def calculate_fees(amount: float, method: str) -> FeeQuote:
    config = get_method(method)
    settlement_fee = amount * config.fee_rate
    tax = settlement_fee * GST_RATE
    total_fee = settlement_fee + tax
    return FeeQuote(
        amount=amount,
        settlement_method=config.code,
        settlement_fee=settlement_fee,
        tax=tax,
        total_fee=total_fee,
        net_amount=amount - total_fee,
        fee_rate=config.fee_rate,
    )


__all__ = [
    "SETTLEMENT_METHODS",
    "get_method",
    "list_methods",
    "validate_amount",
    "calculate_fees",
]
