"""Pydantic domain models for the UTP Gateway pricing & settlement core."""

from .constants import (
    ASSET_CODES,
    SETTLEMENT_METHOD_CODES,
    SETTLEMENT_CURRENCIES,
    GST_RATE,
)  # re-export
from .quote import AssetQuote
from .conversion import (
    ConversionOptions,
    ConversionRequest,
    ConversionResult,
    ConversionRate,
    FeeBreakdown,
    MarketImpact,
)
from .settlement import (
    SettlementMethodConfig,
    SettlementFees,
    SettlementRecord,
    SettlementReceipt,
    SettlementRequest,
)
from .payment import PaymentRequest, PaymentOutcome

__all__ = [
    "ASSET_CODES",
    "SETTLEMENT_METHOD_CODES",
    "SETTLEMENT_CURRENCIES",
    "GST_RATE",
    "AssetQuote",
    "ConversionOptions",
    "ConversionRequest",
    "ConversionResult",
    "ConversionRate",
    "FeeBreakdown",
    "MarketImpact",
    "SettlementMethodConfig",
    "SettlementFees",
    "SettlementRecord",
    "SettlementReceipt",
    "SettlementRequest",
    "PaymentRequest",
    "PaymentOutcome",
]
