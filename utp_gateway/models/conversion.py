from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

ImpactLevel = Literal["minimal", "low", "medium", "high"]


class ConversionOptions(BaseModel):
    fee_rate: Optional[float] = Field(
        None, ge=0, lt=1, description="Override conversion fee rate (fraction)"
    )
    slippage_protection: bool = Field(
        True, description="Apply the volatility-scaled slippage buffer"
    )


class ConversionRequest(BaseModel):
    from_asset: str
    to_asset: str
    amount: float = Field(..., gt=0)
    options: Optional[ConversionOptions] = None


class FeeBreakdown(BaseModel):
    model_config = ConfigDict(frozen=True)

    conversion_fee: float
    slippage: float
    total_fee: float
    fee_rate: float


class MarketImpact(BaseModel):
    model_config = ConfigDict(frozen=True)

    percentage: float
    absolute: float
    level: ImpactLevel


class PriceData(BaseModel):
    model_config = ConfigDict(frozen=True)

    from_price: float
    to_price: float
    from_source: str
    to_source: str
    confidence: float


class ConversionResult(BaseModel):
    """Outcome of a single conversion; immutable once computed."""

    model_config = ConfigDict(frozen=True)

    conversion_id: str
    from_asset: str
    to_asset: str
    from_amount: float
    to_amount: float
    conversion_rate: float
    original_rate: float
    fee_breakdown: FeeBreakdown
    market_impact: MarketImpact
    price_data: PriceData
    computed_at: datetime
    valid_until: datetime

    def is_valid(self, at: datetime) -> bool:
        """Whether the quoted rate may still be honoured at `at`."""
        return at <= self.valid_until


class ConversionRate(BaseModel):
    from_asset: str
    to_asset: str
    rate: float
    from_price: float
    to_price: float
    timestamp: datetime


class SupportedPair(BaseModel):
    from_asset: str = Field(..., alias="from")
    to_asset: str = Field(..., alias="to")
    description: str

    model_config = ConfigDict(populate_by_name=True)
