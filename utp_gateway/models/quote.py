from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .constants import ASSET_CODES

QuoteSource = Literal["live", "cache", "fallback"]
Volatility = Literal["minimal", "low", "medium", "high", "unknown"]


class AssetQuote(BaseModel):
    """INR price for one unit of an asset at a point in time.

    Quotes are never mutated; a fresher lookup supersedes the old quote and a
    cache hit hands back a re-tagged copy.
    """

    model_config = ConfigDict(frozen=True)

    asset_type: str
    price: float = Field(..., gt=0)
    currency: str = "INR"
    source: QuoteSource
    observed_at: datetime
    volatility: Volatility
    confidence: float = Field(..., ge=0.0, le=1.0)
    provider: str

    @field_validator("asset_type")
    @classmethod
    def valid_asset(cls, v: str) -> str:
        if v not in ASSET_CODES:
            raise ValueError("unsupported asset")
        return v

    def age_seconds(self, now: datetime) -> float:
        return (now - self.observed_at).total_seconds()
