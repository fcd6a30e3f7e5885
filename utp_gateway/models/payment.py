from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from .conversion import ConversionOptions, ConversionResult
from .settlement import SettlementReceipt


class PaymentRequest(BaseModel):
    payment_id: Optional[str] = Field(
        None, description="Caller reference; generated when omitted"
    )
    merchant_id: str = Field(..., min_length=1)
    from_asset: str
    to_asset: str
    amount: float = Field(..., gt=0, description="Amount in units of from_asset")
    settlement_method: str
    merchant_account_details: Dict[str, Any] = Field(default_factory=dict)
    conversion_options: Optional[ConversionOptions] = None


class PaymentOutcome(BaseModel):
    payment_id: str
    conversion: Optional[ConversionResult]
    settlement: SettlementReceipt
