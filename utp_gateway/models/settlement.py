from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from utp_gateway.core.errors import InvalidTransitionError
from .constants import TERMINAL_STATUSES

SettlementStatus = Literal["pending", "processing", "completed", "failed"]

_ALLOWED_TRANSITIONS: Dict[str, set] = {
    "pending": {"processing", "completed", "failed"},
    "processing": {"completed", "failed"},
    "completed": set(),
    "failed": set(),
}


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SettlementMethodConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    code: str
    display_name: str
    kind: Literal["fiat", "digital", "asset", "hybrid"]
    currency: str
    fee_rate: float = Field(..., ge=0, lt=1)
    min_amount: float = Field(..., gt=0)
    max_amount: float = Field(..., gt=0)
    typical_latency: str

    def accepts(self, amount: float) -> bool:
        return self.min_amount <= amount <= self.max_amount


class SettlementFees(BaseModel):
    settlement_fee: float
    tax: float
    total_fee: float
    fee_rate: float


class FeeQuote(SettlementFees):
    amount: float
    settlement_method: str
    net_amount: float


class SettlementRequest(BaseModel):
    payment_id: str = Field(..., min_length=1)
    merchant_id: str = Field(..., min_length=1)
    amount: float = Field(..., gt=0)
    currency: str
    settlement_method: str
    merchant_account_details: Dict[str, Any] = Field(default_factory=dict)
    metadata: Dict[str, Any] = Field(default_factory=dict)


class FeeCalculationRequest(BaseModel):
    amount: float = Field(..., gt=0)
    settlement_method: str


class SettlementRecord(BaseModel):
    """Mutable settlement state; only `transition` changes the status."""

    settlement_id: str
    payment_id: str
    merchant_id: str
    amount: float
    currency: str
    settlement_method: str
    status: SettlementStatus = "pending"
    fees: SettlementFees
    net_amount: float
    merchant_account: Dict[str, Any] = Field(default_factory=dict)
    metadata: Dict[str, Any] = Field(default_factory=dict)
    transaction_details: Optional[Dict[str, Any]] = None
    estimated_completion: Optional[datetime] = None
    error_message: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def transition(self, new_status: str, *, error_message: Optional[str] = None) -> None:
        if new_status not in _ALLOWED_TRANSITIONS[self.status]:
            raise InvalidTransitionError(
                f"Settlement {self.settlement_id} cannot move from {self.status} to {new_status}"
            )
        self.status = new_status  # type: ignore[assignment]
        if error_message is not None:
            self.error_message = error_message
        self.updated_at = utcnow()


class SettlementReceipt(BaseModel):
    settlement_id: str
    status: SettlementStatus
    estimated_completion: Optional[datetime]
    fees: SettlementFees
    net_amount: float
    settlement_method: str
    transaction_details: Optional[Dict[str, Any]] = None
    timestamp: datetime = Field(default_factory=utcnow)


class MethodBreakdown(BaseModel):
    count: int = 0
    volume: float = 0.0


class MerchantStats(BaseModel):
    merchant_id: str
    total_settlements: int
    total_volume: float
    total_fees: float
    average_amount: float
    settlement_methods: Dict[str, MethodBreakdown]
    status_breakdown: Dict[str, int]
    period: str = "all_time"
