from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List

from utp_gateway.core.errors import UnsupportedCurrencyError
from utp_gateway.models.constants import SETTLEMENT_CURRENCIES
from utp_gateway.models.settlement import (
    FeeQuote,
    MerchantStats,
    MethodBreakdown,
    SettlementFees,
    SettlementMethodConfig,
    SettlementReceipt,
    SettlementRecord,
    SettlementRequest,
)
from .dispatcher import SettlementDispatcher
from .fees import calculate_fees, get_method, list_methods, validate_amount
from .store import SettlementStore

"""Settlement orchestration.

Validation (method, amount limits, currency) happens before anything is
stored, so rejected requests leave no record behind. A request that passes
validation is stored as pending and handed to the dispatcher; if dispatch
fails the record stays in the store as failed and the error propagates.
"""

logger = logging.getLogger("utp_gateway.settlement")


class SettlementService:
    def __init__(self, store: SettlementStore, dispatcher: SettlementDispatcher):
        self._store = store
        self._dispatcher = dispatcher

    @property
    def store(self) -> SettlementStore:
        return self._store

    def validate_target(self, settlement_method: str, currency: str) -> SettlementMethodConfig:
        """Method and currency checks; usable before the amount is known."""
        method = get_method(settlement_method)
        if currency.upper() not in SETTLEMENT_CURRENCIES:
            raise UnsupportedCurrencyError(
                f"Unsupported currency: {currency}", field="currency"
            )
        return method

    def validate(self, request: SettlementRequest) -> SettlementMethodConfig:
        method = self.validate_target(request.settlement_method, request.currency)
        validate_amount(request.amount, method)
        return method

    def create_record(self, request: SettlementRequest) -> SettlementRecord:
        method = self.validate(request)
        fees = calculate_fees(request.amount, method.code)
        record = SettlementRecord(
            settlement_id=str(uuid.uuid4()),
            payment_id=request.payment_id,
            merchant_id=request.merchant_id,
            amount=request.amount,
            currency=request.currency.upper(),
            settlement_method=method.code,
            fees=SettlementFees(
                settlement_fee=fees.settlement_fee,
                tax=fees.tax,
                total_fee=fees.total_fee,
                fee_rate=fees.fee_rate,
            ),
            net_amount=fees.net_amount,
            merchant_account=dict(request.merchant_account_details),
            metadata=dict(request.metadata),
        )
        self._store.add(record)
        return record

    async def execute_settlement(self, request: SettlementRequest) -> SettlementReceipt:
        record = self.create_record(request)
        logger.info(
            "settlement %s created for merchant %s via %s",
            record.settlement_id,
            record.merchant_id,
            record.settlement_method,
            extra={"amount": record.amount, "net_amount": record.net_amount},
        )
        result = await self._dispatcher.execute(record)
        return SettlementReceipt(
            settlement_id=record.settlement_id,
            status=record.status,
            estimated_completion=result.estimated_completion,
            fees=record.fees,
            net_amount=record.net_amount,
            settlement_method=record.settlement_method,
            transaction_details=record.transaction_details,
        )

    def get_settlement(self, settlement_id: str) -> SettlementRecord:
        return self._store.get(settlement_id)

    def merchant_history(self, merchant_id: str, limit: int = 50) -> List[SettlementRecord]:
        return self._store.for_merchant(merchant_id, limit)

    def merchant_stats(self, merchant_id: str, limit: int = 1000) -> MerchantStats:
        history = self._store.for_merchant(merchant_id, limit)
        methods: Dict[str, MethodBreakdown] = {}
        statuses: Dict[str, int] = {}
        total_volume = 0.0
        total_fees = 0.0
        for record in history:
            total_volume += record.amount
            total_fees += record.fees.total_fee
            bucket = methods.setdefault(record.settlement_method, MethodBreakdown())
            bucket.count += 1
            bucket.volume += record.amount
            statuses[record.status] = statuses.get(record.status, 0) + 1
        count = len(history)
        return MerchantStats(
            merchant_id=merchant_id,
            total_settlements=count,
            total_volume=total_volume,
            total_fees=total_fees,
            average_amount=total_volume / count if count else 0.0,
            settlement_methods=methods,
            status_breakdown=statuses,
        )

    def calculate_fees(self, amount: float, settlement_method: str) -> FeeQuote:
        return calculate_fees(amount, settlement_method)

    def methods(self) -> List[SettlementMethodConfig]:
        return list_methods()

    def status(self) -> Dict[str, Any]:
        by_status = self._store.count_by_status()
        return {
            "service": "settlement_engine",
            "status": "active",
            "settlement_methods": len(list_methods()),
            "stored_settlements": len(self._store),
            "pending_settlements": by_status.get("pending", 0),
            "processing_settlements": by_status.get("processing", 0),
            "completed_settlements": by_status.get("completed", 0),
            "failed_settlements": by_status.get("failed", 0),
            "last_updated": datetime.now(timezone.utc),
        }
