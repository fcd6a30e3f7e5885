"""Payment pipeline: convert the customer's asset, then settle to the merchant.

The payment amount is denominated in `from_asset`. When `to_asset` differs it
is converted first and the converted amount is what gets settled, in the
currency named by `to_asset`. Method, currency and amount limits are checked
before the conversion is recorded, so a rejected payment leaves no history.
A dispatch failure after that point keeps both the conversion and the
failed settlement.
"""

from __future__ import annotations

import uuid
from typing import Optional

from utp_gateway.core.errors import InvalidAmountError
from utp_gateway.models.conversion import ConversionResult
from utp_gateway.models.payment import PaymentOutcome, PaymentRequest
from utp_gateway.models.settlement import SettlementRequest
from utp_gateway.services.conversion.calculator import ConversionCalculator
from utp_gateway.services.pricing.oracle import validate_asset
from utp_gateway.services.settlement.service import SettlementService


class PaymentFlow:
    def __init__(self, calculator: ConversionCalculator, settlements: SettlementService):
        self._calculator = calculator
        self._settlements = settlements

    async def process(self, request: PaymentRequest) -> PaymentOutcome:
        from_asset = validate_asset(request.from_asset, field="from_asset")
        to_asset = validate_asset(request.to_asset, field="to_asset")
        currency = to_asset.upper()
        # Reject unsettleable targets (e.g. RWA) before pricing anything
        self._settlements.validate_target(request.settlement_method, currency)
        payment_id = request.payment_id or str(uuid.uuid4())

        conversion: Optional[ConversionResult] = None
        settle_amount = request.amount
        if from_asset != to_asset:
            conversion = self._calculator.quote(
                from_asset, to_asset, request.amount, request.conversion_options
            )
            settle_amount = conversion.to_amount
            if settle_amount <= 0:
                raise InvalidAmountError(
                    f"Converted amount {settle_amount} {to_asset} leaves nothing to settle",
                    field="amount",
                )

        settlement_request = SettlementRequest(
            payment_id=payment_id,
            merchant_id=request.merchant_id,
            amount=settle_amount,
            currency=currency,
            settlement_method=request.settlement_method,
            merchant_account_details=request.merchant_account_details,
            metadata={
                "source_asset": from_asset,
                "source_amount": request.amount,
                "conversion_id": conversion.conversion_id if conversion else None,
            },
        )
        # Amount limits apply to the converted amount; history is only
        # written once the settlement is known to be acceptable
        self._settlements.validate(settlement_request)
        if conversion is not None:
            self._calculator.record(conversion)
        receipt = await self._settlements.execute_settlement(settlement_request)
        return PaymentOutcome(payment_id=payment_id, conversion=conversion, settlement=receipt)
