from __future__ import annotations

from fastapi import APIRouter, Depends

from utp_gateway.core.errors import ApiError, GatewayError, with_error_code
from utp_gateway.models.payment import PaymentOutcome, PaymentRequest
from utp_gateway.services.container import get_payment_flow
from utp_gateway.services.payment_flow import PaymentFlow

router = APIRouter(prefix="/api/payments", tags=["payments"])


@router.post(
    "/process",
    response_model=PaymentOutcome,
    summary="Convert a customer payment and settle it to the merchant",
)
@with_error_code("PAYMENT_PROCESSING_FAILED")
async def process_payment(
    payload: PaymentRequest,
    flow: PaymentFlow = Depends(get_payment_flow),
):
    try:
        return await flow.process(payload)
    except GatewayError as e:
        raise ApiError.from_domain(e, "PAYMENT_PROCESSING_FAILED") from e
