from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Query

from utp_gateway.core.errors import (
    ApiError,
    GatewayError,
    NotFoundError,
    with_error_code,
)
from utp_gateway.models.settlement import (
    FeeCalculationRequest,
    FeeQuote,
    MerchantStats,
    SettlementReceipt,
    SettlementRecord,
    SettlementRequest,
)
from utp_gateway.services.container import get_settlement_service
from utp_gateway.services.settlement.service import SettlementService

router = APIRouter(prefix="/api/settlement", tags=["settlement"])


@router.get("/methods", summary="Available settlement methods and limits")
async def list_methods(svc: SettlementService = Depends(get_settlement_service)):
    methods = svc.methods()
    return {
        "success": True,
        "settlement_methods": methods,
        "timestamp": datetime.now(timezone.utc),
    }


@router.post(
    "/execute",
    response_model=SettlementReceipt,
    summary="Compute fees and dispatch a settlement",
)
@with_error_code("SETTLEMENT_EXECUTION_FAILED")
async def execute_settlement(
    payload: SettlementRequest,
    svc: SettlementService = Depends(get_settlement_service),
):
    try:
        return await svc.execute_settlement(payload)
    except GatewayError as e:
        raise ApiError.from_domain(e, "SETTLEMENT_EXECUTION_FAILED") from e


@router.get(
    "/status/{settlement_id}",
    response_model=SettlementRecord,
    summary="Current state of one settlement",
)
async def settlement_status(
    settlement_id: str,
    svc: SettlementService = Depends(get_settlement_service),
):
    try:
        return svc.get_settlement(settlement_id)
    except NotFoundError as e:
        raise ApiError.from_domain(e, "SETTLEMENT_NOT_FOUND") from e


@router.get("/history/{merchant_id}", summary="A merchant's settlements, newest first")
async def settlement_history(
    merchant_id: str,
    limit: int = Query(50, ge=1, le=1000),
    svc: SettlementService = Depends(get_settlement_service),
):
    history = svc.merchant_history(merchant_id, limit)
    return {
        "success": True,
        "history": history,
        "count": len(history),
        "timestamp": datetime.now(timezone.utc),
    }


@router.post(
    "/calculate-fees", response_model=FeeQuote, summary="Preview settlement fees"
)
@with_error_code("FEE_CALCULATION_FAILED")
async def calculate_fees(
    payload: FeeCalculationRequest,
    svc: SettlementService = Depends(get_settlement_service),
):
    try:
        return svc.calculate_fees(payload.amount, payload.settlement_method)
    except GatewayError as e:
        raise ApiError.from_domain(e, "FEE_CALCULATION_FAILED") from e


@router.get(
    "/stats/{merchant_id}",
    response_model=MerchantStats,
    summary="Aggregate settlement statistics for a merchant",
)
async def settlement_stats(
    merchant_id: str,
    svc: SettlementService = Depends(get_settlement_service),
):
    return svc.merchant_stats(merchant_id)
