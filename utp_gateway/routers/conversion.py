from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Query

from utp_gateway.core.errors import (
    ApiError,
    GatewayError,
    NotFoundError,
    with_error_code,
)
from utp_gateway.models.conversion import ConversionRate, ConversionRequest, ConversionResult
from utp_gateway.models.quote import AssetQuote
from utp_gateway.services.container import get_conversion_calculator, get_oracle
from utp_gateway.services.conversion.calculator import ConversionCalculator
from utp_gateway.services.pricing.oracle import PriceOracle

"""Conversion router: price quotes, rate quotes, conversions and history.

Domain errors are re-labelled with the endpoint's stable error_code; the
HTTP status comes from the domain error (4xx for validation, 404 for
unknown ids).
"""

router = APIRouter(prefix="/api/conversion", tags=["conversion"])


@router.get("/price/{asset}", response_model=AssetQuote, summary="Current price of an asset")
@with_error_code("PRICE_FETCH_FAILED")
async def get_price(asset: str, oracle: PriceOracle = Depends(get_oracle)):
    try:
        return oracle.get_price(asset)
    except GatewayError as e:
        raise ApiError.from_domain(e, "PRICE_FETCH_FAILED") from e


@router.get("/prices", summary="Current prices of every supported asset")
async def get_all_prices(oracle: PriceOracle = Depends(get_oracle)):
    return {"success": True, **oracle.get_prices()}


@router.get(
    "/rate/{from_asset}/{to_asset}",
    response_model=ConversionRate,
    summary="Mid rate between two assets without converting",
)
@with_error_code("RATE_FETCH_FAILED")
async def get_rate(
    from_asset: str,
    to_asset: str,
    calculator: ConversionCalculator = Depends(get_conversion_calculator),
):
    try:
        return calculator.get_rate(from_asset, to_asset)
    except GatewayError as e:
        raise ApiError.from_domain(e, "RATE_FETCH_FAILED") from e


@router.post("/convert", response_model=ConversionResult, summary="Convert between assets")
@with_error_code("CONVERSION_CALCULATION_FAILED")
async def convert(
    payload: ConversionRequest,
    calculator: ConversionCalculator = Depends(get_conversion_calculator),
):
    try:
        return calculator.convert(
            payload.from_asset, payload.to_asset, payload.amount, payload.options
        )
    except GatewayError as e:
        raise ApiError.from_domain(e, "CONVERSION_CALCULATION_FAILED") from e


@router.get("/history", summary="Recent conversions, newest first")
async def conversion_history(
    limit: int = Query(100, ge=1, le=1000, description="Maximum entries to return"),
    calculator: ConversionCalculator = Depends(get_conversion_calculator),
):
    history = calculator.history.recent(limit)
    return {
        "success": True,
        "history": history,
        "count": len(history),
        "timestamp": datetime.now(timezone.utc),
    }


@router.get(
    "/history/{conversion_id}",
    response_model=ConversionResult,
    summary="Fetch one recorded conversion",
)
async def get_conversion(
    conversion_id: str,
    calculator: ConversionCalculator = Depends(get_conversion_calculator),
):
    try:
        return calculator.history.get(conversion_id)
    except NotFoundError as e:
        raise ApiError.from_domain(e, "CONVERSION_NOT_FOUND") from e


@router.get("/supported-pairs", summary="Conversion pairs offered to merchants")
async def supported_pairs(
    calculator: ConversionCalculator = Depends(get_conversion_calculator),
):
    pairs = calculator.supported_pairs()
    return {"success": True, "supported_pairs": pairs, "total_pairs": len(pairs)}
