from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from fastapi import Request

from utp_gateway.core.config import Settings
from utp_gateway.services.conversion.calculator import ConversionCalculator
from utp_gateway.services.conversion.history import ConversionHistoryStore
from utp_gateway.services.payment_flow import PaymentFlow
from utp_gateway.services.pricing.oracle import PriceOracle
from utp_gateway.services.pricing.providers import make_price_provider
from utp_gateway.services.randomness import RandomSource, default_random_source
from utp_gateway.services.settlement.dispatcher import SettlementDispatcher
from utp_gateway.services.settlement.service import SettlementService
from utp_gateway.services.settlement.store import SettlementStore

"""Explicit wiring of the pricing / conversion / settlement services.

One container per application instance, stored on `app.state.services`.
Routers reach it through FastAPI dependencies; nothing is built at import
time.
"""


@dataclass
class ServiceContainer:
    oracle: PriceOracle
    conversion: ConversionCalculator
    settlements: SettlementService
    payments: PaymentFlow


def build_container(
    settings: Settings, rng: Optional[RandomSource] = None
) -> ServiceContainer:
    rng = rng or default_random_source()
    oracle = PriceOracle(
        make_price_provider(settings.price_provider, rng=rng),
        ttl_seconds=settings.price_cache_ttl_seconds,
    )
    conversion = ConversionCalculator(
        oracle,
        ConversionHistoryStore(settings.conversion_history_limit),
        rng,
        fee_rate=settings.conversion_fee_rate,
        max_slippage=settings.max_slippage,
        slippage_protection=settings.slippage_protection,
        same_asset_policy=settings.same_asset_policy,
        quote_validity_seconds=settings.quote_validity_seconds,
    )
    dispatcher = SettlementDispatcher(
        rng,
        oracle=oracle,
        neft_status=settings.neft_settlement_status,
        mixed_inr_share=settings.mixed_inr_share,
        latency_scale=settings.simulated_latency_scale,
        timeout_seconds=settings.dispatch_timeout_seconds,
    )
    settlements = SettlementService(
        SettlementStore(settings.settlement_store_limit), dispatcher
    )
    return ServiceContainer(
        oracle=oracle,
        conversion=conversion,
        settlements=settlements,
        payments=PaymentFlow(conversion, settlements),
    )


# FastAPI dependencies --------------------------------------------------


def get_container(request: Request) -> ServiceContainer:
    return request.app.state.services


def get_oracle(request: Request) -> PriceOracle:
    return get_container(request).oracle


def get_conversion_calculator(request: Request) -> ConversionCalculator:
    return get_container(request).conversion


def get_settlement_service(request: Request) -> SettlementService:
    return get_container(request).settlements


def get_payment_flow(request: Request) -> PaymentFlow:
    return get_container(request).payments
