import random
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from utp_gateway.core.config import Settings
from utp_gateway.main import create_app
from utp_gateway.services.conversion.calculator import ConversionCalculator
from utp_gateway.services.conversion.history import ConversionHistoryStore
from utp_gateway.services.pricing.oracle import PriceOracle
from utp_gateway.services.pricing.providers import StaticPriceProvider
from utp_gateway.services.settlement.dispatcher import SettlementDispatcher
from utp_gateway.services.settlement.service import SettlementService
from utp_gateway.services.settlement.store import SettlementStore


class FakeClock:
    """Manually advanced UTC clock."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


@pytest.fixture
def rng():
    return random.Random(42)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def oracle(clock):
    return PriceOracle(StaticPriceProvider(), ttl_seconds=30, clock=clock)


@pytest.fixture
def calculator(oracle, rng, clock):
    return ConversionCalculator(
        oracle,
        ConversionHistoryStore(),
        rng,
        slippage_protection=False,
        clock=clock,
    )


@pytest.fixture
def dispatcher(rng, oracle):
    return SettlementDispatcher(rng, oracle=oracle, latency_scale=0)


@pytest.fixture
def settlement_service(dispatcher):
    return SettlementService(SettlementStore(), dispatcher)


@pytest.fixture
def settings():
    # Static prices and no simulated latency keep API tests fast and exact
    return Settings(
        price_provider="static",
        simulated_latency_scale=0,
        slippage_protection=False,
        _env_file=None,
    )


@pytest.fixture
def client(settings):
    app = create_app(settings, rng=random.Random(7))
    with TestClient(app) as c:
        yield c
