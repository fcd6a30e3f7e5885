from __future__ import annotations

"""Concrete price providers and factory.

'SimulatedMarketProvider' stands in for the LBMA / LME / LPPM feeds: it
applies a symmetric +/-0.1% jitter to the base table so repeated lookups
drift like a live market. 'StaticPriceProvider' returns the table untouched.
"""
from typing import Dict, Optional

from utp_gateway.core.errors import PriceFetchError
from utp_gateway.models.constants import BASE_PRICES
from utp_gateway.services.randomness import RandomSource, default_random_source
from .base import PriceProvider

# +/- 0.1%
MAX_FLUCTUATION = 0.001


class StaticPriceProvider(PriceProvider):
    name = "static"

    def __init__(self, prices: Optional[Dict[str, float]] = None):
        self._prices = dict(prices or BASE_PRICES)

    def fetch_price(self, asset_type: str) -> float:  # type: ignore[override]
        try:
            return self._prices[asset_type]
        except KeyError:
            raise PriceFetchError(f"No price source for {asset_type}") from None


class SimulatedMarketProvider(PriceProvider):
    name = "simulated"

    def __init__(
        self,
        rng: Optional[RandomSource] = None,
        prices: Optional[Dict[str, float]] = None,
    ):
        self._rng = rng or default_random_source()
        self._prices = dict(prices or BASE_PRICES)

    def fetch_price(self, asset_type: str) -> float:  # type: ignore[override]
        base = self._prices.get(asset_type)
        if base is None:
            raise PriceFetchError(f"No price source for {asset_type}")
        fluctuation = self._rng.uniform(-MAX_FLUCTUATION, MAX_FLUCTUATION)
        return base * (1 + fluctuation)


_PROVIDER_REGISTRY = {
    "simulated": SimulatedMarketProvider,
    "static": StaticPriceProvider,
}


def make_price_provider(kind: str, rng: Optional[RandomSource] = None) -> PriceProvider:
    cls = _PROVIDER_REGISTRY.get(kind)
    if not cls:
        raise ValueError(f"Unknown price provider kind '{kind}'")
    if cls is SimulatedMarketProvider:
        return SimulatedMarketProvider(rng=rng)
    return cls()
