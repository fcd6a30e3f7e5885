from __future__ import annotations

"""Price provider abstraction.

A provider answers one question: what is the INR price of one unit of an
asset right now. Caching, fallback and quote assembly live in the oracle.
"""
from abc import ABC, abstractmethod


class PriceProvider(ABC):
    quote_currency: str = "INR"
    name: str = "abstract"

    @abstractmethod
    def fetch_price(self, asset_type: str) -> float:
        """Return INR per 1 unit of asset_type.

        Implementations signal an unreachable source with PriceFetchError.
        """
        raise NotImplementedError
