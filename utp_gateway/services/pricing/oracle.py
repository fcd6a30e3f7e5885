from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Iterable, Optional

from utp_gateway.core.errors import InvalidAssetError, PriceFetchError
from utp_gateway.models.constants import (
    ASSET_CODES,
    BASE_PRICES,
    PRICE_SOURCES,
    QUOTE_CURRENCY,
    VOLATILITY,
)
from utp_gateway.models.quote import AssetQuote
from utp_gateway.services.money import round2
from .base import PriceProvider

"""Price oracle with a short freshness window.

Design:
    - Wraps a PriceProvider (selected via settings.price_provider).
    - Keeps the last live quote per asset; a hit younger than the TTL (30s)
      is returned re-tagged source='cache'.
    - A miss asks the provider and replaces the cache entry.
    - Provider failures never reach the caller: they are logged and turned
      into a fallback quote built from the base table (confidence 0.50).
      Fallback quotes are not cached, so the next call retries the provider.

Concurrent misses for the same asset may fetch twice; fetches are synthetic
and idempotent so there is no stampede guard.
"""

logger = logging.getLogger("utp_gateway.pricing")

LIVE_CONFIDENCE = 0.95
FALLBACK_CONFIDENCE = 0.50


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def validate_asset(asset_type: str, field: str = "asset") -> str:
    code = (asset_type or "").strip().lower()
    if code not in ASSET_CODES:
        raise InvalidAssetError(f"Unsupported asset: {asset_type}", field=field)
    return code


class PriceOracle:
    """Cached quote service with TTL-bound entries."""

    def __init__(
        self,
        provider: PriceProvider,
        ttl_seconds: float = 30.0,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self._provider = provider
        self._ttl = timedelta(seconds=ttl_seconds)
        self._clock = clock
        self._cache: Dict[str, AssetQuote] = {}

    # Internal --------------------------------------------------
    def _is_fresh(self, quote: AssetQuote, now: datetime) -> bool:
        return now - quote.observed_at < self._ttl

    def _fetch_live(self, asset_type: str, now: datetime) -> AssetQuote:
        price = round2(self._provider.fetch_price(asset_type))
        if price <= 0:
            raise PriceFetchError(f"Non-positive price {price} for {asset_type}")
        return AssetQuote(
            asset_type=asset_type,
            price=price,
            currency=QUOTE_CURRENCY,
            source="live",
            observed_at=now,
            volatility=VOLATILITY[asset_type],  # type: ignore[arg-type]
            confidence=LIVE_CONFIDENCE,
            provider=PRICE_SOURCES[asset_type],
        )

    def _fallback_quote(self, asset_type: str, now: datetime) -> AssetQuote:
        return AssetQuote(
            asset_type=asset_type,
            price=BASE_PRICES[asset_type],
            currency=QUOTE_CURRENCY,
            source="fallback",
            observed_at=now,
            volatility="unknown",
            confidence=FALLBACK_CONFIDENCE,
            provider="static fallback",
        )

    # Public API -----------------------------------------------
    def get_price(self, asset_type: str) -> AssetQuote:
        asset_type = validate_asset(asset_type)
        now = self._clock()
        cached = self._cache.get(asset_type)
        if cached and self._is_fresh(cached, now):
            return cached.model_copy(update={"source": "cache"})
        try:
            quote = self._fetch_live(asset_type, now)
        except Exception as exc:
            logger.warning(
                "price fetch failed for %s, serving fallback",
                asset_type,
                extra={"asset": asset_type, "reason": str(exc)},
            )
            return self._fallback_quote(asset_type, now)
        self._cache[asset_type] = quote
        return quote

    def get_prices(self, assets: Optional[Iterable[str]] = None) -> Dict[str, Any]:
        codes = list(assets) if assets is not None else list(ASSET_CODES)
        prices = {code: self.get_price(code) for code in codes}
        return {
            "prices": prices,
            "total_assets": len(prices),
            "live_or_cached": sum(1 for q in prices.values() if q.source != "fallback"),
            "last_updated": self._clock(),
        }

    def last_price(self, asset_type: str) -> float:
        """Most recent known price without triggering a fetch."""
        asset_type = validate_asset(asset_type)
        cached = self._cache.get(asset_type)
        return cached.price if cached else BASE_PRICES[asset_type]

    def invalidate(self, asset_type: Optional[str] = None) -> None:
        if asset_type is None:
            self._cache.clear()
        else:
            self._cache.pop(validate_asset(asset_type), None)

    def status(self) -> Dict[str, Any]:
        return {
            "service": "price_oracle",
            "status": "active",
            "provider": self._provider.name,
            "cache_size": len(self._cache),
            "cache_ttl_seconds": self._ttl.total_seconds(),
            "last_updated": self._clock(),
        }
