from __future__ import annotations

import logging
import math
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional

from utp_gateway.core.errors import InvalidAmountError, SameAssetError
from utp_gateway.models.conversion import (
    ConversionOptions,
    ConversionRate,
    ConversionResult,
    FeeBreakdown,
    MarketImpact,
    PriceData,
    SupportedPair,
)
from utp_gateway.models.quote import AssetQuote
from utp_gateway.services.money import round2, round5
from utp_gateway.services.pricing.oracle import PriceOracle, validate_asset
from utp_gateway.services.randomness import RandomSource, default_random_source
from .history import ConversionHistoryStore

"""Asset-to-asset conversion engine.

Responsibilities:
    - Pull both legs' quotes from the PriceOracle.
    - Apply the conversion fee (charged on the *source* amount) and the
      volatility-scaled slippage buffer.
    - Attach an informational market-impact estimate (never applied).
    - Round once, here: money to 2 dp, rates to 5 dp.
    - Record every result in the ConversionHistoryStore.
"""

logger = logging.getLogger("utp_gateway.conversion")

DEFAULT_FEE_RATE = 0.0005  # 0.05%
DEFAULT_MAX_SLIPPAGE = 0.002  # 0.2%

# Keyed by the target quote's volatility; anything unlisted (e.g. 'minimal') uses 1.0
VOLATILITY_MULTIPLIERS: Dict[str, float] = {
    "low": 0.5,
    "medium": 1.0,
    "high": 1.5,
    "unknown": 1.0,
}

BASE_IMPACT = 0.0001
IMPACT_PER_DECADE = 0.00005

SUPPORTED_PAIRS: List[SupportedPair] = [
    SupportedPair(from_asset=f, to_asset=t, description=d)
    for f, t, d in (
        ("bgt", "binr", "Gold to INR Stablecoin"),
        ("bst", "binr", "Silver to INR Stablecoin"),
        ("bpt", "binr", "Platinum to INR Stablecoin"),
        ("binr", "bgt", "INR Stablecoin to Gold"),
        ("binr", "bst", "INR Stablecoin to Silver"),
        ("binr", "bpt", "INR Stablecoin to Platinum"),
        ("bgt", "bst", "Gold to Silver"),
        ("bst", "bgt", "Silver to Gold"),
        ("bgt", "bpt", "Gold to Platinum"),
        ("bpt", "bgt", "Platinum to Gold"),
        ("bst", "bpt", "Silver to Platinum"),
        ("bpt", "bst", "Platinum to Silver"),
        ("rwa", "binr", "RWA Tokens to INR Stablecoin"),
        ("binr", "rwa", "INR Stablecoin to RWA Tokens"),
    )
]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def impact_level(percentage: float) -> str:
    if percentage < 0.0005:
        return "minimal"
    if percentage < 0.001:
        return "low"
    if percentage < 0.002:
        return "medium"
    return "high"


def market_impact(amount: float, to_price: float) -> MarketImpact:
    percentage = BASE_IMPACT + math.log10(amount + 1) * IMPACT_PER_DECADE
    return MarketImpact(
        percentage=percentage,
        absolute=round2(percentage * to_price),
        level=impact_level(percentage),  # type: ignore[arg-type]
    )


class ConversionCalculator:
    def __init__(
        self,
        oracle: PriceOracle,
        history: ConversionHistoryStore,
        rng: Optional[RandomSource] = None,
        *,
        fee_rate: float = DEFAULT_FEE_RATE,
        max_slippage: float = DEFAULT_MAX_SLIPPAGE,
        slippage_protection: bool = True,
        same_asset_policy: str = "reject",
        quote_validity_seconds: float = 5.0,
        clock: Callable[[], datetime] = _utcnow,
    ):
        if same_asset_policy not in ("reject", "passthrough"):
            raise ValueError(f"Unknown same_asset_policy '{same_asset_policy}'")
        self._oracle = oracle
        self._history = history
        self._rng = rng or default_random_source()
        self._fee_rate = fee_rate
        self._max_slippage = max_slippage
        self._slippage_protection = slippage_protection
        self._same_asset_policy = same_asset_policy
        self._validity = timedelta(seconds=quote_validity_seconds)
        self._clock = clock

    @property
    def history(self) -> ConversionHistoryStore:
        return self._history

    def slippage_fraction(self, volatility: str) -> float:
        multiplier = VOLATILITY_MULTIPLIERS.get(volatility, 1.0)
        # Half the ceiling is taken as a protective buffer
        return self._rng.uniform(0, self._max_slippage * multiplier) * 0.5

    def convert(
        self,
        from_asset: str,
        to_asset: str,
        amount: float,
        options: Optional[ConversionOptions] = None,
    ) -> ConversionResult:
        return self.record(self.quote(from_asset, to_asset, amount, options))

    def quote(
        self,
        from_asset: str,
        to_asset: str,
        amount: float,
        options: Optional[ConversionOptions] = None,
    ) -> ConversionResult:
        """Price a conversion without recording it in history."""
        from_asset = validate_asset(from_asset, field="from_asset")
        to_asset = validate_asset(to_asset, field="to_asset")
        if amount is None or not math.isfinite(amount) or amount <= 0:
            raise InvalidAmountError("Amount must be a positive number", field="amount")
        options = options or ConversionOptions()

        if from_asset == to_asset:
            if self._same_asset_policy == "reject":
                raise SameAssetError(
                    "Source and target assets cannot be the same", field="to_asset"
                )
            result = self._passthrough(from_asset, amount)
        else:
            from_quote = self._oracle.get_price(from_asset)
            to_quote = self._oracle.get_price(to_asset)
            result = self.calculate(from_quote, to_quote, amount, options)
        return result

    def record(self, result: ConversionResult) -> ConversionResult:
        self._history.append(result)
        logger.info(
            "conversion %s %s->%s amount=%s to_amount=%s",
            result.conversion_id,
            result.from_asset,
            result.to_asset,
            result.from_amount,
            result.to_amount,
        )
        return result

    def calculate(
        self,
        from_quote: AssetQuote,
        to_quote: AssetQuote,
        amount: float,
        options: ConversionOptions,
    ) -> ConversionResult:
        base_rate = from_quote.price / to_quote.price
        fee_rate = options.fee_rate if options.fee_rate is not None else self._fee_rate
        conversion_fee = amount * fee_rate

        slippage = 0.0
        if self._slippage_protection and options.slippage_protection:
            slippage = self.slippage_fraction(to_quote.volatility)
        adjusted_rate = base_rate * (1 - slippage)
        slippage_amount = amount * slippage

        # Fee is in source units but deducted from the target amount
        net_amount = amount * adjusted_rate - conversion_fee
        total_fee = conversion_fee + slippage_amount
        if net_amount < 0:
            logger.warning(
                "conversion fees exceed converted amount",
                extra={
                    "from_asset": from_quote.asset_type,
                    "to_asset": to_quote.asset_type,
                    "amount": amount,
                    "net_amount": net_amount,
                },
            )

        computed_at = self._clock()
        return ConversionResult(
            conversion_id=str(uuid.uuid4()),
            from_asset=from_quote.asset_type,
            to_asset=to_quote.asset_type,
            from_amount=amount,
            to_amount=round2(net_amount),
            conversion_rate=round5(adjusted_rate),
            original_rate=round5(base_rate),
            fee_breakdown=FeeBreakdown(
                conversion_fee=round2(conversion_fee),
                slippage=round2(slippage_amount),
                total_fee=round2(total_fee),
                fee_rate=fee_rate + slippage,
            ),
            market_impact=market_impact(amount, to_quote.price),
            price_data=PriceData(
                from_price=from_quote.price,
                to_price=to_quote.price,
                from_source=from_quote.source,
                to_source=to_quote.source,
                confidence=min(from_quote.confidence, to_quote.confidence),
            ),
            computed_at=computed_at,
            valid_until=computed_at + self._validity,
        )

    def _passthrough(self, asset: str, amount: float) -> ConversionResult:
        quote = self._oracle.get_price(asset)
        computed_at = self._clock()
        return ConversionResult(
            conversion_id=str(uuid.uuid4()),
            from_asset=asset,
            to_asset=asset,
            from_amount=amount,
            to_amount=amount,
            conversion_rate=1.0,
            original_rate=1.0,
            fee_breakdown=FeeBreakdown(
                conversion_fee=0.0, slippage=0.0, total_fee=0.0, fee_rate=0.0
            ),
            market_impact=market_impact(amount, quote.price),
            price_data=PriceData(
                from_price=quote.price,
                to_price=quote.price,
                from_source=quote.source,
                to_source=quote.source,
                confidence=quote.confidence,
            ),
            computed_at=computed_at,
            valid_until=computed_at + self._validity,
        )

    def get_rate(self, from_asset: str, to_asset: str) -> ConversionRate:
        """Current mid rate without executing or recording a conversion."""
        from_asset = validate_asset(from_asset, field="from_asset")
        to_asset = validate_asset(to_asset, field="to_asset")
        from_quote = self._oracle.get_price(from_asset)
        to_quote = self._oracle.get_price(to_asset)
        return ConversionRate(
            from_asset=from_asset,
            to_asset=to_asset,
            rate=round5(from_quote.price / to_quote.price),
            from_price=from_quote.price,
            to_price=to_quote.price,
            timestamp=self._clock(),
        )

    def supported_pairs(self) -> List[SupportedPair]:
        return list(SUPPORTED_PAIRS)

    def status(self) -> Dict[str, Any]:
        return {
            "service": "conversion_engine",
            "status": "active",
            "history_size": len(self._history),
            "history_limit": self._history.limit,
            "same_asset_policy": self._same_asset_policy,
            "slippage_protection": self._slippage_protection,
        }
