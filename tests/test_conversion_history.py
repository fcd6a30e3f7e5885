from datetime import datetime, timezone

import pytest

from utp_gateway.core.errors import ConversionNotFoundError
from utp_gateway.models.conversion import (
    ConversionResult,
    FeeBreakdown,
    MarketImpact,
    PriceData,
)
from utp_gateway.services.conversion.history import ConversionHistoryStore

NOW = datetime(2025, 1, 1, tzinfo=timezone.utc)


def make_result(conversion_id: str) -> ConversionResult:
    return ConversionResult(
        conversion_id=conversion_id,
        from_asset="bgt",
        to_asset="binr",
        from_amount=1.0,
        to_amount=5649.99,
        conversion_rate=5650.0,
        original_rate=5650.0,
        fee_breakdown=FeeBreakdown(
            conversion_fee=0.0, slippage=0.0, total_fee=0.0, fee_rate=0.0005
        ),
        market_impact=MarketImpact(percentage=0.0001, absolute=0.0, level="minimal"),
        price_data=PriceData(
            from_price=5650.0,
            to_price=1.0,
            from_source="live",
            to_source="live",
            confidence=0.95,
        ),
        computed_at=NOW,
        valid_until=NOW,
    )


def test_bounded_with_oldest_evicted():
    store = ConversionHistoryStore()
    for i in range(10_001):
        store.append(make_result(f"c{i}"))
    assert len(store) == 10_000
    assert "c0" not in store
    assert "c1" in store
    assert "c10000" in store


def test_small_limit_evicts_in_insertion_order():
    store = ConversionHistoryStore(limit=2)
    for cid in ("a", "b", "c"):
        store.append(make_result(cid))
    assert [r.conversion_id for r in store.recent()] == ["c", "b"]


def test_recent_is_newest_first_and_limited():
    store = ConversionHistoryStore()
    for i in range(5):
        store.append(make_result(str(i)))
    assert [r.conversion_id for r in store.recent(3)] == ["4", "3", "2"]
    assert store.recent(0) == []


def test_get_unknown_id():
    with pytest.raises(ConversionNotFoundError):
        ConversionHistoryStore().get("missing")


def test_limit_must_be_positive():
    with pytest.raises(ValueError):
        ConversionHistoryStore(limit=0)
