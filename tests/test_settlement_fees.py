"""
Unit tests for settlement fee arithmetic and method limits.
"""

import pytest

from utp_gateway.core.errors import (
    AmountOutOfRangeError,
    InvalidAmountError,
    UnknownMethodError,
)
from utp_gateway.models.constants import SETTLEMENT_METHOD_CODES
from utp_gateway.services.settlement.fees import (
    SETTLEMENT_METHODS,
    calculate_fees,
    get_method,
    list_methods,
    validate_amount,
)


class TestCalculateFees:
    def test_upi_thousand(self):
        quote = calculate_fees(1000, "inr_upi")
        assert quote.settlement_fee == pytest.approx(1.0)
        assert quote.tax == pytest.approx(0.18)
        assert quote.total_fee == pytest.approx(1.18)
        assert quote.net_amount == pytest.approx(998.82)
        assert quote.fee_rate == 0.001
        assert quote.settlement_method == "inr_upi"

    @pytest.mark.parametrize("method", SETTLEMENT_METHOD_CODES)
    def test_fee_identity(self, method):
        quote = calculate_fees(1234.56, method)
        assert quote.total_fee == quote.settlement_fee + quote.tax
        assert quote.net_amount == quote.amount - quote.total_fee
        assert quote.tax == pytest.approx(quote.settlement_fee * 0.18)

    def test_idempotent(self):
        assert calculate_fees(777.7, "inr_neft") == calculate_fees(777.7, "inr_neft")

    def test_unknown_method(self):
        with pytest.raises(UnknownMethodError) as exc:
            calculate_fees(100, "swift")
        assert exc.value.field == "settlement_method"


class TestMethodLimits:
    def test_catalogue(self):
        assert [m.code for m in list_methods()] == list(SETTLEMENT_METHOD_CODES)
        assert get_method("bgt_transfer").currency == "BGT"
        assert get_method("mixed_settlement").kind == "hybrid"

    @pytest.mark.parametrize("code", SETTLEMENT_METHOD_CODES)
    def test_bounds_are_inclusive(self, code):
        method = SETTLEMENT_METHODS[code]
        validate_amount(method.min_amount, method)
        validate_amount(method.max_amount, method)
        assert method.accepts(method.min_amount)
        assert method.accepts(method.max_amount)

    @pytest.mark.parametrize("code", SETTLEMENT_METHOD_CODES)
    def test_outside_bounds(self, code):
        method = SETTLEMENT_METHODS[code]
        with pytest.raises(AmountOutOfRangeError):
            validate_amount(method.min_amount * 0.99, method)
        with pytest.raises(AmountOutOfRangeError):
            validate_amount(method.max_amount * 1.01, method)

    @pytest.mark.parametrize("amount", [0, -1, float("nan")])
    def test_non_positive(self, amount):
        with pytest.raises(InvalidAmountError):
            validate_amount(amount, get_method("inr_upi"))
