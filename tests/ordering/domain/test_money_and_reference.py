"""Tests for amount rounding and the PromptPay payment reference."""

from decimal import Decimal

import pytest
from ordering.payment.reference import amount_to_payable_string, build_reference
from shared.money import as_float, clamp, to_decimal


class TestToDecimal:
    def test_rounds_half_up_to_cents(self):
        assert to_decimal(2.675) == Decimal("2.68")
        assert to_decimal("0.005") == Decimal("0.01")

    def test_float_artifacts_do_not_leak(self):
        assert to_decimal(0.1 + 0.2) == Decimal("0.30")

    def test_as_float(self):
        assert as_float(Decimal("270.499")) == 270.5

    def test_clamp(self):
        assert clamp(Decimal("-1"), Decimal("0"), Decimal("10")) == Decimal("0")
        assert clamp(Decimal("11"), Decimal("0"), Decimal("10")) == Decimal("10")
        assert clamp(Decimal("5"), Decimal("0"), Decimal("10")) == Decimal("5")


class TestPayableString:
    @pytest.mark.parametrize(
        "amount, expected",
        [
            (300, "300"),
            (300.0, "300"),
            (270.5, "270.5"),
            (270.50, "270.5"),
            (99.99, "99.99"),
            (0.1, "0.1"),
            (1000.004, "1000"),
        ],
    )
    def test_formats(self, amount, expected):
        assert amount_to_payable_string(amount) == expected


class TestBuildReference:
    def test_joins_base_merchant_and_amount(self):
        assert build_reference("0812345678", "https://promptpay.io", 300) == "https://promptpay.io/0812345678/300"

    def test_strips_trailing_slashes_from_base(self):
        assert build_reference("0812345678", "https://promptpay.io///", 270.5) == "https://promptpay.io/0812345678/270.5"

    def test_escapes_merchant_id(self):
        assert build_reference("08 123/45", "https://pp.example", 1) == "https://pp.example/08%20123%2F45/1"

    def test_requires_merchant(self):
        with pytest.raises(ValueError):
            build_reference("", "https://promptpay.io", 100)
