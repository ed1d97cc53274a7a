"""Unit tests for card masking and money conversion."""

from decimal import Decimal

import pytest

from orderstore.domain import Money
from orderstore.masking import mask_credit_card


def test_mask_keeps_last_four_digits():
    assert mask_credit_card("4111111111111111") == "****-****-****-1111"


def test_mask_short_input_returns_sentinel():
    assert mask_credit_card("12") == "****"
    assert mask_credit_card("") == "****"


def test_mask_exactly_four_characters():
    assert mask_credit_card("1234") == "****-****-****-1234"


def test_mask_is_deterministic():
    assert mask_credit_card("5555555555554444") == mask_credit_card("5555555555554444")


@pytest.mark.parametrize(
    "units, nanos, expected",
    [
        (10, 500_000_000, Decimal("10.5")),
        (0, 0, Decimal("0")),
        (123, 990_000_000, Decimal("123.99")),
        (-5, -250_000_000, Decimal("-5.25")),
    ],
)
def test_money_to_decimal(units, nanos, expected):
    assert Money("USD", units, nanos).to_decimal() == expected


def test_money_to_decimal_has_no_float_error():
    assert Money("USD", 0, 100_000_000).to_decimal() == Decimal("0.1")
