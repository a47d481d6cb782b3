"""Tests for amount parsing."""

from decimal import Decimal

import pytest

from budgetkit.utils.amount_parser import parse_amount, round_money


@pytest.mark.parametrize(
    "text,expected",
    [
        ("123.45", Decimal("123.45")),
        ("$123.45", Decimal("123.45")),
        ("-123.45", Decimal("-123.45")),
        ("1,234.56", Decimal("1234.56")),
        ("KSh 1,500", Decimal("1500.00")),
        ("USD 20", Decimal("20.00")),
        ("(123.45)", Decimal("-123.45")),
        ("10.005", Decimal("10.01")),
    ],
)
def test_parse_amount(text, expected):
    assert parse_amount(text) == expected


@pytest.mark.parametrize("text", ["", "   ", "abc", "NaN", "Infinity"])
def test_parse_amount_rejects_invalid(text):
    with pytest.raises(ValueError):
        parse_amount(text)


def test_round_money_half_up():
    assert round_money("2.675") == Decimal("2.68")
    assert round_money(166.666) == Decimal("166.67")
    assert round_money(Decimal("-0.005")) == Decimal("-0.01")
