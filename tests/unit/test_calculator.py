"""Unit tests for amount/quantity conversion and display formatting"""

from decimal import Decimal

import pytest

from goldapp.domain.calculator import calculate, format_currency, format_grams, parse_value, quote
from goldapp.domain.models import InputMode, OrderSide


def test_amount_mode_converts_rupees_to_grams():
    """₹1000 at ₹6100/g buys about 0.1639 g"""
    grams = calculate("1000", InputMode.AMOUNT, Decimal("6100"))
    assert grams.quantize(Decimal("0.0001")) == Decimal("0.1639")


def test_quantity_mode_converts_grams_to_rupees():
    assert calculate("0.05", InputMode.QUANTITY, Decimal("6000")) == Decimal("300.00")


@pytest.mark.parametrize("raw", ["", "abc", "-5", "NaN", "Infinity", None, "  "])
def test_unparseable_or_negative_input_is_zero(raw):
    assert parse_value(raw) == Decimal("0")
    assert calculate(raw, InputMode.AMOUNT, Decimal("6100")) == Decimal("0")


@pytest.mark.parametrize("rate", [None, 0, "-1", "abc"])
def test_missing_or_non_positive_rate_is_zero(rate):
    assert calculate("1000", InputMode.AMOUNT, rate) == Decimal("0")
    assert calculate("1", InputMode.QUANTITY, rate) == Decimal("0")


def test_quote_uses_buy_price_for_buy_and_sell_price_for_sell(rate):
    buy = quote(OrderSide.BUY, InputMode.QUANTITY, "1", rate)
    sell = quote(OrderSide.SELL, InputMode.QUANTITY, "1", rate)

    assert buy.rate == Decimal("6100")
    assert buy.amount == Decimal("6100")
    assert sell.rate == Decimal("6000")
    assert sell.amount == Decimal("6000")


def test_quote_resolves_typed_and_calculated_sides(rate):
    by_amount = quote(OrderSide.BUY, InputMode.AMOUNT, "610", rate)
    assert by_amount.amount == Decimal("610")
    assert by_amount.quantity == Decimal("0.1")

    by_quantity = quote(OrderSide.SELL, InputMode.QUANTITY, "0.5", rate)
    assert by_quantity.quantity == Decimal("0.5")
    assert by_quantity.amount == Decimal("3000.0")


def test_format_currency_uses_indian_grouping():
    assert format_currency(Decimal("1000")) == "₹1,000.00"
    assert format_currency(Decimal("100000")) == "₹1,00,000.00"
    assert format_currency(Decimal("12345678.9")) == "₹1,23,45,678.90"
    assert format_currency(Decimal("50")) == "₹50.00"


def test_format_currency_missing_value():
    assert format_currency(None) == "₹0"


def test_format_grams_four_decimals():
    assert format_grams(Decimal("0.016")) == "0.0160 g"
    assert format_grams(Decimal("0.16393442")) == "0.1639 g"
    assert format_grams(None) == "0.0000 g"


@pytest.mark.parametrize("rate", ["0.01", "1", "6100", "6123.45", "99999999.99"])
@pytest.mark.parametrize("value", ["0", "0.0001", "1", "1000", "123456.789", "1000000000"])
def test_conversion_round_trips(value, rate):
    """Converting and converting back returns the input, for any positive rate"""
    value, rate = Decimal(value), Decimal(rate)
    tolerance = value * Decimal("1e-20")

    assert abs(calculate(value, InputMode.AMOUNT, rate) * rate - value) <= tolerance
    assert abs(calculate(value, InputMode.QUANTITY, rate) / rate - value) <= tolerance
