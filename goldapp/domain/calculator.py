"""Amount/quantity conversion for live order previews"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Optional, Tuple, Union

from goldapp.domain.models import (
    GRAMS_PRECISION,
    INR_PRECISION,
    InputMode,
    OrderSide,
    Quote,
    Rate,
)

ZERO = Decimal("0")

Number = Union[Decimal, int, float, str]


def parse_value(raw_value: Optional[Number]) -> Decimal:
    """
    Parse user input as a non-negative decimal.

    Empty, non-numeric, negative, NaN and infinite input all parse to 0.
    """
    if raw_value is None:
        return ZERO
    try:
        value = Decimal(str(raw_value).strip())
    except (InvalidOperation, ValueError):
        return ZERO
    if not value.is_finite() or value < 0:
        return ZERO
    return value


def calculate(raw_value: Optional[Number], mode: InputMode, rate: Optional[Number]) -> Decimal:
    """
    Convert between rupees and grams at a per-gram rate.

    - AMOUNT mode: grams receivable for the entered rupees (value / rate)
    - QUANTITY mode: rupee cost of the entered grams (value * rate)

    A missing or non-positive rate yields 0 so nothing non-finite reaches the UI.
    Pure and cheap enough to call on every keystroke.
    """
    price = parse_value(rate)
    if price <= 0:
        return ZERO

    value = parse_value(raw_value)
    if mode is InputMode.AMOUNT:
        return value / price
    return value * price


def resolve_quantity_and_amount(
    mode: InputMode, input_value: Decimal, calculated: Decimal
) -> Tuple[Decimal, Decimal]:
    """Return (grams, rupees) for an order: one side typed, the other calculated"""
    if mode is InputMode.QUANTITY:
        return input_value, calculated
    return calculated, input_value


def quote(side: OrderSide, mode: InputMode, raw_value: Optional[Number], rate: Rate) -> Quote:
    """Build a preview using the canonical price for the operation"""
    price = rate.price_for(side)
    input_value = parse_value(raw_value)
    calculated = calculate(raw_value, mode, price)
    quantity, amount = resolve_quantity_and_amount(mode, input_value, calculated)

    return Quote(
        side=side,
        mode=mode,
        input_value=input_value,
        calculated=calculated,
        quantity=quantity,
        amount=amount,
        rate=price,
    )


def format_currency(amount: Optional[Decimal]) -> str:
    """₹ with two decimals and Indian digit grouping (₹1,00,000.00)"""
    if amount is None:
        return "₹0"
    value = Decimal(amount).quantize(INR_PRECISION, rounding=ROUND_HALF_UP)
    sign = "-" if value < 0 else ""
    whole, fraction = f"{abs(value):.2f}".split(".")

    # Last three digits, then groups of two
    head, tail = whole[:-3], whole[-3:]
    groups = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)
    grouped = ",".join(groups + [tail])

    return f"{sign}₹{grouped}.{fraction}"


def format_grams(grams: Optional[Decimal]) -> str:
    if grams is None:
        return "0.0000 g"
    value = Decimal(grams).quantize(GRAMS_PRECISION, rounding=ROUND_HALF_UP)
    return f"{value} g"
