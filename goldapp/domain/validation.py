"""Pre-submission order rules and login input checks"""

import re
from datetime import date
from decimal import Decimal
from typing import Dict, Optional

from goldapp.domain.calculator import format_currency, format_grams, parse_value, resolve_quantity_and_amount
from goldapp.domain.exceptions import InputError, ValidationErrorCode
from goldapp.domain.models import OrderInput, OrderSide, ValidationResult

DEFAULT_MINIMUMS: Dict[OrderSide, Decimal] = {
    OrderSide.BUY: Decimal("50"),
    OrderSide.SELL: Decimal("100"),
}


def validate(
    order: OrderInput,
    calculated: Decimal,
    available: Optional[Decimal] = None,
    minimums: Optional[Dict[OrderSide, Decimal]] = None,
) -> ValidationResult:
    """
    Check an order before asking the user to confirm it.

    Rules, first failure wins:
    1. Input parses to a finite number > 0           -> InvalidInput
    2. A bank account is selected                    -> NoBankSelected
    3. Rupee amount >= minimum for the operation     -> BelowMinimum
    4. Sell only: grams <= available holding         -> InsufficientBalance

    A sell with unknown holdings is checked against zero.
    """
    minimums = minimums or DEFAULT_MINIMUMS
    input_value = parse_value(order.raw_value)

    if input_value <= 0:
        return ValidationResult(
            ok=False,
            error=ValidationErrorCode.INVALID_INPUT,
            message="Please enter a valid amount or quantity.",
        )

    if order.bank is None:
        purpose = "payment" if order.side is OrderSide.BUY else "receiving payment"
        return ValidationResult(
            ok=False,
            error=ValidationErrorCode.NO_BANK_SELECTED,
            message=f"Please select a bank account for {purpose}, or add one first.",
        )

    quantity, amount = resolve_quantity_and_amount(order.mode, input_value, calculated)

    minimum = minimums[order.side]
    if amount < minimum:
        label = "purchase" if order.side is OrderSide.BUY else "sell"
        return ValidationResult(
            ok=False,
            error=ValidationErrorCode.BELOW_MINIMUM,
            message=(
                f"Minimum {label} amount is {format_currency(minimum)}. "
                "Please enter a higher amount."
            ),
        )

    if order.side is OrderSide.SELL:
        holding = available if available is not None else Decimal("0")
        if quantity > holding:
            return ValidationResult(
                ok=False,
                error=ValidationErrorCode.INSUFFICIENT_BALANCE,
                message=(
                    f"You only have {format_grams(holding)} of gold available to sell. "
                    f"You're trying to sell {format_grams(quantity)}. "
                    "Please enter a smaller amount."
                ),
            )

    return ValidationResult(ok=True)


MOBILE_PATTERN = re.compile(r"^[6-9]\d{9}$")
OTP_PATTERN = re.compile(r"^\d{6}$")
EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def validate_mobile(mobile: str) -> str:
    mobile = (mobile or "").strip()
    if not MOBILE_PATTERN.match(mobile):
        raise InputError(
            ValidationErrorCode.INVALID_INPUT,
            "Invalid mobile number. Please enter a valid 10-digit number.",
        )
    return mobile


def validate_otp(otp: str) -> str:
    otp = (otp or "").strip()
    if not OTP_PATTERN.match(otp):
        raise InputError(ValidationErrorCode.INVALID_INPUT, "Invalid OTP. Please enter all 6 digits.")
    return otp


def validate_email(email: str) -> str:
    email = (email or "").strip()
    if not EMAIL_PATTERN.match(email):
        raise InputError(ValidationErrorCode.INVALID_INPUT, "Please enter a valid email address.")
    return email


MINIMUM_KYC_AGE = 18


def validate_adult(date_of_birth: date, today: Optional[date] = None) -> date:
    """KYC is only accepted for users who are at least 18"""
    today = today or date.today()
    age = today.year - date_of_birth.year - ((today.month, today.day) < (date_of_birth.month, date_of_birth.day))
    if age < MINIMUM_KYC_AGE:
        raise InputError(ValidationErrorCode.INVALID_INPUT, f"You must be at least {MINIMUM_KYC_AGE} years old.")
    return date_of_birth
