"""Domain models - pure Python dataclasses representing business entities"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Any, Dict, List, Optional

from goldapp.domain.exceptions import InputError, ValidationErrorCode

GRAMS_PRECISION = Decimal("0.0001")
INR_PRECISION = Decimal("0.01")


class OrderSide(str, Enum):
    BUY = "buy"
    SELL = "sell"


class InputMode(str, Enum):
    """Which value the user typed: rupees or grams"""

    AMOUNT = "amount"
    QUANTITY = "quantity"


class TransactionStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class Rate:
    """Price snapshot per gram, bound to the backend's rate block"""

    buy_price: Decimal
    sell_price: Decimal
    captured_at: datetime
    block_id: str
    source: str = "live"  # live | cached | fallback

    def price_for(self, side: OrderSide) -> Decimal:
        return self.buy_price if side is OrderSide.BUY else self.sell_price


@dataclass(frozen=True)
class BankAccount:
    """Saved payout/payment account, read-only to the order workflow"""

    id: str
    account_holder_name: str
    account_number: str
    ifsc_code: str
    bank_name: str


@dataclass(frozen=True)
class Holding:
    """User's current metal balance"""

    grams: Decimal
    value_inr: Decimal


@dataclass
class OrderInput:
    """Transient state of one order-entry session"""

    side: OrderSide
    mode: InputMode
    raw_value: str
    bank: Optional[BankAccount] = None


@dataclass
class OrderRequest:
    """
    Wire request for the buy/sell endpoints.

    Exactly one of quantity/amount is set; the other is derived but never sent.
    """

    side: OrderSide
    merchant_transaction_id: str
    unique_id: str
    lock_price: Decimal
    metal_type: str
    block_id: str
    quantity: Optional[Decimal] = None
    amount: Optional[Decimal] = None
    mode_of_payment: Optional[str] = None
    bank: Optional[BankAccount] = None
    # Both sides of the confirmed preview; kept locally, never transmitted
    preview_quantity: Decimal = Decimal("0")
    preview_amount: Decimal = Decimal("0")

    def __post_init__(self) -> None:
        if (self.quantity is None) == (self.amount is None):
            raise ValueError("OrderRequest needs exactly one of quantity or amount")

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "lockPrice": float(self.lock_price.quantize(INR_PRECISION, rounding=ROUND_HALF_UP)),
            "metalType": self.metal_type,
            "merchantTransactionId": self.merchant_transaction_id,
            "uniqueId": self.unique_id,
            "blockId": self.block_id,
        }

        if self.side is OrderSide.BUY:
            payload["modeOfPayment"] = self.mode_of_payment
        elif self.bank is not None:
            payload["userBankId"] = self.bank.id
            payload["accountName"] = self.bank.account_holder_name
            payload["accountNumber"] = self.bank.account_number
            payload["ifscCode"] = self.bank.ifsc_code

        if self.quantity is not None:
            payload["quantity"] = float(self.quantity.quantize(GRAMS_PRECISION, rounding=ROUND_HALF_UP))
        else:
            payload["amount"] = float(self.amount.quantize(INR_PRECISION, rounding=ROUND_HALF_UP))

        return payload


@dataclass
class Transaction:
    """Backend transaction as seen by the app"""

    merchant_transaction_id: str
    side: OrderSide
    status: TransactionStatus
    payment_status: str
    quantity: Decimal
    amount: Decimal
    lock_price: Decimal
    created_at: datetime
    simulated: bool = False
    payment_reference: Optional[str] = None


@dataclass
class TransactionPage:
    transactions: List[Transaction]
    has_more: bool
    simulated: bool = False


@dataclass(frozen=True)
class MockPaymentResult:
    """Synthetic checkout credentials; no cryptographic meaning"""

    payment_id: str
    order_id: str
    signature: str


@dataclass
class ValidationResult:
    ok: bool
    error: Optional[ValidationErrorCode] = None
    message: str = ""

    def raise_for_error(self) -> None:
        if not self.ok:
            raise InputError(self.error, self.message)


@dataclass(frozen=True)
class Quote:
    """Live preview of an order at a given rate"""

    side: OrderSide
    mode: InputMode
    input_value: Decimal
    calculated: Decimal
    quantity: Decimal
    amount: Decimal
    rate: Decimal


@dataclass
class AuthResult:
    """Outcome of an OTP verification"""

    token: Optional[str]
    kyc_status: str
    user: Dict[str, Any] = field(default_factory=dict)
