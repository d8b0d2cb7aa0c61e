"""Pydantic schemas for API request/response validation"""

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from goldapp.domain.models import InputMode, OrderSide, TransactionStatus


# Auth


class OtpSendRequest(BaseModel):
    """Request body for POST /v1/auth/otp/send"""

    mobile: str = Field(..., description="10-digit mobile number, also the user's unique id")


class OtpVerifyRequest(BaseModel):
    """Request body for POST /v1/auth/otp/verify"""

    mobile: str
    otp: str = Field(..., description="6-digit code")


class EmailOtpSendRequest(BaseModel):
    email: str


class EmailOtpVerifyRequest(BaseModel):
    email: str
    otp: str


class MessageResponse(BaseModel):
    success: bool = True
    message: str


class SessionResponse(BaseModel):
    """Response for GET /v1/auth/session and POST /v1/auth/otp/verify"""

    authenticated: bool
    unique_id: Optional[str] = None
    kyc_status: str = "pending"
    user: Dict[str, Any] = Field(default_factory=dict)


# KYC


class KycUpdateRequest(BaseModel):
    """Request body for POST /v1/kyc"""

    pan_number: str = Field(..., pattern=r"^[A-Z]{5}[0-9]{4}[A-Z]$", description="PAN in ABCDE1234F format")
    name_as_per_pan: str = Field(..., min_length=2)
    date_of_birth: date


class KycResponse(BaseModel):
    unique_id: str
    kyc_details: Dict[str, Any] = Field(default_factory=dict)


# Market data


class RateResponse(BaseModel):
    """Response for GET /v1/rates"""

    buy_price: Decimal
    sell_price: Decimal
    block_id: str
    captured_at: datetime
    source: str


class BankAccountSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    account_holder_name: str
    account_number: str
    ifsc_code: str
    bank_name: str


class BanksResponse(BaseModel):
    """Response for GET /v1/banks; `selected_id` is the default account for a new order"""

    bank_accounts: List[BankAccountSchema]
    selected_id: Optional[str] = None


class HoldingResponse(BaseModel):
    grams: Decimal
    value_inr: Decimal
    formatted_grams: str
    formatted_value: str


# Orders


class OrderEntry(BaseModel):
    """What the user typed on the buy or sell screen"""

    mode: InputMode = InputMode.AMOUNT
    value: str = Field(..., description="Rupees (amount mode) or grams (quantity mode), as typed")
    bank_id: Optional[str] = Field(None, description="Defaults to the first linked bank account")


class QuoteRequest(OrderEntry):
    """Request body for POST /v1/orders/quote"""

    side: OrderSide


class QuoteResponse(BaseModel):
    """Live preview plus the result of pre-submission checks"""

    side: OrderSide
    mode: InputMode
    input_value: Decimal
    calculated: Decimal
    quantity: Decimal
    amount: Decimal
    rate: Decimal
    rate_source: str
    block_id: str
    formatted_quantity: str
    formatted_amount: str
    valid: bool
    error_code: Optional[str] = None
    message: Optional[str] = None


class TransactionSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

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


class PaymentMethodSchema(BaseModel):
    id: str
    name: str


class CheckoutResponse(BaseModel):
    """Response for GET /v1/payments/{order_id} and the payment actions"""

    checkout_id: str
    outcome: str
    transaction: TransactionSchema
    state: Optional[str] = None
    stage: Optional[str] = None
    stage_label: Optional[str] = None
    method: Optional[str] = None
    payment_id: Optional[str] = None
    error: Optional[str] = None
    screen: Optional[str] = None


class BuyResponse(BaseModel):
    """Response for POST /v1/orders/buy"""

    transaction: TransactionSchema
    outcome: str
    simulated: bool
    checkout_id: Optional[str] = None
    payment_methods: List[PaymentMethodSchema] = Field(default_factory=list)
    message: str


class SellResponse(BaseModel):
    """Response for POST /v1/orders/sell"""

    transaction: TransactionSchema
    outcome: str
    simulated: bool
    checkout_id: str
    redirect_to: str
    redirect_after_seconds: float
    message: str


class OrderAttemptItem(BaseModel):
    """Single order attempt from the local journal"""

    model_config = ConfigDict(from_attributes=True)

    merchant_transaction_id: str
    side: str
    input_mode: str
    quantity: Decimal
    amount: Decimal
    lock_price: Decimal
    status: str
    payment_status: str
    simulated: bool
    payment_reference: Optional[str] = None
    created_at: datetime


class OrderHistoryResponse(BaseModel):
    """Response for GET /v1/orders/history"""

    unique_id: str
    orders: List[OrderAttemptItem]


# Payments


class MethodSelectRequest(BaseModel):
    method: str = Field(..., description="card | upi | netbanking | wallet | emi")


class NavigateRequest(BaseModel):
    screen: Optional[str] = Field(None, description="Defaults to the scheduled screen")


# Transactions


class TransactionPageResponse(BaseModel):
    """Response for GET /v1/transactions"""

    transactions: List[TransactionSchema]
    has_more: bool
    simulated: bool
    next_offset: Optional[int] = None
