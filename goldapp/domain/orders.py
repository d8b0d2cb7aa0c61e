"""Order request construction"""

import secrets
import time
from datetime import datetime, timezone
from decimal import Decimal

from goldapp.domain.models import (
    InputMode,
    OrderInput,
    OrderRequest,
    OrderSide,
    Rate,
    Transaction,
    TransactionStatus,
)

TRANSACTION_PREFIXES = {
    OrderSide.BUY: "TXN",
    OrderSide.SELL: "SELL",
}


def generate_merchant_transaction_id(side: OrderSide) -> str:
    """Operation prefix + millisecond timestamp + random suffix, unique per attempt"""
    return f"{TRANSACTION_PREFIXES[side]}_{int(time.time() * 1000)}_{secrets.token_hex(3)}"


def build_order_request(
    order: OrderInput,
    quantity: Decimal,
    amount: Decimal,
    rate: Rate,
    unique_id: str,
    metal_type: str = "gold",
    default_payment_mode: str = "Bank Transfer",
) -> OrderRequest:
    """
    Bind an order to the rate it was confirmed at.

    Only the field matching the input mode is carried; the derived one is dropped.
    """
    mode_of_payment = None
    if order.side is OrderSide.BUY:
        mode_of_payment = order.bank.bank_name if order.bank and order.bank.bank_name else default_payment_mode

    return OrderRequest(
        side=order.side,
        merchant_transaction_id=generate_merchant_transaction_id(order.side),
        unique_id=unique_id,
        lock_price=rate.price_for(order.side),
        metal_type=metal_type,
        block_id=rate.block_id,
        quantity=quantity if order.mode is InputMode.QUANTITY else None,
        amount=amount if order.mode is InputMode.AMOUNT else None,
        mode_of_payment=mode_of_payment,
        bank=order.bank if order.side is OrderSide.SELL else None,
        preview_quantity=quantity,
        preview_amount=amount,
    )


def simulated_transaction(request: OrderRequest) -> Transaction:
    """Locally fabricated pending transaction for demo/offline mode, always labeled"""
    return Transaction(
        merchant_transaction_id=request.merchant_transaction_id,
        side=request.side,
        status=TransactionStatus.PENDING,
        payment_status="pending",
        quantity=request.preview_quantity,
        amount=request.preview_amount,
        lock_price=request.lock_price,
        created_at=datetime.now(timezone.utc),
        simulated=True,
    )
