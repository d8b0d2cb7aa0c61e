"""Unit tests for order request construction and wire payloads"""

import re
from decimal import Decimal

import pytest

from goldapp.domain.models import InputMode, OrderInput, OrderRequest, OrderSide, TransactionStatus
from goldapp.domain.orders import build_order_request, generate_merchant_transaction_id, simulated_transaction


def test_merchant_transaction_id_format():
    assert re.fullmatch(r"TXN_\d{13}_[0-9a-f]{6}", generate_merchant_transaction_id(OrderSide.BUY))
    assert re.fullmatch(r"SELL_\d{13}_[0-9a-f]{6}", generate_merchant_transaction_id(OrderSide.SELL))


def test_merchant_transaction_ids_are_unique():
    ids = {generate_merchant_transaction_id(OrderSide.BUY) for _ in range(50)}
    assert len(ids) == 50


def test_buy_by_amount_sends_amount_only(rate, bank):
    order = OrderInput(OrderSide.BUY, InputMode.AMOUNT, "1000", bank)
    request = build_order_request(order, Decimal("0.16393"), Decimal("1000"), rate, unique_id="9876543210")
    payload = request.to_payload()

    assert payload["amount"] == 1000.0
    assert "quantity" not in payload
    assert payload["lockPrice"] == 6100.0
    assert payload["blockId"] == "BLOCK_1"
    assert payload["metalType"] == "gold"
    assert payload["uniqueId"] == "9876543210"
    assert payload["modeOfPayment"] == "HDFC Bank"
    assert "userBankId" not in payload
    assert request.preview_quantity == Decimal("0.16393")


def test_sell_by_quantity_sends_quantity_and_bank(rate, bank):
    order = OrderInput(OrderSide.SELL, InputMode.QUANTITY, "0.05", bank)
    request = build_order_request(order, Decimal("0.05"), Decimal("300"), rate, unique_id="9876543210")
    payload = request.to_payload()

    assert payload["quantity"] == 0.05
    assert "amount" not in payload
    assert payload["lockPrice"] == 6000.0
    assert payload["userBankId"] == "1"
    assert payload["accountName"] == "Test User"
    assert payload["accountNumber"] == "123456789012"
    assert payload["ifscCode"] == "HDFC0001234"
    assert "modeOfPayment" not in payload
    assert payload["merchantTransactionId"].startswith("SELL_")


def test_buy_without_bank_name_uses_default_payment_mode(rate):
    order = OrderInput(OrderSide.BUY, InputMode.AMOUNT, "1000", None)
    request = build_order_request(order, Decimal("0.1639"), Decimal("1000"), rate, unique_id="9876543210")
    assert request.to_payload()["modeOfPayment"] == "Bank Transfer"


def test_payload_rounding(rate, bank):
    order = OrderInput(OrderSide.BUY, InputMode.QUANTITY, "0.123456", bank)
    request = build_order_request(order, Decimal("0.123456"), Decimal("753.08"), rate, unique_id="9876543210")
    assert request.to_payload()["quantity"] == 0.1235


@pytest.mark.parametrize("quantity,amount", [(None, None), (Decimal("1"), Decimal("6100"))])
def test_request_needs_exactly_one_of_quantity_or_amount(quantity, amount):
    with pytest.raises(ValueError):
        OrderRequest(
            side=OrderSide.BUY,
            merchant_transaction_id="TXN_1",
            unique_id="9876543210",
            lock_price=Decimal("6100"),
            metal_type="gold",
            block_id="BLOCK_1",
            quantity=quantity,
            amount=amount,
        )


def test_simulated_transaction_is_labeled_and_pending(rate, bank):
    order = OrderInput(OrderSide.BUY, InputMode.AMOUNT, "1000", bank)
    request = build_order_request(order, Decimal("0.1639"), Decimal("1000"), rate, unique_id="9876543210")
    transaction = simulated_transaction(request)

    assert transaction.simulated is True
    assert transaction.status is TransactionStatus.PENDING
    assert transaction.merchant_transaction_id == request.merchant_transaction_id
    assert transaction.amount == Decimal("1000")
    assert transaction.quantity == Decimal("0.1639")
