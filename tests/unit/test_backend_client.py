"""Unit tests for the backend HTTP client"""

import json
from decimal import Decimal

import httpx
import pytest

from goldapp.domain.exceptions import (
    AuthenticationError,
    BackendRejectedError,
    BackendTimeoutError,
    BackendUnavailableError,
    MalformedResponseError,
    RateLimitError,
)
from goldapp.domain.models import InputMode, OrderInput, OrderSide, TransactionStatus
from goldapp.domain.orders import build_order_request
from goldapp.domain.session import Session
from goldapp.infrastructure.clients.backend import BackendClient, classify_failure

BASE_URL = "http://backend.test/api"


def client_for(handler, session: Session = None) -> BackendClient:
    return BackendClient(session=session, base_url=BASE_URL, transport=httpx.MockTransport(handler))


@pytest.mark.parametrize(
    "message,status_code,expected",
    [
        ("Rate limit exceeded", 200, RateLimitError),
        ("Upstream throttled", 429, RateLimitError),
        ("Authentication failed for vendor", 200, AuthenticationError),
        ("Missing authorization header", 200, AuthenticationError),
        ("Token expired", 401, AuthenticationError),
        ("Insufficient gold balance", 400, BackendRejectedError),
    ],
)
def test_classify_failure(message, status_code, expected):
    error = classify_failure(message, status_code)
    assert type(error) is expected
    assert error.message == message


async def test_get_rates_parses_current_block():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/gold/rates.php"
        return httpx.Response(
            200,
            json={
                "success": True,
                "data": {"current": {"buy_price": 6100.5, "sell_price": "6000", "block_id": "B42"}},
            },
        )

    rate = await client_for(handler).get_rates()

    assert rate.buy_price == Decimal("6100.5")
    assert rate.sell_price == Decimal("6000")
    assert rate.block_id == "B42"
    assert rate.source == "live"


async def test_bearer_token_sent_when_logged_in():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["auth"] = request.headers.get("Authorization")
        return httpx.Response(200, json={"success": True, "data": {"balance_grams": 1.5, "balance_inr": 9000}})

    session = Session()
    session.login("tok_123", "9876543210", {})
    holding = await client_for(handler, session).get_holdings()

    assert seen["auth"] == "Bearer tok_123"
    assert holding.grams == Decimal("1.5")


async def test_no_auth_header_when_anonymous():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["auth"] = request.headers.get("Authorization")
        return httpx.Response(200, json={"success": True, "data": {"bank_accounts": []}})

    assert await client_for(handler).get_user_banks("9876543210") == []
    assert seen["auth"] is None


async def test_non_json_body_is_malformed():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, text="<html>Fatal error</html>")

    with pytest.raises(MalformedResponseError):
        await client_for(handler).get_rates()


async def test_json_array_body_is_malformed():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=[1, 2, 3])

    with pytest.raises(MalformedResponseError):
        await client_for(handler).get_rates()


async def test_timeout():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    with pytest.raises(BackendTimeoutError):
        await client_for(handler).get_rates()


async def test_connection_failure():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(BackendUnavailableError):
        await client_for(handler).get_rates()


async def test_error_status_with_envelope_is_classified():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(429, json={"success": False, "message": "Too many requests"})

    with pytest.raises(RateLimitError):
        await client_for(handler).get_rates()


async def test_server_error_without_envelope_is_unavailable():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(502, json={"error": "bad gateway"})

    with pytest.raises(BackendUnavailableError):
        await client_for(handler).get_rates()


async def test_buy_sends_payload_and_parses_transaction(rate, bank):
    sent = {}

    def handler(request: httpx.Request) -> httpx.Response:
        sent.update(json.loads(request.content))
        return httpx.Response(
            200,
            json={
                "success": True,
                "data": {"buy_transaction": {"status": "pending", "quantity": 0.1639, "amount": 1000}},
            },
        )

    order = OrderInput(OrderSide.BUY, InputMode.AMOUNT, "1000", bank)
    request = build_order_request(order, Decimal("0.1639"), Decimal("1000"), rate, unique_id="9876543210")
    transaction = await client_for(handler).submit_order(request)

    assert sent["amount"] == 1000.0
    assert "quantity" not in sent
    assert transaction.merchant_transaction_id == request.merchant_transaction_id
    assert transaction.status is TransactionStatus.PENDING
    assert transaction.quantity == Decimal("0.1639")
    assert transaction.lock_price == Decimal("6100")
    assert transaction.side is OrderSide.BUY


async def test_sell_rejection_raises_business_error(rate, bank):
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/gold/sell.php"
        return httpx.Response(400, json={"success": False, "message": "Insufficient gold balance"})

    order = OrderInput(OrderSide.SELL, InputMode.QUANTITY, "0.05", bank)
    request = build_order_request(order, Decimal("0.05"), Decimal("300"), rate, unique_id="9876543210")

    with pytest.raises(BackendRejectedError) as exc_info:
        await client_for(handler).submit_order(request)
    assert exc_info.value.status_code == 400


async def test_payment_order_without_id_is_malformed():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"success": True, "data": {}})

    with pytest.raises(MalformedResponseError):
        await client_for(handler).create_payment_order("TXN_1", Decimal("1000"))


async def test_transactions_skip_non_order_rows():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.params["type"] == "all"
        assert request.url.params["limit"] == "20"
        return httpx.Response(
            200,
            json={
                "success": True,
                "data": {
                    "transactions": [
                        {"merchant_transaction_id": "TXN_1", "transaction_type": "buy", "status": "completed"},
                        {"merchant_transaction_id": "SIP_1", "transaction_type": "sip", "status": "completed"},
                        {"merchant_transaction_id": "SELL_1", "type": "SELL", "status": "weird"},
                    ],
                    "pagination": {"has_more": True},
                },
            },
        )

    page = await client_for(handler).get_transactions()

    assert [t.merchant_transaction_id for t in page.transactions] == ["TXN_1", "SELL_1"]
    assert page.transactions[0].status is TransactionStatus.COMPLETED
    assert page.transactions[1].side is OrderSide.SELL
    assert page.transactions[1].status is TransactionStatus.PENDING
    assert page.has_more is True
    assert page.simulated is False


async def test_verify_otp_returns_auth_result():
    def handler(request: httpx.Request) -> httpx.Response:
        assert json.loads(request.content) == {"mobile": "9876543210", "otp": "123456"}
        return httpx.Response(
            200,
            json={"success": True, "data": {"token": "tok", "kyc_status": "verified", "user": {"first_name": "A"}}},
        )

    auth = await client_for(handler).verify_otp("9876543210", "123456")

    assert auth.token == "tok"
    assert auth.kyc_status == "verified"
    assert auth.user == {"first_name": "A"}


@pytest.mark.parametrize(
    "data",
    [
        {"transactions": ["garbage"]},
        {"transactions": {"merchant_transaction_id": "TXN_1"}},
        {"transactions": [], "pagination": [True]},
    ],
)
async def test_transactions_with_bad_shape_are_malformed(data):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"success": True, "data": data})

    with pytest.raises(MalformedResponseError):
        await client_for(handler).get_transactions()


async def test_bank_rows_that_are_not_objects_are_malformed():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"success": True, "data": {"bank_accounts": ["HDFC"]}})

    with pytest.raises(MalformedResponseError):
        await client_for(handler).get_user_banks("9876543210")


@pytest.mark.parametrize("data", [["tok"], {"token": "tok", "user": "A"}])
async def test_verify_otp_with_bad_shape_is_malformed(data):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"success": True, "data": data})

    with pytest.raises(MalformedResponseError):
        await client_for(handler).verify_otp("9876543210", "123456")
