"""Integration tests for API endpoints against the mock backend"""

from decimal import Decimal

from fastapi.testclient import TestClient

from mock_backend.main import MockBackendState

MOBILE = "9876543210"


def test_health_endpoint(client: TestClient):
    """Test health check endpoint"""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_metrics_endpoint(client: TestClient):
    """Test Prometheus metrics endpoint"""
    response = client.get("/metrics")
    assert response.status_code == 200
    assert "goldapp_orders_total" in response.text
    assert "goldapp_degraded_fallback_total" in response.text


def test_request_id_header(client: TestClient):
    response = client.get("/health", headers={"X-Request-ID": "req-123"})
    assert response.headers["X-Request-ID"] == "req-123"
    assert client.get("/health").headers["X-Request-ID"]


# Auth


def test_send_otp_rejects_bad_mobile(client: TestClient, backend_state: MockBackendState):
    response = client.post("/v1/auth/otp/send", json={"mobile": "12345"})

    assert response.status_code == 422
    assert response.json()["detail"]["code"] == "InvalidInput"
    assert not backend_state.called("/auth/send-otp.php")


def test_send_otp(client: TestClient):
    response = client.post("/v1/auth/otp/send", json={"mobile": MOBILE})
    assert response.status_code == 200
    assert response.json()["success"] is True


def test_wrong_otp(client: TestClient):
    response = client.post("/v1/auth/otp/verify", json={"mobile": MOBILE, "otp": "000000"})
    assert response.status_code == 400
    assert "Invalid OTP" in response.json()["detail"]
    assert client.get("/v1/auth/session").json()["authenticated"] is False


def test_login_and_logout(logged_in_client: TestClient):
    session = logged_in_client.get("/v1/auth/session").json()
    assert session["authenticated"] is True
    assert session["unique_id"] == MOBILE
    assert session["user"]["mobile"] == MOBILE

    response = logged_in_client.post("/v1/auth/logout")
    assert response.status_code == 200
    assert response.json()["authenticated"] is False
    assert logged_in_client.get("/v1/banks").status_code == 401


def test_email_otp(client: TestClient):
    assert client.post("/v1/auth/email-otp/send", json={"email": "a@example.com"}).status_code == 200
    assert client.post("/v1/auth/email-otp/send", json={"email": "nope"}).status_code == 422

    response = client.post("/v1/auth/email-otp/verify", json={"email": "a@example.com", "otp": "123456"})
    assert response.status_code == 200


def test_order_endpoints_require_login(client: TestClient):
    assert client.post("/v1/orders/buy", json={"value": "1000"}).status_code == 401
    assert client.get("/v1/holdings").status_code == 401
    assert client.get("/v1/transactions").status_code == 401


# KYC


def test_submit_and_read_kyc(logged_in_client: TestClient, backend_state: MockBackendState):
    response = logged_in_client.post(
        "/v1/kyc",
        json={"pan_number": "ABCDE1234F", "name_as_per_pan": "Test User", "date_of_birth": "1990-01-31"},
    )
    assert response.status_code == 200
    assert response.json()["kyc_details"]["status"] == "pending"

    sent = backend_state.payloads["/users/kyc/update.php"][0]
    assert sent["unique_id"] == MOBILE
    assert sent["panNumber"] == "ABCDE1234F"
    assert sent["dateOfBirth"] == "1990-01-31"

    details = logged_in_client.get("/v1/kyc").json()["kyc_details"]
    assert details["pan_number"] == "ABCDE1234F"


def test_kyc_rejects_bad_pan_and_minors(logged_in_client: TestClient):
    bad_pan = {"pan_number": "ABC123", "name_as_per_pan": "Test User", "date_of_birth": "1990-01-31"}
    assert logged_in_client.post("/v1/kyc", json=bad_pan).status_code == 422

    minor = {"pan_number": "ABCDE1234F", "name_as_per_pan": "Test User", "date_of_birth": "2020-01-01"}
    response = logged_in_client.post("/v1/kyc", json=minor)
    assert response.status_code == 422
    assert response.json()["detail"]["code"] == "InvalidInput"


# Market data


def test_rates(client: TestClient):
    rate = client.get("/v1/rates").json()
    assert Decimal(rate["buy_price"]) == Decimal("6100")
    assert Decimal(rate["sell_price"]) == Decimal("6000")
    assert rate["block_id"] == "BLOCK_1"
    assert rate["source"] == "live"


def test_rates_fall_back_when_backend_breaks(client: TestClient, backend_state: MockBackendState):
    client.get("/v1/rates")
    backend_state.garble("/gold/rates.php")

    rate = client.get("/v1/rates").json()

    assert rate["source"] == "cached"
    assert rate["block_id"] == "BLOCK_1"


def test_banks_and_holdings(logged_in_client: TestClient):
    banks = logged_in_client.get("/v1/banks").json()
    assert banks["selected_id"] == "1"
    assert banks["bank_accounts"][0]["bank_name"] == "HDFC Bank"

    holding = logged_in_client.get("/v1/holdings").json()
    assert Decimal(holding["grams"]) == Decimal("0.016")
    assert holding["formatted_grams"] == "0.0160 g"


# Orders


def test_quote_buy(logged_in_client: TestClient):
    response = logged_in_client.post("/v1/orders/quote", json={"side": "buy", "mode": "amount", "value": "1000"})

    assert response.status_code == 200
    body = response.json()
    assert body["valid"] is True
    assert Decimal(body["quantity"]).quantize(Decimal("0.0001")) == Decimal("0.1639")
    assert body["formatted_amount"] == "₹1,000.00"


def test_quote_reports_first_failing_rule(logged_in_client: TestClient, backend_state: MockBackendState):
    body = logged_in_client.post(
        "/v1/orders/quote", json={"side": "sell", "mode": "quantity", "value": "0.05"}
    ).json()

    assert body["valid"] is False
    assert body["error_code"] == "InsufficientBalance"
    assert "0.0160 g" in body["message"]
    assert not backend_state.called("/gold/sell.php")


def test_buy_below_minimum_is_not_submitted(logged_in_client: TestClient, backend_state: MockBackendState):
    response = logged_in_client.post("/v1/orders/buy", json={"mode": "amount", "value": "49.99"})

    assert response.status_code == 422
    assert response.json()["detail"]["code"] == "BelowMinimum"
    assert not backend_state.called("/gold/buy.php")


def test_buy_without_bank_account(logged_in_client: TestClient, backend_state: MockBackendState):
    backend_state.banks.clear()

    response = logged_in_client.post("/v1/orders/buy", json={"mode": "amount", "value": "1000"})

    assert response.status_code == 422
    assert response.json()["detail"]["code"] == "NoBankSelected"


def test_buy_with_unknown_bank_account(logged_in_client: TestClient):
    response = logged_in_client.post("/v1/orders/buy", json={"value": "1000", "bank_id": "42"})
    assert response.status_code == 422
    assert response.json()["detail"]["code"] == "NoBankSelected"


def test_rate_limited_buy_is_simulated(logged_in_client: TestClient, backend_state: MockBackendState):
    backend_state.fail("/gold/buy.php", "Rate limit exceeded", 429)

    response = logged_in_client.post("/v1/orders/buy", json={"mode": "amount", "value": "1000"})

    assert response.status_code == 200
    body = response.json()
    assert body["simulated"] is True
    assert body["transaction"]["simulated"] is True
    assert body["checkout_id"] is None
    assert "Demo mode" in body["message"]
    assert not backend_state.called("/payments/razorpay/create-order.php")


def test_rejected_sell_is_reported(logged_in_client: TestClient, backend_state: MockBackendState):
    backend_state.balance_grams = Decimal("1")
    backend_state.fail("/gold/sell.php", "Selling is paused for maintenance", 400)

    response = logged_in_client.post("/v1/orders/sell", json={"mode": "quantity", "value": "0.05"})

    assert response.status_code == 502
    assert "Selling is paused" in response.json()["detail"]


def test_backend_outage_during_buy(logged_in_client: TestClient, backend_state: MockBackendState):
    backend_state.garble("/gold/buy.php")

    response = logged_in_client.post("/v1/orders/buy", json={"mode": "amount", "value": "1000"})

    assert response.status_code == 503
    assert "try again" in response.json()["detail"]


def test_order_history_lists_journaled_attempts(logged_in_client: TestClient):
    logged_in_client.post("/v1/orders/buy", json={"mode": "amount", "value": "1000"})

    orders = logged_in_client.get("/v1/orders/history").json()["orders"]

    assert len(orders) == 1
    assert orders[0]["side"] == "buy"
    assert orders[0]["input_mode"] == "amount"
    assert Decimal(orders[0]["amount"]) == Decimal("1000")
    assert orders[0]["simulated"] is False


# Payments and history


def test_unknown_checkout(client: TestClient):
    assert client.get("/v1/payments/order_missing").status_code == 404
    assert client.post("/v1/payments/order_missing/cancel").status_code == 404


def test_second_buy_while_checkout_open(logged_in_client: TestClient, backend_state: MockBackendState):
    first = logged_in_client.post("/v1/orders/buy", json={"mode": "amount", "value": "1000"})
    assert first.status_code == 200

    second = logged_in_client.post("/v1/orders/buy", json={"mode": "amount", "value": "500"})

    assert second.status_code == 409
    assert len(backend_state.payloads["/gold/buy.php"]) == 1


def test_unknown_payment_method(logged_in_client: TestClient):
    checkout_id = logged_in_client.post("/v1/orders/buy", json={"value": "1000"}).json()["checkout_id"]

    response = logged_in_client.post(f"/v1/payments/{checkout_id}/method", json={"method": "cash"})

    assert response.status_code == 422


def test_transactions_history(logged_in_client: TestClient, backend_state: MockBackendState):
    logged_in_client.post("/v1/orders/buy", json={"mode": "amount", "value": "1000"})

    page = logged_in_client.get("/v1/transactions", params={"type": "buy"}).json()

    assert page["simulated"] is False
    assert len(page["transactions"]) == 1
    assert page["transactions"][0]["side"] == "buy"
    assert page["next_offset"] is None


def test_transactions_demo_fallback(logged_in_client: TestClient, backend_state: MockBackendState):
    backend_state.fail("/user/transactions.php", "Database unavailable", 500)

    page = logged_in_client.get("/v1/transactions").json()

    assert page["simulated"] is True
    assert all(t["simulated"] for t in page["transactions"])


def test_transactions_filter_is_validated(logged_in_client: TestClient):
    assert logged_in_client.get("/v1/transactions", params={"type": "sip"}).status_code == 422
