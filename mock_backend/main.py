"""In-memory stand-in for the gold-trading backend, for local runs and tests"""

import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, List, Optional, Tuple

from fastapi import Body, FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse

VALID_OTP = "123456"
SIGNATURE_PREFIX = "mock_signature_"


def envelope(data: Any = None, message: str = "OK", success: bool = True, status_code: int = 200) -> JSONResponse:
    body: Dict[str, Any] = {"success": success, "message": message}
    if data is not None:
        body["data"] = data
    return JSONResponse(status_code=status_code, content=body)


def failure(message: str, status_code: int = 200) -> JSONResponse:
    return envelope(message=message, success=False, status_code=status_code)


@dataclass
class MockBackendState:
    """Everything the fake backend knows; tests read and tweak it directly"""

    buy_price: Decimal = Decimal("6100")
    sell_price: Decimal = Decimal("6000")
    block_id: str = "BLOCK_1"
    balance_grams: Decimal = Decimal("0.016")
    banks: Dict[str, List[Dict[str, Any]]] = field(default_factory=dict)
    transactions: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    payment_orders: Dict[str, str] = field(default_factory=dict)
    kyc: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    require_auth: bool = False
    calls: List[Tuple[str, str]] = field(default_factory=list)
    payloads: Dict[str, List[Dict[str, Any]]] = field(default_factory=dict)
    # path -> (status code, success=false message), or None for a non-JSON body
    failures: Dict[str, Optional[Tuple[int, str]]] = field(default_factory=dict)

    def fail(self, path: str, message: str, status_code: int = 200) -> None:
        self.failures[path] = (status_code, message)

    def garble(self, path: str) -> None:
        self.failures[path] = None

    def called(self, path: str) -> bool:
        return any(p == path for _, p in self.calls)

    def add_bank(self, unique_id: str, bank_id: str = "1", bank_name: str = "HDFC Bank") -> Dict[str, Any]:
        row = {
            "id": bank_id,
            "account_holder_name": "Test User",
            "account_number": "123456789012",
            "ifsc_code": "HDFC0001234",
            "bank_name": bank_name,
        }
        self.banks.setdefault(unique_id, []).append(row)
        return row


def _number(value: Any) -> Optional[Decimal]:
    if value is None:
        return None
    return Decimal(str(value))


def _round(value: Decimal, places: str) -> float:
    return float(value.quantize(Decimal(places), rounding=ROUND_HALF_UP))


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def create_mock_backend(state: Optional[MockBackendState] = None) -> FastAPI:
    app = FastAPI(title="Mock Gold Backend", version="1.0.0")
    app.state.backend = state = state or MockBackendState()

    @app.middleware("http")
    async def record_and_inject(request: Request, call_next):
        path = request.url.path
        state.calls.append((request.method, path))
        if path in state.failures:
            injected = state.failures[path]
            if injected is None:
                return PlainTextResponse("<html>Internal Server Error</html>", status_code=500)
            status_code, message = injected
            return failure(message, status_code)
        if state.require_auth and path in ("/gold/buy.php", "/gold/sell.php"):
            if not request.headers.get("Authorization", "").startswith("Bearer "):
                return failure("Authentication failed", 401)
        return await call_next(request)

    def remember(path: str, payload: Dict[str, Any]) -> None:
        state.payloads.setdefault(path, []).append(payload)

    @app.get("/health")
    def health():
        return {"status": "ok"}

    # Market data

    @app.get("/gold/rates.php")
    def rates():
        return envelope(
            {
                "current": {
                    "buy_price": float(state.buy_price),
                    "sell_price": float(state.sell_price),
                    "block_id": state.block_id,
                    "updated_at": _now(),
                }
            }
        )

    @app.get("/users/banks/list.php")
    def banks(unique_id: str):
        return envelope({"bank_accounts": state.banks.get(unique_id, [])})

    @app.get("/user/dashboard.php")
    def dashboard():
        return envelope(
            {
                "balance_grams": _round(state.balance_grams, "0.0001"),
                "balance_inr": _round(state.balance_grams * state.sell_price, "0.01"),
            }
        )

    @app.get("/user/transactions.php")
    def transactions(type: str = "all", limit: int = 20, offset: int = 0):
        rows = [t for t in state.transactions.values() if type == "all" or t["transaction_type"] == type]
        rows.sort(key=lambda t: t["created_at"], reverse=True)
        page = rows[offset : offset + limit]
        return envelope(
            {
                "transactions": page,
                "pagination": {"total": len(rows), "has_more": offset + limit < len(rows)},
            }
        )

    # Orders

    def create_transaction(side: str, payload: Dict[str, Any]) -> Tuple[Optional[Dict[str, Any]], Optional[str]]:
        quantity, amount = _number(payload.get("quantity")), _number(payload.get("amount"))
        if (quantity is None) == (amount is None):
            return None, "Provide either quantity or amount, not both"
        lock_price = _number(payload.get("lockPrice"))
        if not lock_price or lock_price <= 0:
            return None, "Invalid lock price"
        txn_id = payload.get("merchantTransactionId")
        if not txn_id or txn_id in state.transactions:
            return None, "Duplicate or missing merchant transaction id"

        if quantity is None:
            quantity = amount / lock_price
        else:
            amount = quantity * lock_price

        row = {
            "merchant_transaction_id": txn_id,
            "transaction_id": f"BK{len(state.transactions) + 1:06d}",
            "transaction_type": side,
            "unique_id": payload.get("uniqueId"),
            "block_id": payload.get("blockId"),
            "quantity": _round(quantity, "0.0001"),
            "amount": _round(amount, "0.01"),
            "lock_price": _round(lock_price, "0.01"),
            "status": "pending",
            "payment_status": "pending",
            "created_at": _now(),
        }
        return row, None

    @app.post("/gold/buy.php")
    def buy(payload: Dict[str, Any] = Body(...)):
        remember("/gold/buy.php", payload)
        row, error = create_transaction("buy", payload)
        if error:
            return failure(error, 400)
        state.transactions[row["merchant_transaction_id"]] = row
        return envelope({"buy_transaction": row}, "Buy order created")

    @app.post("/gold/sell.php")
    def sell(payload: Dict[str, Any] = Body(...)):
        remember("/gold/sell.php", payload)
        if not payload.get("userBankId"):
            return failure("Bank account is required for sell orders", 400)
        row, error = create_transaction("sell", payload)
        if error:
            return failure(error, 400)
        grams = Decimal(str(row["quantity"]))
        if grams > state.balance_grams:
            return failure("Insufficient gold balance", 400)
        state.balance_grams -= grams
        state.transactions[row["merchant_transaction_id"]] = row
        return envelope({"sell_transaction": row}, "Sell order created")

    @app.post("/gold/update-transaction-status.php")
    def update_status(payload: Dict[str, Any] = Body(...)):
        remember("/gold/update-transaction-status.php", payload)
        row = state.transactions.get(payload.get("merchant_transaction_id"))
        if row is None:
            return failure("Transaction not found", 404)
        was_completed = row["status"] == "completed"
        row["status"] = payload.get("status", row["status"])
        row["payment_status"] = payload.get("payment_status", row["payment_status"])
        row["payment_reference"] = payload.get("payment_reference")
        if row["transaction_type"] == "buy" and row["status"] == "completed" and not was_completed:
            state.balance_grams += Decimal(str(row["quantity"]))
        return envelope({"transaction": row}, "Transaction updated")

    # Payments

    @app.post("/payments/razorpay/create-order.php")
    def create_order(payload: Dict[str, Any] = Body(...)):
        remember("/payments/razorpay/create-order.php", payload)
        txn_id = payload.get("merchant_transaction_id")
        if txn_id not in state.transactions:
            return failure("Unknown merchant transaction", 400)
        order_id = f"order_mock_{int(time.time() * 1000)}_{len(state.payment_orders) + 1}"
        state.payment_orders[order_id] = txn_id
        return envelope(
            {"order_id": order_id, "amount": payload.get("amount"), "currency": payload.get("currency", "INR")},
            "Payment order created",
        )

    @app.post("/payments/razorpay/verify-payment.php")
    def verify_payment(payload: Dict[str, Any] = Body(...)):
        remember("/payments/razorpay/verify-payment.php", payload)
        order_id = payload.get("razorpay_order_id")
        if state.payment_orders.get(order_id) != payload.get("merchant_transaction_id"):
            return failure("Payment verification failed: order mismatch", 400)
        if not str(payload.get("razorpay_signature", "")).startswith(SIGNATURE_PREFIX):
            return failure("Payment verification failed: invalid signature", 400)
        return envelope({"verified": True, "payment_id": payload.get("razorpay_payment_id")}, "Payment verified")

    # Authentication and KYC

    @app.post("/auth/send-otp.php")
    def send_otp(payload: Dict[str, Any] = Body(...)):
        remember("/auth/send-otp.php", payload)
        return envelope({"mobile": payload.get("mobile")}, "OTP sent successfully")

    @app.post("/auth/verify-otp.php")
    def verify_otp(payload: Dict[str, Any] = Body(...)):
        remember("/auth/verify-otp.php", payload)
        if payload.get("otp") != VALID_OTP:
            return failure("Invalid OTP", 400)
        mobile = payload.get("mobile")
        kyc_status = state.kyc.get(mobile, {}).get("status", "pending")
        return envelope(
            {
                "token": f"mock_token_{mobile}",
                "kyc_status": kyc_status,
                "user": {"first_name": "Test", "last_name": "User"},
            },
            "OTP verified",
        )

    @app.post("/auth/send-email-otp-real.php")
    def send_email_otp(payload: Dict[str, Any] = Body(...)):
        remember("/auth/send-email-otp-real.php", payload)
        return envelope({"email": payload.get("email")}, "Verification code sent")

    @app.post("/auth/verify-email-otp.php")
    def verify_email_otp(payload: Dict[str, Any] = Body(...)):
        remember("/auth/verify-email-otp.php", payload)
        if payload.get("otp") != VALID_OTP:
            return failure("Invalid OTP", 400)
        return envelope({"email": payload.get("email"), "verified": True}, "Email verified")

    @app.get("/users/kyc/get.php")
    def get_kyc(unique_id: str):
        details = state.kyc.get(unique_id)
        if details is None:
            return envelope({"kyc_details": None}, "No KYC on file")
        return envelope({"kyc_details": details})

    @app.post("/users/kyc/update.php")
    def update_kyc(payload: Dict[str, Any] = Body(...)):
        remember("/users/kyc/update.php", payload)
        unique_id = payload.get("unique_id")
        if not unique_id:
            return failure("unique_id is required", 400)
        details = {
            "pan_number": payload.get("panNumber"),
            "name_as_per_pan": payload.get("nameAsPerPan"),
            "date_of_birth": payload.get("dateOfBirth"),
            "status": payload.get("status", "pending"),
        }
        state.kyc[unique_id] = details
        return envelope({"kyc_details": details}, "KYC submitted")

    return app


app = create_mock_backend()
