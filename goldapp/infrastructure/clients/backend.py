"""Backend API HTTP client for rates, banks, orders and payments"""

import logging
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional

import httpx

from goldapp.config import settings
from goldapp.domain.exceptions import (
    AuthenticationError,
    BackendBusinessError,
    BackendRejectedError,
    BackendTimeoutError,
    BackendUnavailableError,
    MalformedResponseError,
    RateLimitError,
)
from goldapp.domain.models import (
    AuthResult,
    BankAccount,
    Holding,
    MockPaymentResult,
    OrderRequest,
    OrderSide,
    Rate,
    Transaction,
    TransactionPage,
    TransactionStatus,
)
from goldapp.domain.session import Session
from goldapp.infrastructure.observability.metrics import backend_latency_histogram

logger = logging.getLogger(__name__)


def classify_failure(message: str, status_code: Optional[int] = None) -> BackendBusinessError:
    """Map a success=false envelope to the business error it describes"""
    text = (message or "").lower()
    if status_code == 429 or "rate limit" in text:
        return RateLimitError(message, status_code)
    if status_code == 401 or "authentication failed" in text or "authorization" in text:
        return AuthenticationError(message, status_code)
    return BackendRejectedError(message or "Request rejected by server", status_code)


def to_decimal(value: Any, default: Decimal = Decimal("0")) -> Decimal:
    if value is None or value == "":
        return default
    try:
        result = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return default
    return result if result.is_finite() else default


def parse_timestamp(value: Any) -> datetime:
    if isinstance(value, str) and value:
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
            return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
        except ValueError:
            pass
    return datetime.now(timezone.utc)


def parse_status(value: Any) -> TransactionStatus:
    try:
        return TransactionStatus(str(value).lower())
    except ValueError:
        return TransactionStatus.PENDING


def parse_bank(row: Dict[str, Any]) -> BankAccount:
    return BankAccount(
        id=str(row["id"]),
        account_holder_name=row.get("account_holder_name") or row.get("account_name") or "",
        account_number=str(row.get("account_number", "")),
        ifsc_code=row.get("ifsc_code", ""),
        bank_name=row.get("bank_name", ""),
    )


def parse_transaction(row: Dict[str, Any], side: OrderSide, request: Optional[OrderRequest] = None) -> Transaction:
    """Backend transaction row; missing fields fall back to what was requested"""
    return Transaction(
        merchant_transaction_id=str(
            row.get("merchant_transaction_id")
            or row.get("transaction_id")
            or (request.merchant_transaction_id if request else row["id"])
        ),
        side=side,
        status=parse_status(row.get("status", "pending")),
        payment_status=str(row.get("payment_status", "pending")),
        quantity=to_decimal(row.get("quantity", row.get("grams")), request.preview_quantity if request else Decimal("0")),
        amount=to_decimal(
            row.get("amount", row.get("total_amount", row.get("amount_inr"))),
            request.preview_amount if request else Decimal("0"),
        ),
        lock_price=to_decimal(row.get("lock_price", row.get("rate")), request.lock_price if request else Decimal("0")),
        created_at=parse_timestamp(row.get("created_at")),
        payment_reference=row.get("payment_reference"),
    )


class BackendClient:
    """Client for the remote gold-trading backend"""

    def __init__(
        self,
        session: Optional[Session] = None,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.session = session or Session()
        self.base_url = (base_url or settings.backend_api_base).rstrip("/")
        self.timeout = timeout or settings.http_timeout_seconds
        self.transport = transport

    async def _request(
        self,
        operation: str,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Send one request and unwrap the {success, message, data} envelope.

        Raises:
            NetworkError: On timeout, connection failure, or a non-JSON body
            BackendBusinessError: When the envelope reports success=false
        """
        headers = {"Accept": "application/json", **self.session.auth_headers()}

        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                with backend_latency_histogram.labels(operation=operation).time():
                    response = await client.request(
                        method,
                        f"{self.base_url}{path}",
                        params=params,
                        json=json,
                        headers=headers,
                    )
            except httpx.TimeoutException as e:
                raise BackendTimeoutError(f"Backend timeout after {self.timeout}s ({operation})") from e
            except httpx.RequestError as e:
                raise BackendUnavailableError(f"Backend unreachable ({operation}): {e}") from e

        try:
            data = response.json()
        except ValueError as e:
            raise MalformedResponseError(
                f"Invalid response format from server ({operation}, HTTP {response.status_code})"
            ) from e

        if not isinstance(data, dict):
            raise MalformedResponseError(f"Invalid response format from server ({operation})")

        if "success" not in data:
            if response.is_success:
                raise MalformedResponseError(f"Response without success flag ({operation})")
            if response.status_code >= 500:
                raise BackendUnavailableError(f"Backend error: {response.status_code} ({operation})")
            raise classify_failure(data.get("message", ""), response.status_code)

        if not data["success"]:
            logger.info(
                "Backend rejected request",
                extra={"operation": operation, "status_code": response.status_code, "backend_message": data.get("message")},
            )
            raise classify_failure(data.get("message", ""), response.status_code)

        return data

    @staticmethod
    def _data(envelope: Dict[str, Any], operation: str) -> Dict[str, Any]:
        data = envelope.get("data")
        if not isinstance(data, dict):
            raise MalformedResponseError(f"Response without data object ({operation})")
        return data

    @staticmethod
    def _optional_data(envelope: Dict[str, Any], operation: str) -> Dict[str, Any]:
        """Like _data, but an absent or empty data field reads as {}"""
        data = envelope.get("data") or {}
        if not isinstance(data, dict):
            raise MalformedResponseError(f"Invalid data object in response ({operation})")
        return data

    @staticmethod
    def _rows(data: Dict[str, Any], key: str, operation: str) -> List[Dict[str, Any]]:
        rows = data.get(key) or []
        if not isinstance(rows, list) or not all(isinstance(row, dict) for row in rows):
            raise MalformedResponseError(f"Invalid {key} list in response ({operation})")
        return rows

    # Market data

    async def get_rates(self) -> Rate:
        envelope = await self._request("rates", "GET", "/gold/rates.php")
        try:
            current = self._data(envelope, "rates")["current"]
            return Rate(
                buy_price=Decimal(str(current["buy_price"])),
                sell_price=Decimal(str(current["sell_price"])),
                captured_at=parse_timestamp(current.get("updated_at")),
                block_id=str(current.get("block_id") or ""),
                source="live",
            )
        except (KeyError, TypeError, InvalidOperation) as e:
            raise MalformedResponseError(f"Invalid rate data from backend: {e}") from e

    async def get_user_banks(self, unique_id: str) -> List[BankAccount]:
        envelope = await self._request("banks", "GET", "/users/banks/list.php", params={"unique_id": unique_id})
        try:
            rows = self._rows(self._data(envelope, "banks"), "bank_accounts", "banks")
            return [parse_bank(row) for row in rows]
        except (KeyError, TypeError) as e:
            raise MalformedResponseError(f"Invalid bank data from backend: {e}") from e

    async def get_holdings(self) -> Holding:
        envelope = await self._request("holdings", "GET", "/user/dashboard.php")
        data = self._data(envelope, "holdings")
        return Holding(
            grams=to_decimal(data.get("balance_grams")),
            value_inr=to_decimal(data.get("balance_inr")),
        )

    async def get_transactions(self, type: str = "all", limit: int = 20, offset: int = 0) -> TransactionPage:
        envelope = await self._request(
            "transactions",
            "GET",
            "/user/transactions.php",
            params={"type": type, "limit": limit, "offset": offset},
        )
        data = self._data(envelope, "transactions")
        transactions = []
        for row in self._rows(data, "transactions", "transactions"):
            kind = str(row.get("transaction_type") or row.get("type") or "").lower()
            # SIP and transfer rows are not orders placed from this app
            if kind not in (OrderSide.BUY.value, OrderSide.SELL.value):
                continue
            try:
                transactions.append(parse_transaction(row, OrderSide(kind)))
            except KeyError as e:
                raise MalformedResponseError(f"Invalid transaction data from backend: {e}") from e

        pagination = data.get("pagination") or {}
        if not isinstance(pagination, dict):
            raise MalformedResponseError("Invalid pagination in transactions response")
        return TransactionPage(transactions=transactions, has_more=bool(pagination.get("has_more", False)))

    # Orders

    async def buy_gold(self, request: OrderRequest) -> Transaction:
        envelope = await self._request("buy", "POST", "/gold/buy.php", json=request.to_payload())
        row = self._data(envelope, "buy").get("buy_transaction")
        if not isinstance(row, dict):
            raise MalformedResponseError("Buy response without buy_transaction")
        return parse_transaction(row, OrderSide.BUY, request)

    async def sell_gold(self, request: OrderRequest) -> Transaction:
        envelope = await self._request("sell", "POST", "/gold/sell.php", json=request.to_payload())
        row = self._data(envelope, "sell").get("sell_transaction")
        if not isinstance(row, dict):
            raise MalformedResponseError("Sell response without sell_transaction")
        return parse_transaction(row, OrderSide.SELL, request)

    async def submit_order(self, request: OrderRequest) -> Transaction:
        if request.side is OrderSide.BUY:
            return await self.buy_gold(request)
        return await self.sell_gold(request)

    # Payments

    async def create_payment_order(
        self, merchant_transaction_id: str, amount: Decimal, user_info: Optional[Dict[str, Any]] = None
    ) -> str:
        envelope = await self._request(
            "payment_order",
            "POST",
            "/payments/razorpay/create-order.php",
            json={
                "amount": float(amount),
                "currency": "INR",
                "merchant_transaction_id": merchant_transaction_id,
                "user_info": user_info or {},
            },
        )
        order_id = self._data(envelope, "payment_order").get("order_id")
        if not order_id:
            raise MalformedResponseError("Payment order response without order_id")
        return str(order_id)

    async def verify_payment(
        self, merchant_transaction_id: str, payment_order_id: str, result: MockPaymentResult
    ) -> Dict[str, Any]:
        return await self._request(
            "verify_payment",
            "POST",
            "/payments/razorpay/verify-payment.php",
            json={
                "razorpay_order_id": payment_order_id,
                "razorpay_payment_id": result.payment_id,
                "razorpay_signature": result.signature,
                "merchant_transaction_id": merchant_transaction_id,
            },
        )

    async def update_transaction_status(
        self,
        merchant_transaction_id: str,
        status: TransactionStatus,
        payment_reference: str,
        payment_method: str = "razorpay",
    ) -> Dict[str, Any]:
        return await self._request(
            "update_status",
            "POST",
            "/gold/update-transaction-status.php",
            json={
                "merchant_transaction_id": merchant_transaction_id,
                "status": status.value,
                "payment_status": status.value,
                "payment_method": payment_method,
                "payment_reference": payment_reference,
            },
        )

    # Authentication and KYC

    async def send_otp(self, mobile: str) -> Dict[str, Any]:
        return await self._request("send_otp", "POST", "/auth/send-otp.php", json={"mobile": mobile})

    async def verify_otp(self, mobile: str, otp: str) -> AuthResult:
        envelope = await self._request("verify_otp", "POST", "/auth/verify-otp.php", json={"mobile": mobile, "otp": otp})
        data = self._optional_data(envelope, "verify_otp")
        user = data.get("user") or {}
        if not isinstance(user, dict):
            raise MalformedResponseError("Invalid user profile in OTP response")
        return AuthResult(
            token=data.get("token"),
            kyc_status=data.get("kyc_status") or "pending",
            user=user,
        )

    async def send_email_otp(self, email: str) -> Dict[str, Any]:
        return await self._request("send_email_otp", "POST", "/auth/send-email-otp-real.php", json={"email": email})

    async def verify_email_otp(self, email: str, otp: str) -> Dict[str, Any]:
        return await self._request(
            "verify_email_otp", "POST", "/auth/verify-email-otp.php", json={"email": email, "otp": otp}
        )

    async def get_kyc_details(self, unique_id: str) -> Dict[str, Any]:
        envelope = await self._request("kyc_get", "GET", "/users/kyc/get.php", params={"unique_id": unique_id})
        return self._optional_data(envelope, "kyc_get")

    async def update_kyc_details(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        envelope = await self._request("kyc_update", "POST", "/users/kyc/update.php", json=payload)
        return self._optional_data(envelope, "kyc_update")
