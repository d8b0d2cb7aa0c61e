"""Degraded-mode adapter: the one place that swaps backend failures for fallback data"""

import logging
import time
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional

from goldapp.config import settings
from goldapp.domain.exceptions import AuthenticationError, BackendBusinessError, NetworkError, RateLimitError
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
from goldapp.domain.orders import simulated_transaction
from goldapp.infrastructure.clients.backend import BackendClient
from goldapp.infrastructure.observability.metrics import degraded_fallback_counter

logger = logging.getLogger(__name__)

# Read endpoints degrade on any failure; order submission only on these
SUBMISSION_DEGRADABLE = (RateLimitError, AuthenticationError)


def demo_transactions(now: Optional[datetime] = None) -> List[Transaction]:
    """Labeled sample history shown when the real one cannot be loaded"""
    now = now or datetime.now(timezone.utc)
    samples = [
        ("DEMO_TXN_1", OrderSide.BUY, TransactionStatus.COMPLETED, "0.1639", "1000.00", "6100", 1),
        ("DEMO_TXN_2", OrderSide.BUY, TransactionStatus.COMPLETED, "0.0820", "500.00", "6100", 3),
        ("DEMO_SELL_1", OrderSide.SELL, TransactionStatus.PENDING, "0.0500", "300.00", "6000", 5),
    ]
    return [
        Transaction(
            merchant_transaction_id=txn_id,
            side=side,
            status=status,
            payment_status=status.value,
            quantity=Decimal(grams),
            amount=Decimal(amount),
            lock_price=Decimal(price),
            created_at=now - timedelta(days=days_ago),
            simulated=True,
        )
        for txn_id, side, status, grams, amount, price, days_ago in samples
    ]


class DegradedModeClient:
    """
    Wraps BackendClient with the app's fallback policy.

    - rates, banks, holdings: last good value, else configured fallback
    - transaction history: labeled demo transactions
    - buy/sell: simulated pending transaction on rate-limit or auth failure
    - payment order, verification, status update, auth, KYC: never degraded
    """

    def __init__(self, backend: BackendClient):
        self.backend = backend
        self._last_rate: Optional[Rate] = None
        self._banks_by_user: Dict[str, List[BankAccount]] = {}
        self._last_holding: Optional[Holding] = None

    @property
    def session(self):
        return self.backend.session

    def _fallback(self, operation: str, error: Exception) -> None:
        degraded_fallback_counter.labels(operation=operation).inc()
        logger.warning(
            f"Backend {operation} failed, serving degraded data: {error}",
            extra={"operation": operation, "error_type": type(error).__name__},
        )

    async def get_rates(self) -> Rate:
        try:
            rate = await self.backend.get_rates()
        except (NetworkError, BackendBusinessError) as e:
            self._fallback("rates", e)
            if self._last_rate is not None:
                return Rate(
                    buy_price=self._last_rate.buy_price,
                    sell_price=self._last_rate.sell_price,
                    captured_at=self._last_rate.captured_at,
                    block_id=self._last_rate.block_id,
                    source="cached",
                )
            return Rate(
                buy_price=settings.fallback_buy_price,
                sell_price=settings.fallback_sell_price,
                captured_at=datetime.now(timezone.utc),
                block_id=f"MOCK_BLOCK_{int(time.time() * 1000)}",
                source="fallback",
            )
        self._last_rate = rate
        return rate

    async def get_user_banks(self, unique_id: str) -> List[BankAccount]:
        try:
            banks = await self.backend.get_user_banks(unique_id)
        except (NetworkError, BackendBusinessError) as e:
            self._fallback("banks", e)
            return list(self._banks_by_user.get(unique_id, []))
        self._banks_by_user[unique_id] = banks
        return banks

    async def get_holdings(self) -> Holding:
        try:
            holding = await self.backend.get_holdings()
        except (NetworkError, BackendBusinessError) as e:
            self._fallback("holdings", e)
            if self._last_holding is not None:
                return self._last_holding
            grams = settings.fallback_holding_grams
            return Holding(grams=grams, value_inr=grams * settings.fallback_sell_price)
        self._last_holding = holding
        return holding

    async def get_transactions(self, type: str = "all", limit: int = 20, offset: int = 0) -> TransactionPage:
        try:
            return await self.backend.get_transactions(type=type, limit=limit, offset=offset)
        except (NetworkError, BackendBusinessError) as e:
            self._fallback("transactions", e)
            samples = [t for t in demo_transactions() if type == "all" or t.side.value == type]
            return TransactionPage(transactions=samples, has_more=False, simulated=True)

    async def submit_order(self, request: OrderRequest) -> Transaction:
        try:
            return await self.backend.submit_order(request)
        except SUBMISSION_DEGRADABLE as e:
            self._fallback(request.side.value, e)
            return simulated_transaction(request)

    # Pass-through: these must surface every failure

    async def create_payment_order(
        self, merchant_transaction_id: str, amount: Decimal, user_info: Optional[Dict[str, Any]] = None
    ) -> str:
        return await self.backend.create_payment_order(merchant_transaction_id, amount, user_info)

    async def verify_payment(
        self, merchant_transaction_id: str, payment_order_id: str, result: MockPaymentResult
    ) -> Dict[str, Any]:
        return await self.backend.verify_payment(merchant_transaction_id, payment_order_id, result)

    async def update_transaction_status(
        self, merchant_transaction_id: str, status: TransactionStatus, payment_reference: str
    ) -> Dict[str, Any]:
        return await self.backend.update_transaction_status(merchant_transaction_id, status, payment_reference)

    async def send_otp(self, mobile: str) -> Dict[str, Any]:
        return await self.backend.send_otp(mobile)

    async def verify_otp(self, mobile: str, otp: str) -> AuthResult:
        return await self.backend.verify_otp(mobile, otp)

    async def send_email_otp(self, email: str) -> Dict[str, Any]:
        return await self.backend.send_email_otp(email)

    async def verify_email_otp(self, email: str, otp: str) -> Dict[str, Any]:
        return await self.backend.verify_email_otp(email, otp)

    async def get_kyc_details(self, unique_id: str) -> Dict[str, Any]:
        return await self.backend.get_kyc_details(unique_id)

    async def update_kyc_details(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return await self.backend.update_kyc_details(payload)
