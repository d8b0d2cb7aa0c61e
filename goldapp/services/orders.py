"""Order placement workflow: validate, submit, pay, reconcile, navigate"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, List, Optional

from goldapp.config import settings
from goldapp.domain.exceptions import (
    BackendBusinessError,
    NetworkError,
    PaymentCancelledError,
    PaymentOrderError,
    PaymentVerificationError,
)
from goldapp.domain.models import (
    Holding,
    OrderInput,
    OrderSide,
    Quote,
    Rate,
    Transaction,
    TransactionStatus,
)
from goldapp.domain.orders import build_order_request
from goldapp.domain.session import Session
from goldapp.domain.validation import validate
from goldapp.infrastructure.clients.degraded import DegradedModeClient
from goldapp.infrastructure.observability.logging import log_order_event
from goldapp.infrastructure.observability.metrics import record_order, validation_failure_counter
from goldapp.payments.gateway import MockPaymentGateway, PaymentSession
from goldapp.services.journal import OrderJournal
from goldapp.services.navigation import TRANSACTION_HISTORY, Navigator, ScheduledNavigation, schedule_navigation
from goldapp.services.reconciler import TransactionReconciler

logger = logging.getLogger(__name__)


class CheckoutOutcome:
    AWAITING_PAYMENT = "awaiting_payment"
    SUBMITTED = "submitted"
    SIMULATED = "simulated"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"


@dataclass
class Checkout:
    """
    Result of placing an order, tracked until the user leaves the flow.

    Also acts as the Navigator for front-ends that poll instead of receiving
    navigation callbacks: the screen to show is recorded in `screen`.
    """

    transaction: Transaction
    outcome: str
    payment_order_id: Optional[str] = None
    payment: Optional[PaymentSession] = None
    error: Optional[str] = None
    screen: Optional[str] = None
    navigation: Optional[ScheduledNavigation] = None
    navigations: List[str] = field(default_factory=list)

    def navigate(self, screen: str) -> None:
        self.screen = screen
        self.navigations.append(screen)


class OrderService:
    """Drives one order from confirmation to settlement"""

    def __init__(
        self,
        client: DegradedModeClient,
        gateway: MockPaymentGateway,
        journal: Optional[OrderJournal] = None,
        minimums: Optional[Dict[OrderSide, Decimal]] = None,
        redirect_delay: Optional[float] = None,
    ):
        self.client = client
        self.gateway = gateway
        self.journal = journal
        self.reconciler = TransactionReconciler(client)
        self.minimums = minimums or {
            OrderSide.BUY: settings.buy_minimum_amount,
            OrderSide.SELL: settings.sell_minimum_amount,
        }
        self.redirect_delay = settings.redirect_delay_seconds if redirect_delay is None else redirect_delay

    def _validate(self, order: OrderInput, calculated: Decimal, available: Optional[Decimal] = None) -> None:
        result = validate(order, calculated, available, self.minimums)
        if not result.ok:
            validation_failure_counter.labels(side=order.side.value, code=result.error.value).inc()
        result.raise_for_error()

    async def submit(self, order: OrderInput, quote: Quote, rate: Rate, session: Session) -> Transaction:
        """
        Create the pending transaction on the backend.

        Rate-limit and auth failures come back as a simulated pending
        transaction (Transaction.simulated) from the degraded-mode client.
        """
        request = build_order_request(
            order,
            quote.quantity,
            quote.amount,
            rate,
            unique_id=session.unique_id,
            metal_type=settings.metal_type,
            default_payment_mode=settings.default_payment_mode,
        )

        try:
            transaction = await self.client.submit_order(request)
        except (BackendBusinessError, NetworkError) as e:
            record_order(order.side.value, "error")
            log_order_event("submit_failed", request.merchant_transaction_id, order.side.value, "error", error=str(e))
            raise

        outcome = "simulated" if transaction.simulated else "pending"
        record_order(order.side.value, outcome)
        log_order_event(
            "submitted",
            transaction.merchant_transaction_id,
            order.side.value,
            outcome,
            simulated=transaction.simulated,
            block_id=request.block_id,
        )

        if self.journal is not None:
            self.journal.record_submission(request, order.mode, transaction)
        return transaction

    async def place_buy(self, order: OrderInput, quote: Quote, rate: Rate, session: Session) -> Checkout:
        """Validate, submit, then open a checkout for the pending transaction"""
        self._validate(order, quote.calculated)
        with self.gateway.reserve() as reservation:
            transaction = await self.submit(order, quote, rate, session)

            if transaction.simulated:
                return Checkout(transaction=transaction, outcome=CheckoutOutcome.SIMULATED)

            try:
                payment_order_id = await self.client.create_payment_order(
                    transaction.merchant_transaction_id, quote.amount, session.user
                )
            except (BackendBusinessError, NetworkError) as e:
                self._journal_payment(transaction, TransactionStatus.PENDING.value, "failed")
                raise PaymentOrderError(f"Payment processing failed: {e}") from e

            payment = self.gateway.open(payment_order_id, quote.amount, reservation=reservation)
        self._journal_payment(transaction, TransactionStatus.PENDING.value, "pending", payment_order_id=payment_order_id)

        return Checkout(
            transaction=transaction,
            outcome=CheckoutOutcome.AWAITING_PAYMENT,
            payment_order_id=payment_order_id,
            payment=payment,
        )

    async def complete_buy(self, checkout: Checkout, navigator: Optional[Navigator] = None) -> Transaction:
        """
        Wait for the checkout to settle and reconcile it.

        Raises:
            PaymentCancelledError: User closed the checkout
            PaymentVerificationError: Backend refused the payment
        """
        transaction = checkout.transaction
        try:
            result = await checkout.payment.result()
        except PaymentCancelledError as e:
            checkout.outcome = CheckoutOutcome.CANCELLED
            checkout.error = str(e)
            self._journal_payment(transaction, TransactionStatus.PENDING.value, TransactionStatus.CANCELLED.value)
            log_order_event("payment_cancelled", transaction.merchant_transaction_id, transaction.side.value, "cancelled")
            raise

        try:
            completed = await self.reconciler.reconcile(transaction, checkout.payment_order_id, result)
        except PaymentVerificationError as e:
            checkout.outcome = CheckoutOutcome.FAILED
            checkout.error = str(e)
            self._journal_payment(
                transaction, TransactionStatus.PENDING.value, "failed", payment_reference=result.payment_id
            )
            raise

        checkout.transaction = completed
        checkout.outcome = CheckoutOutcome.COMPLETED
        self._journal_payment(
            completed,
            TransactionStatus.COMPLETED.value,
            TransactionStatus.COMPLETED.value,
            payment_reference=result.payment_id,
        )
        checkout.navigation = schedule_navigation(navigator or checkout, TRANSACTION_HISTORY, self.redirect_delay)
        return completed

    async def place_sell(
        self,
        order: OrderInput,
        quote: Quote,
        rate: Rate,
        session: Session,
        holding: Holding,
        navigator: Optional[Navigator] = None,
    ) -> Checkout:
        """
        Validate against holdings and submit. Sale proceeds go to the user's
        bank, so there is no checkout; the transaction stays pending until the
        backend settles the payout.
        """
        self._validate(order, quote.calculated, holding.grams)
        transaction = await self.submit(order, quote, rate, session)

        checkout = Checkout(
            transaction=transaction,
            outcome=CheckoutOutcome.SIMULATED if transaction.simulated else CheckoutOutcome.SUBMITTED,
        )
        checkout.navigation = schedule_navigation(navigator or checkout, TRANSACTION_HISTORY, self.redirect_delay)
        return checkout

    def _journal_payment(
        self,
        transaction: Transaction,
        status: str,
        payment_status: str,
        payment_order_id: Optional[str] = None,
        payment_reference: Optional[str] = None,
    ) -> None:
        if self.journal is None:
            return
        self.journal.record_payment(
            transaction.merchant_transaction_id, status, payment_status, payment_order_id, payment_reference
        )
