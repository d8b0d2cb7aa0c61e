"""
Simulated external checkout.

State machine:
    IDLE -> METHOD_SELECTION            (checkout opened)
    METHOD_SELECTION -> PROCESSING      (payment method chosen)
    PROCESSING -> SETTLED_SUCCESS       (after the last stage timer)
    any non-settled -> SETTLED_CANCELLED (user closed the checkout)

Settled states are terminal. Once cancelled, no success result or callback is
ever emitted, even if a stage timer was already due.
"""

import asyncio
import logging
import secrets
import string
import time
from contextlib import contextmanager
from decimal import Decimal
from enum import Enum
from typing import Callable, Dict, Iterator, List, Optional, Sequence, Set

from goldapp.config import settings
from goldapp.domain.exceptions import (
    GatewayBusyError,
    InputError,
    InvalidGatewayTransition,
    PaymentCancelledError,
    ValidationErrorCode,
)
from goldapp.domain.models import MockPaymentResult
from goldapp.infrastructure.observability.metrics import payment_session_counter

logger = logging.getLogger(__name__)


class GatewayState(str, Enum):
    IDLE = "idle"
    METHOD_SELECTION = "method_selection"
    PROCESSING = "processing"
    SETTLED_SUCCESS = "settled_success"
    SETTLED_CANCELLED = "settled_cancelled"


VALID_TRANSITIONS: Dict[GatewayState, Set[GatewayState]] = {
    GatewayState.IDLE: {GatewayState.METHOD_SELECTION, GatewayState.SETTLED_CANCELLED},
    GatewayState.METHOD_SELECTION: {GatewayState.PROCESSING, GatewayState.SETTLED_CANCELLED},
    GatewayState.PROCESSING: {GatewayState.SETTLED_SUCCESS, GatewayState.SETTLED_CANCELLED},
    GatewayState.SETTLED_SUCCESS: set(),
    GatewayState.SETTLED_CANCELLED: set(),
}

SETTLED_STATES = {GatewayState.SETTLED_SUCCESS, GatewayState.SETTLED_CANCELLED}


class ProcessingStage(str, Enum):
    INITIATE = "initiate"
    CONNECT = "connect"
    PROCESS = "process"
    VERIFY = "verify"


STAGE_LABELS: Dict[ProcessingStage, str] = {
    ProcessingStage.INITIATE: "Initiating payment...",
    ProcessingStage.CONNECT: "Connecting to payment gateway...",
    ProcessingStage.PROCESS: "Processing payment...",
    ProcessingStage.VERIFY: "Verifying payment...",
}

PAYMENT_METHODS: Dict[str, str] = {
    "card": "Credit/Debit Card",
    "upi": "UPI",
    "netbanking": "Net Banking",
    "wallet": "Wallets",
    "emi": "EMI",
}

_SUFFIX_ALPHABET = string.ascii_lowercase + string.digits


def _suffix() -> str:
    return "".join(secrets.choice(_SUFFIX_ALPHABET) for _ in range(9))


def generate_payment_result(order_id: str) -> MockPaymentResult:
    now_ms = int(time.time() * 1000)
    return MockPaymentResult(
        payment_id=f"pay_{now_ms}_{_suffix()}",
        order_id=order_id,
        signature=f"mock_signature_{now_ms}_{_suffix()}",
    )


class PaymentSession:
    """One checkout for one payment order"""

    def __init__(
        self,
        order_id: str,
        amount: Decimal,
        stage_offsets: Sequence[float],
        settle_after: float,
        on_success: Optional[Callable[[MockPaymentResult], None]] = None,
    ):
        if len(stage_offsets) != len(ProcessingStage):
            raise ValueError(f"Expected {len(ProcessingStage)} stage offsets, got {len(stage_offsets)}")

        self.order_id = order_id
        self.amount = amount
        self.stage_offsets: List[float] = list(stage_offsets)
        self.settle_after = settle_after
        self.on_success = on_success

        self.state = GatewayState.IDLE
        self.stage: Optional[ProcessingStage] = None
        self.method: Optional[str] = None
        self.payment_result: Optional[MockPaymentResult] = None

        self._settled = asyncio.Event()
        self._task: Optional[asyncio.Task] = None

    @property
    def settled(self) -> bool:
        return self.state in SETTLED_STATES

    @property
    def stage_label(self) -> Optional[str]:
        return STAGE_LABELS[self.stage] if self.stage else None

    def _transition(self, target: GatewayState) -> None:
        if target not in VALID_TRANSITIONS[self.state]:
            raise InvalidGatewayTransition(f"Checkout {self.order_id}: {self.state.value} -> {target.value}")
        logger.debug(
            "Checkout transition",
            extra={"order_id": self.order_id, "from_state": self.state.value, "to_state": target.value},
        )
        self.state = target

    def show_methods(self) -> List[Dict[str, str]]:
        if self.state is GatewayState.IDLE:
            self._transition(GatewayState.METHOD_SELECTION)
        return [{"id": method_id, "name": name} for method_id, name in PAYMENT_METHODS.items()]

    def select_method(self, method_id: str) -> None:
        """Start processing; stages advance on timers of the running event loop"""
        if method_id not in PAYMENT_METHODS:
            raise InputError(
                ValidationErrorCode.INVALID_INPUT,
                f"Unknown payment method '{method_id}'. Choose one of: {', '.join(PAYMENT_METHODS)}.",
            )
        self._transition(GatewayState.PROCESSING)
        self.method = method_id
        self.stage = ProcessingStage.INITIATE
        self._task = asyncio.get_running_loop().create_task(self._run_stages())

    async def _run_stages(self) -> None:
        elapsed = 0.0
        for stage, offset in zip(ProcessingStage, self.stage_offsets):
            await asyncio.sleep(max(0.0, offset - elapsed))
            elapsed = max(elapsed, offset)
            if self.state is not GatewayState.PROCESSING:
                return
            self.stage = stage
        await asyncio.sleep(max(0.0, self.settle_after - elapsed))
        self._settle_success()

    def _settle_success(self) -> None:
        # A cancel may have landed between the last timer firing and this call
        if self.state is not GatewayState.PROCESSING:
            return
        self._transition(GatewayState.SETTLED_SUCCESS)
        self.payment_result = generate_payment_result(self.order_id)
        self._settled.set()
        payment_session_counter.labels(outcome="success").inc()
        logger.info(
            "Mock payment settled",
            extra={"order_id": self.order_id, "method": self.method, "payment_id": self.payment_result.payment_id},
        )
        if self.on_success is not None:
            self.on_success(self.payment_result)

    def cancel(self) -> bool:
        """Close the checkout. Returns False when it had already settled."""
        if self.settled:
            return False
        self._transition(GatewayState.SETTLED_CANCELLED)
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._settled.set()
        payment_session_counter.labels(outcome="cancelled").inc()
        logger.info("Mock payment cancelled", extra={"order_id": self.order_id, "stage": self.stage})
        return True

    async def result(self) -> MockPaymentResult:
        """
        Wait for settlement.

        Raises:
            PaymentCancelledError: The user closed the checkout
        """
        await self._settled.wait()
        if self.state is GatewayState.SETTLED_CANCELLED:
            raise PaymentCancelledError("Payment cancelled by user")
        return self.payment_result


class MockPaymentGateway:
    """
    Hands out at most one unsettled checkout at a time.

    A buy holds the slot with reserve() from before the order is submitted
    until its checkout opens, so a second buy is refused before it can create
    a backend transaction.
    """

    def __init__(self, stage_offsets: Optional[Sequence[float]] = None, settle_after: Optional[float] = None):
        self.stage_offsets = list(stage_offsets if stage_offsets is not None else settings.gateway_stage_offsets)
        self.settle_after = settle_after if settle_after is not None else settings.gateway_settle_after_seconds
        self.active: Optional[PaymentSession] = None
        self._reservation: Optional[object] = None

    @property
    def busy(self) -> bool:
        return self._reservation is not None or (self.active is not None and not self.active.settled)

    def ensure_available(self, reservation: Optional[object] = None) -> None:
        if self.active is not None and not self.active.settled:
            raise GatewayBusyError(
                f"Checkout {self.active.order_id} is still open. Finish or close it before starting another payment."
            )
        if self._reservation is not None and self._reservation is not reservation:
            raise GatewayBusyError("Another payment is being prepared. Wait for it before starting a new one.")

    @contextmanager
    def reserve(self) -> Iterator[object]:
        """Hold the checkout slot; pass the yielded token to open()"""
        self.ensure_available()
        reservation = self._reservation = object()
        try:
            yield reservation
        finally:
            self._reservation = None

    def open(
        self,
        order_id: str,
        amount: Decimal,
        on_success: Optional[Callable[[MockPaymentResult], None]] = None,
        reservation: Optional[object] = None,
    ) -> PaymentSession:
        self.ensure_available(reservation)
        session = PaymentSession(order_id, amount, self.stage_offsets, self.settle_after, on_success)
        session.show_methods()
        self.active = session
        return session

    def get(self, order_id: str) -> Optional[PaymentSession]:
        if self.active is not None and self.active.order_id == order_id:
            return self.active
        return None

    async def checkout(self, order_id: str, amount: Decimal, method_id: str) -> MockPaymentResult:
        session = self.open(order_id, amount)
        session.select_method(method_id)
        return await session.result()
