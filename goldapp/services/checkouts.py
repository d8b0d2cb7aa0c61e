"""In-process registry of open checkouts and their completion tasks"""

import asyncio
import logging
from typing import Dict, Optional

from goldapp.config import settings
from goldapp.domain.exceptions import PaymentError
from goldapp.services.orders import Checkout, CheckoutOutcome, OrderService

logger = logging.getLogger(__name__)


def checkout_key(checkout: Checkout) -> str:
    """Buys are addressed by payment order id, sells by merchant transaction id"""
    return checkout.payment_order_id or checkout.transaction.merchant_transaction_id


class CheckoutRegistry:
    """
    Keeps checkouts reachable between API calls.

    Completion runs as a background task on the serving event loop, so the
    front-end can poll the checkout while the mock gateway works through its
    stages. Task references are held until the task finishes. Once a checkout
    has settled it stays readable for `retention` seconds and is then dropped.
    """

    def __init__(self, service: OrderService, retention: Optional[float] = None):
        self.service = service
        self.retention = retention if retention is not None else settings.checkout_retention_seconds
        self._checkouts: Dict[str, Checkout] = {}
        self._tasks: Dict[str, asyncio.Task] = {}

    def __len__(self) -> int:
        return len(self._checkouts)

    def add(self, checkout: Checkout) -> str:
        key = checkout_key(checkout)
        self._checkouts[key] = checkout
        # Buys expire once their completion task ends
        if checkout.outcome != CheckoutOutcome.AWAITING_PAYMENT:
            self._expire_later(key, checkout)
        return key

    def get(self, key: str) -> Optional[Checkout]:
        return self._checkouts.get(key)

    def start_completion(self, checkout: Checkout) -> asyncio.Task:
        """Wait for the checkout to settle, then reconcile it in the background"""
        key = checkout_key(checkout)
        task = asyncio.get_running_loop().create_task(self._complete(checkout))
        self._tasks[key] = task
        task.add_done_callback(lambda t: self._on_done(key, checkout, t))
        return task

    async def wait(self, key: str) -> None:
        task = self._tasks.get(key)
        if task is not None:
            await task

    async def _complete(self, checkout: Checkout) -> None:
        try:
            await self.service.complete_buy(checkout)
        except PaymentError as e:
            # Outcome and message are already recorded on the checkout
            logger.info(
                f"Checkout ended without completion: {e}",
                extra={"checkout_id": checkout_key(checkout), "outcome": checkout.outcome},
            )

    def _on_done(self, key: str, checkout: Checkout, task: asyncio.Task) -> None:
        if self._tasks.get(key) is task:
            del self._tasks[key]
        if not task.cancelled() and task.exception() is not None:
            logger.error("Checkout completion crashed", exc_info=task.exception())
        self._expire_later(key, checkout)

    def _expire_later(self, key: str, checkout: Checkout) -> None:
        asyncio.get_running_loop().call_later(self.retention, self._expire, key, checkout)

    def _expire(self, key: str, checkout: Checkout) -> None:
        # A newer checkout may have reused the key
        if self._checkouts.get(key) is checkout:
            del self._checkouts[key]
            logger.debug("Checkout expired", extra={"checkout_id": key})
