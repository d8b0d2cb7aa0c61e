"""Payment verification and transaction finalization"""

import dataclasses
import logging

from goldapp.domain.exceptions import BackendBusinessError, NetworkError, PaymentVerificationError
from goldapp.domain.models import MockPaymentResult, Transaction, TransactionStatus
from goldapp.infrastructure.clients.degraded import DegradedModeClient
from goldapp.infrastructure.observability.logging import log_order_event
from goldapp.infrastructure.observability.metrics import reconciliation_counter, status_update_failure_counter

logger = logging.getLogger(__name__)


class TransactionReconciler:
    """Verifies a settled checkout against the backend, then marks the transaction completed"""

    def __init__(self, client: DegradedModeClient):
        self.client = client

    async def reconcile(
        self,
        transaction: Transaction,
        payment_order_id: str,
        payment_result: MockPaymentResult,
    ) -> Transaction:
        """
        Verify, then best-effort status update.

        Verification failures are surfaced and never retried; the pending backend
        transaction is left as-is. A failed status update after a successful
        verification is logged only, since the payment itself already went through.

        Raises:
            PaymentVerificationError: Backend did not confirm the payment
        """
        txn_id = transaction.merchant_transaction_id

        try:
            await self.client.verify_payment(txn_id, payment_order_id, payment_result)
        except (BackendBusinessError, NetworkError) as e:
            reconciliation_counter.labels(outcome="verification_failed").inc()
            log_order_event("verification_failed", txn_id, transaction.side.value, "failed", error=str(e))
            raise PaymentVerificationError(f"Payment verification failed: {e}") from e

        reconciliation_counter.labels(outcome="verified").inc()

        try:
            await self.client.update_transaction_status(txn_id, TransactionStatus.COMPLETED, payment_result.payment_id)
        except (BackendBusinessError, NetworkError) as e:
            status_update_failure_counter.inc()
            logger.error(
                f"Failed to update transaction status after verified payment: {e}",
                extra={"merchant_transaction_id": txn_id, "payment_id": payment_result.payment_id},
            )

        log_order_event("verified", txn_id, transaction.side.value, "completed", payment_id=payment_result.payment_id)

        return dataclasses.replace(
            transaction,
            status=TransactionStatus.COMPLETED,
            payment_status=TransactionStatus.COMPLETED.value,
            payment_reference=payment_result.payment_id,
        )
