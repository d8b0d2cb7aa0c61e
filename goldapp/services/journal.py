"""Order journal writes that outlive a single HTTP request"""

from contextlib import contextmanager
from typing import Callable, Iterator, Optional

from sqlalchemy.orm import Session

from goldapp.domain.models import InputMode, OrderRequest, Transaction
from goldapp.infrastructure.database.repositories import OrderAttemptRepository


class OrderJournal:
    """Each write runs in its own short transaction, so background payment tasks can use it"""

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    @contextmanager
    def _repository(self) -> Iterator[OrderAttemptRepository]:
        db = self.session_factory()
        try:
            yield OrderAttemptRepository(db)
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def record_submission(self, request: OrderRequest, mode: InputMode, transaction: Transaction) -> None:
        with self._repository() as repo:
            repo.record_submission(request, mode, transaction)

    def record_payment(
        self,
        merchant_transaction_id: str,
        status: str,
        payment_status: str,
        payment_order_id: Optional[str] = None,
        payment_reference: Optional[str] = None,
    ) -> None:
        with self._repository() as repo:
            repo.update_payment(merchant_transaction_id, status, payment_status, payment_order_id, payment_reference)
