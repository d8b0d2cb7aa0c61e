"""Data access layer for the session store and order journal"""

from typing import List, Optional

from sqlalchemy.orm import Session

from goldapp.domain.models import InputMode, OrderRequest, Transaction
from goldapp.domain.session import Session as AppSessionState
from goldapp.infrastructure.database.models import AppSession, OrderAttempt


class SessionRepository:
    """Repository for the persisted login"""

    SESSION_ROW_ID = 1

    def __init__(self, db: Session):
        self.db = db

    def load(self) -> Optional[AppSession]:
        return self.db.get(AppSession, self.SESSION_ROW_ID)

    def save(self, state: AppSessionState) -> AppSession:
        row = self.load()
        if row is None:
            row = AppSession(id=self.SESSION_ROW_ID, unique_id=state.unique_id)
            self.db.add(row)
        row.token = state.token
        row.unique_id = state.unique_id
        row.kyc_status = state.kyc_status
        row.user_data = state.user
        self.db.flush()
        return row

    def clear(self) -> None:
        row = self.load()
        if row is not None:
            self.db.delete(row)
            self.db.flush()


class OrderAttemptRepository:
    """Repository for order attempts"""

    def __init__(self, db: Session):
        self.db = db

    def record_submission(
        self, request: OrderRequest, mode: InputMode, transaction: Transaction
    ) -> OrderAttempt:
        """Persist a submitted (or simulated) order"""
        attempt = OrderAttempt(
            merchant_transaction_id=transaction.merchant_transaction_id,
            unique_id=request.unique_id,
            side=request.side.value,
            input_mode=mode.value,
            quantity=transaction.quantity,
            amount=transaction.amount,
            lock_price=request.lock_price,
            block_id=request.block_id,
            status=transaction.status.value,
            payment_status=transaction.payment_status,
            simulated=transaction.simulated,
        )
        self.db.add(attempt)
        self.db.flush()
        return attempt

    def get(self, merchant_transaction_id: str) -> Optional[OrderAttempt]:
        return (
            self.db.query(OrderAttempt)
            .filter(OrderAttempt.merchant_transaction_id == merchant_transaction_id)
            .first()
        )

    def update_payment(
        self,
        merchant_transaction_id: str,
        status: str,
        payment_status: str,
        payment_order_id: Optional[str] = None,
        payment_reference: Optional[str] = None,
    ) -> Optional[OrderAttempt]:
        attempt = self.get(merchant_transaction_id)
        if attempt is None:
            return None
        attempt.status = status
        attempt.payment_status = payment_status
        if payment_order_id is not None:
            attempt.payment_order_id = payment_order_id
        if payment_reference is not None:
            attempt.payment_reference = payment_reference
        self.db.flush()
        return attempt

    def get_attempts_by_user(self, unique_id: str, limit: int = 20) -> List[OrderAttempt]:
        """Fetch recent order attempts for a user"""
        return (
            self.db.query(OrderAttempt)
            .filter(OrderAttempt.unique_id == unique_id)
            .order_by(OrderAttempt.created_at.desc(), OrderAttempt.id.desc())
            .limit(limit)
            .all()
        )
