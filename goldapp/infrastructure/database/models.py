"""SQLAlchemy ORM models for the local session store and order journal"""

from sqlalchemy import JSON, Boolean, Column, DateTime, Integer, Numeric, String, Text
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()


class AppSession(Base):
    """Persisted login (single row); what the device keeps between launches"""

    __tablename__ = "app_session"

    id = Column(Integer, primary_key=True, default=1)
    token = Column(Text, nullable=True)
    unique_id = Column(Text, nullable=False)
    kyc_status = Column(Text, nullable=False, default="pending")
    user_data = Column(JSON, nullable=True)
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())


class OrderAttempt(Base):
    """Every order handed to the backend (or simulated), with its payment outcome"""

    __tablename__ = "order_attempt"

    id = Column(Integer, primary_key=True, autoincrement=True)
    merchant_transaction_id = Column(String(64), nullable=False, unique=True, index=True)
    unique_id = Column(Text, nullable=False, index=True)
    side = Column(String(8), nullable=False)
    input_mode = Column(String(16), nullable=False)
    quantity = Column(Numeric(18, 4), nullable=False)
    amount = Column(Numeric(18, 2), nullable=False)
    lock_price = Column(Numeric(18, 2), nullable=False)
    block_id = Column(Text, nullable=True)
    status = Column(String(16), nullable=False, default="pending")
    payment_status = Column(String(16), nullable=False, default="pending")
    simulated = Column(Boolean, nullable=False, default=False)
    payment_order_id = Column(Text, nullable=True)
    payment_reference = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())
