"""Pytest fixtures for testing"""

import os

# Point the app's engine at the test database before goldapp is imported
os.environ["DATABASE_URL"] = "sqlite:///./test.db"

from datetime import datetime, timezone
from decimal import Decimal
from typing import Generator

import httpx
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session as DBSession

from goldapp.api.main import create_app
from goldapp.domain.models import BankAccount, Rate
from goldapp.infrastructure.clients.backend import BackendClient
from goldapp.infrastructure.database.models import Base
from goldapp.infrastructure.database.session import SessionLocal, engine
from goldapp.payments.gateway import MockPaymentGateway
from mock_backend.main import VALID_OTP, MockBackendState, create_mock_backend

MOBILE = "9876543210"
MOCK_BACKEND_URL = "http://mock-backend"

# Stage timers short enough for tests, still ordered and non-zero
FAST_STAGE_OFFSETS = [0.0, 0.01, 0.02, 0.03]
FAST_SETTLE_AFTER = 0.05
FAST_REDIRECT_DELAY = 0.05


@pytest.fixture
def db() -> Generator[DBSession, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def rate() -> Rate:
    return Rate(
        buy_price=Decimal("6100"),
        sell_price=Decimal("6000"),
        captured_at=datetime.now(timezone.utc),
        block_id="BLOCK_1",
    )


@pytest.fixture
def bank() -> BankAccount:
    return BankAccount(
        id="1",
        account_holder_name="Test User",
        account_number="123456789012",
        ifsc_code="HDFC0001234",
        bank_name="HDFC Bank",
    )


@pytest.fixture
def backend_state() -> MockBackendState:
    """Mock backend with one linked bank account and 0.016 g of gold"""
    state = MockBackendState()
    state.add_bank(MOBILE)
    return state


@pytest.fixture
def backend_client(backend_state: MockBackendState) -> BackendClient:
    """Real HTTP client talking to the in-process mock backend"""
    transport = httpx.ASGITransport(app=create_mock_backend(backend_state))
    return BackendClient(base_url=MOCK_BACKEND_URL, transport=transport)


@pytest.fixture
def fast_gateway() -> MockPaymentGateway:
    return MockPaymentGateway(stage_offsets=FAST_STAGE_OFFSETS, settle_after=FAST_SETTLE_AFTER)


@pytest.fixture
def app(db: DBSession, backend_client: BackendClient, fast_gateway: MockPaymentGateway) -> FastAPI:
    return create_app(backend=backend_client, gateway=fast_gateway, redirect_delay=FAST_REDIRECT_DELAY)


@pytest.fixture
def client(app: FastAPI) -> Generator[TestClient, None, None]:
    """
    FastAPI test client. Kept open for the whole test so checkout tasks and
    redirect timers keep running on its event loop between requests.
    """
    with TestClient(app) as client:
        yield client


@pytest.fixture
def logged_in_client(client: TestClient) -> TestClient:
    response = client.post("/v1/auth/otp/verify", json={"mobile": MOBILE, "otp": VALID_OTP})
    assert response.status_code == 200
    return client
