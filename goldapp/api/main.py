"""FastAPI application factory"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from goldapp.api.middleware import RequestIDMiddleware, MetricsMiddleware
from goldapp.api.v1 import auth, kyc, market, orders, payments, transactions
from goldapp.config import settings
from goldapp.domain.session import Session
from goldapp.infrastructure.clients.backend import BackendClient
from goldapp.infrastructure.clients.degraded import DegradedModeClient
from goldapp.infrastructure.database.session import SessionLocal, init_db
from goldapp.infrastructure.observability.logging import setup_logging
from goldapp.payments.gateway import MockPaymentGateway
from goldapp.services.checkouts import CheckoutRegistry
from goldapp.services.journal import OrderJournal
from goldapp.services.orders import OrderService
from goldapp.services.session import SessionManager

# Setup structured logging
setup_logging(settings.log_level)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    yield


def create_app(
    backend: Optional[BackendClient] = None,
    gateway: Optional[MockPaymentGateway] = None,
    redirect_delay: Optional[float] = None,
) -> FastAPI:
    """
    Create and configure FastAPI application.

    One Session is shared by the session manager and the backend client, so
    the bearer token from login is sent on every later backend call.
    """
    app = FastAPI(
        title="GoldApp Orders",
        description="Gold buy/sell order placement, checkout and reconciliation",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    session = backend.session if backend is not None else Session()
    backend = backend or BackendClient(session=session)
    client = DegradedModeClient(backend)
    gateway = gateway or MockPaymentGateway()
    service = OrderService(client, gateway, journal=OrderJournal(SessionLocal), redirect_delay=redirect_delay)

    app.state.session_manager = SessionManager(session)
    app.state.backend_client = client
    app.state.order_service = service
    app.state.checkouts = CheckoutRegistry(service)

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(auth.router, prefix="/v1", tags=["auth"])
    app.include_router(kyc.router, prefix="/v1", tags=["kyc"])
    app.include_router(market.router, prefix="/v1", tags=["market"])
    app.include_router(orders.router, prefix="/v1", tags=["orders"])
    app.include_router(payments.router, prefix="/v1", tags=["payments"])
    app.include_router(transactions.router, prefix="/v1", tags=["transactions"])

    return app


app = create_app()
