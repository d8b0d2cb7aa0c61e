"""Dependency injection for FastAPI endpoints"""

from fastapi import Depends, HTTPException, Request
from sqlalchemy.orm import Session as DBSession

from goldapp.domain.session import Session
from goldapp.infrastructure.clients.degraded import DegradedModeClient
from goldapp.infrastructure.database.repositories import SessionRepository
from goldapp.infrastructure.database.session import get_db
from goldapp.services.checkouts import CheckoutRegistry
from goldapp.services.orders import OrderService
from goldapp.services.session import SessionManager


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_session_manager(request: Request) -> SessionManager:
    return request.app.state.session_manager


def get_session(
    manager: SessionManager = Depends(get_session_manager),
    db: DBSession = Depends(get_db),
) -> Session:
    """Current app session, restored from the database on first use"""
    return manager.restore(SessionRepository(db))


def require_session(session: Session = Depends(get_session)) -> Session:
    if not session.is_authenticated:
        raise HTTPException(status_code=401, detail="Please log in with your mobile number to continue.")
    return session


def get_backend_client(request: Request) -> DegradedModeClient:
    """Backend client with the degraded-mode fallbacks applied"""
    return request.app.state.backend_client


def get_order_service(request: Request) -> OrderService:
    return request.app.state.order_service


def get_checkout_registry(request: Request) -> CheckoutRegistry:
    return request.app.state.checkouts
