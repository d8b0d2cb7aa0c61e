"""Mobile and email OTP login, logout and session lookup"""

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session as DBSession

from goldapp.api.dependencies import get_backend_client, get_request_id, get_session, get_session_manager
from goldapp.api.errors import http_error
from goldapp.api.v1.schemas import (
    EmailOtpSendRequest,
    EmailOtpVerifyRequest,
    MessageResponse,
    OtpSendRequest,
    OtpVerifyRequest,
    SessionResponse,
)
from goldapp.domain.exceptions import BackendRejectedError, DomainException
from goldapp.domain.session import Session
from goldapp.domain.validation import validate_email, validate_mobile, validate_otp
from goldapp.infrastructure.clients.degraded import DegradedModeClient
from goldapp.infrastructure.database.repositories import SessionRepository
from goldapp.infrastructure.database.session import get_db
from goldapp.services.session import SessionManager

router = APIRouter()


def session_response(session: Session) -> SessionResponse:
    return SessionResponse(
        authenticated=session.is_authenticated,
        unique_id=session.unique_id,
        kyc_status=session.kyc_status,
        user=session.user,
    )


def invalid_code(error: BackendRejectedError) -> HTTPException:
    return HTTPException(status_code=400, detail=f"{error.message}. Please check the code and try again.")


@router.post("/auth/otp/send", response_model=MessageResponse)
async def send_otp(
    body: OtpSendRequest,
    request: Request,
    client: DegradedModeClient = Depends(get_backend_client),
):
    """Send a login OTP to a mobile number"""
    try:
        mobile = validate_mobile(body.mobile)
        response = await client.send_otp(mobile)
    except DomainException as e:
        raise http_error(e, get_request_id(request)) from e
    return MessageResponse(message=response.get("message") or f"OTP sent to {mobile}")


@router.post("/auth/otp/verify", response_model=SessionResponse)
async def verify_otp(
    body: OtpVerifyRequest,
    request: Request,
    db: DBSession = Depends(get_db),
    client: DegradedModeClient = Depends(get_backend_client),
    manager: SessionManager = Depends(get_session_manager),
):
    """
    Verify the OTP and start the session.

    The mobile number becomes the user's unique id for every later call.
    """
    try:
        mobile = validate_mobile(body.mobile)
        otp = validate_otp(body.otp)
        auth = await client.verify_otp(mobile, otp)
    except BackendRejectedError as e:
        raise invalid_code(e) from e
    except DomainException as e:
        raise http_error(e, get_request_id(request)) from e

    session = manager.login(SessionRepository(db), mobile, auth)
    db.commit()
    return session_response(session)


@router.post("/auth/email-otp/send", response_model=MessageResponse)
async def send_email_otp(
    body: EmailOtpSendRequest,
    request: Request,
    client: DegradedModeClient = Depends(get_backend_client),
):
    try:
        email = validate_email(body.email)
        response = await client.send_email_otp(email)
    except DomainException as e:
        raise http_error(e, get_request_id(request)) from e
    return MessageResponse(message=response.get("message") or f"Verification code sent to {email}")


@router.post("/auth/email-otp/verify", response_model=MessageResponse)
async def verify_email_otp(
    body: EmailOtpVerifyRequest,
    request: Request,
    client: DegradedModeClient = Depends(get_backend_client),
):
    try:
        email = validate_email(body.email)
        otp = validate_otp(body.otp)
        response = await client.verify_email_otp(email, otp)
    except BackendRejectedError as e:
        raise invalid_code(e) from e
    except DomainException as e:
        raise http_error(e, get_request_id(request)) from e
    return MessageResponse(message=response.get("message") or "Email verified")


@router.post("/auth/logout", response_model=SessionResponse)
def logout(
    db: DBSession = Depends(get_db),
    manager: SessionManager = Depends(get_session_manager),
):
    manager.logout(SessionRepository(db))
    db.commit()
    return session_response(manager.session)


@router.get("/auth/session", response_model=SessionResponse)
def current_session(session: Session = Depends(get_session)):
    return session_response(session)
