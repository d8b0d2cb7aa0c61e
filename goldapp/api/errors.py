"""Domain exception to HTTP error mapping"""

import logging

from fastapi import HTTPException

from goldapp.domain.exceptions import (
    AuthenticationError,
    BackendBusinessError,
    DomainException,
    GatewayBusyError,
    InputError,
    InvalidGatewayTransition,
    NetworkError,
    PaymentCancelledError,
    PaymentError,
    RateLimitError,
)

logger = logging.getLogger(__name__)


def http_error(error: DomainException, request_id: str = "unknown") -> HTTPException:
    """
    Translate a domain failure into the response the front-end shows.

    Input errors carry their code so the screen can highlight the field;
    everything else gets one human-readable detail with a next step.
    """
    extra = {"request_id": request_id, "error_type": type(error).__name__}

    if isinstance(error, InputError):
        logger.info(f"Input rejected: {error.message}", extra=extra)
        return HTTPException(status_code=422, detail={"code": error.code.value, "message": error.message})

    if isinstance(error, NetworkError):
        logger.error(f"Backend unreachable: {error}", extra=extra)
        return HTTPException(
            status_code=503,
            detail="Network error. Please check your internet connection and try again.",
        )

    if isinstance(error, RateLimitError):
        logger.warning(f"Backend rate limited: {error}", extra=extra)
        return HTTPException(status_code=429, detail="Too many requests. Please wait a moment and try again.")

    if isinstance(error, AuthenticationError):
        logger.warning(f"Backend authentication failed: {error}", extra=extra)
        return HTTPException(status_code=401, detail="Your session has expired. Please log in again.")

    if isinstance(error, BackendBusinessError):
        logger.warning(f"Backend rejected request: {error}", extra=extra)
        return HTTPException(status_code=502, detail=f"{error.message}. Please try again or contact support.")

    if isinstance(error, PaymentCancelledError):
        logger.info(f"Payment cancelled: {error}", extra=extra)
        return HTTPException(status_code=402, detail="Payment was cancelled. You can place the order again.")

    if isinstance(error, PaymentError):
        logger.error(f"Payment failed: {error}", extra=extra)
        return HTTPException(status_code=402, detail=f"{error}. Please try again or contact support.")

    if isinstance(error, (GatewayBusyError, InvalidGatewayTransition)):
        logger.info(f"Checkout conflict: {error}", extra=extra)
        return HTTPException(status_code=409, detail=str(error))

    logger.error(f"Unexpected domain error: {error}", extra=extra)
    return HTTPException(status_code=500, detail="Internal server error")
