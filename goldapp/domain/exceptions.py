"""Domain-specific exceptions"""

from enum import Enum


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


# Input errors: recovered locally, order is not submitted


class ValidationErrorCode(str, Enum):
    """Reasons an order (or auth input) is rejected before any network call"""

    INVALID_INPUT = "InvalidInput"
    NO_BANK_SELECTED = "NoBankSelected"
    BELOW_MINIMUM = "BelowMinimum"
    INSUFFICIENT_BALANCE = "InsufficientBalance"


class InputError(DomainException):
    """User input cannot be accepted as entered"""

    def __init__(self, code: ValidationErrorCode, message: str):
        super().__init__(message)
        self.code = code
        self.message = message


# Network errors: timeout, connection failure, malformed response


class NetworkError(DomainException):
    """Backend could not be reached or answered with garbage"""

    pass


class BackendTimeoutError(NetworkError):
    """Backend did not answer within the configured timeout"""

    pass


class BackendUnavailableError(NetworkError):
    """Connection to the backend failed"""

    pass


class MalformedResponseError(NetworkError):
    """Backend response is not a JSON envelope"""

    pass


# Business errors: backend answered with success=false


class BackendBusinessError(DomainException):
    """Backend rejected the request"""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class RateLimitError(BackendBusinessError):
    """Backend (or its upstream provider) is throttling requests"""

    pass


class AuthenticationError(BackendBusinessError):
    """Missing, invalid or expired credentials"""

    pass


class BackendRejectedError(BackendBusinessError):
    """Any other explicit rejection"""

    pass


# Payment errors: always surfaced, never retried


class PaymentError(DomainException):
    """Payment could not be completed"""

    pass


class PaymentOrderError(PaymentError):
    """Payment order could not be created for a pending transaction"""

    pass


class PaymentCancelledError(PaymentError):
    """User closed the checkout before settlement"""

    pass


class PaymentVerificationError(PaymentError):
    """Backend refused to verify the payment"""

    pass


# Gateway misuse


class GatewayBusyError(DomainException):
    """A checkout is already open"""

    pass


class InvalidGatewayTransition(DomainException):
    """Checkout state machine was asked for a transition it does not allow"""

    pass
