from decimal import Decimal
from typing import Any


class ServiceError(Exception):
    """
    Base class for expected failures raised below the handler layer.

    Each subclass carries the HTTP status it maps to; handlers never catch
    these, the exception handler renders them into the response envelope.
    """
    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None, result: Any = None):
        self.message = message or self.default_message
        self.result = result
        super().__init__(self.message)


class ValidationError(ServiceError):
    status_code = 400
    default_message = "Invalid input"


class NotFoundError(ServiceError):
    status_code = 404
    default_message = "Resource not found"


class ConflictError(ServiceError):
    status_code = 409
    default_message = "Resource already exists"


class AuthenticationError(ServiceError):
    status_code = 401
    default_message = "Incorrect email or password"


class InsufficientLocalBalance(ServiceError):
    status_code = 400
    default_message = "Insufficient balance."

    def __init__(self, current_balance: Decimal, message: str | None = None):
        self.current_balance = current_balance
        super().__init__(message, result={"current_balance": current_balance})


class InsufficientProviderFloat(ServiceError):
    status_code = 503
    default_message = "Insufficient balance in our vault, please try again later."


class ProviderError(ServiceError):
    """
    A call to an upstream payment, billing or KYC provider failed.
    """
    status_code = 500
    default_message = "Provider request failed"

    def __init__(self, message: str | None = None, code: str | None = None, result: Any = None):
        self.code = code
        super().__init__(message, result=result)


class ProviderUnreachable(ProviderError):
    """Transport-level failure: the provider could not be reached or timed out."""
    status_code = 500
    default_message = "Provider is unreachable"


class ProviderRejected(ProviderError):
    """The provider answered and refused the request."""
    status_code = 400
    default_message = "Provider rejected the request"


class ProviderResponseError(ProviderError):
    """The provider answered with a payload we cannot decode."""
    status_code = 500
    default_message = "Unexpected response from provider"


class SignatureInvalid(ServiceError):
    status_code = 401
    default_message = "Invalid signature"


class ReconciliationGap(ServiceError):
    """
    Money moved at the provider but the local ledger write failed.
    """
    status_code = 500
    default_message = "Transaction completed with provider but could not be recorded"

    def __init__(self, reference: str | None, amount: Decimal, user_id: int | None, cause: Exception):
        self.reference = reference
        self.amount = amount
        self.user_id = user_id
        self.cause = cause
        super().__init__(
            f"{self.default_message}; reference {reference} is pending reconciliation",
            result={"reference": reference},
        )
