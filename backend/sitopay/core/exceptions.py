# backend/sitopay/core/exceptions.py
"""
Domain-specific exceptions for the payments service.

Every provider or data-layer failure is mapped into one of these before it
reaches the API layer, where it is converted with ``to_http_exception()``.
"""

from typing import Any, Dict, Optional

from fastapi import HTTPException, status


class DomainException(Exception):
    """Base exception for all domain-specific errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=self.status_code,
            detail={
                "message": self.message,
                "code": self.code,
                "details": self.details,
            },
        )


class InvalidArgumentException(DomainException):
    """The client must fix the request. Never retried."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, code or "INVALID_ARGUMENT", details)


class NotFoundException(DomainException):
    """Raised when a requested resource is not found."""

    status_code = status.HTTP_404_NOT_FOUND

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, code or "NOT_FOUND", details)


class AccountNotFoundException(NotFoundException):
    """The caller has no recipient account on record."""

    def __init__(self, message: Optional[str] = None, *, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message or "No Stripe Connect account found. Please create an account first.",
            code="ACCOUNT_NOT_FOUND",
            details=details,
        )


class SignatureInvalidException(DomainException):
    """Webhook authenticity check failed. The sender is responsible for redelivery."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str = "Invalid webhook signature") -> None:
        super().__init__(message, code="SIGNATURE_INVALID")


class UpstreamUnavailableException(DomainException):
    """Transient provider or network fault. Safe to retry with backoff."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    def __init__(
        self,
        message: str = "Payment provider is temporarily unavailable",
        *,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, code="UPSTREAM_UNAVAILABLE", details=details)


class ConfigurationException(DomainException):
    """Missing or malformed credentials. Requires an operator fix."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, *, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, code="CONFIGURATION_ERROR", details=details)


class RepositoryException(Exception):
    """
    Exception raised for repository layer errors.

    This exception is used when data access operations fail,
    such as database connection issues, query failures, or
    constraint violations.
    """
