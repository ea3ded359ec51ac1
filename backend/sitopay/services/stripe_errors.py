"""Translate ``stripe.StripeError`` into the service's exception taxonomy."""

import logging
from typing import Any, Dict

import stripe

from ..core.exceptions import (
    ConfigurationException,
    DomainException,
    InvalidArgumentException,
    NotFoundException,
    UpstreamUnavailableException,
)

logger = logging.getLogger(__name__)


def _provider_message(exc: stripe.StripeError) -> str:
    return getattr(exc, "user_message", None) or str(exc) or exc.__class__.__name__


def map_stripe_error(
    exc: stripe.StripeError,
    *,
    operation: str,
    unreachable_is_configuration: bool = False,
    missing_is_invalid: bool = False,
) -> DomainException:
    """
    Map a provider error raised during ``operation``.

    ``unreachable_is_configuration`` folds transient network failures into
    ``ConfigurationException`` for callers whose contract has no retryable
    error (checkout creation). ``missing_is_invalid`` reports a missing
    resource as a bad argument instead of ``NotFoundException``.
    """
    message = _provider_message(exc)
    details: Dict[str, Any] = {"operation": operation}
    code = getattr(exc, "code", None)
    if code:
        details["provider_code"] = code
    logger.warning("Stripe error during %s: %s (%s)", operation, message, type(exc).__name__)

    if isinstance(exc, stripe.InvalidRequestError):
        missing = code == "resource_missing" or getattr(exc, "http_status", None) == 404
        if missing and not missing_is_invalid:
            return NotFoundException(f"Stripe error: {message}", details=details)
        return InvalidArgumentException(f"Stripe error: {message}", details=details)
    if isinstance(exc, stripe.CardError):
        return InvalidArgumentException(f"Stripe error: {message}", details=details)
    if isinstance(exc, (stripe.AuthenticationError, stripe.PermissionError)):
        return ConfigurationException(
            "Stripe credentials are invalid or lack permission", details=details
        )
    if unreachable_is_configuration:
        return ConfigurationException(f"Payment provider request failed: {message}", details=details)
    return UpstreamUnavailableException(details=details)
