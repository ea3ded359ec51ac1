# backend/sitopay/schemas/__init__.py
"""Pydantic schemas for the marketplace payments API and Stripe payloads."""

from .payment_schemas import (
    AccountStatusResponse,
    AccountSummary,
    CheckoutSessionResponse,
    CreateCheckoutSessionRequest,
    CreateProductRequest,
    CreateProductResponse,
    CreateRecipientAccountRequest,
    CreateRecipientAccountResponse,
    OnboardingLinkRequest,
    OnboardingLinkResponse,
    ProductListResponse,
    ProductPrice,
    ProductResponse,
    WebhookAckResponse,
)
from .stripe_payloads import (
    AccountSnapshot,
    CapabilityStatusUpdatedEvent,
    ProviderEvent,
    RequirementsUpdatedEvent,
    UnhandledEvent,
    parse_event,
)

__all__ = [
    "AccountSnapshot",
    "AccountStatusResponse",
    "AccountSummary",
    "CapabilityStatusUpdatedEvent",
    "CheckoutSessionResponse",
    "CreateCheckoutSessionRequest",
    "CreateProductRequest",
    "CreateProductResponse",
    "CreateRecipientAccountRequest",
    "CreateRecipientAccountResponse",
    "OnboardingLinkRequest",
    "OnboardingLinkResponse",
    "ProductListResponse",
    "ProductPrice",
    "ProductResponse",
    "ProviderEvent",
    "RequirementsUpdatedEvent",
    "UnhandledEvent",
    "WebhookAckResponse",
    "parse_event",
]
