# backend/sitopay/services/__init__.py
"""Service layer for the marketplace payments service."""

from .checkout_service import CheckoutService
from .onboarding_link_service import OnboardingLinkService
from .product_catalog_service import ProductCatalogService
from .recipient_account_service import RecipientAccountService
from .webhook_reconciler_service import WebhookReconcilerService

__all__ = [
    "CheckoutService",
    "OnboardingLinkService",
    "ProductCatalogService",
    "RecipientAccountService",
    "WebhookReconcilerService",
]
