# backend/sitopay/services/dependencies.py
"""
Dependency injection functions for services.

The Stripe client is built once per process; tests replace it through
``app.dependency_overrides[get_stripe_client]``.
"""

from functools import lru_cache
from typing import Callable

from fastapi import Depends
from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.exceptions import ConfigurationException
from ..database import get_db
from ..integrations.stripe_client import StripeConnectClient
from .checkout_service import CheckoutService
from .onboarding_link_service import OnboardingLinkService
from .product_catalog_service import ProductCatalogService
from .recipient_account_service import RecipientAccountService
from .webhook_reconciler_service import WebhookReconcilerService


@lru_cache(maxsize=1)
def get_stripe_client() -> StripeConnectClient:
    """
    Process-wide Stripe client.

    Raises ConfigurationException (not cached) while STRIPE_SECRET_KEY is unset,
    so the app still boots and serves health checks.
    """
    secret = settings.stripe_secret_key.get_secret_value()
    if not secret:
        raise ConfigurationException("STRIPE_SECRET_KEY is not configured")
    return StripeConnectClient(
        api_key=secret,
        timeout=settings.stripe_timeout_seconds,
        max_network_retries=settings.stripe_max_network_retries,
    )


def get_stripe_client_provider() -> Callable[[], StripeConnectClient]:
    """Deferred Stripe client for callers that must authenticate a request first."""
    return get_stripe_client


def get_recipient_account_service(
    db: Session = Depends(get_db),
    stripe_client: StripeConnectClient = Depends(get_stripe_client),
) -> RecipientAccountService:
    """
    Dependency injection function for RecipientAccountService.

    Usage in routes:
        service: RecipientAccountService = Depends(get_recipient_account_service)
    """
    return RecipientAccountService(db, stripe_client)


def get_onboarding_link_service(
    db: Session = Depends(get_db),
    stripe_client: StripeConnectClient = Depends(get_stripe_client),
) -> OnboardingLinkService:
    return OnboardingLinkService(db, stripe_client)


def get_product_catalog_service(
    db: Session = Depends(get_db),
    stripe_client: StripeConnectClient = Depends(get_stripe_client),
) -> ProductCatalogService:
    return ProductCatalogService(db, stripe_client)


def get_checkout_service(
    stripe_client: StripeConnectClient = Depends(get_stripe_client),
) -> CheckoutService:
    return CheckoutService(stripe_client)


def get_webhook_reconciler_service(
    db: Session = Depends(get_db),
    stripe_client_provider: Callable[[], StripeConnectClient] = Depends(get_stripe_client_provider),
) -> WebhookReconcilerService:
    return WebhookReconcilerService(db, stripe_client_provider, settings.webhook_secrets)
