"""Third-party integrations."""

from .stripe_client import StripeConnectClient

__all__ = ["StripeConnectClient"]
