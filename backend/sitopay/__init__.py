"""Marketplace payments service: Stripe Connect recipients, products, checkout and webhooks."""

__version__ = "1.0.0"
