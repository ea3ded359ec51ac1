# backend/sitopay/routes/v1/__init__.py
"""
API v1 Routes

Versioned API endpoints under /api/v1.
"""

from . import accounts, checkout, health, products, webhooks

__all__ = ["accounts", "checkout", "health", "products", "webhooks"]
