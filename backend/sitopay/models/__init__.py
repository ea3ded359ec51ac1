"""
Database models for the payments service.

- User: collaborator-owned identity, read-only here
- RecipientAccount: an expert's Stripe Connect recipient account and its derived status
"""

from .payment import CapabilityStatus, RecipientAccount, RequirementsStatus
from .user import User

__all__ = [
    "CapabilityStatus",
    "RecipientAccount",
    "RequirementsStatus",
    "User",
]
