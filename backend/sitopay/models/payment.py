"""
Payment models for the Stripe Connect integration.

A RecipientAccount is the expert's payable identity with Stripe. The two
derived booleans are what the rest of the marketplace reads to decide
whether an expert can be paid.
"""

from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship
import ulid

from ..database import Base

if TYPE_CHECKING:
    from .user import User


class CapabilityStatus(str, Enum):
    INACTIVE = "inactive"
    PENDING = "pending"
    ACTIVE = "active"
    RESTRICTED = "restricted"


class RequirementsStatus(str, Enum):
    CURRENTLY_DUE = "currently_due"
    PAST_DUE = "past_due"
    PENDING_VERIFICATION = "pending_verification"
    COMPLETE = "complete"


class RecipientAccount(Base):
    """Expert Stripe Connect recipient accounts for receiving transfers."""

    __tablename__ = "recipient_accounts"

    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    owner_user_id: Mapped[str] = mapped_column(
        String(26), ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    stripe_account_id: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)

    capability_status: Mapped[str] = mapped_column(
        String(32), default=CapabilityStatus.INACTIVE.value, nullable=False
    )
    requirements_status: Mapped[str] = mapped_column(
        String(32), default=RequirementsStatus.CURRENTLY_DUE.value, nullable=False
    )
    onboarding_complete: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    ready_to_receive_payments: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # Time of the upstream read that produced the stored value
    requirements_synced_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    capability_synced_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    owner: Mapped["User"] = relationship("User", back_populates="recipient_account")

    def __repr__(self) -> str:
        return (
            f"<RecipientAccount(account={self.stripe_account_id}, "
            f"onboarded={self.onboarding_complete}, ready={self.ready_to_receive_payments})>"
        )
