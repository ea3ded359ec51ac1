# backend/sitopay/repositories/recipient_account_repository.py
"""
Recipient account repository.

Keyed both by owner user id (caller lookups) and by Stripe account id
(webhook lookups). Status writes are guarded by the time of the upstream
read so late or duplicate deliveries never roll stored state backwards.
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.payment import CapabilityStatus, RecipientAccount, RequirementsStatus
from .base_repository import BaseRepository


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite drops tzinfo on the way back out
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def _is_stale(stored_at: Optional[datetime], fetched_at: datetime) -> bool:
    stored = _as_utc(stored_at)
    return stored is not None and stored > _as_utc(fetched_at)


class RecipientAccountRepository(BaseRepository[RecipientAccount]):
    def __init__(self, db: Session):
        super().__init__(db, RecipientAccount)

    def get_by_owner_user_id(self, user_id: str) -> Optional[RecipientAccount]:
        return self.find_one_by(owner_user_id=user_id)

    def get_by_stripe_account_id(self, stripe_account_id: str) -> Optional[RecipientAccount]:
        return self.find_one_by(stripe_account_id=stripe_account_id)

    def create_account_record(self, owner_user_id: str, stripe_account_id: str) -> RecipientAccount:
        """Insert a freshly created account in its initial (not yet onboarded) state."""
        return self.create(
            owner_user_id=owner_user_id,
            stripe_account_id=stripe_account_id,
            capability_status=CapabilityStatus.INACTIVE.value,
            requirements_status=RequirementsStatus.CURRENTLY_DUE.value,
            onboarding_complete=False,
            ready_to_receive_payments=False,
        )

    def apply_requirements_snapshot(
        self,
        account: RecipientAccount,
        *,
        requirements_status: RequirementsStatus,
        onboarding_complete: bool,
        fetched_at: datetime,
    ) -> bool:
        """
        Store a requirements read taken at ``fetched_at``.

        Returns False (and writes nothing) when a newer read is already stored.
        """
        if _is_stale(account.requirements_synced_at, fetched_at):
            self.logger.info(
                "Skipping stale requirements snapshot for %s (stored=%s fetched=%s)",
                account.stripe_account_id,
                account.requirements_synced_at,
                fetched_at,
            )
            return False
        try:
            account.requirements_status = requirements_status.value
            account.onboarding_complete = onboarding_complete
            account.requirements_synced_at = fetched_at
            self.db.flush()
            return True
        except SQLAlchemyError as e:
            self.logger.error(f"Error updating requirements for {account.stripe_account_id}: {str(e)}")
            raise RepositoryException(f"Failed to update recipient account: {str(e)}")

    def apply_capability_snapshot(
        self,
        account: RecipientAccount,
        *,
        capability_status: CapabilityStatus,
        ready_to_receive_payments: bool,
        fetched_at: datetime,
    ) -> bool:
        """Store a capability read taken at ``fetched_at``; same staleness rule as requirements."""
        if _is_stale(account.capability_synced_at, fetched_at):
            self.logger.info(
                "Skipping stale capability snapshot for %s (stored=%s fetched=%s)",
                account.stripe_account_id,
                account.capability_synced_at,
                fetched_at,
            )
            return False
        try:
            account.capability_status = capability_status.value
            account.ready_to_receive_payments = ready_to_receive_payments
            account.capability_synced_at = fetched_at
            self.db.flush()
            return True
        except SQLAlchemyError as e:
            self.logger.error(f"Error updating capability for {account.stripe_account_id}: {str(e)}")
            raise RepositoryException(f"Failed to update recipient account: {str(e)}")
