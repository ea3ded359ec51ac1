# backend/sitopay/services/recipient_account_service.py
"""
Recipient Account Manager.

Owns the expert ↔ Stripe account mapping: creating the provider account,
resolving which account belongs to a user, and reading/refreshing the
derived payment readiness flags.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
import stripe

from ..core.exceptions import (
    AccountNotFoundException,
    InvalidArgumentException,
    NotFoundException,
)
from ..integrations.stripe_client import StripeConnectClient
from ..models.payment import CapabilityStatus, RecipientAccount, RequirementsStatus
from ..models.user import User
from ..repositories.recipient_account_repository import RecipientAccountRepository
from ..schemas.stripe_payloads import AccountSnapshot
from .account_status import (
    derive_onboarding_complete,
    derive_ready_to_receive_payments,
    normalize_capability_status,
    normalize_requirements_status,
)
from .base import BaseService
from .stripe_errors import map_stripe_error

STATUS_INCLUDES = ("configuration.recipient", "requirements")


@dataclass(frozen=True)
class AccountStatus:
    account_id: str
    capability_status: CapabilityStatus
    requirements_status: RequirementsStatus
    onboarding_complete: bool
    ready_to_receive_payments: bool
    snapshot: AccountSnapshot

    @classmethod
    def from_snapshot(cls, snapshot: AccountSnapshot) -> "AccountStatus":
        requirements = normalize_requirements_status(snapshot.raw_requirements_status)
        capability = normalize_capability_status(snapshot.raw_capability_status)
        return cls(
            account_id=snapshot.id,
            capability_status=capability,
            requirements_status=requirements,
            onboarding_complete=derive_onboarding_complete(requirements.value),
            ready_to_receive_payments=derive_ready_to_receive_payments(capability.value),
            snapshot=snapshot,
        )

    def to_response(self) -> Dict[str, Any]:
        return {
            "account_id": self.account_id,
            "ready_to_receive_payments": self.ready_to_receive_payments,
            "onboarding_complete": self.onboarding_complete,
            "requirements_status": self.requirements_status.value,
            "capability_status": self.capability_status.value,
            "account": {
                "display_name": self.snapshot.display_name,
                "dashboard": self.snapshot.dashboard,
                "capabilities": self.snapshot.capabilities,
            },
        }


class RecipientAccountService(BaseService):
    """Creates recipient accounts and keeps their stored status in step with Stripe."""

    def __init__(self, db: Session, stripe_client: StripeConnectClient):
        super().__init__(db)
        self.stripe_client = stripe_client
        self.repository = RecipientAccountRepository(db)

    @BaseService.measure_operation("resolve_account_id")
    def resolve_account_id(self, user_id: str) -> str:
        account = self.repository.get_by_owner_user_id(user_id)
        if account is None:
            raise AccountNotFoundException()
        return account.stripe_account_id

    @BaseService.measure_operation("create_recipient_account")
    def create_recipient_account(
        self,
        user: User,
        display_name: Optional[str],
        contact_email: Optional[str],
        country: str = "us",
    ) -> RecipientAccount:
        """
        Create the caller's Stripe recipient account and store the mapping.

        The account starts with nothing collected: transfers inactive and
        requirements currently due, until onboarding and webhooks say otherwise.
        """
        if not display_name or not contact_email:
            raise InvalidArgumentException("displayName and contactEmail are required")

        existing = self.repository.get_by_owner_user_id(user.id)
        if existing is not None:
            raise InvalidArgumentException(
                "Account already exists",
                code="ACCOUNT_EXISTS",
                details={"accountId": existing.stripe_account_id},
            )

        params = {
            "display_name": display_name,
            "contact_email": contact_email,
            "identity": {"country": country.lower()},
            "dashboard": "express",
            "defaults": {
                "responsibilities": {
                    "fees_collector": "application",
                    "losses_collector": "application",
                }
            },
            "configuration": {
                "recipient": {
                    "capabilities": {
                        "stripe_balance": {"stripe_transfers": {"requested": True}},
                    }
                }
            },
        }
        try:
            account = self.stripe_client.create_account(params)
        except stripe.StripeError as exc:
            raise map_stripe_error(exc, operation="create_account") from exc

        try:
            record = self.repository.create_account_record(user.id, account["id"])
            self.db.commit()
        except IntegrityError:
            # A concurrent request stored its account first; that row wins.
            self.db.rollback()
            winner = self.repository.get_by_owner_user_id(user.id)
            if winner is None:
                raise
            self.logger.warning(
                "Duplicate account creation for user %s; Stripe account %s left unused",
                user.id,
                account["id"],
            )
            return winner

        self.logger.info("Stored recipient account %s for user %s", record.stripe_account_id, user.id)
        return record

    def read_snapshot(
        self, account_id: str, include: Sequence[str] = STATUS_INCLUDES
    ) -> AccountSnapshot:
        """Fetch the account from Stripe and parse it into a snapshot."""
        try:
            payload = self.stripe_client.retrieve_account(account_id, include=include)
        except stripe.StripeError as exc:
            raise map_stripe_error(exc, operation="retrieve_account") from exc
        return AccountSnapshot.from_provider(payload)

    def _require_local(self, account_id: str) -> RecipientAccount:
        account = self.repository.get_by_stripe_account_id(account_id)
        if account is None:
            raise NotFoundException(
                f"Unknown recipient account: {account_id}", details={"accountId": account_id}
            )
        return account

    @BaseService.measure_operation("fetch_account_status")
    def fetch_status(self, account_id: str) -> AccountStatus:
        """Read live status from Stripe without touching stored state."""
        self._require_local(account_id)
        return AccountStatus.from_snapshot(self.read_snapshot(account_id))

    @BaseService.measure_operation("refresh_account_status")
    def refresh_status(self, account_id: str) -> AccountStatus:
        """Read live status from Stripe and persist it."""
        account = self._require_local(account_id)
        status = AccountStatus.from_snapshot(self.read_snapshot(account_id))

        with self.transaction():
            self.repository.apply_requirements_snapshot(
                account,
                requirements_status=status.requirements_status,
                onboarding_complete=status.onboarding_complete,
                fetched_at=status.snapshot.fetched_at,
            )
            self.repository.apply_capability_snapshot(
                account,
                capability_status=status.capability_status,
                ready_to_receive_payments=status.ready_to_receive_payments,
                fetched_at=status.snapshot.fetched_at,
            )
        return status
