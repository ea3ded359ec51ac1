"""
RecipientAccountService tests.

Runs against the in-memory fake Stripe client; error paths use MagicMock.
"""

from unittest.mock import MagicMock

import pytest
from sqlalchemy.orm import Session
import stripe

from sitopay.core.exceptions import (
    AccountNotFoundException,
    InvalidArgumentException,
    NotFoundException,
    UpstreamUnavailableException,
)
from sitopay.models.payment import CapabilityStatus, RecipientAccount, RequirementsStatus
from sitopay.models.user import User
from sitopay.services.recipient_account_service import RecipientAccountService

from tests.helpers.fake_stripe import FakeStripeClient


@pytest.fixture
def account_service(db: Session, fake_stripe: FakeStripeClient) -> RecipientAccountService:
    return RecipientAccountService(db, fake_stripe)


class TestCreateRecipientAccount:
    def test_creates_provider_account_and_stores_initial_state(
        self, account_service, fake_stripe, test_expert: User
    ):
        account = account_service.create_recipient_account(
            test_expert, "Ada Expert", test_expert.email, country="US"
        )

        assert account.stripe_account_id in fake_stripe.accounts
        assert account.owner_user_id == test_expert.id
        assert account.capability_status == CapabilityStatus.INACTIVE.value
        assert account.requirements_status == RequirementsStatus.CURRENTLY_DUE.value
        assert account.onboarding_complete is False
        assert account.ready_to_receive_payments is False

        params = fake_stripe.calls[0][1]
        assert params["dashboard"] == "express"
        assert params["identity"] == {"country": "us"}
        assert params["defaults"]["responsibilities"] == {
            "fees_collector": "application",
            "losses_collector": "application",
        }
        transfers = params["configuration"]["recipient"]["capabilities"]["stripe_balance"]
        assert transfers == {"stripe_transfers": {"requested": True}}

    @pytest.mark.parametrize("display_name,email", [("", "a@example.com"), ("Ada", ""), (None, None)])
    def test_missing_fields_are_rejected(self, account_service, fake_stripe, test_expert, display_name, email):
        with pytest.raises(InvalidArgumentException):
            account_service.create_recipient_account(test_expert, display_name, email)
        assert fake_stripe.calls == []

    def test_second_account_is_rejected_with_existing_id(
        self, account_service, fake_stripe, test_expert, expert_account: RecipientAccount
    ):
        with pytest.raises(InvalidArgumentException) as exc_info:
            account_service.create_recipient_account(test_expert, "Ada", test_expert.email)

        assert exc_info.value.details["accountId"] == expert_account.stripe_account_id
        assert not any(call[0] == "create_account" for call in fake_stripe.calls)

    def test_provider_outage_stores_nothing(self, db: Session, test_expert):
        stripe_client = MagicMock()
        stripe_client.create_account.side_effect = stripe.APIConnectionError("network down")
        service = RecipientAccountService(db, stripe_client)

        with pytest.raises(UpstreamUnavailableException):
            service.create_recipient_account(test_expert, "Ada", test_expert.email)
        assert db.query(RecipientAccount).count() == 0


class TestResolveAccountId:
    def test_returns_stored_account(self, account_service, test_expert, expert_account):
        assert account_service.resolve_account_id(test_expert.id) == expert_account.stripe_account_id

    def test_no_account_is_not_found(self, account_service, test_seeker):
        with pytest.raises(AccountNotFoundException) as exc_info:
            account_service.resolve_account_id(test_seeker.id)
        assert isinstance(exc_info.value, NotFoundException)


class TestStatus:
    def test_fetch_status_derives_flags_without_persisting(
        self, db, account_service, fake_stripe, expert_account
    ):
        fake_stripe.set_status(
            expert_account.stripe_account_id, capability="active", requirements="pending_verification"
        )

        status = account_service.fetch_status(expert_account.stripe_account_id)

        assert status.ready_to_receive_payments is True
        assert status.onboarding_complete is True
        assert status.capability_status is CapabilityStatus.ACTIVE
        assert status.requirements_status is RequirementsStatus.PENDING_VERIFICATION
        assert status.snapshot.capabilities["stripe_balance"]["stripe_transfers"]["status"] == "active"

        db.refresh(expert_account)
        assert expert_account.ready_to_receive_payments is False
        assert expert_account.onboarding_complete is False

    def test_absent_requirements_count_as_complete(self, account_service, fake_stripe, expert_account):
        fake_stripe.set_status(expert_account.stripe_account_id, capability="pending", requirements=None)

        status = account_service.fetch_status(expert_account.stripe_account_id)

        assert status.requirements_status is RequirementsStatus.COMPLETE
        assert status.onboarding_complete is True
        assert status.ready_to_receive_payments is False

    def test_refresh_status_persists(self, db, account_service, fake_stripe, expert_account):
        fake_stripe.set_status(expert_account.stripe_account_id, capability="active", requirements=None)

        account_service.refresh_status(expert_account.stripe_account_id)

        db.refresh(expert_account)
        assert expert_account.ready_to_receive_payments is True
        assert expert_account.onboarding_complete is True
        assert expert_account.capability_status == "active"
        assert expert_account.requirements_status == "complete"
        assert expert_account.capability_synced_at is not None

    def test_unknown_local_account_is_not_found(self, account_service, fake_stripe):
        with pytest.raises(NotFoundException):
            account_service.fetch_status("acct_nobody")
        assert fake_stripe.calls == []

    def test_provider_resource_missing_is_not_found(self, account_service, fake_stripe, expert_account):
        del fake_stripe.accounts[expert_account.stripe_account_id]
        with pytest.raises(NotFoundException):
            account_service.fetch_status(expert_account.stripe_account_id)

    def test_provider_unreachable_is_upstream_unavailable(self, account_service, fake_stripe, expert_account):
        fake_stripe.failures["retrieve_account"] = stripe.APIConnectionError("timeout")
        with pytest.raises(UpstreamUnavailableException):
            account_service.refresh_status(expert_account.stripe_account_id)
