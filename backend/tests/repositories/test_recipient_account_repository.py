"""RecipientAccountRepository tests."""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from sitopay.models.payment import CapabilityStatus, RequirementsStatus
from sitopay.repositories.recipient_account_repository import RecipientAccountRepository


@pytest.fixture
def repository(db: Session) -> RecipientAccountRepository:
    return RecipientAccountRepository(db)


def test_create_and_lookup(db, repository, test_expert):
    created = repository.create_account_record(test_expert.id, "acct_repo_1")
    db.commit()

    assert repository.get_by_owner_user_id(test_expert.id).id == created.id
    assert repository.get_by_stripe_account_id("acct_repo_1").id == created.id
    assert created.onboarding_complete is False
    assert created.ready_to_receive_payments is False
    assert created.requirements_status == "currently_due"
    assert created.capability_status == "inactive"


def test_one_account_per_owner(db, repository, test_expert):
    repository.create_account_record(test_expert.id, "acct_repo_1")
    db.commit()
    with pytest.raises(IntegrityError):
        repository.create_account_record(test_expert.id, "acct_repo_2")


def test_missing_lookups_return_none(repository):
    assert repository.get_by_owner_user_id("nobody") is None
    assert repository.get_by_stripe_account_id("acct_nobody") is None


def test_snapshot_guard_keeps_newer_read(db, repository, expert_account):
    now = datetime.now(timezone.utc)
    assert repository.apply_capability_snapshot(
        expert_account,
        capability_status=CapabilityStatus.ACTIVE,
        ready_to_receive_payments=True,
        fetched_at=now,
    )
    db.commit()

    applied = repository.apply_capability_snapshot(
        expert_account,
        capability_status=CapabilityStatus.PENDING,
        ready_to_receive_payments=False,
        fetched_at=now - timedelta(seconds=30),
    )

    assert applied is False
    db.refresh(expert_account)
    assert expert_account.capability_status == "active"
    assert expert_account.ready_to_receive_payments is True


def test_same_time_read_is_applied(db, repository, expert_account):
    now = datetime.now(timezone.utc)
    for status, complete in (
        (RequirementsStatus.PENDING_VERIFICATION, True),
        (RequirementsStatus.CURRENTLY_DUE, False),
    ):
        assert repository.apply_requirements_snapshot(
            expert_account, requirements_status=status, onboarding_complete=complete, fetched_at=now
        )
        db.commit()

    db.refresh(expert_account)
    assert expert_account.requirements_status == "currently_due"
    assert expert_account.onboarding_complete is False


def test_requirements_and_capability_guards_are_independent(db, repository, expert_account):
    now = datetime.now(timezone.utc)
    repository.apply_capability_snapshot(
        expert_account,
        capability_status=CapabilityStatus.ACTIVE,
        ready_to_receive_payments=True,
        fetched_at=now,
    )
    db.commit()

    assert repository.apply_requirements_snapshot(
        expert_account,
        requirements_status=RequirementsStatus.COMPLETE,
        onboarding_complete=True,
        fetched_at=now - timedelta(minutes=1),
    )
