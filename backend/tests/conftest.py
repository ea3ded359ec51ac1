# backend/tests/conftest.py
"""
Pytest configuration for the payments service.

Environment is pinned BEFORE any sitopay import so the settings object and
the engine are built against an in-memory SQLite database and test secrets.
"""

import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["AUTO_CREATE_TABLES"] = "false"
os.environ["ENVIRONMENT"] = "test"
os.environ["SECRET_KEY"] = "test-secret-key-for-jwt-signing-only"
os.environ["STRIPE_SECRET_KEY"] = "sk_test_not_a_real_key"
os.environ["STRIPE_WEBHOOK_SECRET"] = "whsec_test_local"
os.environ["STRIPE_WEBHOOK_SECRET_CONNECT"] = "whsec_test_connect"
os.environ["SITE_URL"] = "https://sito.test"
os.environ["CI"] = "true"  # skip backend/.env

from typing import Generator

from fastapi.testclient import TestClient
import pytest
from sqlalchemy.orm import Session
import ulid

from sitopay.auth import create_access_token
from sitopay.database import Base, SessionLocal, engine, get_db
from sitopay.main import app
from sitopay.models.payment import RecipientAccount
from sitopay.models.user import User
from sitopay.services.dependencies import get_stripe_client, get_stripe_client_provider

from tests.helpers.fake_stripe import FakeStripeClient


@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """Fresh schema and session per test."""
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def fake_stripe() -> FakeStripeClient:
    return FakeStripeClient()


@pytest.fixture
def client(db: Session, fake_stripe: FakeStripeClient) -> Generator[TestClient, None, None]:
    """Create a test client wired to the test session and the fake Stripe client."""

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_stripe_client] = lambda: fake_stripe
    app.dependency_overrides[get_stripe_client_provider] = lambda: (lambda: fake_stripe)

    test_client = TestClient(app)
    yield test_client

    app.dependency_overrides.clear()
    test_client.close()


def _make_user(db: Session, prefix: str, display_name: str) -> User:
    user = User(
        id=str(ulid.ULID()),
        email=f"{prefix}_{ulid.ULID()}@example.com",
        display_name=display_name,
        is_active=True,
    )
    db.add(user)
    db.commit()
    return user


@pytest.fixture
def test_expert(db: Session) -> User:
    return _make_user(db, "expert", "Ada Expert")


@pytest.fixture
def test_expert_2(db: Session) -> User:
    return _make_user(db, "expert2", "Grace Expert")


@pytest.fixture
def test_seeker(db: Session) -> User:
    return _make_user(db, "seeker", "Sam Seeker")


@pytest.fixture
def expert_account(db: Session, test_expert: User, fake_stripe: FakeStripeClient) -> RecipientAccount:
    """A stored recipient account that has not finished onboarding."""
    stripe_account_id = fake_stripe.add_account(requirements="currently_due", capability=None)
    account = RecipientAccount(
        owner_user_id=test_expert.id,
        stripe_account_id=stripe_account_id,
    )
    db.add(account)
    db.commit()
    return account


def _headers_for(user: User) -> dict:
    token = create_access_token(data={"sub": user.email})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers_expert(test_expert: User) -> dict:
    """Get auth headers for test expert."""
    return _headers_for(test_expert)


@pytest.fixture
def auth_headers_expert_2(test_expert_2: User) -> dict:
    return _headers_for(test_expert_2)


@pytest.fixture
def auth_headers_seeker(test_seeker: User) -> dict:
    return _headers_for(test_seeker)
