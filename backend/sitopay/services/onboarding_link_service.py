"""Onboarding Link Issuer: hosted Stripe onboarding links for recipient accounts."""

from typing import Any, Dict, Optional
from urllib.parse import urlencode

from sqlalchemy.orm import Session
import stripe

from ..core.config import settings
from ..core.exceptions import AccountNotFoundException
from ..integrations.stripe_client import StripeConnectClient
from ..models.user import User
from ..repositories.recipient_account_repository import RecipientAccountRepository
from .base import BaseService
from .stripe_errors import map_stripe_error

ONBOARDING_PATH = "/dashboard/stripe-connect"


class OnboardingLinkService(BaseService):
    def __init__(self, db: Session, stripe_client: StripeConnectClient):
        super().__init__(db)
        self.stripe_client = stripe_client
        self.repository = RecipientAccountRepository(db)

    @staticmethod
    def refresh_url() -> str:
        return f"{settings.site_url}{ONBOARDING_PATH}?refresh=true"

    @staticmethod
    def default_return_url(account_id: str) -> str:
        return f"{settings.site_url}{ONBOARDING_PATH}?{urlencode({'accountId': account_id})}"

    @BaseService.measure_operation("create_onboarding_link")
    def create_onboarding_link(
        self,
        user: User,
        account_id: Optional[str] = None,
        return_url: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Issue a single-use onboarding link.

        Falls back to the caller's stored account when ``account_id`` is not
        given. Link expiry is Stripe's concern; a stale link sends the user to
        the refresh URL, which asks for a new one.
        """
        if not account_id:
            account = self.repository.get_by_owner_user_id(user.id)
            if account is None:
                raise AccountNotFoundException()
            account_id = account.stripe_account_id

        params = {
            "account": account_id,
            "use_case": {
                "type": "account_onboarding",
                "account_onboarding": {
                    "configurations": ["recipient"],
                    "refresh_url": self.refresh_url(),
                    "return_url": return_url or self.default_return_url(account_id),
                },
            },
        }
        try:
            link = self.stripe_client.create_account_link(params)
        except stripe.StripeError as exc:
            raise map_stripe_error(exc, operation="create_account_link") from exc

        expires_at = link.get("expires_at")
        return {"url": link["url"], "expires_at": str(expires_at) if expires_at is not None else None}
