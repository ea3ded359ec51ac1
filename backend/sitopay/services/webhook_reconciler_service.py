# backend/sitopay/services/webhook_reconciler_service.py
"""
Event Reconciler for Stripe account webhooks.

Each delivery is verified, expanded from a thin event when needed, and
dispatched by variant. Handlers never trust event contents for state: they
re-read the account from Stripe and persist what they read, guarded by the
read time, so duplicate and out-of-order deliveries converge.
"""

import json
import logging
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy.orm import Session
import stripe

from ..core.exceptions import (
    ConfigurationException,
    InvalidArgumentException,
    SignatureInvalidException,
)
from ..integrations.stripe_client import StripeConnectClient
from ..models.payment import RecipientAccount
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.recipient_account_repository import RecipientAccountRepository
from ..schemas.stripe_payloads import (
    AccountSnapshot,
    CapabilityStatusUpdatedEvent,
    ProviderEvent,
    RequirementsUpdatedEvent,
    UnhandledEvent,
    is_thin_account_event,
    parse_event,
)
from .account_status import (
    derive_onboarding_complete,
    derive_ready_to_receive_payments,
    normalize_capability_status,
    normalize_requirements_status,
)
from .base import BaseService
from .stripe_errors import map_stripe_error

logger = logging.getLogger(__name__)

OUTCOME_APPLIED = "applied"
OUTCOME_STALE = "stale"
OUTCOME_IGNORED = "ignored"


class WebhookReconcilerService(BaseService):
    """Applies Stripe account events to stored recipient status."""

    def __init__(
        self,
        db: Session,
        stripe_client_provider: Callable[[], StripeConnectClient],
        webhook_secrets: List[str],
    ):
        super().__init__(db)
        self._stripe_client_provider = stripe_client_provider
        self._stripe_client: Optional[StripeConnectClient] = None
        self.webhook_secrets = webhook_secrets
        self.repository = RecipientAccountRepository(db)

    @property
    def stripe_client(self) -> StripeConnectClient:
        # First used after the signature check; may raise ConfigurationException
        if self._stripe_client is None:
            self._stripe_client = self._stripe_client_provider()
        return self._stripe_client

    def verify(self, payload: bytes, signature: Optional[str]) -> Dict[str, Any]:
        """
        Authenticate the delivery and parse it.

        Secrets are tried in configured order (local CLI, then Connect).
        """
        if not self.webhook_secrets:
            raise ConfigurationException("Stripe webhook secret is not configured")
        if not signature:
            self.logger.warning("Webhook delivery without stripe-signature header")
            raise SignatureInvalidException("Missing stripe-signature header")
        if not StripeConnectClient.verify_signature(payload, signature, self.webhook_secrets):
            self.logger.warning("Webhook signature verification failed against all secrets")
            raise SignatureInvalidException()

        try:
            event = json.loads(payload)
        except ValueError as exc:
            raise InvalidArgumentException("Webhook payload is not valid JSON") from exc
        if not isinstance(event, dict):
            raise InvalidArgumentException("Webhook payload must be a JSON object")
        return event

    def expand(self, event: Dict[str, Any]) -> Dict[str, Any]:
        """Replace a thin v2 account event with the full event."""
        event_type = event.get("type")
        if not is_thin_account_event(event_type) or not event.get("id"):
            return event
        try:
            return self.stripe_client.retrieve_event(event["id"])
        except stripe.StripeError as exc:
            raise map_stripe_error(exc, operation="retrieve_event") from exc

    @BaseService.measure_operation("process_webhook")
    def process(self, payload: bytes, signature: Optional[str]) -> Dict[str, Any]:
        """Verify, expand and dispatch one delivery. Returns the acknowledgement."""
        raw = self.verify(payload, signature)
        event = parse_event(self.expand(raw))
        self.logger.info(
            "Received webhook event %s (%s) for account %s", event.id, event.type, event.account_id
        )
        outcome = self.dispatch(event)
        prometheus_metrics.record_webhook_event(variant=event.kind, outcome=outcome)
        return {"received": True}

    def dispatch(self, event: ProviderEvent) -> str:
        if isinstance(event, RequirementsUpdatedEvent):
            return self._on_requirements_updated(event)
        if isinstance(event, CapabilityStatusUpdatedEvent):
            return self._on_capability_status_updated(event)
        if isinstance(event, UnhandledEvent):
            self.logger.info("Unhandled event type: %s", event.type)
            return OUTCOME_IGNORED
        raise TypeError(f"Unknown event variant: {type(event).__name__}")

    def _local_account(self, event: ProviderEvent) -> Optional[RecipientAccount]:
        if not event.account_id:
            self.logger.error("No account ID in %s event %s", event.type, event.id)
            return None
        account = self.repository.get_by_stripe_account_id(event.account_id)
        if account is None:
            self.logger.warning(
                "Event %s refers to account %s which is not stored locally", event.id, event.account_id
            )
        return account

    def _read(self, account_id: str, include: str) -> AccountSnapshot:
        try:
            payload = self.stripe_client.retrieve_account(account_id, include=[include])
        except stripe.StripeError as exc:
            raise map_stripe_error(exc, operation="retrieve_account") from exc
        return AccountSnapshot.from_provider(payload)

    def _on_requirements_updated(self, event: RequirementsUpdatedEvent) -> str:
        account = self._local_account(event)
        if account is None:
            return OUTCOME_IGNORED

        snapshot = self._read(account.stripe_account_id, "requirements")
        requirements = normalize_requirements_status(snapshot.raw_requirements_status)
        with self.transaction():
            applied = self.repository.apply_requirements_snapshot(
                account,
                requirements_status=requirements,
                onboarding_complete=derive_onboarding_complete(requirements.value),
                fetched_at=snapshot.fetched_at,
            )
        self.logger.info(
            "Account %s requirements updated. Status: %s", account.stripe_account_id, requirements.value
        )
        return OUTCOME_APPLIED if applied else OUTCOME_STALE

    def _on_capability_status_updated(self, event: CapabilityStatusUpdatedEvent) -> str:
        account = self._local_account(event)
        if account is None:
            return OUTCOME_IGNORED

        snapshot = self._read(account.stripe_account_id, "configuration.recipient")
        capability = normalize_capability_status(snapshot.raw_capability_status)
        ready = derive_ready_to_receive_payments(capability.value)
        was_ready = account.ready_to_receive_payments
        with self.transaction():
            applied = self.repository.apply_capability_snapshot(
                account,
                capability_status=capability,
                ready_to_receive_payments=ready,
                fetched_at=snapshot.fetched_at,
            )
        self.logger.info(
            "Account %s transfer capability updated. Status: %s, Ready: %s",
            account.stripe_account_id,
            capability.value,
            ready,
        )
        if applied and ready and not was_ready:
            self._on_recipient_ready(account)
        return OUTCOME_APPLIED if applied else OUTCOME_STALE

    def _on_recipient_ready(self, account: RecipientAccount) -> None:
        # Hook for the "you can now receive payments" notification.
        prometheus_metrics.inc_recipient_ready()
        logger.info(
            "Recipient account %s (user %s) is now ready to receive payments",
            account.stripe_account_id,
            account.owner_user_id,
        )
