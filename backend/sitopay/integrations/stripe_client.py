"""Thin wrapper around ``stripe.StripeClient`` for Connect recipients, products and checkout."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence

from pydantic import SecretStr
import stripe

logger = logging.getLogger(__name__)


def _as_dict(value: Any) -> Any:
    """Recursively convert Stripe objects into plain dicts and lists."""
    if isinstance(value, stripe.StripeObject):
        return _as_dict(value.to_dict())
    if isinstance(value, Mapping):
        return {key: _as_dict(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_as_dict(item) for item in value]
    return value


class StripeConnectClient:
    """
    Per-process Stripe client.

    Every method returns plain dictionaries; ``stripe.StripeError`` subclasses
    propagate unchanged for the service layer to map.
    """

    def __init__(
        self,
        *,
        api_key: str | SecretStr,
        timeout: float = 8.0,
        max_network_retries: int = 1,
        client: Optional[stripe.StripeClient] = None,
    ) -> None:
        secret_value = api_key.get_secret_value() if isinstance(api_key, SecretStr) else api_key
        if not secret_value:
            raise ValueError("Stripe API key must be provided")

        self._client = client or stripe.StripeClient(
            secret_value,
            max_network_retries=max_network_retries,
            http_client=stripe.RequestsClient(timeout=timeout),
        )

    # ---- v2 core accounts ----

    def create_account(self, params: Dict[str, Any]) -> Dict[str, Any]:
        account = _as_dict(self._client.v2.core.accounts.create(params))
        logger.info("Created Stripe account %s", account.get("id"))
        return account

    def retrieve_account(self, account_id: str, include: Sequence[str] = ()) -> Dict[str, Any]:
        params = {"include": list(include)} if include else None
        return _as_dict(self._client.v2.core.accounts.retrieve(account_id, params))

    def create_account_link(self, params: Dict[str, Any]) -> Dict[str, Any]:
        return _as_dict(self._client.v2.core.account_links.create(params))

    def retrieve_event(self, event_id: str) -> Dict[str, Any]:
        return _as_dict(self._client.v2.core.events.retrieve(event_id))

    # ---- v1 catalog and checkout ----

    def create_product(self, params: Dict[str, Any]) -> Dict[str, Any]:
        return _as_dict(self._client.v1.products.create(params))

    def list_products(self, limit: int) -> Dict[str, Any]:
        page = self._client.v1.products.list({"limit": limit, "expand": ["data.default_price"]})
        return _as_dict(page)

    def search_products(self, query: str, limit: int) -> Dict[str, Any]:
        page = self._client.v1.products.search(
            {"query": query, "limit": limit, "expand": ["data.default_price"]}
        )
        return _as_dict(page)

    def retrieve_price(self, price_id: str) -> Dict[str, Any]:
        return _as_dict(self._client.v1.prices.retrieve(price_id))

    def create_checkout_session(self, params: Dict[str, Any]) -> Dict[str, Any]:
        return _as_dict(self._client.v1.checkout.sessions.create(params))

    # ---- webhooks ----

    @staticmethod
    def verify_signature(payload: bytes, signature_header: str, secrets: List[str]) -> bool:
        """Return True when any of ``secrets`` validates ``signature_header`` for ``payload``."""
        body = payload.decode("utf-8", errors="replace")
        for secret in secrets:
            try:
                stripe.WebhookSignature.verify_header(body, signature_header, secret)
                return True
            except stripe.SignatureVerificationError:
                continue
        return False
