"""
In-memory stand-in for ``StripeConnectClient``.

Keeps accounts, products, prices and events as plain dicts shaped like the
Stripe API responses, so services and routes run end to end without network.
"""

import copy
import hashlib
import hmac
import itertools
import re
import time
from typing import Any, Dict, List, Optional, Sequence

import stripe

_SEARCH_OWNER = re.compile(r"metadata\['connected_account_id'\]:'([^']+)'")


def sign_payload(payload: str, secret: str, timestamp: Optional[int] = None) -> str:
    """Build a ``stripe-signature`` header the way Stripe does."""
    ts = int(time.time()) if timestamp is None else timestamp
    signature = hmac.new(
        secret.encode("utf-8"), f"{ts}.{payload}".encode("utf-8"), hashlib.sha256
    ).hexdigest()
    return f"t={ts},v1={signature}"


def missing(resource: str, resource_id: str) -> stripe.InvalidRequestError:
    return stripe.InvalidRequestError(
        f"No such {resource}: '{resource_id}'",
        param="id",
        code="resource_missing",
        http_status=404,
    )


class FakeStripeClient:
    def __init__(self) -> None:
        self._ids = itertools.count(1)
        self.accounts: Dict[str, Dict[str, Any]] = {}
        self.products: Dict[str, Dict[str, Any]] = {}
        self.prices: Dict[str, Dict[str, Any]] = {}
        self.events: Dict[str, Dict[str, Any]] = {}
        self.sessions: List[Dict[str, Any]] = []
        self.links: List[Dict[str, Any]] = []
        self.calls: List[tuple] = []
        # method name -> exception raised on the next call(s)
        self.failures: Dict[str, Exception] = {}
        self.omit_default_price = False

    def _next(self, prefix: str) -> str:
        return f"{prefix}_test_{next(self._ids)}"

    def _call(self, name: str, *args: Any) -> None:
        self.calls.append((name, *args))
        exc = self.failures.get(name)
        if exc is not None:
            raise exc

    # ---- accounts ----

    def add_account(
        self,
        account_id: Optional[str] = None,
        *,
        capability: Optional[str] = None,
        requirements: Optional[str] = "currently_due",
        display_name: str = "Expert",
    ) -> str:
        account_id = account_id or self._next("acct")
        self.accounts[account_id] = {
            "id": account_id,
            "object": "v2.core.account",
            "display_name": display_name,
            "dashboard": "express",
            "configuration": {"recipient": {"capabilities": {}}},
            "requirements": {"summary": {"minimum_deadline": {"status": None}}},
        }
        self.set_status(account_id, capability=capability, requirements=requirements)
        return account_id

    def set_status(
        self,
        account_id: str,
        *,
        capability: Optional[str] = None,
        requirements: Optional[str] = None,
    ) -> None:
        account = self.accounts[account_id]
        capabilities = account["configuration"]["recipient"]["capabilities"]
        if capability is None:
            capabilities.pop("stripe_balance", None)
        else:
            capabilities["stripe_balance"] = {"stripe_transfers": {"status": capability}}
        account["requirements"]["summary"]["minimum_deadline"]["status"] = requirements

    def create_account(self, params: Dict[str, Any]) -> Dict[str, Any]:
        self._call("create_account", params)
        account_id = self.add_account(display_name=params.get("display_name", ""))
        self.accounts[account_id]["contact_email"] = params.get("contact_email")
        return copy.deepcopy(self.accounts[account_id])

    def retrieve_account(self, account_id: str, include: Sequence[str] = ()) -> Dict[str, Any]:
        self._call("retrieve_account", account_id, tuple(include))
        if account_id not in self.accounts:
            raise missing("account", account_id)
        account = copy.deepcopy(self.accounts[account_id])
        if "requirements" not in include:
            account.pop("requirements", None)
        if "configuration.recipient" not in include:
            account.pop("configuration", None)
        return account

    def create_account_link(self, params: Dict[str, Any]) -> Dict[str, Any]:
        self._call("create_account_link", params)
        if params["account"] not in self.accounts:
            raise missing("account", params["account"])
        link = {
            "object": "v2.core.account_link",
            "account": params["account"],
            "url": f"https://connect.stripe.test/setup/{params['account']}",
            "expires_at": "2026-10-19T12:00:00.000Z",
            "use_case": params["use_case"],
        }
        self.links.append(link)
        return copy.deepcopy(link)

    # ---- events ----

    def add_thin_event(self, event_type: str, account_id: Optional[str]) -> Dict[str, Any]:
        """Register the full event and return the thin payload Stripe would POST."""
        event_id = self._next("evt")
        related = (
            {"id": account_id, "type": "v2.core.account", "url": f"/v2/core/accounts/{account_id}"}
            if account_id
            else None
        )
        full = {
            "id": event_id,
            "object": "v2.core.event",
            "type": event_type,
            "created": "2026-10-19T10:00:00.000Z",
            "related_object": related,
            "data": {},
        }
        self.events[event_id] = full
        return {key: full[key] for key in ("id", "object", "type", "created", "related_object")}

    def retrieve_event(self, event_id: str) -> Dict[str, Any]:
        self._call("retrieve_event", event_id)
        if event_id not in self.events:
            raise missing("event", event_id)
        return copy.deepcopy(self.events[event_id])

    # ---- products and prices ----

    def create_product(self, params: Dict[str, Any]) -> Dict[str, Any]:
        self._call("create_product", params)
        product_id = self._next("prod")
        price_data = params["default_price_data"]
        price_id = self._next("price")
        self.prices[price_id] = {
            "id": price_id,
            "object": "price",
            "product": product_id,
            "unit_amount": price_data["unit_amount"],
            "currency": price_data["currency"],
        }
        self.products[product_id] = {
            "id": product_id,
            "object": "product",
            "name": params["name"],
            "description": params.get("description") or None,
            "metadata": dict(params.get("metadata") or {}),
            "created": 1_760_000_000 + len(self.products),
            "default_price": None if self.omit_default_price else price_id,
        }
        return copy.deepcopy(self.products[product_id])

    def _expanded(self, product: Dict[str, Any]) -> Dict[str, Any]:
        expanded = copy.deepcopy(product)
        if expanded["default_price"]:
            expanded["default_price"] = copy.deepcopy(self.prices[expanded["default_price"]])
        return expanded

    def _page(self, products: List[Dict[str, Any]], limit: int, obj: str) -> Dict[str, Any]:
        newest_first = sorted(products, key=lambda p: p["created"], reverse=True)
        return {
            "object": obj,
            "data": [self._expanded(p) for p in newest_first[:limit]],
            "has_more": len(newest_first) > limit,
        }

    def list_products(self, limit: int) -> Dict[str, Any]:
        self._call("list_products", limit)
        return self._page(list(self.products.values()), limit, "list")

    def search_products(self, query: str, limit: int) -> Dict[str, Any]:
        self._call("search_products", query, limit)
        match = _SEARCH_OWNER.search(query)
        owner = match.group(1) if match else None
        owned = [p for p in self.products.values() if p["metadata"].get("connected_account_id") == owner]
        return self._page(owned, limit, "search_result")

    def retrieve_price(self, price_id: str) -> Dict[str, Any]:
        self._call("retrieve_price", price_id)
        if price_id not in self.prices:
            raise missing("price", price_id)
        return copy.deepcopy(self.prices[price_id])

    # ---- checkout ----

    def create_checkout_session(self, params: Dict[str, Any]) -> Dict[str, Any]:
        self._call("create_checkout_session", params)
        session_id = self._next("cs")
        session = {
            "id": session_id,
            "object": "checkout.session",
            "url": f"https://checkout.stripe.test/c/pay/{session_id}",
            **copy.deepcopy(params),
        }
        self.sessions.append(session)
        return copy.deepcopy(session)
