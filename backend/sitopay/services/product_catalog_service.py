# backend/sitopay/services/product_catalog_service.py
"""
Product Catalog Adapter.

Products and their default prices live in Stripe at the platform level;
ownership is recorded as metadata so listings can be filtered per expert.
Amounts are always integers in the currency's smallest unit.
"""

from decimal import Decimal, InvalidOperation
import re
from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy.orm import Session
import stripe

from ..core.config import settings
from ..core.exceptions import (
    AccountNotFoundException,
    InvalidArgumentException,
    UpstreamUnavailableException,
)
from ..integrations.stripe_client import StripeConnectClient
from ..models.user import User
from ..repositories.recipient_account_repository import RecipientAccountRepository
from .base import BaseService
from .stripe_errors import map_stripe_error

DEFAULT_LIST_LIMIT = 10
OWNER_METADATA_KEY = "connected_account_id"
CREATOR_METADATA_KEY = "created_by_user_id"

ZERO_DECIMAL_CURRENCIES = frozenset(
    {"bif", "clp", "djf", "gnf", "jpy", "kmf", "krw", "mga", "pyg", "rwf", "ugx", "vnd", "vuv", "xaf", "xof", "xpf"}
)
THREE_DECIMAL_CURRENCIES = frozenset({"bhd", "jod", "kwd", "omr", "tnd"})

_ACCOUNT_ID_PATTERN = re.compile(r"^[A-Za-z0-9_]+$")


def currency_exponent(currency_code: str) -> int:
    code = currency_code.lower()
    if code in ZERO_DECIMAL_CURRENCIES:
        return 0
    if code in THREE_DECIMAL_CURRENCIES:
        return 3
    return 2


def to_minor_units(price: Decimal, currency_code: str) -> int:
    """Convert a major-unit price to minor units, rejecting sub-unit fractions."""
    try:
        scaled = Decimal(price).scaleb(currency_exponent(currency_code))
    except InvalidOperation as exc:
        raise InvalidArgumentException("price must be a decimal number") from exc
    if not scaled.is_finite() or scaled != scaled.to_integral_value():
        raise InvalidArgumentException(
            f"price has more precision than {currency_code.upper()} allows",
            details={"price": str(price)},
        )
    return int(scaled)


def format_amount(unit_amount: Optional[int], currency_code: Optional[str]) -> Optional[str]:
    if currency_code is None:
        return None
    major = Decimal(unit_amount or 0).scaleb(-currency_exponent(currency_code))
    return f"{format(major.normalize(), 'f')} {currency_code.upper()}"


def clamp_limit(limit: Optional[int]) -> int:
    if limit is None:
        return DEFAULT_LIST_LIMIT
    return max(1, min(int(limit), settings.stripe_products_list_max))


def _price_ref(product: Mapping[str, Any]) -> Optional[str]:
    default_price = product.get("default_price")
    if isinstance(default_price, Mapping):
        return default_price.get("id")
    return default_price or None


def serialize_product(product: Mapping[str, Any]) -> Dict[str, Any]:
    """Flatten a Stripe product (optionally with expanded default price)."""
    metadata = product.get("metadata") or {}
    default_price = product.get("default_price")
    price: Optional[Dict[str, Any]] = None
    if isinstance(default_price, Mapping):
        price = {
            "id": default_price.get("id"),
            "unit_amount": default_price.get("unit_amount"),
            "currency": default_price.get("currency"),
            "formatted": format_amount(default_price.get("unit_amount"), default_price.get("currency")),
        }
    return {
        "product_id": product.get("id"),
        "name": product.get("name"),
        "description": product.get("description") or None,
        "unit_amount_minor_units": price["unit_amount"] if price else None,
        "currency_code": price["currency"] if price else None,
        "owner_account_id": metadata.get(OWNER_METADATA_KEY),
        "created_by_user_id": metadata.get(CREATOR_METADATA_KEY),
        "created_at": product.get("created"),
        "price_ref": _price_ref(product),
        "price": price,
    }


class ProductCatalogService(BaseService):
    """Creates and lists expert products in the platform's Stripe catalog."""

    def __init__(self, db: Session, stripe_client: StripeConnectClient):
        super().__init__(db)
        self.stripe_client = stripe_client
        self.account_repository = RecipientAccountRepository(db)

    def resolve_owned_account_id(self, user: User, destination_account_id: Optional[str]) -> str:
        """The caller may only sell into a recipient account they own."""
        account = self.account_repository.get_by_owner_user_id(user.id)
        if account is None:
            raise AccountNotFoundException()
        if destination_account_id and destination_account_id != account.stripe_account_id:
            raise InvalidArgumentException(
                "destinationAccountId does not belong to the caller",
                details={"destinationAccountId": destination_account_id},
            )
        return account.stripe_account_id

    @BaseService.measure_operation("create_product_for_user")
    def create_product_for_user(
        self,
        user: User,
        *,
        name: str,
        description: Optional[str] = None,
        unit_amount_minor_units: Optional[int] = None,
        price: Optional[Decimal] = None,
        currency_code: Optional[str] = None,
        destination_account_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        owner_account_id = self.resolve_owned_account_id(user, destination_account_id)
        currency = (currency_code or settings.stripe_default_currency).lower()
        if unit_amount_minor_units is None:
            if price is None:
                raise InvalidArgumentException("Either unitAmountMinorUnits or price is required")
            unit_amount_minor_units = to_minor_units(price, currency)
        return self.create_product(
            name=name,
            description=description,
            unit_amount_minor_units=unit_amount_minor_units,
            currency_code=currency,
            owner_account_id=owner_account_id,
            created_by_user_id=user.id,
        )

    @BaseService.measure_operation("create_product")
    def create_product(
        self,
        *,
        name: str,
        description: Optional[str],
        unit_amount_minor_units: int,
        currency_code: Optional[str],
        owner_account_id: str,
        created_by_user_id: str,
    ) -> Dict[str, Any]:
        """
        Create a product with a default price, tagged with its owner.

        Returns:
            Serialized product including ``price_ref`` (the default price id)

        Raises:
            InvalidArgumentException: empty name or non-positive amount
            UpstreamUnavailableException: Stripe returned no default price
        """
        if not name or not name.strip():
            raise InvalidArgumentException("name is required")
        if isinstance(unit_amount_minor_units, bool) or not isinstance(unit_amount_minor_units, int):
            raise InvalidArgumentException("unitAmountMinorUnits must be an integer")
        if unit_amount_minor_units <= 0:
            raise InvalidArgumentException(
                "unitAmountMinorUnits must be greater than 0",
                details={"unitAmountMinorUnits": unit_amount_minor_units},
            )
        currency = (currency_code or settings.stripe_default_currency).lower()

        params = {
            "name": name.strip(),
            "description": description or "",
            "default_price_data": {"unit_amount": unit_amount_minor_units, "currency": currency},
            "metadata": {
                OWNER_METADATA_KEY: owner_account_id,
                CREATOR_METADATA_KEY: created_by_user_id,
            },
        }
        try:
            product = self.stripe_client.create_product(params)
        except stripe.StripeError as exc:
            raise map_stripe_error(exc, operation="create_product") from exc

        price_ref = _price_ref(product)
        if not price_ref:
            self.logger.error("Stripe product %s was created without a default price", product.get("id"))
            raise UpstreamUnavailableException(
                "Failed to create price for product", details={"productId": product.get("id")}
            )

        serialized = serialize_product(product)
        if serialized["price"] is None:
            # Stripe returns default_price unexpanded on create
            serialized["unit_amount_minor_units"] = unit_amount_minor_units
            serialized["currency_code"] = currency
            serialized["price"] = {
                "id": price_ref,
                "unit_amount": unit_amount_minor_units,
                "currency": currency,
                "formatted": format_amount(unit_amount_minor_units, currency),
            }
        self.logger.info("Created product %s (%s) for %s", product.get("id"), price_ref, owner_account_id)
        return serialized

    @BaseService.measure_operation("list_products")
    def list_products(
        self, owner_account_id: Optional[str] = None, limit: Optional[int] = DEFAULT_LIST_LIMIT
    ) -> Dict[str, Any]:
        """List products, optionally only those owned by ``owner_account_id``."""
        page_size = clamp_limit(limit)
        try:
            if owner_account_id:
                if not _ACCOUNT_ID_PATTERN.match(owner_account_id):
                    raise InvalidArgumentException(
                        "accountId is malformed", details={"accountId": owner_account_id}
                    )
                query = f"metadata['{OWNER_METADATA_KEY}']:'{owner_account_id}'"
                page = self.stripe_client.search_products(query, page_size)
            else:
                page = self.stripe_client.list_products(page_size)
        except stripe.StripeError as exc:
            raise map_stripe_error(exc, operation="list_products") from exc

        items: List[Dict[str, Any]] = [serialize_product(p) for p in page.get("data") or []]
        return {"products": items, "has_more": bool(page.get("has_more"))}
