# backend/sitopay/services/checkout_service.py
"""
Checkout Session Builder.

Builds a hosted Stripe Checkout session as a destination charge: the buyer
pays the platform, the platform keeps the application fee, and the rest is
transferred to the expert's recipient account.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, Optional

import stripe

from ..core.config import settings
from ..core.exceptions import InvalidArgumentException
from ..integrations.stripe_client import StripeConnectClient
from .base import BaseService
from .stripe_errors import map_stripe_error

GUEST_BUYER = "guest"


def compute_application_fee(total_minor_units: int, fee_percent: int) -> int:
    """Platform fee on the whole order, rounded half-up once."""
    fee = Decimal(total_minor_units) * Decimal(fee_percent) / Decimal(100)
    return int(fee.quantize(Decimal(1), rounding=ROUND_HALF_UP))


@dataclass(frozen=True)
class CheckoutSession:
    session_id: str
    url: Optional[str]
    total_amount_minor_units: int
    application_fee_amount_minor_units: int

    @property
    def destination_amount_minor_units(self) -> int:
        return self.total_amount_minor_units - self.application_fee_amount_minor_units

    def to_response(self) -> Dict[str, Any]:
        return {
            "session_id": self.session_id,
            "url": self.url,
            "total_amount_minor_units": self.total_amount_minor_units,
            "application_fee_amount_minor_units": self.application_fee_amount_minor_units,
            "destination_amount_minor_units": self.destination_amount_minor_units,
        }


class CheckoutService(BaseService):
    """Stateless: two sequential Stripe calls and nothing stored locally."""

    def __init__(self, stripe_client: StripeConnectClient):
        super().__init__()
        self.stripe_client = stripe_client

    @staticmethod
    def success_url() -> str:
        return f"{settings.site_url}/stripe/success?session_id={{CHECKOUT_SESSION_ID}}"

    @staticmethod
    def cancel_url() -> str:
        return f"{settings.site_url}/stripe/cancel"

    def _resolve_unit_amount(self, price_ref: str) -> int:
        try:
            price = self.stripe_client.retrieve_price(price_ref)
        except stripe.StripeError as exc:
            raise map_stripe_error(
                exc,
                operation="retrieve_price",
                unreachable_is_configuration=True,
                missing_is_invalid=True,
            ) from exc
        unit_amount = price.get("unit_amount")
        if unit_amount is None:
            raise InvalidArgumentException(
                "Price has no fixed unit amount", details={"priceRef": price_ref}
            )
        return int(unit_amount)

    @BaseService.measure_operation("create_checkout_session")
    def create_checkout_session(
        self,
        product_price_ref: Optional[str],
        destination_account_id: Optional[str],
        quantity: int = 1,
        application_fee_percent: Optional[int] = None,
        buyer_user_id: Optional[str] = None,
        buyer_email: Optional[str] = None,
    ) -> CheckoutSession:
        """
        Create a destination-charge checkout session.

        Readiness of the destination account is the caller's gate; this
        method does not check it.
        """
        if not product_price_ref or not destination_account_id:
            raise InvalidArgumentException("priceRef and destinationAccountId are required")
        if quantity < 1:
            raise InvalidArgumentException("quantity must be at least 1", details={"quantity": quantity})
        fee_percent = (
            settings.stripe_platform_fee_percent
            if application_fee_percent is None
            else application_fee_percent
        )
        if not 0 <= fee_percent <= 100:
            raise InvalidArgumentException(
                "applicationFeePercent must be between 0 and 100",
                details={"applicationFeePercent": fee_percent},
            )

        unit_amount = self._resolve_unit_amount(product_price_ref)
        total = unit_amount * quantity
        fee = compute_application_fee(total, fee_percent)

        params: Dict[str, Any] = {
            "line_items": [{"price": product_price_ref, "quantity": quantity}],
            "payment_intent_data": {
                "application_fee_amount": fee,
                "transfer_data": {"destination": destination_account_id},
                "metadata": {
                    "connected_account_id": destination_account_id,
                    "application_fee_percent": str(fee_percent),
                    "user_id": buyer_user_id or GUEST_BUYER,
                },
            },
            "mode": "payment",
            "success_url": self.success_url(),
            "cancel_url": self.cancel_url(),
        }
        if buyer_email:
            params["customer_email"] = buyer_email

        try:
            session = self.stripe_client.create_checkout_session(params)
        except stripe.StripeError as exc:
            raise map_stripe_error(
                exc,
                operation="create_checkout_session",
                unreachable_is_configuration=True,
                missing_is_invalid=True,
            ) from exc

        self.logger.info(
            "Checkout session %s: total=%s fee=%s destination=%s",
            session.get("id"),
            total,
            fee,
            destination_account_id,
        )
        return CheckoutSession(
            session_id=session["id"],
            url=session.get("url"),
            total_amount_minor_units=total,
            application_fee_amount_minor_units=fee,
        )
