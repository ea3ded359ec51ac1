"""
Payment-related Pydantic schemas for the marketplace payments API.

Defines request and response models for recipient account onboarding,
the product catalog, and split-payment checkout. Wire names are camelCase.
"""

from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import Field, model_validator

from ._strict_base import StrictModel, StrictRequestModel

# ========== Request Models ==========


class CreateRecipientAccountRequest(StrictRequestModel):
    """Request to create the caller's recipient account."""

    display_name: str = Field(..., description="Name shown on the Stripe dashboard")
    contact_email: str = Field(..., description="Contact email for the account")
    country: str = Field(default="us", min_length=2, max_length=2, description="ISO country code")


class OnboardingLinkRequest(StrictRequestModel):
    """Request for a hosted onboarding link."""

    account_id: Optional[str] = Field(
        default=None, description="Stripe account ID; defaults to the caller's account"
    )
    return_url: Optional[str] = Field(default=None, description="Override for the return URL")


class CreateProductRequest(StrictRequestModel):
    """
    Request to create a product with a default price.

    Exactly one of ``unit_amount_minor_units`` (integer, smallest currency
    unit) or ``price`` (decimal, major units) is required.
    """

    name: str = Field(..., description="Product name")
    description: Optional[str] = Field(default=None, description="Product description")
    unit_amount_minor_units: Optional[int] = Field(
        default=None, description="Price in the smallest currency unit"
    )
    price: Optional[Decimal] = Field(default=None, description="Price in major currency units")
    currency_code: Optional[str] = Field(
        default=None, min_length=3, max_length=3, description="ISO 4217 currency code"
    )
    destination_account_id: Optional[str] = Field(
        default=None, description="Owning recipient account; defaults to the caller's"
    )

    @model_validator(mode="after")
    def _require_one_amount(self) -> "CreateProductRequest":
        if self.unit_amount_minor_units is None and self.price is None:
            raise ValueError("Either unitAmountMinorUnits or price is required")
        if self.unit_amount_minor_units is not None and self.price is not None:
            raise ValueError("Provide only one of unitAmountMinorUnits or price")
        return self


class CreateCheckoutSessionRequest(StrictRequestModel):
    """Request to start a hosted checkout for a product price."""

    price_ref: str = Field(..., description="Stripe price ID")
    quantity: int = Field(default=1, description="Number of units")
    destination_account_id: str = Field(..., description="Recipient account receiving the transfer")
    application_fee_percent: Optional[int] = Field(
        default=None, description="Platform fee percentage; defaults to configuration"
    )


# ========== Response Models ==========


class CreateRecipientAccountResponse(StrictModel):
    account_id: str = Field(..., description="Stripe connected account ID")
    message: str


class OnboardingLinkResponse(StrictModel):
    url: str = Field(..., description="Hosted onboarding URL")
    expires_at: Optional[str] = Field(default=None, description="Expiry timestamp of the link")


class AccountSummary(StrictModel):
    """Display summary of the provider account."""

    display_name: Optional[str] = None
    dashboard: Optional[str] = None
    capabilities: Dict[str, Any] = Field(default_factory=dict)


class AccountStatusResponse(StrictModel):
    account_id: str
    ready_to_receive_payments: bool
    onboarding_complete: bool
    requirements_status: str
    capability_status: str
    account: AccountSummary


class ProductPrice(StrictModel):
    id: str
    unit_amount: Optional[int] = None
    currency: Optional[str] = None
    formatted: Optional[str] = None


class ProductResponse(StrictModel):
    product_id: str
    name: str
    description: Optional[str] = None
    unit_amount_minor_units: Optional[int] = None
    currency_code: Optional[str] = None
    owner_account_id: Optional[str] = None
    created_by_user_id: Optional[str] = None
    created_at: Optional[int] = None
    price_ref: Optional[str] = None
    price: Optional[ProductPrice] = None


class CreateProductResponse(StrictModel):
    product_id: str
    price_ref: str
    product: ProductResponse


class ProductListResponse(StrictModel):
    products: List[ProductResponse]
    has_more: bool = False


class CheckoutSessionResponse(StrictModel):
    session_id: str
    url: Optional[str] = None
    total_amount_minor_units: int
    application_fee_amount_minor_units: int
    destination_amount_minor_units: int


class WebhookAckResponse(StrictModel):
    received: bool = True
