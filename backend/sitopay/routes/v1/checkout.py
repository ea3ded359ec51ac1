# backend/sitopay/routes/v1/checkout.py
"""
Checkout routes - API v1

Endpoints:
    POST /checkout → Create a hosted Checkout session (destination charge)
"""

import asyncio
from typing import Optional

from fastapi import APIRouter, Depends

from ...api.dependencies.auth import get_current_active_user_optional
from ...core.exceptions import DomainException
from ...models.user import User
from ...schemas.payment_schemas import CheckoutSessionResponse, CreateCheckoutSessionRequest
from ...services.checkout_service import CheckoutService
from ...services.dependencies import get_checkout_service

router = APIRouter(tags=["checkout"])


@router.post("", response_model=CheckoutSessionResponse)
async def create_checkout_session(
    payload: CreateCheckoutSessionRequest,
    current_user: Optional[User] = Depends(get_current_active_user_optional),
    checkout_service: CheckoutService = Depends(get_checkout_service),
) -> CheckoutSessionResponse:
    """
    Start a checkout for guests or signed-in buyers.

    Callers are expected to have checked the destination account is ready
    to receive payments.
    """
    try:
        session = await asyncio.to_thread(
            checkout_service.create_checkout_session,
            payload.price_ref,
            payload.destination_account_id,
            quantity=payload.quantity,
            application_fee_percent=payload.application_fee_percent,
            buyer_user_id=current_user.id if current_user else None,
            buyer_email=current_user.email if current_user else None,
        )
    except DomainException as exc:
        raise exc.to_http_exception()
    return CheckoutSessionResponse(**session.to_response())
