# backend/sitopay/routes/v1/webhooks.py
"""
Stripe webhook route - API v1

Endpoints:
    POST /webhooks/payment-events → Stripe account events (no auth; signed)
"""

import asyncio
import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status

from ...core.exceptions import (
    ConfigurationException,
    DomainException,
    InvalidArgumentException,
    SignatureInvalidException,
)
from ...schemas.payment_schemas import WebhookAckResponse
from ...services.dependencies import get_webhook_reconciler_service
from ...services.webhook_reconciler_service import WebhookReconcilerService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["webhooks"])


@router.post("/payment-events", response_model=WebhookAckResponse)
async def handle_payment_events(
    request: Request,
    reconciler: WebhookReconcilerService = Depends(get_webhook_reconciler_service),
) -> WebhookAckResponse:
    """
    Handle Stripe account webhooks.

    400 tells Stripe the delivery itself is bad; 500 asks Stripe to redeliver.
    """
    payload = await request.body()
    signature = request.headers.get("stripe-signature")
    try:
        ack = await asyncio.to_thread(reconciler.process, payload, signature)
    except (SignatureInvalidException, InvalidArgumentException, ConfigurationException) as exc:
        raise exc.to_http_exception()
    except DomainException as exc:
        logger.error("Webhook processing failed, requesting redelivery: %s", exc.message)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"message": exc.message, "code": exc.code, "details": exc.details},
        )
    return WebhookAckResponse(**ack)
