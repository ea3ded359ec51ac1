# backend/sitopay/routes/v1/accounts.py
"""
Recipient account routes - API v1

Endpoints:
    POST /accounts                  → Create the caller's Stripe recipient account
    POST /accounts/link             → Issue a hosted onboarding link
    GET /accounts/status            → Live account status (not persisted)
    POST /accounts/status/refresh   → Live account status, persisted
"""

import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from ...api.dependencies.auth import get_current_active_user
from ...core.exceptions import DomainException
from ...models.user import User
from ...schemas.payment_schemas import (
    AccountStatusResponse,
    CreateRecipientAccountRequest,
    CreateRecipientAccountResponse,
    OnboardingLinkRequest,
    OnboardingLinkResponse,
)
from ...services.dependencies import (
    get_onboarding_link_service,
    get_recipient_account_service,
)
from ...services.onboarding_link_service import OnboardingLinkService
from ...services.recipient_account_service import RecipientAccountService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["accounts"])


@router.post("", response_model=CreateRecipientAccountResponse)
async def create_recipient_account(
    payload: CreateRecipientAccountRequest,
    current_user: User = Depends(get_current_active_user),
    account_service: RecipientAccountService = Depends(get_recipient_account_service),
) -> CreateRecipientAccountResponse:
    """Create a Stripe recipient account for the caller. One per user."""
    try:
        account = await asyncio.to_thread(
            account_service.create_recipient_account,
            current_user,
            payload.display_name,
            payload.contact_email,
            payload.country,
        )
    except DomainException as exc:
        raise exc.to_http_exception()
    return CreateRecipientAccountResponse(
        account_id=account.stripe_account_id,
        message="Account created successfully. Please complete onboarding.",
    )


@router.post("/link", response_model=OnboardingLinkResponse)
async def create_onboarding_link(
    payload: Optional[OnboardingLinkRequest] = None,
    current_user: User = Depends(get_current_active_user),
    link_service: OnboardingLinkService = Depends(get_onboarding_link_service),
) -> OnboardingLinkResponse:
    """Issue an onboarding link for ``accountId`` or the caller's own account."""
    request = payload or OnboardingLinkRequest()
    try:
        link = await asyncio.to_thread(
            link_service.create_onboarding_link,
            current_user,
            request.account_id,
            request.return_url,
        )
    except DomainException as exc:
        raise exc.to_http_exception()
    return OnboardingLinkResponse(**link)


async def _resolve_account_id(
    account_id: Optional[str], user: User, account_service: RecipientAccountService
) -> str:
    if account_id:
        return account_id
    return await asyncio.to_thread(account_service.resolve_account_id, user.id)


@router.get("/status", response_model=AccountStatusResponse)
async def get_account_status(
    account_id: Optional[str] = Query(default=None, alias="accountId"),
    current_user: User = Depends(get_current_active_user),
    account_service: RecipientAccountService = Depends(get_recipient_account_service),
) -> AccountStatusResponse:
    try:
        resolved = await _resolve_account_id(account_id, current_user, account_service)
        status = await asyncio.to_thread(account_service.fetch_status, resolved)
    except DomainException as exc:
        raise exc.to_http_exception()
    return AccountStatusResponse(**status.to_response())


@router.post("/status/refresh", response_model=AccountStatusResponse)
async def refresh_account_status(
    account_id: Optional[str] = Query(default=None, alias="accountId"),
    current_user: User = Depends(get_current_active_user),
    account_service: RecipientAccountService = Depends(get_recipient_account_service),
) -> AccountStatusResponse:
    """Re-read status from Stripe and store it, for when a webhook was missed."""
    try:
        resolved = await _resolve_account_id(account_id, current_user, account_service)
        status = await asyncio.to_thread(account_service.refresh_status, resolved)
    except DomainException as exc:
        raise exc.to_http_exception()
    logger.info("Refreshed status for %s on behalf of user %s", resolved, current_user.id)
    return AccountStatusResponse(**status.to_response())
