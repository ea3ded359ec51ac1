# backend/sitopay/routes/v1/products.py
"""
Product catalog routes - API v1

Endpoints:
    POST /products   → Create a product with a default price (expert only)
    GET /products    → List products, optionally for one recipient account
"""

import asyncio
from typing import Optional

from fastapi import APIRouter, Depends, Query

from ...api.dependencies.auth import get_current_active_user
from ...core.exceptions import DomainException
from ...models.user import User
from ...schemas.payment_schemas import (
    CreateProductRequest,
    CreateProductResponse,
    ProductListResponse,
    ProductResponse,
)
from ...services.dependencies import get_product_catalog_service
from ...services.product_catalog_service import DEFAULT_LIST_LIMIT, ProductCatalogService

router = APIRouter(tags=["products"])


@router.post("", response_model=CreateProductResponse)
async def create_product(
    payload: CreateProductRequest,
    current_user: User = Depends(get_current_active_user),
    catalog_service: ProductCatalogService = Depends(get_product_catalog_service),
) -> CreateProductResponse:
    """
    Create a product owned by the caller's recipient account.

    Accepts either ``unitAmountMinorUnits`` or a decimal ``price``.
    """
    try:
        product = await asyncio.to_thread(
            catalog_service.create_product_for_user,
            current_user,
            name=payload.name,
            description=payload.description,
            unit_amount_minor_units=payload.unit_amount_minor_units,
            price=payload.price,
            currency_code=payload.currency_code,
            destination_account_id=payload.destination_account_id,
        )
    except DomainException as exc:
        raise exc.to_http_exception()
    return CreateProductResponse(
        product_id=product["product_id"],
        price_ref=product["price_ref"],
        product=ProductResponse(**product),
    )


@router.get("", response_model=ProductListResponse)
async def list_products(
    account_id: Optional[str] = Query(default=None, alias="accountId"),
    limit: int = Query(default=DEFAULT_LIST_LIMIT),
    catalog_service: ProductCatalogService = Depends(get_product_catalog_service),
) -> ProductListResponse:
    """Public storefront listing."""
    try:
        page = await asyncio.to_thread(catalog_service.list_products, account_id, limit)
    except DomainException as exc:
        raise exc.to_http_exception()
    return ProductListResponse(
        products=[ProductResponse(**item) for item in page["products"]],
        has_more=page["has_more"],
    )
