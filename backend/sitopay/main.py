# backend/sitopay/main.py
"""
FastAPI application for the marketplace payments service.

Run locally with:
    uvicorn sitopay.main:app --reload --app-dir backend
"""

from contextlib import asynccontextmanager
import logging
from typing import AsyncGenerator

from fastapi import APIRouter, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import __version__
from .core.config import settings
from .database import init_db
from .errors import register_error_handlers
from .routes.v1 import (
    accounts as accounts_v1,
    checkout as checkout_v1,
    health as health_v1,
    products as products_v1,
    webhooks as webhooks_v1,
)

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def app_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle application startup/shutdown."""
    logger.info("Sito payments API starting up...")
    logger.info(f"Environment: {settings.environment}")
    if not settings.stripe_secret_key.get_secret_value():
        logger.warning("STRIPE_SECRET_KEY is not set; payment endpoints will return 500")
    if not settings.webhook_secrets:
        logger.warning("No Stripe webhook secret configured; webhooks will be rejected")
    if settings.auto_create_tables:
        init_db()
    yield
    logger.info("Sito payments API shutting down...")


app = FastAPI(
    title="Sito Payments API",
    description="Stripe Connect onboarding, products, checkout and webhooks for the Sito marketplace",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=app_lifespan,
)

# Register unified problem+json error handlers
register_error_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "HEAD", "OPTIONS", "POST"],
    allow_headers=["*"],
)

api_v1 = APIRouter(prefix="/api/v1")
api_v1.include_router(accounts_v1.router, prefix="/accounts")
api_v1.include_router(products_v1.router, prefix="/products")
api_v1.include_router(checkout_v1.router, prefix="/checkout")
api_v1.include_router(webhooks_v1.router, prefix="/webhooks")
api_v1.include_router(health_v1.router)
app.include_router(api_v1)
