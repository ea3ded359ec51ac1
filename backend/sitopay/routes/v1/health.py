# backend/sitopay/routes/v1/health.py
"""Health check and Prometheus metrics endpoints."""

from datetime import datetime, timezone

from fastapi import APIRouter, Response

from ...core.config import settings
from ...monitoring.prometheus_metrics import prometheus_metrics

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check() -> dict:
    return {
        "status": "healthy",
        "service": "sito-payments",
        "environment": settings.environment,
        "stripe_configured": bool(settings.stripe_secret_key.get_secret_value()),
        "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
    }


@router.get("/metrics", include_in_schema=False)
async def metrics() -> Response:
    return Response(
        content=prometheus_metrics.get_metrics(),
        media_type=prometheus_metrics.get_content_type(),
    )
