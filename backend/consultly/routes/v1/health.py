# backend/consultly/routes/v1/health.py
"""
Health check endpoints for monitoring and load balancer probes.
"""

from __future__ import annotations

from datetime import datetime, timezone
import logging

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy import text
from sqlalchemy.orm import Session

from ...api.dependencies import get_db
from ...core.config import settings
from ...core.constants import API_VERSION, BRAND_NAME

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


def _health_payload() -> dict:
    return {
        "status": "healthy",
        "service": f"{BRAND_NAME.lower()}-api",
        "version": API_VERSION,
        "environment": settings.environment,
        "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
    }


@router.get("/health")
def health_check() -> dict:
    """Liveness probe; never touches the database."""
    return _health_payload()


@router.get("/ready")
def readiness_check(response: Response, db: Session = Depends(get_db)) -> dict:
    """Readiness probe: verifies the database answers a trivial query."""
    payload = _health_payload()
    try:
        db.execute(text("SELECT 1"))
        payload["database"] = "ok"
    except Exception as exc:
        logger.error(f"Readiness check failed: {exc}")
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        payload["status"] = "degraded"
        payload["database"] = "unavailable"
    return payload
