# backend/consultly/main.py
from __future__ import annotations

from contextlib import asynccontextmanager
import logging
from typing import AsyncGenerator

from fastapi import APIRouter, FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .core.config import settings
from .core.constants import API_DESCRIPTION, API_TITLE, API_VERSION, BRAND_NAME
from .core.exceptions import DomainException
from .middleware.prometheus_middleware import PrometheusMiddleware
from .monitoring.prometheus_metrics import prometheus_metrics
from .routes.v1 import (
    bookings as bookings_v1,
    calendar as calendar_v1,
    health as health_v1,
    notifications as notifications_v1,
    reviews as reviews_v1,
    stripe_webhooks as stripe_webhooks_v1,
    teachers as teachers_v1,
)

logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def app_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    logger.info(f"{BRAND_NAME} API starting up (environment={settings.environment})")
    if not settings.google_client_id:
        logger.warning("GOOGLE_CLIENT_ID not set; calendar sync uses the in-memory client")
    if not settings.stripe_webhook_secret.get_secret_value():
        logger.warning("STRIPE_WEBHOOK_SECRET not set; Stripe webhooks will be rejected")
    yield
    logger.info(f"{BRAND_NAME} API shutting down")


app = FastAPI(
    title=API_TITLE,
    description=API_DESCRIPTION,
    version=API_VERSION,
    lifespan=app_lifespan,
)


@app.exception_handler(DomainException)
async def domain_exception_handler(request: Request, exc: DomainException) -> JSONResponse:
    """Domain errors that escape a route without being converted."""
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.to_dict()})


app.add_middleware(PrometheusMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

api_v1 = APIRouter(prefix="/api/v1")
api_v1.include_router(bookings_v1.router, prefix="/bookings")
api_v1.include_router(teachers_v1.router, prefix="/teachers")
api_v1.include_router(calendar_v1.router, prefix="/calendar")
api_v1.include_router(notifications_v1.router, prefix="/notifications")
api_v1.include_router(reviews_v1.router, prefix="/reviews")
api_v1.include_router(stripe_webhooks_v1.router, prefix="/webhooks/stripe")

app.include_router(api_v1)
app.include_router(health_v1.router)


@app.get("/metrics", include_in_schema=False)
def metrics() -> Response:
    return Response(
        content=prometheus_metrics.get_metrics(),
        media_type=prometheus_metrics.get_content_type(),
    )


@app.get("/")
def root() -> dict:
    return {"message": f"Welcome to the {BRAND_NAME} API", "version": API_VERSION, "docs": "/docs"}
