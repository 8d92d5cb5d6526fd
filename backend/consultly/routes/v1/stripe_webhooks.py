# backend/consultly/routes/v1/stripe_webhooks.py
"""
Stripe Webhook Endpoint - API v1

Verifies the Stripe signature and hands the event to StripeService.
Unknown event types and test events are acknowledged with "ignored" so
Stripe does not retry them.
"""

import asyncio
import logging

from fastapi import APIRouter, Depends, Request

from ...api.dependencies import get_stripe_service
from ...core.exceptions import DomainException, handle_domain_exception
from ...schemas.payment import WebhookResponse
from ...services.stripe_service import StripeService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["stripe-webhooks"])


@router.post("", response_model=WebhookResponse)
async def handle_stripe_webhook(
    request: Request, stripe_service: StripeService = Depends(get_stripe_service)
) -> WebhookResponse:
    payload = await request.body()
    signature = request.headers.get("stripe-signature")
    try:
        event = stripe_service.construct_event(payload, signature)
        result = await asyncio.to_thread(stripe_service.handle_event, event)
    except DomainException as e:
        logger.warning(f"Stripe webhook rejected: {e.message}")
        handle_domain_exception(e)
    return WebhookResponse(**result)
