# backend/consultly/services/stripe_service.py
"""
Stripe Service for Consultly

Checkout sessions are created by the hosted checkout flow outside this
service; here we only verify and react to Stripe webhook events:

- checkout.session.completed  -> booking paid and confirmed
- payment_intent.payment_failed -> booking payment marked failed

Both carry the booking id in ``metadata.booking_id``.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session
import stripe

from ..core.config import settings
from ..core.exceptions import (
    InvalidStateException,
    NotFoundException,
    ServiceException,
    ValidationException,
)
from .base import BaseService
from .booking_service import BookingService

logger = logging.getLogger(__name__)

TEST_EVENT_PREFIX = "evt_test_"


class StripeService(BaseService):
    def __init__(self, db: Session, booking_service: Optional[BookingService] = None):
        super().__init__(db)
        self.booking_service = booking_service or BookingService(db)
        secret_key = settings.stripe_secret_key.get_secret_value()
        if secret_key:
            stripe.api_key = secret_key

    def construct_event(self, payload: bytes, signature: Optional[str]) -> Dict[str, Any]:
        """
        Verify the Stripe-Signature header and return the parsed event.

        Raises:
            ValidationException: Missing or invalid signature, or bad payload
            ServiceException: Webhook secret not configured
        """
        if not signature:
            raise ValidationException("Missing stripe-signature header")
        webhook_secret = settings.stripe_webhook_secret.get_secret_value()
        if not webhook_secret:
            raise ServiceException("Webhook secret not configured")

        try:
            stripe.Webhook.construct_event(payload, signature, webhook_secret)
        except stripe.SignatureVerificationError as exc:
            self.logger.warning("Invalid webhook signature")
            raise ValidationException("Invalid webhook signature") from exc
        except ValueError as exc:
            raise ValidationException("Invalid webhook payload") from exc

        try:
            return dict(json.loads(payload.decode("utf-8")))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise ValidationException("Invalid webhook payload") from exc

    @BaseService.measure_operation("handle_stripe_event")
    def handle_event(self, event: Dict[str, Any]) -> Dict[str, Any]:
        event_id = str(event.get("id") or "")
        event_type = str(event.get("type") or "")
        self.logger.info(f"Processing Stripe webhook event: {event_type} ({event_id})")

        if event_id.startswith(TEST_EVENT_PREFIX):
            return {"status": "ignored", "event_type": event_type, "message": "test event"}

        obj = (event.get("data") or {}).get("object") or {}
        booking_id = (obj.get("metadata") or {}).get("booking_id")

        if event_type not in ("checkout.session.completed", "payment_intent.payment_failed"):
            self.logger.info(f"Unhandled webhook event type: {event_type}")
            return {"status": "ignored", "event_type": event_type}
        if not booking_id:
            self.logger.warning(f"{event_type} without booking_id metadata", extra={"event_id": event_id})
            return {"status": "ignored", "event_type": event_type, "message": "no booking_id"}

        try:
            if event_type == "checkout.session.completed":
                self.booking_service.apply_payment_success(booking_id, obj.get("payment_intent"))
            else:
                self.booking_service.apply_payment_failure(booking_id)
        except (NotFoundException, InvalidStateException) as exc:
            # Acknowledge so Stripe stops retrying an event we can never apply
            self.logger.warning(
                f"Could not apply {event_type}: {exc.message}",
                extra={"event_id": event_id, "booking_id": booking_id},
            )
            return {
                "status": "ignored",
                "event_type": event_type,
                "booking_id": booking_id,
                "message": exc.message,
            }

        return {"status": "success", "event_type": event_type, "booking_id": booking_id}
