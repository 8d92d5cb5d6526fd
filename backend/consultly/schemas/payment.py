# backend/consultly/schemas/payment.py
from __future__ import annotations

from typing import Optional

from ._strict_base import StrictModel


class WebhookResponse(StrictModel):
    status: str
    event_type: Optional[str] = None
    booking_id: Optional[str] = None
    message: Optional[str] = None
