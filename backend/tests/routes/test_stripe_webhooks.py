import json
from unittest.mock import MagicMock, patch

from consultly.models.booking import BookingStatus


def test_missing_signature_is_rejected(client) -> None:
    response = client.post("/api/v1/webhooks/stripe", content=b"{}")
    assert response.status_code == 400


def test_checkout_completed_confirms_booking(client, db, make_booking) -> None:
    booking = make_booking()
    payload = json.dumps(
        {
            "id": "evt_live_1",
            "type": "checkout.session.completed",
            "data": {"object": {"payment_intent": "pi_1", "metadata": {"booking_id": booking.id}}},
        }
    ).encode()

    with patch("stripe.Webhook.construct_event", return_value=MagicMock()):
        response = client.post(
            "/api/v1/webhooks/stripe",
            content=payload,
            headers={"stripe-signature": "t=1,v1=abc"},
        )

    assert response.status_code == 200
    assert response.json()["status"] == "success"
    db.refresh(booking)
    assert booking.status == BookingStatus.CONFIRMED.value
