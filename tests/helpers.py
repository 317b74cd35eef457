"""Constants and builders shared by the test modules."""

from __future__ import annotations

import hashlib
import hmac
import json
import time
from datetime import date, datetime, timedelta, timezone

from courtbook.core.errors import PaymentGatewayError
from courtbook.services.payment_gateway import CheckoutSession

WEBHOOK_SECRET = "whsec_test_secret"

# Monday morning, UTC
NOW = datetime(2026, 10, 19, 8, 0, tzinfo=timezone.utc)
TODAY = NOW.date()
TOMORROW = date(2026, 10, 20)  # Tuesday
SATURDAY = date(2026, 10, 24)


def after(minutes: int) -> datetime:
    return NOW + timedelta(minutes=minutes)


def upcoming_weekday(days_ahead: int = 2) -> date:
    """A real-clock date a few days out, for tests that go through the HTTP layer."""
    return datetime.now(timezone.utc).date() + timedelta(days=days_ahead)


def checkout_event(
    event_type: str,
    session_id: str,
    reservation_id: int | None = None,
    payment_status: str = "paid",
    event_id: str = "evt_test_1",
) -> dict:
    metadata = {"reservation_id": str(reservation_id)} if reservation_id is not None else {}
    return {
        "id": event_id,
        "object": "event",
        "type": event_type,
        "data": {
            "object": {
                "id": session_id,
                "object": "checkout.session",
                "payment_status": payment_status,
                "metadata": metadata,
            }
        },
    }


def signed_payload(event: dict, secret: str = WEBHOOK_SECRET) -> tuple[bytes, str]:
    """Serialize an event and build a Stripe-Signature header for it."""
    payload = json.dumps(event).encode()
    timestamp = int(time.time())
    signature = hmac.new(
        secret.encode(), f"{timestamp}.{payload.decode()}".encode(), hashlib.sha256
    ).hexdigest()
    return payload, f"t={timestamp},v1={signature}"


class FakeGateway:
    """Stands in for StripeGateway.create_checkout_session without network calls."""

    enabled = True

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.calls = []

    async def create_checkout_session(self, reservation, court, amount):
        self.calls.append((reservation.id, amount))
        if self.fail:
            raise PaymentGatewayError("card network unavailable")
        return CheckoutSession(
            reference=f"cs_test_{reservation.id}",
            url=f"https://checkout.stripe.com/c/pay/cs_test_{reservation.id}",
        )
