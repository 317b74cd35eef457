"""Stripe adapter: checkout sessions out, verified webhook events in."""
import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Any, Dict

import stripe

from courtbook.core.config import settings
from courtbook.core.errors import PaymentEventUnverified, PaymentGatewayError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CheckoutSession:
    reference: str
    url: str


class StripeGateway:
    """Thin wrapper over the Stripe SDK, configured from settings."""

    def __init__(self, secret_key: str = None, webhook_secret: str = None):
        self.secret_key = settings.STRIPE_SECRET_KEY if secret_key is None else secret_key
        self.webhook_secret = (
            settings.STRIPE_WEBHOOK_SECRET if webhook_secret is None else webhook_secret
        )

    @property
    def enabled(self) -> bool:
        return bool(self.secret_key)

    async def create_checkout_session(self, reservation, court, amount) -> CheckoutSession:
        """
        Create a Checkout Session for a pending reservation.

        Args:
            reservation: The pending Reservation
            court: Court being booked, used for the line item name
            amount: Total price as a Decimal in major currency units

        Returns:
            CheckoutSession with the session id as payment reference

        Raises:
            PaymentGatewayError: If Stripe rejects the request
        """
        metadata = {
            "reservation_id": str(reservation.id),
            "court_id": str(court.id),
            "user_id": reservation.user_id,
        }
        description = (
            f"{court.venue.name} - {reservation.date.isoformat()} "
            f"{reservation.start_time.strftime('%H:%M')}-{reservation.end_time.strftime('%H:%M')}"
        )
        try:
            session = await asyncio.to_thread(
                stripe.checkout.Session.create,
                api_key=self.secret_key,
                mode="payment",
                payment_method_types=["card"],
                line_items=[
                    {
                        "price_data": {
                            "currency": settings.CURRENCY,
                            "product_data": {
                                "name": f"Court Booking: {court.name}",
                                "description": description,
                            },
                            "unit_amount": int(amount * 100),
                        },
                        "quantity": 1,
                    }
                ],
                success_url=f"{settings.FRONTEND_URL}/payment-success?session_id={{CHECKOUT_SESSION_ID}}",
                cancel_url=f"{settings.FRONTEND_URL}/payment-cancelled",
                client_reference_id=str(reservation.id),
                metadata=metadata,
                payment_intent_data={"metadata": metadata},
            )
        except stripe.StripeError as e:
            logger.error(f"Failed to create checkout session for reservation {reservation.id}: {e}")
            raise PaymentGatewayError(f"Failed to create checkout session: {e}") from e

        logger.info(f"Checkout session {session.id} created for reservation {reservation.id}")
        return CheckoutSession(reference=session.id, url=session.url)

    def verify_event(self, payload: bytes, signature: str) -> Dict[str, Any]:
        """
        Verify a webhook delivery and return the parsed event.

        Raises:
            PaymentEventUnverified: If the secret is missing or the signature is bad
        """
        if not self.webhook_secret:
            raise PaymentEventUnverified("Webhook secret not configured")
        if not signature:
            raise PaymentEventUnverified("Missing signature header")

        try:
            stripe.Webhook.construct_event(payload, signature, self.webhook_secret)
        except stripe.SignatureVerificationError as e:
            logger.warning(f"Invalid webhook signature: {e}")
            raise PaymentEventUnverified("Invalid webhook signature") from e
        except ValueError as e:
            logger.warning(f"Invalid webhook payload: {e}")
            raise PaymentEventUnverified("Invalid webhook payload") from e

        return json.loads(payload)


# Singleton instance
payment_gateway = StripeGateway()
