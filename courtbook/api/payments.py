"""Payment gateway webhook."""
import logging
from fastapi import APIRouter, Depends, Header, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from courtbook.core.database import get_db
from courtbook.core.errors import PaymentEventUnverified, booking_error_to_http
from courtbook.services.payment_gateway import payment_gateway
from courtbook.services.reconciliation import reconciliation_handler

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/payments", tags=["payments"])


@router.post("/webhook")
async def payment_webhook(
    request: Request,
    stripe_signature: str = Header(default=None),
    db: AsyncSession = Depends(get_db),
):
    """
    Receive a payment lifecycle event from Stripe.

    Verified events are always acknowledged with 200, including duplicates
    and events for unknown or already-settled reservations. Unverified
    deliveries get 400; storage failures get 500 so the gateway retries.
    """
    payload = await request.body()

    try:
        event = payment_gateway.verify_event(payload, stripe_signature)
    except PaymentEventUnverified as e:
        logger.warning(f"Rejected unverified payment event: {e}")
        raise booking_error_to_http(e)

    logger.info(f"Payment event received: {event.get('type')} ({event.get('id')})")

    try:
        outcome = await reconciliation_handler.handle_event(db, event)
    except Exception as e:
        logger.error(f"Payment event {event.get('id')} failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Webhook handler failed")

    return {"received": True, "outcome": outcome}
