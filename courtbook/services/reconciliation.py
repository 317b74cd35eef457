"""Payment reconciliation: drive holds from verified gateway events."""
import logging
from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from courtbook.core.errors import InvalidTransition, ReservationExpired, ReservationNotFound
from courtbook.models.reservation import Reservation, ReservationStatus
from courtbook.services.reservation_service import ReservationService, reservation_service

logger = logging.getLogger(__name__)

OUTCOME_CONFIRMED = "confirmed"
OUTCOME_RELEASED = "released"
OUTCOME_DUPLICATE = "duplicate"
OUTCOME_EXPIRED = "expired"
OUTCOME_DISCARDED = "discarded"
OUTCOME_UNKNOWN = "unknown_reservation"
OUTCOME_IGNORED = "ignored"

SUCCESS_EVENTS = {
    "checkout.session.completed",
    "checkout.session.async_payment_succeeded",
}

# Failure event type -> release cause
FAILURE_EVENTS = {
    "checkout.session.expired": "payment_expired",
    "checkout.session.async_payment_failed": "payment_failed",
    "payment_intent.payment_failed": "payment_failed",
    "payment_intent.canceled": "payment_cancelled",
}


class PaymentReconciliationHandler:
    """
    Apply payment events to reservations.

    Events may repeat or arrive after the hold expired. Each one is answered
    with an outcome string; none of them raise for duplicates, unknown
    references or reservations already in a terminal state.
    """

    def __init__(self, reservations: Optional[ReservationService] = None):
        self.reservations = reservations or reservation_service

    async def handle_event(
        self,
        db: AsyncSession,
        event: Dict[str, Any],
        now: Optional[datetime] = None,
    ) -> str:
        event_type = event.get("type", "")
        payload = (event.get("data") or {}).get("object") or {}

        if event_type not in SUCCESS_EVENTS and event_type not in FAILURE_EVENTS:
            logger.info(f"Unhandled payment event type: {event_type}")
            return OUTCOME_IGNORED

        reservation = await self._resolve(db, event_type, payload)
        if reservation is None:
            logger.warning(
                f"Payment event {event.get('id')} ({event_type}) references no known reservation; discarding"
            )
            return OUTCOME_UNKNOWN

        if event_type in SUCCESS_EVENTS:
            if payload.get("payment_status") == "unpaid":
                logger.info(f"Checkout {payload.get('id')} completed but payment is still processing")
                return OUTCOME_IGNORED
            return await self._apply_success(db, reservation, payload["id"], now)

        return await self._apply_failure(db, reservation, FAILURE_EVENTS[event_type], now)

    async def _apply_success(
        self,
        db: AsyncSession,
        reservation: Reservation,
        reference: str,
        now: Optional[datetime],
    ) -> str:
        if (
            reservation.state == ReservationStatus.CONFIRMED
            and reservation.payment_reference == reference
        ):
            logger.info(f"Duplicate success event for reservation {reservation.id}")
            return OUTCOME_DUPLICATE

        try:
            await self.reservations.confirm(db, reservation.id, reference, now=now)
        except ReservationExpired:
            logger.warning(
                f"Payment {reference} succeeded after hold {reservation.id} expired; refund required"
            )
            return OUTCOME_EXPIRED
        except (InvalidTransition, ReservationNotFound) as e:
            logger.warning(f"Discarding success event for reservation {reservation.id}: {e}")
            return OUTCOME_DISCARDED

        return OUTCOME_CONFIRMED

    async def _apply_failure(
        self,
        db: AsyncSession,
        reservation: Reservation,
        cause: str,
        now: Optional[datetime],
    ) -> str:
        if reservation.state == ReservationStatus.RELEASED:
            logger.info(f"Duplicate failure event for reservation {reservation.id}")
            return OUTCOME_DUPLICATE

        try:
            await self.reservations.release(db, reservation.id, cause, now=now)
        except (InvalidTransition, ReservationNotFound) as e:
            logger.warning(f"Discarding failure event for reservation {reservation.id}: {e}")
            return OUTCOME_DISCARDED

        return OUTCOME_RELEASED

    async def _resolve(
        self, db: AsyncSession, event_type: str, payload: Dict[str, Any]
    ) -> Optional[Reservation]:
        """Find the reservation by payment reference, then by metadata."""
        if event_type.startswith("checkout.session.") and payload.get("id"):
            reservation = await self.reservations.get_by_payment_reference(db, payload["id"])
            if reservation is not None:
                return reservation

        reservation_id = (payload.get("metadata") or {}).get("reservation_id")
        if not reservation_id:
            return None
        try:
            return await self.reservations.get(db, int(reservation_id))
        except (ReservationNotFound, ValueError):
            return None


# Singleton instance
reconciliation_handler = PaymentReconciliationHandler()
