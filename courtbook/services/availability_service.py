"""Availability checker: the day's slots annotated free or taken."""
import logging
from datetime import date, datetime
from typing import List, Optional

from sqlalchemy import select, and_, or_
from sqlalchemy.ext.asyncio import AsyncSession

from courtbook.models.reservation import Reservation, ReservationStatus
from courtbook.schemas.availability import CourtAvailability, SlotAvailability
from courtbook.services.courts import get_court
from courtbook.services.intervals import overlaps, to_minutes
from courtbook.services.pricing import PricingCalculator, pricing_calculator
from courtbook.services.schedule import (
    as_utc,
    check_booking_date,
    check_participants,
    local_now,
    maintenance_windows,
    resolve_hours,
    utcnow,
)
from courtbook.services.slot_generator import generate_slots

logger = logging.getLogger(__name__)


async def live_reservations(
    db: AsyncSession, court_id: int, day: date, now: datetime
) -> List[Reservation]:
    """
    Reservations that still block their interval: confirmed ones and unexpired holds.

    A pending row past its hold deadline counts as released whether or not the
    sweeper has reached it yet.
    """
    result = await db.execute(
        select(Reservation).where(
            and_(
                Reservation.court_id == court_id,
                Reservation.date == day,
                or_(
                    Reservation.status == ReservationStatus.CONFIRMED.value,
                    and_(
                        Reservation.status == ReservationStatus.PENDING.value,
                        Reservation.hold_expires_at > now,
                    ),
                ),
            )
        )
    )
    # Re-check the deadline in Python; some backends compare stored timestamps loosely
    return [
        r for r in result.scalars().all()
        if r.status == ReservationStatus.CONFIRMED.value or as_utc(r.hold_expires_at) > now
    ]


class AvailabilityService:
    """Service for computing court availability."""

    def __init__(self, pricing: Optional[PricingCalculator] = None):
        self.pricing = pricing or pricing_calculator

    async def get_availability(
        self,
        db: AsyncSession,
        court_id: int,
        day: date,
        participants: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> CourtAvailability:
        """
        Build the full schedule for a court on one date.

        Unavailable slots are flagged with a reason rather than dropped.

        Args:
            db: Database session
            court_id: Court ID
            day: Calendar date, local to the venue
            participants: Optional party size checked against court capacity
            now: Current instant (defaults to the wall clock)

        Returns:
            CourtAvailability for the date
        """
        now = as_utc(now or utcnow())
        court = await get_court(db, court_id)
        check_participants(court, participants)
        today = check_booking_date(court, day, now)

        hours = resolve_hours(court, day)
        if hours is None:
            logger.info(f"Court {court_id} is closed on {day}")
            return CourtAvailability(
                court_id=court.id,
                court_name=court.name,
                date=day,
                slot_duration_minutes=court.slot_duration_minutes,
                closed=True,
                reason="closed",
                slots=[],
            )

        open_minute, close_minute = hours
        slots = generate_slots(open_minute, close_minute, court.slot_duration_minutes)
        reservations = await live_reservations(db, court.id, day, now)
        blocked = maintenance_windows(court, day)

        cutoff = None
        if day == today:
            current = local_now(court, now)
            cutoff = current.hour * 60 + current.minute

        results = []
        for slot in slots:
            reason = None
            if cutoff is not None and slot.start <= cutoff:
                reason = "past"
            elif any(overlaps(slot.start, slot.end, s, e) for s, e in blocked):
                reason = "maintenance"
            else:
                for reservation in reservations:
                    if overlaps(
                        slot.start,
                        slot.end,
                        to_minutes(reservation.start_time),
                        to_minutes(reservation.end_time),
                    ):
                        reason = (
                            "booked"
                            if reservation.status == ReservationStatus.CONFIRMED.value
                            else "held"
                        )
                        break

            results.append(
                SlotAvailability(
                    start=slot.start_label,
                    end=slot.end_label,
                    available=reason is None,
                    price=self.pricing.price(court, day, slot.start, slot.end).total,
                    reason=reason,
                )
            )

        return CourtAvailability(
            court_id=court.id,
            court_name=court.name,
            date=day,
            slot_duration_minutes=court.slot_duration_minutes,
            slots=results,
        )


# Singleton instance
availability_service = AvailabilityService()
