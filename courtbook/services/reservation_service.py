"""
Reservation manager: atomic holds and the pending/confirmed/released state machine.

Holds on one court are serialized twice: an in-process asyncio lock per court
and a row lock on the court (SELECT ... FOR UPDATE) for other worker
processes sharing the database. Overlap is checked and the hold inserted and
committed while both are held, so two overlapping requests can never both win.

Confirm and Release touch a single row and use a guarded UPDATE
(WHERE status = 'pending') as the transition guard; the loser of a race
re-reads the row and is answered from its new state.
"""
import asyncio
import logging
import weakref
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import List, Optional, Tuple

from sqlalchemy import select, update, and_, func
from sqlalchemy.ext.asyncio import AsyncSession

from courtbook.core.config import settings
from courtbook.core.errors import (
    InvalidTransition,
    ReservationExpired,
    ReservationNotFound,
    SlotConflict,
    ValidationError,
)
from courtbook.models.court import Court
from courtbook.models.reservation import Reservation, ReservationStatus, can_transition
from courtbook.services.availability_service import live_reservations
from courtbook.services.courts import get_court
from courtbook.services.intervals import from_minutes, minutes_to_time, overlaps, to_minutes
from courtbook.services.payment_gateway import CheckoutSession, StripeGateway, payment_gateway
from courtbook.services.pricing import PriceBreakdown, PricingCalculator, pricing_calculator
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


@dataclass
class Hold:
    """A freshly created pending reservation and what it costs."""

    reservation: Reservation
    breakdown: PriceBreakdown
    court: Court
    checkout: Optional[CheckoutSession] = None


class CourtLocks:
    """One asyncio.Lock per court, dropped once nobody holds or waits on it."""

    def __init__(self):
        self._locks = weakref.WeakValueDictionary()

    def get(self, court_id: int) -> asyncio.Lock:
        lock = self._locks.get(court_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[court_id] = lock
        return lock


class ReservationService:
    """Service for creating and transitioning reservations."""

    def __init__(
        self,
        pricing: Optional[PricingCalculator] = None,
        gateway: Optional[StripeGateway] = None,
        hold_minutes: Optional[int] = None,
    ):
        self.pricing = pricing or pricing_calculator
        self.gateway = gateway or payment_gateway
        self.hold_minutes = settings.HOLD_GRACE_MINUTES if hold_minutes is None else hold_minutes
        self._locks = CourtLocks()

    # ========== Create ==========

    async def create_reservation(
        self,
        db: AsyncSession,
        court_id: int,
        day: date,
        start: str,
        end: str,
        user_id: str,
        participants: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> Hold:
        """
        Validate a request and atomically claim the interval as a pending hold.

        Args:
            db: Database session
            court_id: Court ID
            day: Calendar date, local to the venue
            start: Start time (HH:MM)
            end: End time (HH:MM)
            user_id: Identifier of the requesting user
            participants: Optional party size
            now: Current instant (defaults to the wall clock)

        Returns:
            Hold with the pending reservation and its price breakdown

        Raises:
            ValidationError: Malformed or out-of-range request
            SlotConflict: The interval overlaps a live reservation or maintenance
        """
        now = as_utc(now or utcnow())
        start_minute, end_minute = self._parse_interval(start, end)

        court = await get_court(db, court_id)
        check_participants(court, participants)
        today = check_booking_date(court, day, now)
        self._check_slot(court, day, today, start_minute, end_minute, now)

        breakdown = self.pricing.price(court, day, start_minute, end_minute)

        court_id = court.id
        async with self._locks.get(court_id):
            # Serializes against other processes; SQLite ignores FOR UPDATE
            await db.execute(select(Court.id).where(Court.id == court_id).with_for_update())

            for existing in await live_reservations(db, court_id, day, now):
                existing_start = to_minutes(existing.start_time)
                existing_end = to_minutes(existing.end_time)
                if overlaps(start_minute, end_minute, existing_start, existing_end):
                    # Rollback expires every loaded row; build the error first
                    conflict = SlotConflict(
                        "Court is not available for the selected time slot",
                        from_minutes(existing_start),
                        from_minutes(existing_end),
                        reservation_id=existing.id,
                    )
                    await db.rollback()
                    logger.info(
                        f"Slot conflict on court {court_id} {day} {start}-{end} "
                        f"with reservation {conflict.reservation_id}"
                    )
                    raise conflict

            reservation = Reservation(
                court_id=court_id,
                user_id=user_id,
                date=day,
                start_time=minutes_to_time(start_minute),
                end_time=minutes_to_time(end_minute),
                price=breakdown.total,
                platform_fee=breakdown.platform_fee,
                status=ReservationStatus.PENDING.value,
                hold_expires_at=now + timedelta(minutes=self.hold_minutes),
            )
            db.add(reservation)
            await db.commit()

        await db.refresh(reservation)
        logger.info(
            f"Hold {reservation.id} created on court {court_id} {day} {start}-{end} "
            f"for user {user_id}, expires {reservation.hold_expires_at}"
        )
        return Hold(reservation=reservation, breakdown=breakdown, court=court)

    def _parse_interval(self, start: str, end: str) -> Tuple[int, int]:
        try:
            start_minute, end_minute = to_minutes(start), to_minutes(end)
        except (AttributeError, ValueError):
            raise ValidationError("Start and end must be HH:MM times")
        if end_minute <= start_minute:
            raise ValidationError("End time must be after start time")
        return start_minute, end_minute

    def _check_slot(
        self,
        court: Court,
        day: date,
        today: date,
        start_minute: int,
        end_minute: int,
        now: datetime,
    ) -> None:
        hours = resolve_hours(court, day)
        if hours is None:
            raise ValidationError(f"Court {court.id} is closed on {day.isoformat()}")

        open_minute, close_minute = hours
        if start_minute < open_minute or end_minute > close_minute:
            raise ValidationError(
                f"Booking time must be within operating hours: "
                f"{from_minutes(open_minute)} - {from_minutes(close_minute)}"
            )

        slots = generate_slots(open_minute, close_minute, court.slot_duration_minutes)
        if not slots.is_aligned(start_minute, end_minute):
            raise ValidationError(
                f"Booking must cover whole {court.slot_duration_minutes}-minute slots "
                f"starting from {from_minutes(open_minute)}"
            )

        if day == today:
            current = local_now(court, now)
            if start_minute <= current.hour * 60 + current.minute:
                raise ValidationError("Booking start time must be in the future")

        for window_start, window_end in maintenance_windows(court, day):
            if overlaps(start_minute, end_minute, window_start, window_end):
                raise SlotConflict(
                    "Court is under maintenance for the selected time slot",
                    from_minutes(window_start),
                    from_minutes(window_end),
                )

    # ========== Payment session ==========

    async def open_checkout(self, db: AsyncSession, hold: Hold) -> Hold:
        """
        Ask the gateway for a payment session and bind its reference to the hold.

        A hold whose session cannot be created is released straight away.
        """
        if not self.gateway.enabled:
            return hold

        reservation = hold.reservation
        try:
            checkout = await self.gateway.create_checkout_session(
                reservation, hold.court, hold.breakdown.total
            )
        except Exception:
            await self.release(db, reservation.id, "payment_session_failed")
            raise

        reservation.payment_reference = checkout.reference
        await db.commit()
        await db.refresh(reservation)
        hold.checkout = checkout
        return hold

    # ========== Transitions ==========

    async def confirm(
        self,
        db: AsyncSession,
        reservation_id: int,
        payment_reference: str,
        now: Optional[datetime] = None,
    ) -> Reservation:
        """
        Move an unexpired hold to confirmed, stamping the payment reference.

        Confirming an already-confirmed reservation with the same reference is a
        no-op.

        Raises:
            ReservationNotFound: Unknown reservation
            ReservationExpired: The hold was released or its deadline passed
            InvalidTransition: Any other state, or a different payment reference
        """
        now = as_utc(now or utcnow())
        reservation = await self._load(db, reservation_id)
        state = reservation.state

        if state == ReservationStatus.CONFIRMED:
            if reservation.payment_reference == payment_reference:
                return reservation
            raise InvalidTransition(
                f"Reservation {reservation_id} is already confirmed with another payment"
            )
        if state == ReservationStatus.RELEASED:
            raise ReservationExpired(f"Reservation {reservation_id} hold was released")
        if not can_transition(state, ReservationStatus.CONFIRMED):
            raise InvalidTransition(f"Cannot confirm a {state.value} reservation")
        if as_utc(reservation.hold_expires_at) <= now:
            raise ReservationExpired(f"Reservation {reservation_id} hold has expired")
        if reservation.payment_reference and reservation.payment_reference != payment_reference:
            raise InvalidTransition(
                f"Reservation {reservation_id} is bound to another payment"
            )

        moved = await self._transition(
            db,
            reservation,
            ReservationStatus.CONFIRMED,
            payment_reference=payment_reference,
            confirmed_at=now,
            hold_expires_at=None,
        )
        if not moved:
            return await self.confirm(db, reservation_id, payment_reference, now)

        logger.info(f"Reservation {reservation_id} confirmed (payment {payment_reference})")
        return reservation

    async def release(
        self,
        db: AsyncSession,
        reservation_id: int,
        cause: str,
        now: Optional[datetime] = None,
    ) -> Reservation:
        """
        Move a pending hold to released. Releasing a released reservation is a no-op.

        Raises:
            ReservationNotFound: Unknown reservation
            InvalidTransition: The reservation is confirmed, cancelled or completed
        """
        now = as_utc(now or utcnow())
        reservation = await self._load(db, reservation_id)
        state = reservation.state

        if state == ReservationStatus.RELEASED:
            return reservation
        if not can_transition(state, ReservationStatus.RELEASED):
            raise InvalidTransition(f"Cannot release a {state.value} reservation")

        moved = await self._transition(
            db,
            reservation,
            ReservationStatus.RELEASED,
            release_cause=cause,
            released_at=now,
            hold_expires_at=None,
        )
        if not moved:
            return await self.release(db, reservation_id, cause, now)

        logger.info(f"Reservation {reservation_id} released ({cause})")
        return reservation

    async def _transition(
        self,
        db: AsyncSession,
        reservation: Reservation,
        target: ReservationStatus,
        **values,
    ) -> bool:
        """Apply pending -> target only if the row is still pending."""
        reservation_id = reservation.id
        result = await db.execute(
            update(Reservation)
            .where(
                and_(
                    Reservation.id == reservation_id,
                    Reservation.status == ReservationStatus.PENDING.value,
                )
            )
            .values(status=target.value, **values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            await db.rollback()
            logger.debug(f"Reservation {reservation_id} changed state concurrently")
            return False

        await db.commit()
        await db.refresh(reservation)
        return True

    async def _load(self, db: AsyncSession, reservation_id: int) -> Reservation:
        result = await db.execute(
            select(Reservation)
            .where(Reservation.id == reservation_id)
            .execution_options(populate_existing=True)
        )
        reservation = result.scalar_one_or_none()
        if not reservation:
            raise ReservationNotFound(f"Reservation {reservation_id} not found")
        return reservation

    # ========== Queries ==========

    async def get(self, db: AsyncSession, reservation_id: int) -> Reservation:
        return await self._load(db, reservation_id)

    async def get_by_payment_reference(
        self, db: AsyncSession, payment_reference: str
    ) -> Optional[Reservation]:
        result = await db.execute(
            select(Reservation)
            .where(Reservation.payment_reference == payment_reference)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def list_for_user(
        self,
        db: AsyncSession,
        user_id: str,
        status: Optional[ReservationStatus] = None,
        page: int = 1,
        page_size: int = 10,
    ) -> Tuple[List[Reservation], int]:
        """Return one page of a user's reservations, newest first, and the total count."""
        criteria = [Reservation.user_id == user_id]
        if status is not None:
            criteria.append(Reservation.status == ReservationStatus(status).value)

        total = await db.scalar(select(func.count(Reservation.id)).where(and_(*criteria)))
        result = await db.execute(
            select(Reservation)
            .where(and_(*criteria))
            .order_by(Reservation.created_at.desc(), Reservation.id.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
        )
        return list(result.scalars().all()), total or 0

    async def expired_hold_ids(self, db: AsyncSession, now: datetime) -> List[int]:
        """IDs of pending reservations whose hold deadline has passed."""
        result = await db.execute(
            select(Reservation.id, Reservation.hold_expires_at).where(
                and_(
                    Reservation.status == ReservationStatus.PENDING.value,
                    Reservation.hold_expires_at < now,
                )
            )
        )
        return [row.id for row in result.all() if as_utc(row.hold_expires_at) < now]


# Singleton instance
reservation_service = ReservationService()
