"""Background sweeper that releases expired holds."""
import logging
from datetime import datetime
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from courtbook.core.config import settings
from courtbook.core.database import AsyncSessionLocal
from courtbook.core.errors import BookingError
from courtbook.services.reservation_service import ReservationService, reservation_service
from courtbook.services.schedule import as_utc, utcnow

logger = logging.getLogger(__name__)

EXPIRED_CAUSE = "expired"


async def release_expired_holds(
    db: AsyncSession,
    now: Optional[datetime] = None,
    reservations: Optional[ReservationService] = None,
) -> int:
    """
    Release every pending reservation whose hold deadline has passed.

    Each hold is released on its own; one failure does not stop the rest.

    Args:
        db: Database session
        now: Current instant (defaults to the wall clock)
        reservations: Service to release through

    Returns:
        Number of holds released by this call
    """
    now = as_utc(now or utcnow())
    reservations = reservations or reservation_service

    released = 0
    for reservation_id in await reservations.expired_hold_ids(db, now):
        try:
            reservation = await reservations.release(db, reservation_id, EXPIRED_CAUSE, now=now)
        except BookingError as e:
            # Typically confirmed between the scan and the release
            logger.info(f"Skipping hold {reservation_id}: {e}")
            continue
        except SQLAlchemyError as e:
            logger.error(f"Failed to release hold {reservation_id}: {e}", exc_info=True)
            await db.rollback()
            continue
        # A concurrent sweep may have released it first
        if reservation.release_cause == EXPIRED_CAUSE and as_utc(reservation.released_at) == now:
            released += 1

    if released:
        logger.info(f"Released {released} expired holds")
    return released


class HoldExpirySweeper:
    """Background scheduler for reclaiming abandoned holds."""

    def __init__(self, interval_minutes: Optional[int] = None):
        """Initialize the scheduler."""
        self.scheduler = AsyncIOScheduler()
        self.interval_minutes = interval_minutes or settings.SWEEP_INTERVAL_MINUTES
        self.running = False

    async def start(self):
        """Start the scheduler."""
        if self.running:
            logger.warning("Sweeper is already running")
            return

        logger.info(f"Starting hold expiry sweeper (every {self.interval_minutes} minutes)")

        self.scheduler.add_job(
            self._sweep,
            IntervalTrigger(minutes=self.interval_minutes),
            id="hold_expiry_sweep",
            name="Release expired holds",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )

        self.scheduler.start()
        self.running = True
        logger.info("Hold expiry sweeper started")

    async def stop(self):
        """Stop the scheduler."""
        if not self.running:
            return

        logger.info("Stopping hold expiry sweeper")
        self.scheduler.shutdown(wait=False)
        self.running = False
        logger.info("Hold expiry sweeper stopped")

    async def _sweep(self):
        """Run one sweep in its own session."""
        logger.debug("Running hold expiry sweep")

        async with AsyncSessionLocal() as db:
            try:
                await release_expired_holds(db)
            except Exception as e:
                logger.error(f"Error in hold expiry sweep: {e}", exc_info=True)
                await db.rollback()


# Singleton instance
hold_expiry_sweeper = HoldExpirySweeper()
