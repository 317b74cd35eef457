"""Read-only court lookup."""
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from courtbook.core.errors import CourtNotFound, ValidationError
from courtbook.models.court import Court
from courtbook.services.slot_generator import MAX_SLOT_MINUTES, MIN_SLOT_MINUTES


async def get_court(db: AsyncSession, court_id: int) -> Court:
    """Load a court with its venue, rejecting courts that cannot take bookings."""
    result = await db.execute(select(Court).where(Court.id == court_id))
    court = result.unique().scalar_one_or_none()

    if not court:
        raise CourtNotFound(f"Court {court_id} not found")
    if not court.is_active:
        raise ValidationError(f"Court {court_id} is not active")
    if not court.venue.is_approved:
        raise ValidationError("Cannot book courts at venues that are not approved")
    duration = court.slot_duration_minutes
    if duration is None or not MIN_SLOT_MINUTES <= duration <= MAX_SLOT_MINUTES:
        raise ValidationError(
            f"Court {court_id} slot duration must be between "
            f"{MIN_SLOT_MINUTES} and {MAX_SLOT_MINUTES} minutes"
        )

    return court
