"""Availability endpoints."""
from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from courtbook.core.database import get_db
from courtbook.core.errors import BookingError, booking_error_to_http
from courtbook.schemas.availability import CourtAvailability
from courtbook.services.availability_service import availability_service

router = APIRouter(prefix="/courts/{court_id}", tags=["availability"])


@router.get("/availability", response_model=CourtAvailability)
async def get_availability(
    court_id: int,
    date: date = Query(..., description="Date to check (YYYY-MM-DD, venue local)"),
    participants: Optional[int] = Query(default=None, ge=1, description="Party size"),
    db: AsyncSession = Depends(get_db),
):
    """
    Get a court's slots for one date.

    Every slot of the day is returned; taken slots carry available=false and
    a reason (booked, held, maintenance, past).

    Args:
        court_id: Court ID
        date: Calendar date
        participants: Optional party size
        db: Database session

    Returns:
        Annotated slot list
    """
    try:
        return await availability_service.get_availability(db, court_id, date, participants)
    except BookingError as e:
        raise booking_error_to_http(e)
