"""Availability schemas."""
from pydantic import BaseModel
from typing import Optional, List
from datetime import date
from decimal import Decimal


class SlotAvailability(BaseModel):
    """Schema for a single candidate slot."""

    start: str
    end: str
    available: bool
    price: Decimal
    reason: Optional[str] = None  # booked, held, maintenance, past


class CourtAvailability(BaseModel):
    """Schema for a court's full schedule on one date."""

    court_id: int
    court_name: str
    date: date
    slot_duration_minutes: int
    closed: bool = False
    reason: Optional[str] = None
    slots: List[SlotAvailability]
