"""Reservation schemas."""
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List
from datetime import datetime, date, time
from decimal import Decimal

HHMM_PATTERN = r"^([01][0-9]|2[0-3]):[0-5][0-9]$"


class ReservationCreate(BaseModel):
    """Schema for requesting a hold on a slot."""

    court_id: int
    date: date
    start: str = Field(..., pattern=HHMM_PATTERN, description="Start time (HH:MM)")
    end: str = Field(..., pattern=HHMM_PATTERN, description="End time (HH:MM)")
    participants: Optional[int] = Field(default=None, ge=1)


class PriceBreakdownSchema(BaseModel):
    """Schema for a computed price."""

    base: Decimal
    weekend_multiplier: Decimal
    peak_multiplier: Decimal
    total: Decimal
    platform_fee: Decimal
    owner_earnings: Decimal


class ReservationCreated(BaseModel):
    """Schema returned when a hold is created."""

    reservation_id: int
    status: str
    hold_expires_at: datetime
    price: Decimal
    price_breakdown: PriceBreakdownSchema
    payment_reference: Optional[str] = None
    checkout_url: Optional[str] = None


class ReservationInDB(BaseModel):
    """Schema for a reservation from the database."""

    id: int
    court_id: int
    user_id: str
    date: date
    start_time: time
    end_time: time
    price: Decimal
    platform_fee: Decimal
    status: str
    hold_expires_at: Optional[datetime] = None
    payment_reference: Optional[str] = None
    release_cause: Optional[str] = None
    confirmed_at: Optional[datetime] = None
    released_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ReservationPage(BaseModel):
    """Schema for a page of a user's reservations."""

    items: List[ReservationInDB]
    page: int
    page_size: int
    total: int
    total_pages: int
    has_next_page: bool
    has_prev_page: bool


class ReleaseResult(BaseModel):
    """Schema for the manual sweep trigger."""

    released: int
