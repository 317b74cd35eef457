"""API schemas."""
from courtbook.schemas.availability import (
    SlotAvailability,
    CourtAvailability,
)
from courtbook.schemas.reservation import (
    ReservationCreate,
    PriceBreakdownSchema,
    ReservationCreated,
    ReservationInDB,
    ReservationPage,
    ReleaseResult,
)

__all__ = [
    "SlotAvailability",
    "CourtAvailability",
    "ReservationCreate",
    "PriceBreakdownSchema",
    "ReservationCreated",
    "ReservationInDB",
    "ReservationPage",
    "ReleaseResult",
]
