"""Database models."""
from courtbook.models.venue import Venue
from courtbook.models.court import Court
from courtbook.models.reservation import Reservation, ReservationStatus

__all__ = ["Venue", "Court", "Reservation", "ReservationStatus"]
