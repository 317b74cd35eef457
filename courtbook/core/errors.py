"""
Reservation engine errors and their HTTP mapping.

Services raise these; routes convert them with booking_error_to_http so the
status code for each failure category lives in one place.
"""
from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import HTTPException

STATUS_BAD_REQUEST = 400
STATUS_NOT_FOUND = 404
STATUS_CONFLICT = 409
STATUS_GONE = 410
STATUS_BAD_GATEWAY = 502


class BookingError(Exception):
    """Base class for every error the reservation engine raises."""

    status_code = STATUS_BAD_REQUEST
    code = "booking_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.code, "message": self.message}


class ValidationError(BookingError):
    """Malformed or out-of-range booking input. Never retried."""

    code = "validation_error"


class CourtNotFound(BookingError):
    status_code = STATUS_NOT_FOUND
    code = "court_not_found"


class ReservationNotFound(BookingError):
    status_code = STATUS_NOT_FOUND
    code = "reservation_not_found"


class ReservationExpired(BookingError):
    """The hold lapsed or was released before the operation arrived."""

    status_code = STATUS_GONE
    code = "reservation_expired"


class InvalidTransition(BookingError):
    """The reservation's current state does not allow the requested change."""

    status_code = STATUS_CONFLICT
    code = "invalid_transition"


class SlotConflict(BookingError):
    """The requested interval overlaps a live reservation or maintenance window."""

    status_code = STATUS_CONFLICT
    code = "slot_conflict"

    def __init__(
        self,
        message: str,
        conflict_start: str,
        conflict_end: str,
        reservation_id: Optional[int] = None,
    ):
        super().__init__(message)
        self.conflict_start = conflict_start
        self.conflict_end = conflict_end
        self.reservation_id = reservation_id

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["conflict"] = {
            "start": self.conflict_start,
            "end": self.conflict_end,
            "reservation_id": self.reservation_id,
        }
        return data


class PaymentEventUnverified(BookingError):
    code = "payment_event_unverified"


class PaymentGatewayError(BookingError):
    status_code = STATUS_BAD_GATEWAY
    code = "payment_gateway_error"


def booking_error_to_http(exc: BookingError) -> HTTPException:
    """Map an engine error onto an HTTPException carrying its payload."""
    return HTTPException(status_code=exc.status_code, detail=exc.to_dict())
