"""Reservation model and its state machine."""
import enum

from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Date, Time, Numeric, Index
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from courtbook.core.database import Base


class ReservationStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    RELEASED = "released"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


# Every legal move; anything else is rejected.
TRANSITIONS = {
    ReservationStatus.PENDING: {ReservationStatus.CONFIRMED, ReservationStatus.RELEASED},
    ReservationStatus.CONFIRMED: {ReservationStatus.CANCELLED, ReservationStatus.COMPLETED},
    ReservationStatus.RELEASED: set(),
    ReservationStatus.CANCELLED: set(),
    ReservationStatus.COMPLETED: set(),
}


def can_transition(current: ReservationStatus, target: ReservationStatus) -> bool:
    return target in TRANSITIONS[ReservationStatus(current)]


class Reservation(Base):
    """A claim on one court interval for one calendar date."""

    __tablename__ = "reservations"

    id = Column(Integer, primary_key=True, index=True)
    court_id = Column(Integer, ForeignKey("courts.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String, nullable=False, index=True)
    date = Column(Date, nullable=False)  # Local to the venue
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    platform_fee = Column(Numeric(10, 2), nullable=False, default=0)
    status = Column(String, nullable=False, default=ReservationStatus.PENDING.value)
    hold_expires_at = Column(DateTime(timezone=True), nullable=True)  # Set only while pending
    payment_reference = Column(String, unique=True, nullable=True)
    release_cause = Column(String, nullable=True)  # expired, payment_failed, user_abandoned, ...
    confirmed_at = Column(DateTime(timezone=True), nullable=True)
    released_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    court = relationship("Court", back_populates="reservations")

    __table_args__ = (
        Index("ix_reservations_court_date_status", "court_id", "date", "status"),
        Index("ix_reservations_status_hold", "status", "hold_expires_at"),
    )

    @property
    def state(self) -> ReservationStatus:
        return ReservationStatus(self.status)
