"""Court model."""
from sqlalchemy import Boolean, Column, Integer, String, ForeignKey, DateTime, JSON, Numeric
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from courtbook.core.database import Base


class Court(Base):
    """Represents a bookable court at a venue."""

    __tablename__ = "courts"

    id = Column(Integer, primary_key=True, index=True)
    venue_id = Column(Integer, ForeignKey("venues.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String, nullable=False)
    sport_type = Column(String, nullable=True)  # e.g., "badminton", "tennis"
    price_per_hour = Column(Numeric(10, 2), nullable=False)
    slot_duration_minutes = Column(Integer, nullable=False, default=60)
    # Same shape as Venue.operating_hours; a missing weekday falls back to the venue
    operating_hours = Column(JSON, nullable=True)
    # {"enabled": true, "weekend_multiplier": 1.2, "peak_hours": [{"start": "18:00", "end": "21:00", "multiplier": 1.5}]}
    pricing_rules = Column(JSON, nullable=True)
    # [{"start": "12:00", "end": "13:00", "date": "2026-10-21"}]; no date means every day
    maintenance_windows = Column(JSON, nullable=True)
    advance_booking_days = Column(Integer, nullable=True)
    capacity = Column(Integer, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    venue = relationship("Venue", back_populates="courts", lazy="joined")
    reservations = relationship("Reservation", back_populates="court", cascade="all, delete-orphan")
