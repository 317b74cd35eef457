"""Venue model."""
from sqlalchemy import Column, Integer, String, DateTime, JSON
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from courtbook.core.database import Base

VENUE_APPROVED = "approved"


class Venue(Base):
    """A venue listing owning one or more courts. Reference data for the engine."""

    __tablename__ = "venues"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    timezone = Column(String, nullable=True, default="UTC")
    status = Column(String, nullable=False, default="pending")  # pending, approved, rejected
    operating_hours = Column(JSON, nullable=True)  # {"monday": {"open": "06:00", "close": "22:00"}, "sunday": null, ...}
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    courts = relationship("Court", back_populates="venue", cascade="all, delete-orphan")

    @property
    def is_approved(self) -> bool:
        return self.status == VENUE_APPROVED
