import enum
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from carebook.core.database import Base


class BookingStatus(enum.Enum):
    BOOKED = "booked"
    CANCELLED = "cancelled"
    COMPLETED = "completed"
    NO_SHOW = "no-show"


class Booking(Base):
    """A patient's appointment with a provider over ``[start, end)`` in UTC."""

    __tablename__ = "bookings"

    # Core identity
    id = Column(Integer, primary_key=True, index=True)
    uuid = Column(
        UUID(as_uuid=True), unique=True, nullable=False, default=uuid.uuid4, index=True
    )

    # Participants
    provider_id = Column(Integer, ForeignKey("providers.id"), nullable=False)
    patient_id = Column(Integer, ForeignKey("patients.id"), nullable=False)

    # Interval, stored in UTC
    start_datetime = Column(DateTime(timezone=True), nullable=False)
    end_datetime = Column(DateTime(timezone=True), nullable=False)

    # Status management
    status = Column(
        String(20), nullable=False, default=BookingStatus.BOOKED.value, index=True
    )
    notes = Column(Text, nullable=True)

    # Cancellation
    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    cancellation_reason = Column(String(500), nullable=True)

    reminder_sent = Column(Boolean, default=False, nullable=False)

    # Audit timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        CheckConstraint(
            "end_datetime > start_datetime", name="check_booking_end_after_start"
        ),
        Index(
            "ix_bookings_overlap_check",
            "provider_id",
            "status",
            "start_datetime",
            "end_datetime",
        ),
        Index("ix_bookings_patient_start", "patient_id", "start_datetime"),
    )

    provider = relationship("Provider", back_populates="bookings")
    patient = relationship("Patient", back_populates="bookings")

    def can_transition_to(self, new_status: BookingStatus) -> bool:
        """Check if the booking can move to ``new_status``."""
        current = BookingStatus(self.status)

        allowed_transitions = {
            BookingStatus.BOOKED: [
                BookingStatus.CANCELLED,
                BookingStatus.COMPLETED,
                BookingStatus.NO_SHOW,
            ],
            BookingStatus.CANCELLED: [],  # Final state
            BookingStatus.COMPLETED: [],  # Final state
            BookingStatus.NO_SHOW: [],  # Final state
        }

        return new_status in allowed_transitions.get(current, [])

    @property
    def is_active(self) -> bool:
        return self.status == BookingStatus.BOOKED.value

    @property
    def duration_minutes(self) -> int:
        return round((self.end_datetime - self.start_datetime).total_seconds() / 60)

    def is_past(self, now: Optional[datetime] = None) -> bool:
        now = now or datetime.now(timezone.utc)
        return self.end_datetime < now

    def is_upcoming(self, now: Optional[datetime] = None) -> bool:
        """Starts within the next 24 hours."""
        now = now or datetime.now(timezone.utc)
        return now < self.start_datetime <= now + timedelta(hours=24)

    def __repr__(self):
        return (
            f"<Booking(id={self.id}, status='{self.status}', "
            f"start='{self.start_datetime}', end='{self.end_datetime}', "
            f"provider_id={self.provider_id}, patient_id={self.patient_id})>"
        )
