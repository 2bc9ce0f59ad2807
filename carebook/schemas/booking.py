from datetime import datetime
from enum import Enum
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class BookingStatusSchema(str, Enum):
    BOOKED = "booked"
    CANCELLED = "cancelled"
    COMPLETED = "completed"
    NO_SHOW = "no-show"


class BookingCreate(BaseModel):
    provider_id: UUID = Field(..., description="Provider UUID")
    patient_id: UUID = Field(..., description="Patient UUID")
    start: datetime = Field(..., description="Start instant, ISO 8601 with offset")
    end: datetime = Field(..., description="End instant, ISO 8601 with offset")
    notes: Optional[str] = Field(None, max_length=1000)


class BookingCancel(BaseModel):
    reason: Optional[str] = Field(None, max_length=500)


class BookingRef(BaseModel):
    """Minimal booking reference attached to a booked slot."""

    model_config = ConfigDict(from_attributes=True)

    uuid: UUID
    start_datetime: datetime
    end_datetime: datetime
    status: BookingStatusSchema


class BookingResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    uuid: UUID
    provider_uuid: UUID
    patient_uuid: UUID
    start_datetime: datetime
    end_datetime: datetime
    duration_minutes: int
    status: BookingStatusSchema
    is_active: bool
    is_past: bool
    is_upcoming: bool
    notes: Optional[str] = None
    cancelled_at: Optional[datetime] = None
    cancellation_reason: Optional[str] = None
    reminder_sent: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_booking(cls, booking):
        """Build from a booking loaded with its provider and patient."""
        return cls(
            uuid=booking.uuid,
            provider_uuid=booking.provider.uuid,
            patient_uuid=booking.patient.uuid,
            start_datetime=booking.start_datetime,
            end_datetime=booking.end_datetime,
            duration_minutes=booking.duration_minutes,
            status=booking.status,
            is_active=booking.is_active,
            is_past=booking.is_past(),
            is_upcoming=booking.is_upcoming(),
            notes=booking.notes,
            cancelled_at=booking.cancelled_at,
            cancellation_reason=booking.cancellation_reason,
            reminder_sent=bool(booking.reminder_sent),
            created_at=booking.created_at,
            updated_at=booking.updated_at,
        )


class BookingListResponse(BaseModel):
    bookings: List[BookingResponse]
    count: int
