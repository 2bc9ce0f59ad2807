from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from carebook.schemas.booking import BookingRef
from carebook.schemas.provider import ProviderSummary


class AvailabilitySlot(BaseModel):
    """A materialized bookable interval. Computed on demand, never stored."""

    start: datetime = Field(..., description="Slot start in UTC")
    end: datetime = Field(..., description="Slot end in UTC, exclusive")
    is_booked: bool
    booking: Optional[BookingRef] = None
    is_exception: bool = False
    exception_note: Optional[str] = None
    local_start: datetime
    local_end: datetime
    provider_timezone: str


class AvailabilityResponse(BaseModel):
    provider: ProviderSummary
    from_datetime: datetime
    to_datetime: datetime
    slots: List[AvailabilitySlot] = Field(default_factory=list)
    total_slots: int = 0
    available_slots: int = 0
    booked_slots: int = 0
