from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Body, Depends, status

from carebook.api.deps.services import get_booking_service
from carebook.core.exceptions import NotFoundError
from carebook.schemas.booking import BookingCancel, BookingCreate, BookingResponse
from carebook.services.booking import BookingService

router = APIRouter()


@router.post("/", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
async def create_booking(
    booking_data: BookingCreate,
    service: BookingService = Depends(get_booking_service),
):
    """Create a booking after notice, horizon and overlap checks."""
    booking = await service.create_booking(booking_data)
    return BookingResponse.from_booking(booking)


@router.get("/{booking_uuid}", response_model=BookingResponse)
async def get_booking(
    booking_uuid: UUID, service: BookingService = Depends(get_booking_service)
):
    """Get booking by UUID."""
    booking = await service.get_booking(booking_uuid)
    if not booking:
        raise NotFoundError("Booking")
    return BookingResponse.from_booking(booking)


@router.patch("/{booking_uuid}/cancel", response_model=BookingResponse)
async def cancel_booking(
    booking_uuid: UUID,
    cancel_data: Optional[BookingCancel] = Body(None),
    service: BookingService = Depends(get_booking_service),
):
    """Cancel a booked appointment."""
    reason = cancel_data.reason if cancel_data else None
    booking = await service.cancel_booking(booking_uuid, reason)
    return BookingResponse.from_booking(booking)
