from datetime import datetime
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from carebook.api.deps.database import get_db
from carebook.api.deps.services import get_availability_service, get_booking_service
from carebook.core.exceptions import NotFoundError
from carebook.models.booking import BookingStatus
from carebook.schemas.availability import AvailabilityResponse
from carebook.schemas.booking import BookingListResponse, BookingResponse
from carebook.schemas.provider import (
    ProviderCreate,
    ProviderListResponse,
    ProviderResponse,
)
from carebook.schemas.schedule import ScheduleConfigUpdate
from carebook.services.availability import AvailabilityService
from carebook.services.booking import BookingService
from carebook.services.provider import provider_service

router = APIRouter()


@router.post("/", response_model=ProviderResponse, status_code=status.HTTP_201_CREATED)
async def create_provider(
    provider_data: ProviderCreate, db: AsyncSession = Depends(get_db)
):
    """Create a new provider, optionally with a schedule configuration."""
    provider = await provider_service.create_provider(db, provider_data)
    return ProviderResponse.model_validate(provider)


@router.get("/", response_model=ProviderListResponse)
async def get_providers(
    skip: int = Query(0, ge=0, description="Number of providers to skip"),
    limit: int = Query(100, ge=1, le=1000, description="Number of providers to return"),
    db: AsyncSession = Depends(get_db),
):
    """Get list of providers with pagination."""
    providers = await provider_service.get_providers(db, skip=skip, limit=limit)
    return ProviderListResponse(
        providers=[ProviderResponse.model_validate(p) for p in providers],
        count=len(providers),
    )


@router.get("/{provider_uuid}", response_model=ProviderResponse)
async def get_provider(provider_uuid: UUID, db: AsyncSession = Depends(get_db)):
    """Get provider by UUID."""
    provider = await provider_service.get_provider_by_uuid(db, provider_uuid)
    if not provider:
        raise NotFoundError("Provider")
    return ProviderResponse.model_validate(provider)


@router.put("/{provider_uuid}/config", response_model=ProviderResponse)
async def update_provider_config(
    provider_uuid: UUID,
    config: ScheduleConfigUpdate,
    db: AsyncSession = Depends(get_db),
):
    """Replace the provider's schedule configuration."""
    provider = await provider_service.update_schedule_config(db, provider_uuid, config)
    if not provider:
        raise NotFoundError("Provider")
    return ProviderResponse.model_validate(provider)


@router.get("/{provider_uuid}/availability", response_model=AvailabilityResponse)
async def get_provider_availability(
    provider_uuid: UUID,
    from_datetime: datetime = Query(
        ..., alias="from", description="Range start, ISO 8601 with offset"
    ),
    to_datetime: datetime = Query(
        ..., alias="to", description="Range end (exclusive), ISO 8601 with offset"
    ),
    service: AvailabilityService = Depends(get_availability_service),
):
    """Bookable slots for the provider, annotated with existing bookings."""
    return await service.compute_availability(provider_uuid, from_datetime, to_datetime)


@router.get("/{provider_uuid}/bookings", response_model=BookingListResponse)
async def get_provider_bookings(
    provider_uuid: UUID,
    from_datetime: Optional[datetime] = Query(None, alias="from"),
    to_datetime: Optional[datetime] = Query(None, alias="to"),
    status: Optional[BookingStatus] = Query(None, description="Filter by status"),
    service: BookingService = Depends(get_booking_service),
):
    """List a provider's bookings, optionally limited to a window and status."""
    bookings = await service.list_provider_bookings(
        provider_uuid,
        from_datetime=from_datetime,
        to_datetime=to_datetime,
        status=status,
    )
    return BookingListResponse(
        bookings=[BookingResponse.from_booking(b) for b in bookings],
        count=len(bookings),
    )
