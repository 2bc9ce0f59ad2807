from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from carebook.api.deps.services import get_availability_service
from carebook.schemas.availability import AvailabilityResponse
from carebook.services.availability import AvailabilityService

router = APIRouter()


@router.get("/available", response_model=AvailabilityResponse)
async def get_available_slots(
    provider_id: UUID = Query(..., alias="providerId", description="Provider UUID"),
    start_date: date = Query(..., alias="startDate", description="First day, YYYY-MM-DD"),
    end_date: date = Query(..., alias="endDate", description="Last day, YYYY-MM-DD"),
    service: AvailabilityService = Depends(get_availability_service),
):
    """Bookable slots for whole provider-local days, end date inclusive."""
    return await service.compute_availability_for_dates(provider_id, start_date, end_date)
