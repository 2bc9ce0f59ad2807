import structlog
from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from carebook.api.deps.database import get_db
from carebook.services.availability import AvailabilityService
from carebook.services.booking import BookingService

logger = structlog.get_logger("carebook.api")


async def get_availability_service(
    db: AsyncSession = Depends(get_db),
) -> AvailabilityService:
    """Availability service bound to the request session."""
    return AvailabilityService(db, log=logger)


async def get_booking_service(db: AsyncSession = Depends(get_db)) -> BookingService:
    """Booking service bound to the request session."""
    return BookingService(db, log=logger)
