from datetime import date, datetime, time, timedelta
from typing import Callable, List
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from carebook.core.config import settings
from carebook.core.exceptions import NotFoundError, ValidationError
from carebook.engine.materializer import materialize_slots
from carebook.engine.overlap import AnnotatedSlot, annotate_slots, booking_fetch_window
from carebook.engine.rules import local_instant
from carebook.engine.validator import validate_availability_range
from carebook.engine.window import booking_window, filter_bookable, utc_now
from carebook.models.booking import Booking
from carebook.models.provider import Provider
from carebook.schemas.availability import AvailabilityResponse, AvailabilitySlot
from carebook.schemas.booking import BookingRef
from carebook.schemas.provider import ProviderSummary
from carebook.schemas.schedule import ScheduleConfig
from carebook.services.booking import confirmed_bookings_query
from carebook.services.provider import load_schedule_config, provider_service

logger = structlog.get_logger(__name__)


class AvailabilityService:
    """Computes a provider's bookable slots for a UTC range.

    Slots are derived from the schedule configuration on every call and
    annotated with the confirmed bookings that overlap them.
    """

    def __init__(
        self,
        db: AsyncSession,
        log=None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.db = db
        self.log = log or logger
        self.clock = clock

    async def compute_availability(
        self, provider_uuid: UUID, from_datetime: datetime, to_datetime: datetime
    ) -> AvailabilityResponse:
        validate_availability_range(
            from_datetime, to_datetime, settings.MAX_AVAILABILITY_RANGE_DAYS
        )

        provider = await self._get_provider(provider_uuid)
        config = load_schedule_config(provider)
        return await self._compute(provider, config, from_datetime, to_datetime)

    async def compute_availability_for_dates(
        self, provider_uuid: UUID, start_date: date, end_date: date
    ) -> AvailabilityResponse:
        """Availability for whole provider-local days, both dates inclusive."""
        if end_date < start_date:
            raise ValidationError(
                "End date must be on or after start date", field="endDate"
            )
        max_days = settings.MAX_AVAILABILITY_RANGE_DAYS
        if (end_date - start_date).days + 1 > max_days:
            raise ValidationError(
                f"Date range cannot exceed {max_days} days", field="endDate"
            )

        provider = await self._get_provider(provider_uuid)
        config = load_schedule_config(provider)
        tz = config.tzinfo
        from_datetime = local_instant(start_date, time(0), tz)
        to_datetime = local_instant(end_date + timedelta(days=1), time(0), tz)
        return await self._compute(provider, config, from_datetime, to_datetime)

    async def _get_provider(self, provider_uuid: UUID) -> Provider:
        provider = await provider_service.get_provider_by_uuid(self.db, provider_uuid)
        if not provider:
            raise NotFoundError("Provider")
        return provider

    async def _compute(
        self,
        provider: Provider,
        config: ScheduleConfig,
        from_datetime: datetime,
        to_datetime: datetime,
    ) -> AvailabilityResponse:
        log = self.log.bind(provider_id=provider.id, timezone=config.timezone)

        slots = materialize_slots(
            config,
            from_datetime,
            to_datetime,
            default_slot_minutes=settings.DEFAULT_SLOT_DURATION_MINUTES,
            log=log,
        )
        window = booking_window(config, self.clock)
        bookable = filter_bookable(slots, window)

        bookings = []
        if bookable:
            bookings = await self._get_confirmed_bookings(
                provider, from_datetime, to_datetime, config.tzinfo
            )
        annotated = annotate_slots(bookable, bookings)

        response_slots = [
            self._to_slot(item, config.timezone) for item in annotated
        ]
        booked = sum(1 for slot in response_slots if slot.is_booked)

        log.info(
            "Availability computed",
            from_datetime=from_datetime.isoformat(),
            to_datetime=to_datetime.isoformat(),
            materialized=len(slots),
            bookable=len(bookable),
            booked=booked,
        )

        return AvailabilityResponse(
            provider=ProviderSummary(
                uuid=provider.uuid, name=provider.name, timezone=config.timezone
            ),
            from_datetime=from_datetime,
            to_datetime=to_datetime,
            slots=response_slots,
            total_slots=len(response_slots),
            available_slots=len(response_slots) - booked,
            booked_slots=booked,
        )

    async def _get_confirmed_bookings(
        self, provider: Provider, from_datetime: datetime, to_datetime: datetime, tz
    ) -> List[Booking]:
        fetch_start, fetch_end = booking_fetch_window(
            from_datetime, to_datetime, tz, settings.BOOKING_FETCH_BUFFER_DAYS
        )
        result = await self.db.execute(
            confirmed_bookings_query(provider.id, fetch_start, fetch_end)
        )
        return list(result.scalars().all())

    @staticmethod
    def _to_slot(item: AnnotatedSlot, timezone_name: str) -> AvailabilitySlot:
        slot = item.slot
        return AvailabilitySlot(
            start=slot.start_utc,
            end=slot.end_utc,
            is_booked=item.is_booked,
            booking=BookingRef.model_validate(item.booking) if item.booking else None,
            is_exception=slot.is_exception,
            exception_note=slot.exception_note,
            local_start=slot.local_start,
            local_end=slot.local_end,
            provider_timezone=timezone_name,
        )
