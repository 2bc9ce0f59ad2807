from datetime import datetime, timezone
from typing import Callable, List, Optional
from uuid import UUID

import structlog
from sqlalchemy import and_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from carebook.core.config import settings
from carebook.core.exceptions import ConflictError, ConflictReason, NotFoundError
from carebook.engine.validator import (
    check_booking_window,
    check_no_overlap,
    validate_booking_interval,
)
from carebook.engine.window import booking_window, utc_now
from carebook.models.booking import Booking, BookingStatus
from carebook.models.provider import Provider
from carebook.schemas.booking import BookingCreate
from carebook.services.patient import patient_service
from carebook.services.provider import load_schedule_config, provider_service
from carebook.utils.validation import coerce_uuid

logger = structlog.get_logger(__name__)


def confirmed_bookings_query(provider_id: int, window_start: datetime, window_end: datetime):
    """Confirmed bookings of a provider intersecting ``[window_start, window_end)``.

    Ordered by start, then storage order.
    """
    return (
        select(Booking)
        .where(
            and_(
                Booking.provider_id == provider_id,
                Booking.status == BookingStatus.BOOKED.value,
                Booking.start_datetime < window_end,
                Booking.end_datetime > window_start,
            )
        )
        .order_by(Booking.start_datetime.asc(), Booking.id.asc())
    )


class BookingService:
    """Booking write path: validation, conflict prevention and cancellation.

    ``create_booking`` commits under a compare-and-swap on
    ``providers.booking_version`` so two concurrent requests for overlapping
    intervals cannot both succeed: the loser's version update matches no row,
    its transaction is rolled back and the overlap check re-runs against the
    winner's committed booking.
    """

    def __init__(
        self,
        db: AsyncSession,
        log=None,
        clock: Callable[[], datetime] = utc_now,
        max_attempts: Optional[int] = None,
    ):
        self.db = db
        self.log = log or logger
        self.clock = clock
        self.max_attempts = max_attempts or settings.BOOKING_COMMIT_RETRIES

    async def create_booking(self, booking_data: BookingCreate) -> Booking:
        """Create a booking after validation and conflict checking."""

        # Local validation first: no store access for malformed input
        validate_booking_interval(booking_data.start, booking_data.end)
        start = booking_data.start.astimezone(timezone.utc)
        end = booking_data.end.astimezone(timezone.utc)

        provider = await provider_service.get_provider_by_uuid(
            self.db, booking_data.provider_id
        )
        if not provider:
            raise NotFoundError("Provider")

        patient = await patient_service.get_patient_by_uuid(
            self.db, booking_data.patient_id
        )
        if not patient:
            raise NotFoundError("Patient")

        config = load_schedule_config(provider)
        check_booking_window(start, booking_window(config, self.clock))

        # ORM instances expire on rollback, keep plain values for the retry loop
        provider_id = provider.id
        patient_id = patient.id
        log = self.log.bind(
            provider_id=provider_id,
            patient_id=patient_id,
            start=start.isoformat(),
            end=end.isoformat(),
        )

        for attempt in range(1, self.max_attempts + 1):
            version = await self._current_booking_version(provider_id)
            existing = await self._get_overlapping_bookings(provider_id, start, end)
            try:
                check_no_overlap(start, end, existing)
            except ConflictError:
                log.info("Booking rejected, slot already booked", attempt=attempt)
                raise

            booking = Booking(
                provider_id=provider_id,
                patient_id=patient_id,
                start_datetime=start,
                end_datetime=end,
                status=BookingStatus.BOOKED.value,
                notes=booking_data.notes,
                reminder_sent=False,
            )

            try:
                self.db.add(booking)
                await self.db.flush()
                claimed = await self._claim_booking_version(provider_id, version)
                if claimed:
                    await self.db.commit()
                    log.info(
                        "Booking created successfully",
                        booking_uuid=str(booking.uuid),
                        attempt=attempt,
                    )
                    return await self.get_booking(booking.uuid)
            except IntegrityError as e:
                await self.db.rollback()
                log.warning("Booking insert violated a constraint", error=str(e))
                raise ConflictError(
                    "Slot already booked", reason=ConflictReason.OVERLAP
                )

            await self.db.rollback()
            log.info("Concurrent booking detected, re-validating", attempt=attempt)

        log.warning("Booking abandoned after repeated concurrent updates")
        raise ConflictError("Slot already booked", reason=ConflictReason.OVERLAP)

    async def cancel_booking(
        self, booking_uuid: UUID, reason: Optional[str] = None
    ) -> Booking:
        """Transition ``booked -> cancelled``, stamping ``cancelled_at``."""
        booking = await self.get_booking(booking_uuid)
        if not booking:
            raise NotFoundError("Booking")

        if booking.status == BookingStatus.CANCELLED.value:
            raise ConflictError(
                "Booking already cancelled", reason=ConflictReason.ALREADY_CANCELLED
            )
        if not booking.can_transition_to(BookingStatus.CANCELLED):
            raise ConflictError(
                f"Cannot cancel a {booking.status} booking",
                reason=ConflictReason.INVALID_TRANSITION,
            )

        # Conditional update: only one of two racing cancellations matches
        result = await self.db.execute(
            update(Booking)
            .where(
                and_(
                    Booking.id == booking.id,
                    Booking.status == BookingStatus.BOOKED.value,
                )
            )
            .values(
                status=BookingStatus.CANCELLED.value,
                cancelled_at=self.clock(),
                cancellation_reason=reason,
            )
        )
        if result.rowcount != 1:
            await self.db.rollback()
            raise ConflictError(
                "Booking already cancelled", reason=ConflictReason.ALREADY_CANCELLED
            )

        await self.db.commit()
        self.log.info(
            "Booking cancelled",
            booking_uuid=str(booking_uuid),
            provider_id=booking.provider_id,
        )
        return await self.get_booking(booking_uuid)

    async def get_booking(self, booking_uuid: UUID) -> Optional[Booking]:
        """Get booking by UUID with provider and patient loaded."""
        booking_uuid = coerce_uuid(booking_uuid)
        if booking_uuid is None:
            return None

        query = (
            select(Booking)
            .options(joinedload(Booking.provider), joinedload(Booking.patient))
            .where(Booking.uuid == booking_uuid)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(query)
        return result.unique().scalar_one_or_none()

    async def list_provider_bookings(
        self,
        provider_uuid: UUID,
        from_datetime: Optional[datetime] = None,
        to_datetime: Optional[datetime] = None,
        status: Optional[BookingStatus] = None,
    ) -> List[Booking]:
        """A provider's bookings, optionally limited to a window and a status."""
        provider = await provider_service.get_provider_by_uuid(self.db, provider_uuid)
        if not provider:
            raise NotFoundError("Provider")

        query = (
            select(Booking)
            .options(joinedload(Booking.provider), joinedload(Booking.patient))
            .where(Booking.provider_id == provider.id)
        )
        if from_datetime:
            query = query.where(Booking.end_datetime > from_datetime)
        if to_datetime:
            query = query.where(Booking.start_datetime < to_datetime)
        if status:
            query = query.where(Booking.status == status.value)

        result = await self.db.execute(query.order_by(Booking.start_datetime.asc()))
        return list(result.unique().scalars().all())

    # Helper methods
    async def _current_booking_version(self, provider_id: int) -> int:
        result = await self.db.execute(
            select(Provider.booking_version).where(Provider.id == provider_id)
        )
        return result.scalar_one()

    async def _get_overlapping_bookings(
        self, provider_id: int, start: datetime, end: datetime
    ) -> List[Booking]:
        result = await self.db.execute(confirmed_bookings_query(provider_id, start, end))
        return list(result.scalars().all())

    async def _claim_booking_version(self, provider_id: int, version: int) -> bool:
        """Compare-and-swap the provider's booking version."""
        result = await self.db.execute(
            update(Provider)
            .where(
                and_(Provider.id == provider_id, Provider.booking_version == version)
            )
            .values(booking_version=version + 1)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1
