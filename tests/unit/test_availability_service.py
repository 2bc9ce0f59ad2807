from datetime import date, datetime, timedelta, timezone
from unittest.mock import AsyncMock, patch
from uuid import uuid4

import pytest

from carebook.core.exceptions import NotFoundError, ValidationError
from carebook.models.booking import Booking, BookingStatus
from carebook.models.provider import Provider
from carebook.services.availability import AvailabilityService
from carebook.services.provider import provider_service

MONDAY = datetime(2024, 1, 15, tzinfo=timezone.utc)
TUESDAY = MONDAY + timedelta(days=1)


@pytest.fixture
def mock_db():
    return AsyncMock()


@pytest.fixture
def sample_provider(weekday_config):
    return Provider(
        id=1,
        uuid=uuid4(),
        name="Dr. Ada Lovelace",
        email="ada@example.com",
        schedule_config=weekday_config.model_dump(mode="json"),
        booking_version=0,
    )


@pytest.fixture
def provider_lookup(sample_provider):
    with patch.object(
        provider_service,
        "get_provider_by_uuid",
        new=AsyncMock(return_value=sample_provider),
    ) as get_provider:
        yield get_provider


def confirmed_booking(start, minutes=30):
    return Booking(
        id=7,
        uuid=uuid4(),
        provider_id=1,
        patient_id=2,
        start_datetime=start,
        end_datetime=start + timedelta(minutes=minutes),
        status=BookingStatus.BOOKED.value,
    )


@pytest.mark.unit
class TestComputeAvailability:
    async def test_slots_annotated_with_bookings(
        self, mock_db, sample_provider, provider_lookup, frozen_now
    ):
        service = AvailabilityService(mock_db, clock=lambda: frozen_now)
        booking = confirmed_booking(MONDAY.replace(hour=10))

        with patch.object(
            service, "_get_confirmed_bookings", AsyncMock(return_value=[booking])
        ) as fetch:
            result = await service.compute_availability(
                sample_provider.uuid, MONDAY, TUESDAY
            )

        assert result.provider.uuid == sample_provider.uuid
        assert result.provider.timezone == "UTC"
        assert result.total_slots == 16
        assert result.booked_slots == 1
        assert result.available_slots == 15

        booked = [slot for slot in result.slots if slot.is_booked]
        assert len(booked) == 1
        assert booked[0].start == MONDAY.replace(hour=10)
        assert booked[0].booking.uuid == booking.uuid
        assert all(slot.provider_timezone == "UTC" for slot in result.slots)
        fetch.assert_awaited_once()

    async def test_notice_period_filters_early_slots(
        self, mock_db, sample_provider, provider_lookup, weekday_config
    ):
        sample_provider.schedule_config = weekday_config.model_copy(
            update={"min_notice_minutes": 60}
        ).model_dump(mode="json")
        service = AvailabilityService(
            mock_db, clock=lambda: MONDAY.replace(hour=9, minute=40)
        )

        with patch.object(
            service, "_get_confirmed_bookings", AsyncMock(return_value=[])
        ):
            result = await service.compute_availability(
                sample_provider.uuid, MONDAY, TUESDAY
            )

        assert result.total_slots == 12
        assert result.slots[0].start == MONDAY.replace(hour=11)

    async def test_range_validated_before_lookup(
        self, mock_db, provider_lookup, frozen_now
    ):
        service = AvailabilityService(mock_db, clock=lambda: frozen_now)

        with pytest.raises(ValidationError, match="End date must be after start date"):
            await service.compute_availability(uuid4(), TUESDAY, MONDAY)
        with pytest.raises(ValidationError, match="cannot exceed 90 days"):
            await service.compute_availability(
                uuid4(), MONDAY, MONDAY + timedelta(days=91)
            )

        provider_lookup.assert_not_awaited()
        mock_db.execute.assert_not_awaited()

    async def test_unknown_provider(self, mock_db, frozen_now):
        service = AvailabilityService(mock_db, clock=lambda: frozen_now)

        with patch.object(
            provider_service, "get_provider_by_uuid", new=AsyncMock(return_value=None)
        ):
            with pytest.raises(NotFoundError, match="Provider not found"):
                await service.compute_availability(uuid4(), MONDAY, TUESDAY)

    async def test_no_slots_skips_booking_fetch(
        self, mock_db, sample_provider, provider_lookup, frozen_now
    ):
        service = AvailabilityService(mock_db, clock=lambda: frozen_now)
        saturday = MONDAY + timedelta(days=5)

        with patch.object(service, "_get_confirmed_bookings", AsyncMock()) as fetch:
            result = await service.compute_availability(
                sample_provider.uuid, saturday, saturday + timedelta(days=1)
            )

        assert result.slots == []
        assert result.total_slots == 0
        fetch.assert_not_awaited()

    async def test_invalid_stored_config(
        self, mock_db, sample_provider, provider_lookup, frozen_now
    ):
        sample_provider.schedule_config = {"timezone": "Nowhere/Special"}
        service = AvailabilityService(mock_db, clock=lambda: frozen_now)

        with pytest.raises(ValidationError, match="schedule configuration is invalid"):
            await service.compute_availability(sample_provider.uuid, MONDAY, TUESDAY)


@pytest.mark.unit
class TestComputeAvailabilityForDates:
    async def test_single_date_covers_the_whole_local_day(
        self, mock_db, sample_provider, provider_lookup, frozen_now
    ):
        service = AvailabilityService(mock_db, clock=lambda: frozen_now)

        with patch.object(
            service, "_get_confirmed_bookings", AsyncMock(return_value=[])
        ):
            result = await service.compute_availability_for_dates(
                sample_provider.uuid, date(2024, 1, 15), date(2024, 1, 15)
            )

        assert result.from_datetime == MONDAY
        assert result.to_datetime == TUESDAY
        assert result.total_slots == 16

    async def test_dates_follow_provider_timezone(
        self, mock_db, sample_provider, provider_lookup, weekday_config, frozen_now
    ):
        sample_provider.schedule_config = {
            **weekday_config.model_dump(mode="json"),
            "timezone": "Europe/Berlin",
        }
        service = AvailabilityService(mock_db, clock=lambda: frozen_now)

        with patch.object(
            service, "_get_confirmed_bookings", AsyncMock(return_value=[])
        ):
            result = await service.compute_availability_for_dates(
                sample_provider.uuid, date(2024, 1, 15), date(2024, 1, 16)
            )

        assert result.from_datetime == datetime(2024, 1, 14, 23, tzinfo=timezone.utc)
        assert result.to_datetime == datetime(2024, 1, 16, 23, tzinfo=timezone.utc)
        assert result.total_slots == 32
        assert result.slots[0].start == datetime(2024, 1, 15, 8, tzinfo=timezone.utc)

    async def test_invalid_dates_rejected_before_lookup(
        self, mock_db, provider_lookup, frozen_now
    ):
        service = AvailabilityService(mock_db, clock=lambda: frozen_now)

        with pytest.raises(ValidationError, match="on or after start date"):
            await service.compute_availability_for_dates(
                uuid4(), date(2024, 1, 16), date(2024, 1, 15)
            )
        with pytest.raises(ValidationError, match="cannot exceed 90 days"):
            await service.compute_availability_for_dates(
                uuid4(), date(2024, 1, 1), date(2024, 3, 31)
            )

        provider_lookup.assert_not_awaited()
