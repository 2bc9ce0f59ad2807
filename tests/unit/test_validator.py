from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

from carebook.core.exceptions import ConflictError, ConflictReason, ValidationError
from carebook.engine.validator import (
    check_booking_window,
    check_no_overlap,
    validate_availability_range,
    validate_booking_interval,
)
from carebook.engine.window import booking_window
from carebook.schemas.schedule import ScheduleConfig

START = datetime(2024, 1, 15, 10, 0, tzinfo=timezone.utc)


@pytest.mark.unit
class TestValidateBookingInterval:
    def test_valid_interval(self):
        validate_booking_interval(START, START + timedelta(minutes=30))

    def test_end_before_start(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_booking_interval(START, START - timedelta(minutes=30))
        assert exc_info.value.message == "End time must be after start time"
        assert exc_info.value.field == "end"

    def test_zero_length(self):
        with pytest.raises(ValidationError):
            validate_booking_interval(START, START)

    def test_duration_bounds(self):
        validate_booking_interval(START, START + timedelta(minutes=5))
        validate_booking_interval(START, START + timedelta(minutes=480))

        with pytest.raises(ValidationError, match="at least 5 minutes"):
            validate_booking_interval(START, START + timedelta(minutes=4))
        with pytest.raises(ValidationError, match="cannot exceed 8 hours"):
            validate_booking_interval(START, START + timedelta(minutes=481))

    def test_naive_datetimes_are_rejected(self):
        naive = datetime(2024, 1, 15, 10, 0)
        with pytest.raises(ValidationError):
            validate_booking_interval(naive, naive + timedelta(minutes=30))

    def test_offsets_are_compared_as_instants(self):
        plus_two = timezone(timedelta(hours=2))
        # 12:30+02:00 is 10:30Z, thirty minutes after START
        validate_booking_interval(
            START, datetime(2024, 1, 15, 12, 30, tzinfo=plus_two)
        )


@pytest.mark.unit
class TestCheckBookingWindow:
    @pytest.fixture
    def window(self):
        config = ScheduleConfig(min_notice_minutes=60, max_days_ahead=30)
        return booking_window(config, lambda: START)

    def test_too_soon(self, window):
        with pytest.raises(ConflictError) as exc_info:
            check_booking_window(START + timedelta(minutes=30), window)
        assert exc_info.value.message == "Too soon to book this slot"
        assert exc_info.value.reason == ConflictReason.NOTICE_PERIOD

    def test_too_far_ahead(self, window):
        with pytest.raises(ConflictError) as exc_info:
            check_booking_window(START + timedelta(days=31), window)
        assert exc_info.value.message == "Too far ahead to book this slot"
        assert exc_info.value.reason == ConflictReason.BOOKING_HORIZON

    def test_inside_window(self, window):
        check_booking_window(START + timedelta(hours=2), window)


@pytest.mark.unit
class TestCheckNoOverlap:
    def test_overlap_rejected(self):
        existing = [
            SimpleNamespace(
                start_datetime=START, end_datetime=START + timedelta(minutes=30)
            )
        ]
        with pytest.raises(ConflictError) as exc_info:
            check_no_overlap(
                START + timedelta(minutes=15), START + timedelta(minutes=45), existing
            )
        assert exc_info.value.message == "Slot already booked"
        assert exc_info.value.reason == ConflictReason.OVERLAP

    def test_adjacent_accepted(self):
        existing = [
            SimpleNamespace(
                start_datetime=START, end_datetime=START + timedelta(minutes=30)
            )
        ]
        check_no_overlap(
            START + timedelta(minutes=30), START + timedelta(minutes=60), existing
        )


@pytest.mark.unit
class TestValidateAvailabilityRange:
    def test_valid_range(self):
        validate_availability_range(START, START + timedelta(days=90))

    def test_end_not_after_start(self):
        with pytest.raises(ValidationError, match="End date must be after start date"):
            validate_availability_range(START, START)

    def test_range_too_long(self):
        with pytest.raises(ValidationError, match="cannot exceed 90 days"):
            validate_availability_range(START, START + timedelta(days=90, seconds=1))

    def test_custom_maximum(self):
        with pytest.raises(ValidationError, match="cannot exceed 7 days"):
            validate_availability_range(START, START + timedelta(days=8), max_days=7)

    def test_naive_range_rejected(self):
        naive = datetime(2024, 1, 15)
        with pytest.raises(ValidationError):
            validate_availability_range(naive, naive + timedelta(days=1))
