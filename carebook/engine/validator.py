"""Pure checks for the booking write path and the availability query.

Nothing here touches the store; the services call these before any query so
a malformed request never causes partial work.
"""

from datetime import datetime, timedelta
from typing import Any, Iterable

from carebook.core.exceptions import ConflictError, ConflictReason, ValidationError
from carebook.engine.overlap import find_overlapping
from carebook.engine.window import BookingWindow
from carebook.utils.validation import is_timezone_aware

MIN_BOOKING_MINUTES = 5
MAX_BOOKING_MINUTES = 480


def validate_booking_interval(start: datetime, end: datetime) -> None:
    """Steps 1 and 2: ordered, timezone-aware interval of 5 to 480 minutes."""
    if not is_timezone_aware(start) or not is_timezone_aware(end):
        raise ValidationError("start and end must include a timezone offset")
    if end <= start:
        raise ValidationError("End time must be after start time", field="end")

    duration = end - start
    if duration < timedelta(minutes=MIN_BOOKING_MINUTES):
        raise ValidationError(
            f"Booking duration must be at least {MIN_BOOKING_MINUTES} minutes"
        )
    if duration > timedelta(minutes=MAX_BOOKING_MINUTES):
        raise ValidationError(
            f"Booking duration cannot exceed {MAX_BOOKING_MINUTES // 60} hours"
        )


def check_booking_window(start: datetime, window: BookingWindow) -> None:
    """Step 3: the start must fall inside ``[earliest, latest]``."""
    reason = window.violation(start)
    if reason == ConflictReason.NOTICE_PERIOD:
        raise ConflictError("Too soon to book this slot", reason=reason)
    if reason == ConflictReason.BOOKING_HORIZON:
        raise ConflictError("Too far ahead to book this slot", reason=reason)


def check_no_overlap(start: datetime, end: datetime, bookings: Iterable[Any]) -> None:
    """Step 4: reject when any confirmed booking strictly overlaps."""
    if find_overlapping(start, end, bookings) is not None:
        raise ConflictError("Slot already booked", reason=ConflictReason.OVERLAP)


def validate_availability_range(
    from_utc: datetime, to_utc: datetime, max_days: int = 90
) -> None:
    if not is_timezone_aware(from_utc) or not is_timezone_aware(to_utc):
        raise ValidationError("from and to must include a timezone offset")
    if to_utc <= from_utc:
        raise ValidationError("End date must be after start date", field="to")
    if to_utc - from_utc > timedelta(days=max_days):
        raise ValidationError(
            f"Date range cannot exceed {max_days} days", field="to"
        )
