"""Half-open interval overlap and slot annotation against confirmed bookings."""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Iterable, List, Optional, Sequence, Tuple

from carebook.engine.materializer import MaterializedSlot


def overlaps(
    a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime
) -> bool:
    """Strict half-open overlap; touching endpoints do not overlap."""
    return a_start < b_end and a_end > b_start


def find_overlapping(
    start: datetime, end: datetime, bookings: Iterable[Any]
) -> Optional[Any]:
    """First booking (in the given order) whose interval overlaps ``[start, end)``.

    Bookings only need ``start_datetime`` and ``end_datetime`` attributes.
    """
    for booking in bookings:
        if overlaps(start, end, booking.start_datetime, booking.end_datetime):
            return booking
    return None


def booking_fetch_window(
    from_utc: datetime, to_utc: datetime, tz, buffer_days: int = 1
) -> Tuple[datetime, datetime]:
    """UTC window wide enough to catch every booking near the local days queried.

    Slots cover whole provider-local days, so the window starts at the local
    midnight of ``from_utc`` and ends at the local midnight after ``to_utc``,
    each widened by ``buffer_days``.
    """
    buffer_days = max(buffer_days, 1)
    local_from = from_utc.astimezone(tz)
    local_to = to_utc.astimezone(tz)
    day_start = datetime.combine(local_from.date(), datetime.min.time(), tzinfo=tz)
    day_end = datetime.combine(
        local_to.date() + timedelta(days=1), datetime.min.time(), tzinfo=tz
    )
    return (
        (day_start - timedelta(days=buffer_days)).astimezone(timezone.utc),
        (day_end + timedelta(days=buffer_days)).astimezone(timezone.utc),
    )


@dataclass(frozen=True)
class AnnotatedSlot:
    slot: MaterializedSlot
    is_booked: bool
    booking: Optional[Any] = None


def annotate_slots(
    slots: Sequence[MaterializedSlot], bookings: Sequence[Any]
) -> List[AnnotatedSlot]:
    """Mark each slot booked iff it strictly overlaps a confirmed booking."""
    annotated = []
    for slot in slots:
        booking = find_overlapping(slot.start_utc, slot.end_utc, bookings)
        annotated.append(
            AnnotatedSlot(slot=slot, is_booked=booking is not None, booking=booking)
        )
    return annotated
