"""Notice period and booking horizon."""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Iterable, List, Optional, TypeVar

from carebook.core.exceptions import ConflictReason
from carebook.schemas.schedule import ScheduleConfig

T = TypeVar("T")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class BookingWindow:
    """The closed interval ``[earliest, latest]`` a slot start must fall in."""

    now: datetime
    earliest: datetime
    latest: datetime

    def violation(self, start: datetime) -> Optional[str]:
        """Return the conflict reason for ``start``, or None if it is bookable."""
        if start < self.earliest:
            return ConflictReason.NOTICE_PERIOD
        if start > self.latest:
            return ConflictReason.BOOKING_HORIZON
        return None

    def contains(self, start: datetime) -> bool:
        return self.violation(start) is None


def booking_window(
    config: ScheduleConfig, clock: Callable[[], datetime] = utc_now
) -> BookingWindow:
    """Compute the window once, from ``now`` expressed in the provider timezone.

    The notice period is elapsed time. ``max_days_ahead`` is counted on the
    provider's local calendar, so it keeps the local clock time across DST.
    """
    now = clock().astimezone(config.tzinfo)
    earliest = now.astimezone(timezone.utc) + timedelta(
        minutes=config.min_notice_minutes
    )
    return BookingWindow(
        now=now,
        earliest=earliest.astimezone(config.tzinfo),
        latest=now + timedelta(days=config.max_days_ahead),
    )


def filter_bookable(
    slots: Iterable[T], window: BookingWindow, start_of=lambda slot: slot.start_utc
) -> List[T]:
    """Keep the slots whose start lies inside the window."""
    return [slot for slot in slots if window.contains(start_of(slot))]
