"""Rule expansion: one recurring rule + one local date -> candidate slots."""

from dataclasses import dataclass
from datetime import date as date_type, datetime, time, timedelta, timezone
from typing import Iterator, List, Optional
from zoneinfo import ZoneInfo

from carebook.schemas.schedule import RecurringRule


@dataclass(frozen=True)
class CandidateSlot:
    """A slot in provider-local time, before UTC normalization."""

    local_start: datetime
    local_end: datetime
    is_exception: bool = False
    exception_note: Optional[str] = None


def local_instant(day: date_type, clock: time, tz: ZoneInfo) -> datetime:
    """Attach a wall-clock time on ``day`` to ``tz``.

    Ambiguous and non-existent wall-clock times are resolved by zoneinfo's
    fold=0 rule: the offset in effect before the transition is used.
    """
    return datetime.combine(day, clock, tzinfo=tz)


def expand_window(
    day: date_type,
    start: time,
    end: time,
    slot_minutes: int,
    tz: ZoneInfo,
    is_exception: bool = False,
    note: Optional[str] = None,
) -> Iterator[CandidateSlot]:
    """Split ``[day@start, day@end)`` into back-to-back slots of ``slot_minutes``.

    Stepping happens on absolute time so every slot lasts exactly
    ``slot_minutes`` even on a DST transition day. A trailing remainder
    shorter than one slot is dropped.
    """
    window_start = local_instant(day, start, tz).astimezone(timezone.utc)
    window_end = local_instant(day, end, tz).astimezone(timezone.utc)
    step = timedelta(minutes=slot_minutes)

    cursor = window_start
    while cursor + step <= window_end:
        yield CandidateSlot(
            local_start=cursor.astimezone(tz),
            local_end=(cursor + step).astimezone(tz),
            is_exception=is_exception,
            exception_note=note,
        )
        cursor += step


def rule_applies(rule: RecurringRule, day: date_type) -> bool:
    return day.isoweekday() in rule.days_of_week


def expand_rule(rule: RecurringRule, day: date_type, tz: ZoneInfo) -> List[CandidateSlot]:
    """Candidate slots produced by ``rule`` on ``day``; empty on other weekdays."""
    if not rule_applies(rule, day):
        return []
    return list(expand_window(day, rule.start, rule.end, rule.slot_duration, tz))
