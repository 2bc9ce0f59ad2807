"""Slot materialization across a date span, normalized to UTC."""

from dataclasses import dataclass
from datetime import date as date_type, datetime, timedelta, timezone
from typing import Iterable, List, Optional

import structlog

from carebook.engine.overrides import (
    DayOverride,
    FullBlackout,
    apply_day_override,
    exception_slot_duration,
    index_exceptions,
    resolve_day_override,
)
from carebook.engine.rules import CandidateSlot, expand_rule
from carebook.schemas.schedule import ScheduleConfig

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class MaterializedSlot:
    start_utc: datetime
    end_utc: datetime
    local_start: datetime
    local_end: datetime
    is_exception: bool = False
    exception_note: Optional[str] = None

    @property
    def key(self):
        return (self.start_utc, self.end_utc)


def local_dates(from_utc: datetime, to_utc: datetime, tz) -> List[date_type]:
    """Every provider-local calendar date touched by ``[from_utc, to_utc)``."""
    first = from_utc.astimezone(tz).date()
    # ``to`` is exclusive: an instant at local midnight does not pull in that day
    last = (to_utc - timedelta(microseconds=1)).astimezone(tz).date()
    days = []
    day = first
    while day <= last:
        days.append(day)
        day += timedelta(days=1)
    return days


def normalize(candidate: CandidateSlot) -> MaterializedSlot:
    return MaterializedSlot(
        start_utc=candidate.local_start.astimezone(timezone.utc),
        end_utc=candidate.local_end.astimezone(timezone.utc),
        local_start=candidate.local_start,
        local_end=candidate.local_end,
        is_exception=candidate.is_exception,
        exception_note=candidate.exception_note,
    )


def dedupe_and_sort(slots: Iterable[MaterializedSlot]) -> List[MaterializedSlot]:
    """Drop exact ``(start_utc, end_utc)`` duplicates, first occurrence wins.

    Partially overlapping slots are all kept. The sort is stable so rule slots
    stay ahead of exception slots that start at the same instant.
    """
    seen = set()
    unique = []
    for slot in slots:
        if slot.key in seen:
            continue
        seen.add(slot.key)
        unique.append(slot)
    unique.sort(key=lambda slot: slot.start_utc)
    return unique


def candidates_for_day(
    config: ScheduleConfig,
    day: date_type,
    override: Optional[DayOverride] = None,
    default_slot_minutes: int = 30,
) -> List[CandidateSlot]:
    """Rule slots plus the resolved override for one provider-local date."""
    tz = config.tzinfo
    rule_slots = []
    for rule in config.recurring_rules:
        rule_slots.extend(expand_rule(rule, day, tz))

    return apply_day_override(
        override,
        rule_slots,
        day,
        tz,
        exception_slot_duration(config, default_slot_minutes),
    )


def materialize_slots(
    config: ScheduleConfig,
    from_utc: datetime,
    to_utc: datetime,
    default_slot_minutes: int = 30,
    log=None,
) -> List[MaterializedSlot]:
    """Expand the schedule over every local day of ``[from_utc, to_utc)``.

    Whole local days are materialized; callers narrow the result with the
    notice/horizon filter rather than clipping to the query instants.
    """
    log = log or logger
    tz = config.tzinfo
    exceptions_by_date = index_exceptions(config.exceptions)

    collected = []
    for day in local_dates(from_utc, to_utc, tz):
        override = resolve_day_override(exceptions_by_date.get(day))
        if isinstance(override, FullBlackout):
            log.debug(
                "Skipping blacked out day",
                date=day.isoformat(),
                note=override.note or "No reason specified",
            )
            continue
        collected.extend(
            normalize(candidate)
            for candidate in candidates_for_day(
                config, day, override, default_slot_minutes
            )
        )

    slots = dedupe_and_sort(collected)
    log.debug(
        "Slots materialized",
        timezone=config.timezone,
        candidate_count=len(collected),
        slot_count=len(slots),
    )
    return slots
