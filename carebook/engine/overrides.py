"""Resolution of date-specific schedule exceptions into day overrides."""

from dataclasses import dataclass, field
from datetime import date as date_type, time
from typing import Dict, Iterable, List, Optional, Tuple, Union
from zoneinfo import ZoneInfo

from carebook.engine.rules import CandidateSlot, expand_window
from carebook.schemas.schedule import ScheduleConfig, ScheduleException


@dataclass(frozen=True)
class FullBlackout:
    """The provider is unavailable for the whole local day."""

    note: Optional[str] = None


@dataclass(frozen=True)
class AdditionalWindows:
    """Extra windows bookable on top of the day's recurring slots."""

    windows: Tuple[Tuple[time, time], ...] = field(default_factory=tuple)
    note: Optional[str] = None


DayOverride = Union[FullBlackout, AdditionalWindows]


def index_exceptions(
    exceptions: Iterable[ScheduleException],
) -> Dict[date_type, ScheduleException]:
    """Map each local date to its exception (at most one per date)."""
    return {exception.date: exception for exception in exceptions}


def resolve_day_override(
    exception: Optional[ScheduleException],
) -> Optional[DayOverride]:
    """Turn the exception of a date into the override to apply, if any.

    An available exception without any window has no effect, so it resolves
    to ``None`` like a date without exception.
    """
    if exception is None:
        return None
    if not exception.available:
        return FullBlackout(note=exception.note)

    windows = tuple((window.start, window.end) for window in exception.all_windows())
    if not windows:
        return None
    return AdditionalWindows(windows=windows, note=exception.note)


def exception_slot_duration(config: ScheduleConfig, default_minutes: int = 30) -> int:
    """Exception windows are sliced with the first rule's slot duration."""
    if config.recurring_rules:
        return config.recurring_rules[0].slot_duration
    return default_minutes


def apply_day_override(
    override: Optional[DayOverride],
    rule_slots: List[CandidateSlot],
    day: date_type,
    tz: ZoneInfo,
    slot_minutes: int,
) -> List[CandidateSlot]:
    """Combine a day's rule slots with its override.

    A blackout wins over every rule. Additional windows are appended after
    the rule slots; they never replace or clip them.
    """
    if override is None:
        return rule_slots
    if isinstance(override, FullBlackout):
        return []

    slots = list(rule_slots)
    for start, end in override.windows:
        slots.extend(
            expand_window(
                day,
                start,
                end,
                slot_minutes,
                tz,
                is_exception=True,
                note=override.note,
            )
        )
    return slots
