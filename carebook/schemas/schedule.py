from datetime import date as date_type, time
from typing import List, Optional
from zoneinfo import ZoneInfo

from pydantic import BaseModel, Field, field_validator, model_validator

from carebook.utils.validation import (
    CLOCK_TIME_PATTERN,
    parse_clock_time,
    validate_timezone,
)

MIN_SLOT_DURATION_MINUTES = 5
MAX_SLOT_DURATION_MINUTES = 480


class TimeWindow(BaseModel):
    """A local wall-clock window on a single day, start inclusive, end exclusive."""

    start_time: str = Field(..., pattern=CLOCK_TIME_PATTERN, description="HH:MM")
    end_time: str = Field(..., pattern=CLOCK_TIME_PATTERN, description="HH:MM")

    @model_validator(mode="after")
    def check_order(self):
        if parse_clock_time(self.start_time) >= parse_clock_time(self.end_time):
            raise ValueError("start_time must be before end_time")
        return self

    @property
    def start(self) -> time:
        return parse_clock_time(self.start_time)

    @property
    def end(self) -> time:
        return parse_clock_time(self.end_time)


class RecurringRule(TimeWindow):
    """Weekly recurring availability split into fixed-length slots."""

    days_of_week: List[int] = Field(
        default_factory=list, description="ISO weekdays, 1=Monday .. 7=Sunday"
    )
    slot_duration: int = Field(
        ...,
        ge=MIN_SLOT_DURATION_MINUTES,
        le=MAX_SLOT_DURATION_MINUTES,
        description="Slot length in minutes",
    )

    @field_validator("days_of_week")
    @classmethod
    def validate_days_of_week(cls, v):
        for day in v:
            if day < 1 or day > 7:
                raise ValueError("days_of_week values must be between 1 and 7")
        # Sets are not JSON friendly, keep a sorted unique list
        return sorted(set(v))


class ScheduleException(BaseModel):
    """Date-specific override of the recurring rules.

    ``available=False`` blacks the whole day out. ``available=True`` adds the
    ``start_time``/``end_time`` window and any extra ``windows`` on top of the
    day's recurring slots.
    """

    date: date_type
    available: bool = False
    start_time: Optional[str] = Field(None, pattern=CLOCK_TIME_PATTERN)
    end_time: Optional[str] = Field(None, pattern=CLOCK_TIME_PATTERN)
    windows: List[TimeWindow] = Field(default_factory=list)
    note: Optional[str] = Field(None, max_length=500)

    @model_validator(mode="after")
    def check_window(self):
        if (self.start_time is None) != (self.end_time is None):
            raise ValueError("start_time and end_time must be provided together")
        if self.start_time is not None and parse_clock_time(
            self.start_time
        ) >= parse_clock_time(self.end_time):
            raise ValueError("start_time must be before end_time")
        return self

    def all_windows(self) -> List[TimeWindow]:
        """The legacy single window first, then the extra windows in order."""
        result = []
        if self.start_time is not None and self.end_time is not None:
            result.append(
                TimeWindow(start_time=self.start_time, end_time=self.end_time)
            )
        result.extend(self.windows)
        return result


class ScheduleConfig(BaseModel):
    """A provider's declarative schedule. Read-only to the availability engine."""

    timezone: str = Field("UTC", max_length=64, description="IANA timezone id")
    recurring_rules: List[RecurringRule] = Field(default_factory=list)
    exceptions: List[ScheduleException] = Field(default_factory=list)
    min_notice_minutes: int = Field(
        60, ge=0, le=10080, description="Minimum lead time before a slot starts"
    )
    max_days_ahead: int = Field(
        365, ge=1, le=365, description="How far into the future slots can be booked"
    )

    @field_validator("timezone")
    @classmethod
    def validate_timezone_field(cls, v):
        return validate_timezone(v)

    @model_validator(mode="after")
    def check_unique_exception_dates(self):
        seen = set()
        for exception in self.exceptions:
            if exception.date in seen:
                raise ValueError(
                    f"Only one exception is allowed per date ({exception.date})"
                )
            seen.add(exception.date)
        return self

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)


class ScheduleConfigUpdate(ScheduleConfig):
    """Schema for replacing a provider's schedule configuration wholesale."""

    pass
