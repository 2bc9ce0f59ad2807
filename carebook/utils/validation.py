import re
from datetime import datetime, time
from typing import Optional
from uuid import UUID
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

CLOCK_TIME_PATTERN = r"^([01]?[0-9]|2[0-3]):[0-5][0-9]$"


def validate_phone_number(phone: str) -> bool:
    """Validate phone number format (international or local)."""
    if not phone:
        return True  # Allow empty/null

    phone_pattern = r"^[\+]?[1-9][\d\-\s\(\)]{7,15}$"
    return bool(re.match(phone_pattern, phone))


def validate_clock_time(value: str) -> bool:
    """Validate a local wall-clock time written as HH:MM."""
    if not value:
        return False
    return bool(re.match(CLOCK_TIME_PATTERN, value))


def parse_clock_time(value: str) -> time:
    """Parse HH:MM into a ``datetime.time``."""
    if not validate_clock_time(value):
        raise ValueError(f"Invalid time '{value}', expected HH:MM")
    hours, minutes = value.split(":")
    return time(int(hours), int(minutes))


def validate_timezone(timezone: str) -> str:
    """Validate an IANA timezone id."""
    try:
        ZoneInfo(timezone)
    except (ZoneInfoNotFoundError, ValueError, OSError):
        raise ValueError(f"Invalid timezone: {timezone}")
    return timezone


def is_timezone_aware(value: datetime) -> bool:
    return value.tzinfo is not None and value.utcoffset() is not None


def coerce_uuid(value) -> Optional[UUID]:
    """Return ``value`` as a UUID, or None when it is not a valid one."""
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except (TypeError, ValueError):
        return None
