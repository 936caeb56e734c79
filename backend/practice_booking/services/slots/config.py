# backend/practice_booking/services/slots/config.py
"""
Booking configuration and time arithmetic for slots calculation.

All time-of-day values inside the engine are integer minutes since midnight.
Strings come in two shapes:
  - canonical "HH:MM" (24-hour, also "HH:MM:SS" from the database)
  - display "9:30 AM" (12-hour, what patients see and legacy rows store)
"""

import re
from dataclasses import dataclass
from datetime import date
from functools import lru_cache

MINUTES_PER_DAY = 24 * 60

# 0 = Sunday ... 6 = Saturday
WEEKDAY_NAMES = (
    "sunday",
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
)

_TIME_RE = re.compile(
    r"^\s*(\d{1,2}):(\d{2})(?::(\d{2}))?\s*([AaPp][Mm])?\s*$"
)


@dataclass(frozen=True)
class BookingConfig:
    """
    Configuration for booking/slots system.

    Attributes:
        slot_step_minutes: Candidate grid step in minutes
        horizon_days: How many days ahead first-available search looks
        max_derived_duration_minutes: Upper bound for END_TIME-derived durations
        default_service_duration_minutes: Duration for unmapped appointment types
        legacy_block_duration_minutes: Duration for blocks without any annotation
        blocked_default_duration_minutes: Duration assumed for an existing block
            without DURATION: when validating a new block
        min_layout_height_percent: Height floor for calendar boxes
        default_start_hour: Operating hours used when a tenant has none configured
        default_end_hour: Operating hours used when a tenant has none configured
        cache_ttl_seconds: Redis cache TTL for empty days
    """
    slot_step_minutes: int = 10
    horizon_days: int = 14
    max_derived_duration_minutes: int = 480
    default_service_duration_minutes: int = 60
    legacy_block_duration_minutes: int = 30
    blocked_default_duration_minutes: int = 60
    min_layout_height_percent: float = 2.0
    default_start_hour: int = 9
    default_end_hour: int = 17
    cache_ttl_seconds: int = 86400  # 24 hours

    def __post_init__(self):
        """Validate configuration."""
        if self.slot_step_minutes <= 0 or 60 % self.slot_step_minutes != 0:
            raise ValueError(
                f"slot_step_minutes must divide 60, got {self.slot_step_minutes}"
            )
        if self.horizon_days < 1:
            raise ValueError(f"horizon_days must be >= 1, got {self.horizon_days}")
        if self.max_derived_duration_minutes <= 0:
            raise ValueError("max_derived_duration_minutes must be positive")
        if not 0 <= self.default_start_hour < self.default_end_hour <= 24:
            raise ValueError(
                f"Invalid default hours: {self.default_start_hour}-{self.default_end_hour}"
            )

    @property
    def slots_per_hour(self) -> int:
        return 60 // self.slot_step_minutes


@lru_cache
def get_booking_config() -> BookingConfig:
    """
    Get booking configuration (singleton).

    In the future, this can read from environment or database.
    """
    return BookingConfig()


# ── Time arithmetic ─────────────────────────────────────────────────────


def time_str_to_minutes(time_str: str) -> int:
    """
    Parse a time-of-day string to minutes since midnight.

    Supports "09:30 AM", "9:30 pm", "14:30", "14:30:00" and "24:00"
    (end of day, only meaningful as a closing time).
    """
    match = _TIME_RE.match(time_str or "")
    if not match:
        raise ValueError(f"Invalid time string: {time_str!r}")

    hours = int(match.group(1))
    minutes = int(match.group(2))
    period = match.group(4)

    if minutes > 59:
        raise ValueError(f"Invalid minutes in time string: {time_str!r}")

    if period:
        if not 1 <= hours <= 12:
            raise ValueError(f"Invalid 12-hour time: {time_str!r}")
        hours = hours % 12
        if period.upper() == "PM":
            hours += 12
        return hours * 60 + minutes

    if hours == 24 and minutes == 0:
        return MINUTES_PER_DAY
    if hours > 23:
        raise ValueError(f"Invalid hours in time string: {time_str!r}")
    return hours * 60 + minutes


def minutes_to_time_str(minutes: int) -> str:
    """Convert minutes since midnight to "HH:MM"."""
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def minutes_to_display_time(minutes: int) -> str:
    """Convert minutes since midnight to "9:30 AM"."""
    hours = (minutes // 60) % 24
    period = "PM" if hours >= 12 else "AM"
    hours12 = hours % 12 or 12
    return f"{hours12}:{minutes % 60:02d} {period}"


def day_of_week(target_date: date) -> int:
    """Weekday index with 0 = Sunday, 6 = Saturday."""
    return (target_date.weekday() + 1) % 7


def weekday_name(target_date: date) -> str:
    return WEEKDAY_NAMES[day_of_week(target_date)]
