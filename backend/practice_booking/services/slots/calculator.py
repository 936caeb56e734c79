# backend/practice_booking/services/slots/calculator.py
"""
Level 1: Candidate slot generation from business operating hours.

Produces per-slot data:
  (time_str "HH:MM", slot_ts float)

slot_ts = timestamp of the slot start. Redis filters with
ZRANGEBYSCORE {now_ts} +inf, so elapsed slots drop automatically.

Contains:
✓ operating hours per weekday (closed days yield nothing)
✓ past dates / elapsed slots of today

Does NOT contain:
✗ Bookings (checked at Level 2)
✗ Providers, qualifications, working windows (Level 2)
"""

from datetime import date, datetime, timedelta
from typing import Mapping, Optional

from .config import BookingConfig, get_booking_config, minutes_to_time_str, weekday_name
from .entities import DayHours


def get_day_hours(
    operating_hours: Optional[Mapping[str, DayHours]],
    target_date: date,
    config: BookingConfig | None = None,
) -> Optional[DayHours]:
    """
    Operating hours for target_date, or None if the business is closed.

    No configuration at all means default hours every day.
    """
    config = config or get_booking_config()
    if operating_hours is None:
        return DayHours(
            enabled=True,
            start_hour=config.default_start_hour,
            end_hour=config.default_end_hour,
        )

    day_hours = operating_hours.get(weekday_name(target_date))
    if day_hours is None or not day_hours.enabled:
        return None
    if day_hours.end_hour <= day_hours.start_hour:
        return None
    return day_hours


def calculate_day_slots(
    operating_hours: Optional[Mapping[str, DayHours]],
    target_date: date,
    now: datetime,
    config: BookingConfig | None = None,
) -> list[tuple[str, float]]:
    """
    Candidate slots for a day.

    Returns:
        List of (time_str, slot_ts) pairs in time order. Empty list = closed
        day, past date, or every slot already elapsed.
    """
    config = config or get_booking_config()

    if target_date < now.date():
        return []

    day_hours = get_day_hours(operating_hours, target_date, config)
    if day_hours is None:
        return []

    # Minute resolution: a slot starting this very minute is still offered
    now_ts = now.replace(second=0, microsecond=0).timestamp()
    midnight = datetime.combine(target_date, datetime.min.time())

    slots: list[tuple[str, float]] = []
    t = day_hours.start_hour * 60
    end_min = day_hours.end_hour * 60
    while t < end_min:
        slot_ts = (midnight + timedelta(minutes=t)).timestamp()
        if slot_ts >= now_ts:
            slots.append((minutes_to_time_str(t), slot_ts))
        t += config.slot_step_minutes

    return slots


def generate_candidate_slots(
    operating_hours: Optional[Mapping[str, DayHours]],
    target_date: date,
    now: datetime,
    config: BookingConfig | None = None,
) -> list[str]:
    """Ordered "HH:MM" candidate start times for target_date."""
    return [time_str for time_str, _ in calculate_day_slots(operating_hours, target_date, now, config)]
