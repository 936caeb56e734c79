# backend/practice_booking/services/slots/first_available.py
"""
First available date search.

Walks forward from today, one calendar day at a time, up to
config.horizon_days days, and stops at the first day with at least one
bookable slot for the service.

If the horizon is exhausted the result is today with found=False and no
times: callers must show "no availability", not offer today as bookable.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta

from redis import Redis

from .availability import calculate_day_availability
from .calculator import get_day_hours
from .config import BookingConfig, get_booking_config
from .entities import ScheduleSnapshot

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FirstAvailableDate:
    date: date
    found: bool
    available_times: list[str] = field(default_factory=list)


def find_first_available_date(
    snapshot: ScheduleSnapshot,
    tenant_id: int,
    service_id: int,
    now: datetime,
    config: BookingConfig | None = None,
    redis: Redis | None = None,
) -> FirstAvailableDate:
    """Return the first date in the horizon with an open slot."""
    config = config or get_booking_config()
    today = now.date()

    for offset in range(config.horizon_days):
        candidate = today + timedelta(days=offset)

        # Business closed on this weekday
        if get_day_hours(snapshot.operating_hours, candidate, config) is None:
            continue

        slots = calculate_day_availability(
            snapshot, tenant_id, service_id, candidate, now, config, redis
        )
        available = [slot.time for slot in slots if slot.is_available]
        if available:
            return FirstAvailableDate(date=candidate, found=True, available_times=available)

    logger.warning(
        f"No availability within {config.horizon_days} days: "
        f"tenant={tenant_id}, service={service_id}"
    )
    return FirstAvailableDate(date=today, found=False)
