# backend/practice_booking/services/slots/invalidator.py
"""
Cache invalidation for tenant candidate slots.

Triggers:
✓ Tenant operating hours changed → invalidate all dates

Does NOT trigger:
✗ Booking created/cancelled (Level 2 calculates on-the-fly)
✗ Provider schedule or qualification changed (Level 2)
✗ Blocked time created/deleted (Level 2)
"""

import logging
from datetime import date, timedelta
from redis import Redis

from .redis_store import SlotsRedisStore

logger = logging.getLogger(__name__)


def invalidate_tenant_cache(
    redis: Redis,
    tenant_id: int,
    dates: list[date] | None = None,
) -> int:
    """
    Invalidate cached candidate slots for a tenant.

    Args:
        redis: Redis client
        tenant_id: Tenant ID
        dates: List of specific dates to invalidate,
               or None to invalidate all cached dates

    Returns:
        Number of deleted cache keys
    """
    store = SlotsRedisStore(redis)
    deleted = store.delete_day_slots(tenant_id, dates)
    logger.info(f"Slots cache invalidated: tenant={tenant_id}, keys={deleted}")
    return deleted


def get_affected_dates(
    date_start: date,
    date_end: date,
) -> list[date]:
    """
    Get list of dates in range [date_start, date_end].

    Args:
        date_start: Start date (inclusive)
        date_end: End date (inclusive)

    Returns:
        List of dates
    """
    if date_start > date_end:
        date_start, date_end = date_end, date_start

    dates = []
    current = date_start
    while current <= date_end:
        dates.append(current)
        current += timedelta(days=1)

    return dates
