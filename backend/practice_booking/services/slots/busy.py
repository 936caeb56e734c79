# backend/practice_booking/services/slots/busy.py
"""
Busy-interval index: occupied [start, end) per provider on a date.

Sources:
- non-cancelled, non-deleted bookings assigned to the provider
- Blocked entries for the provider
- Blocked entries without a provider (tenant-wide, occupy everyone)

Unassigned patient bookings (provider_id is None) cannot be attributed
to anyone and are not counted against any provider.
"""

from datetime import date
from typing import Iterable

from .config import BookingConfig, get_booking_config
from .durations import resolve_booking_duration
from .entities import Booking, ResolvedInterval, ScheduleSnapshot


def resolve_interval(
    booking: Booking,
    snapshot: ScheduleSnapshot | None = None,
    config: BookingConfig | None = None,
) -> ResolvedInterval:
    """Normalize a booking to its [start, end) interval."""
    config = config or get_booking_config()
    duration = resolve_booking_duration(
        booking,
        duration_map=snapshot.duration_map if snapshot else None,
        services=snapshot.services if snapshot else (),
        config=config,
    )
    return ResolvedInterval(
        provider_id=booking.provider_id,
        date=booking.date,
        start_minute=booking.start_minute,
        end_minute=booking.start_minute + duration,
        booking_id=booking.id,
    )


def build_busy_index(
    snapshot: ScheduleSnapshot,
    tenant_id: int,
    provider_ids: Iterable[int],
    target_date: date,
    config: BookingConfig | None = None,
) -> dict[int, list[ResolvedInterval]]:
    """Map provider_id -> intervals sorted by start."""
    config = config or get_booking_config()
    index: dict[int, list[ResolvedInterval]] = {pid: [] for pid in provider_ids}

    for booking in snapshot.bookings:
        if booking.tenant_id != tenant_id or booking.date != target_date:
            continue
        if not booking.occupies_time:
            continue

        if booking.provider_id is None:
            if not booking.is_blocked:
                continue
            interval = resolve_interval(booking, snapshot, config)
            for intervals in index.values():
                intervals.append(interval)
            continue

        if booking.provider_id in index:
            index[booking.provider_id].append(resolve_interval(booking, snapshot, config))

    for intervals in index.values():
        intervals.sort(key=lambda i: (i.start_minute, i.end_minute))
    return index


def is_busy(
    intervals: Iterable[ResolvedInterval],
    start_minute: int,
    end_minute: int,
) -> bool:
    """True if any interval overlaps [start_minute, end_minute)."""
    return any(i.overlaps(start_minute, end_minute) for i in intervals)
