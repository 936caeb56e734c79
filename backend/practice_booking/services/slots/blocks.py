# backend/practice_booking/services/slots/blocks.py
"""
Manual blocked time: overlap validation and legacy-compatible encoding.

A new block [start, end) is rejected when it overlaps any live Blocked
entry of the same provider on the same date. Tenant-wide blocks (no
provider) conflict with every block that day, and vice versa.
"""

from datetime import date
from typing import Iterable, Optional

from .config import BookingConfig, get_booking_config
from .durations import build_block_notes, has_annotation, parse_annotated_duration
from .entities import BLOCKED_TIME_TYPE, Booking, BookingStatus, ResolvedInterval
from .errors import MalformedDurationAnnotation, OverlapRejected


def _block_interval(booking: Booking, config: BookingConfig) -> ResolvedInterval:
    """Existing block as an interval; DURATION/END_TIME, else the blocked default."""
    if booking.duration_minutes is not None:
        duration = booking.duration_minutes
    elif has_annotation(booking.notes):
        try:
            duration = parse_annotated_duration(booking.notes, booking.start_minute, config)
        except MalformedDurationAnnotation:
            duration = config.blocked_default_duration_minutes
    else:
        duration = config.blocked_default_duration_minutes

    return ResolvedInterval(
        provider_id=booking.provider_id,
        date=booking.date,
        start_minute=booking.start_minute,
        end_minute=booking.start_minute + duration,
        booking_id=booking.id,
    )


def existing_block_intervals(
    bookings: Iterable[Booking],
    tenant_id: int,
    provider_id: Optional[int],
    target_date: date,
    config: BookingConfig | None = None,
) -> list[ResolvedInterval]:
    """Live Blocked intervals that a new block for provider_id must respect."""
    config = config or get_booking_config()
    intervals = []
    for booking in bookings:
        if booking.tenant_id != tenant_id or booking.date != target_date:
            continue
        if booking.status != BookingStatus.BLOCKED or booking.deleted_at is not None:
            continue
        if (
            provider_id is not None
            and booking.provider_id is not None
            and booking.provider_id != provider_id
        ):
            continue
        intervals.append(_block_interval(booking, config))
    return sorted(intervals, key=lambda i: i.start_minute)


def validate_block(
    bookings: Iterable[Booking],
    tenant_id: int,
    provider_id: Optional[int],
    target_date: date,
    start_minute: int,
    end_minute: int,
    config: BookingConfig | None = None,
) -> None:
    """
    Raise OverlapRejected if [start_minute, end_minute) overlaps a live block.

    Raises ValueError when end is not after start.
    """
    if end_minute <= start_minute:
        raise ValueError("End time must be after start time")

    for interval in existing_block_intervals(
        bookings, tenant_id, provider_id, target_date, config
    ):
        if interval.overlaps(start_minute, end_minute):
            raise OverlapRejected(
                "This time slot overlaps with an existing blocked time. "
                "Please choose a different time.",
                conflicting=interval,
            )


def build_block_booking(
    tenant_id: int,
    provider_id: Optional[int],
    target_date: date,
    start_minute: int,
    end_minute: int,
    reason: Optional[str] = None,
) -> Booking:
    """Blocked entry with structured duration and the legacy notes annotation."""
    duration = end_minute - start_minute
    return Booking(
        id=None,
        tenant_id=tenant_id,
        provider_id=provider_id,
        date=target_date,
        start_minute=start_minute,
        status=BookingStatus.BLOCKED,
        service_type=BLOCKED_TIME_TYPE,
        duration_minutes=duration,
        notes=build_block_notes(reason, end_minute, duration),
    )
