# backend/practice_booking/services/booking.py
"""
Booking write flows around the availability engine.

create_booking:
  1. Resolve service (missing → ConfigurationError)
  2. Snapshot the day, select a qualified, working, free provider
  3. Insert; the partial unique index on (provider_id, date, start_minute)
     plus a post-insert overlap check turn a lost race into ConflictError
  4. Emit booking_created (best-effort)

block_time / delete_blocked_time / update_booking_status cover the
operational side: manual blocks (soft-deleted, never removed) and status
transitions.
"""

import logging
from datetime import date, datetime
from typing import Mapping, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..models.generated import (
    Appointments as DBAppointments,
    Services as DBServices,
)
from .events import emit_event
from .snapshot import load_snapshot, row_to_booking
from .slots.availability import select_provider
from .slots.blocks import build_block_booking, validate_block
from .slots.busy import resolve_interval
from .slots.config import BookingConfig, get_booking_config, minutes_to_time_str, time_str_to_minutes
from .slots.entities import BookingStatus, ScheduleSnapshot
from .slots.errors import ConfigurationError, ConflictError

logger = logging.getLogger(__name__)

# Statuses an operator may move a patient booking to
OPERATIONAL_STATUSES = {
    BookingStatus.PENDING,
    BookingStatus.CONFIRMED,
    BookingStatus.COMPLETED,
    BookingStatus.MISSED,
    BookingStatus.CANCELLED,
}


def _resolve_service(
    db: Session,
    tenant_id: int,
    service_id: Optional[int],
    service_name: Optional[str],
) -> DBServices:
    query = db.query(DBServices).filter(
        DBServices.tenant_id == tenant_id,
        DBServices.is_active == 1,
    )
    if service_id is not None:
        service = query.filter(DBServices.id == service_id).first()
    elif service_name:
        service = query.filter(DBServices.name == service_name).first()
    else:
        raise ValueError("service_id or service_name required")

    if not service:
        label = service_id if service_id is not None else service_name
        logger.error(f"Service not found: tenant={tenant_id}, service={label!r}")
        raise ConfigurationError(f"Service '{label}' not found")
    return service


def _overlapping_rows(
    db: Session,
    row: DBAppointments,
    snapshot: ScheduleSnapshot,
    config: BookingConfig,
) -> list[DBAppointments]:
    """
    Other live rows of the same provider on the same date overlapping row.

    Durations resolve through the snapshot, the same way the capacity
    check resolved them when the provider was selected.
    """
    if row.provider_id is None:
        return []

    mine = resolve_interval(row_to_booking(row), snapshot, config)
    others = (
        db.query(DBAppointments)
        .filter(
            DBAppointments.tenant_id == row.tenant_id,
            DBAppointments.date == row.date,
            DBAppointments.id != row.id,
            DBAppointments.deleted_at.is_(None),
            DBAppointments.status != BookingStatus.CANCELLED.value,
            (DBAppointments.provider_id == row.provider_id)
            | (
                DBAppointments.provider_id.is_(None)
                & (DBAppointments.status == BookingStatus.BLOCKED.value)
            ),
        )
        .all()
    )
    return [
        other for other in others
        if resolve_interval(row_to_booking(other), snapshot, config).overlaps(
            mine.start_minute, mine.end_minute
        )
    ]


def create_booking(
    db: Session,
    tenant_id: int,
    target_date: date,
    time_str: str,
    patient_name: str,
    service_id: Optional[int] = None,
    service_name: Optional[str] = None,
    status: BookingStatus = BookingStatus.PENDING,
    notes: Optional[str] = None,
    now: Optional[datetime] = None,
    load: Mapping[int, int] | None = None,
    config: BookingConfig | None = None,
) -> DBAppointments:
    """
    Create a patient booking with a strictly assigned provider.

    Raises:
        ConfigurationError: unknown service or nobody qualified for it
        NoAvailabilityError: nobody qualified is free at that time
        ConflictError: the slot was taken concurrently
    """
    config = config or get_booking_config()
    now = now or datetime.now()

    if status not in (BookingStatus.PENDING, BookingStatus.CONFIRMED):
        raise ValueError(f"New bookings start as Pending or Confirmed, got {status.value}")

    service = _resolve_service(db, tenant_id, service_id, service_name)
    start_minute = time_str_to_minutes(time_str)

    snapshot = load_snapshot(db, tenant_id, target_date, target_date)
    assignment = select_provider(
        snapshot, tenant_id, service.id, target_date, time_str,
        config=config, load=load, now=now,
    )

    row = DBAppointments(
        tenant_id=tenant_id,
        provider_id=assignment.provider_id,
        service_id=service.id,
        date=target_date.isoformat(),
        time=minutes_to_time_str(start_minute),
        start_minute=start_minute,
        duration_minutes=service.duration_minutes,
        service_type=service.name,
        status=status.value,
        patient_name=patient_name,
        notes=notes,
    )
    db.add(row)

    try:
        db.flush()
    except IntegrityError:
        db.rollback()
        logger.warning(
            f"Booking race lost: provider_id={assignment.provider_id}, "
            f"time={target_date} {time_str}"
        )
        raise ConflictError("This time slot was just taken")

    if _overlapping_rows(db, row, snapshot, config):
        db.rollback()
        logger.warning(
            f"Booking overlaps after insert: provider_id={assignment.provider_id}, "
            f"time={target_date} {time_str}"
        )
        raise ConflictError("This time slot was just taken")

    db.commit()
    db.refresh(row)

    logger.info(
        f"Booking created: booking_id={row.id}, tenant_id={tenant_id}, "
        f"service={service.name}, provider_id={assignment.provider_id}, "
        f"time={target_date} {row.time}"
    )

    emit_event("booking_created", {
        "booking_id": row.id,
        "tenant_id": tenant_id,
        "provider_id": assignment.provider_id,
        "provider_name": assignment.provider_name,
        "service_name": service.name,
        "date": row.date,
        "time": row.time,
    })

    return row


def block_time(
    db: Session,
    tenant_id: int,
    target_date: date,
    start_time: str,
    end_time: str,
    provider_id: Optional[int] = None,
    reason: Optional[str] = None,
    config: BookingConfig | None = None,
) -> DBAppointments:
    """
    Block [start_time, end_time) for a provider (or the whole practice).

    Raises:
        ValueError: end not after start
        OverlapRejected: overlaps an existing block
        ConflictError: a live booking of the provider starts at the same instant
    """
    config = config or get_booking_config()
    start_minute = time_str_to_minutes(start_time)
    end_minute = time_str_to_minutes(end_time)

    snapshot = load_snapshot(db, tenant_id, target_date, target_date)
    validate_block(
        snapshot.bookings, tenant_id, provider_id, target_date,
        start_minute, end_minute, config,
    )

    block = build_block_booking(
        tenant_id, provider_id, target_date, start_minute, end_minute, reason
    )
    row = DBAppointments(
        tenant_id=tenant_id,
        provider_id=provider_id,
        date=target_date.isoformat(),
        time=minutes_to_time_str(start_minute),
        start_minute=start_minute,
        duration_minutes=block.duration_minutes,
        service_type=block.service_type,
        status=block.status.value,
        patient_name="Blocked",
        notes=block.notes,
    )
    db.add(row)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("A booking already starts at this time")
    db.refresh(row)

    logger.info(
        f"Time blocked: id={row.id}, tenant_id={tenant_id}, provider_id={provider_id}, "
        f"date={row.date}, {minutes_to_time_str(start_minute)}-{minutes_to_time_str(end_minute)}"
    )
    emit_event("block_created", {
        "booking_id": row.id,
        "tenant_id": tenant_id,
        "provider_id": provider_id,
        "date": row.date,
        "time": row.time,
    })
    return row


def delete_blocked_time(
    db: Session,
    row: DBAppointments,
    now: Optional[datetime] = None,
) -> DBAppointments:
    """Soft delete a Blocked row by stamping deleted_at."""
    if row.status != BookingStatus.BLOCKED.value:
        raise ValueError(f"Appointment {row.id} is not blocked time")

    now = now or datetime.now()
    row.deleted_at = now.isoformat(timespec="seconds")
    row.updated_at = now.strftime("%Y-%m-%d %H:%M:%S")
    db.commit()
    db.refresh(row)

    logger.info(f"Blocked time soft-deleted: id={row.id}, tenant_id={row.tenant_id}")
    return row


def update_booking_status(
    db: Session,
    row: DBAppointments,
    status: BookingStatus,
    now: Optional[datetime] = None,
) -> DBAppointments:
    """
    Move a patient booking to another operational status.

    Raises:
        ValueError: blocked rows, or a target status that is not operational
        ConflictError: reactivating a cancelled booking whose slot is taken
    """
    if row.status == BookingStatus.BLOCKED.value or status not in OPERATIONAL_STATUSES:
        raise ValueError(f"Cannot move appointment {row.id} from {row.status} to {status.value}")

    now = now or datetime.now()
    previous = row.status
    row.status = status.value
    row.updated_at = now.strftime("%Y-%m-%d %H:%M:%S")
    try:
        db.flush()
    except IntegrityError:
        db.rollback()
        raise ConflictError("This time slot was just taken")

    # Reactivation: the slot may have been taken by a booking starting at another minute
    if previous == BookingStatus.CANCELLED.value and status != BookingStatus.CANCELLED:
        target_date = date.fromisoformat(row.date)
        snapshot = load_snapshot(db, row.tenant_id, target_date, target_date)
        if _overlapping_rows(db, row, snapshot, get_booking_config()):
            db.rollback()
            logger.warning(f"Reactivation overlaps a live booking: id={row.id}")
            raise ConflictError("This time slot was just taken")

    db.commit()
    db.refresh(row)

    logger.info(f"Booking status changed: id={row.id}, {previous} → {status.value}")
    return row


def get_tenant_schedule(
    db: Session,
    tenant_id: int,
    start_date: date,
    end_date: date,
) -> list[DBAppointments]:
    """Live appointments (including Cancelled, excluding soft-deleted) in range."""
    return (
        db.query(DBAppointments)
        .filter(
            DBAppointments.tenant_id == tenant_id,
            DBAppointments.deleted_at.is_(None),
            DBAppointments.date >= start_date.isoformat(),
            DBAppointments.date <= end_date.isoformat(),
        )
        .order_by(DBAppointments.date, DBAppointments.start_minute, DBAppointments.id)
        .all()
    )
