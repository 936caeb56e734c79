# backend/practice_booking/services/snapshot.py
"""
Load a tenant's scheduling rows into the engine's ScheduleSnapshot.

The engine only ever sees this immutable snapshot; every read for one
request happens here, inside the caller's session.
"""

import logging
from datetime import date, datetime
from typing import Optional

from sqlalchemy.orm import Session

from ..models.generated import (
    AppointmentDurations as DBAppointmentDurations,
    Appointments as DBAppointments,
    OperatingHours as DBOperatingHours,
    ProviderSchedules as DBProviderSchedules,
    Providers as DBProviders,
    Services as DBServices,
    t_provider_services,
)
from .slots.config import time_str_to_minutes
from .slots.entities import (
    Booking,
    BookingStatus,
    DayHours,
    Provider,
    ScheduleSnapshot,
    Service,
    WorkingWindow,
)

logger = logging.getLogger(__name__)


def load_snapshot(
    db: Session,
    tenant_id: int,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> ScheduleSnapshot:
    """
    Snapshot of services, providers, qualifications, schedules,
    operating hours, duration map and bookings in [start_date, end_date].
    """
    services = tuple(
        Service(
            id=row.id,
            name=row.name,
            duration_minutes=row.duration_minutes,
            tenant_id=row.tenant_id,
        )
        for row in db.query(DBServices)
        .filter(DBServices.tenant_id == tenant_id, DBServices.is_active == 1)
        .order_by(DBServices.id)
        .all()
    )

    provider_rows = (
        db.query(DBProviders)
        .filter(DBProviders.tenant_id == tenant_id)
        .order_by(DBProviders.id)
        .all()
    )
    providers = tuple(
        Provider(id=row.id, tenant_id=row.tenant_id, name=row.name, is_active=bool(row.is_active))
        for row in provider_rows
    )
    provider_ids = [p.id for p in providers]

    qualifications = tuple(
        (row.provider_id, row.service_id)
        for row in db.query(t_provider_services)
        .filter(
            t_provider_services.c.provider_id.in_(provider_ids),
            t_provider_services.c.is_active == 1,
        )
        .order_by(t_provider_services.c.provider_id, t_provider_services.c.service_id)
        .all()
    ) if provider_ids else ()

    return ScheduleSnapshot(
        tenant_id=tenant_id,
        services=services,
        providers=providers,
        qualifications=qualifications,
        windows=_load_windows(db, provider_ids),
        bookings=_load_bookings(db, tenant_id, start_date, end_date),
        operating_hours=_load_operating_hours(db, tenant_id),
        duration_map=_load_duration_map(db, tenant_id),
    )


# ── Helpers ──────────────────────────────────────────────────────────────


def _load_windows(db: Session, provider_ids: list[int]) -> tuple[WorkingWindow, ...]:
    if not provider_ids:
        return ()

    windows = []
    rows = (
        db.query(DBProviderSchedules)
        .filter(DBProviderSchedules.provider_id.in_(provider_ids))
        .order_by(DBProviderSchedules.provider_id, DBProviderSchedules.day_of_week)
        .all()
    )
    for row in rows:
        try:
            start_minute = time_str_to_minutes(row.start_time)
            end_minute = time_str_to_minutes(row.end_time)
        except ValueError as e:
            logger.warning(f"Skipping schedule {row.id} of provider {row.provider_id}: {e}")
            continue
        windows.append(WorkingWindow(
            provider_id=row.provider_id,
            day_of_week=row.day_of_week,
            start_minute=start_minute,
            end_minute=end_minute,
            is_working=bool(row.is_working),
        ))
    return tuple(windows)


def row_to_booking(row: DBAppointments) -> Booking:
    """Appointment row as an engine Booking."""
    try:
        status = BookingStatus(row.status)
    except ValueError:
        logger.warning(f"Appointment {row.id} has unknown status {row.status!r}")
        status = BookingStatus.PENDING

    return Booking(
        id=row.id,
        tenant_id=row.tenant_id,
        provider_id=row.provider_id,
        date=date.fromisoformat(row.date),
        start_minute=row.start_minute,
        status=status,
        service_type=row.service_type or "",
        duration_minutes=row.duration_minutes,
        notes=row.notes,
        deleted_at=datetime.fromisoformat(row.deleted_at) if row.deleted_at else None,
    )


def _load_bookings(
    db: Session,
    tenant_id: int,
    start_date: Optional[date],
    end_date: Optional[date],
) -> tuple[Booking, ...]:
    query = db.query(DBAppointments).filter(
        DBAppointments.tenant_id == tenant_id,
        DBAppointments.deleted_at.is_(None),
        DBAppointments.status != BookingStatus.CANCELLED.value,
    )
    if start_date is not None:
        query = query.filter(DBAppointments.date >= start_date.isoformat())
    if end_date is not None:
        query = query.filter(DBAppointments.date <= end_date.isoformat())

    rows = query.order_by(DBAppointments.date, DBAppointments.start_minute, DBAppointments.id).all()
    return tuple(row_to_booking(row) for row in rows)


def _load_operating_hours(db: Session, tenant_id: int) -> Optional[dict[str, DayHours]]:
    rows = db.query(DBOperatingHours).filter(DBOperatingHours.tenant_id == tenant_id).all()
    if not rows:
        return None
    return {
        row.day_name.lower(): DayHours(
            enabled=bool(row.enabled),
            start_hour=row.start_hour,
            end_hour=row.end_hour,
        )
        for row in rows
    }


def _load_duration_map(db: Session, tenant_id: int) -> dict[str, int]:
    rows = (
        db.query(DBAppointmentDurations)
        .filter(DBAppointmentDurations.tenant_id == tenant_id)
        .all()
    )
    return {row.service_type: row.duration_minutes for row in rows}
