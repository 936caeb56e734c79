# backend/practice_booking/routers/bookings.py
# Deletes are soft (blocked time only); patient bookings change status instead.

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ..database import get_db
from ..models.generated import Appointments as DBAppointments
from ..schemas.bookings import (
    BlockTimeCreate,
    BlockTimeRead,
    BookingCreate,
    BookingRead,
    BookingStatusUpdate,
    ScheduleEntry,
)
from ..services.booking import (
    block_time,
    create_booking,
    delete_blocked_time,
    get_tenant_schedule,
    update_booking_status,
)
from ..services.snapshot import load_snapshot, row_to_booking
from ..services.slots.busy import resolve_interval
from ..services.slots.durations import strip_annotations
from ..services.slots.entities import BookingStatus
from ..services.slots.errors import (
    ConfigurationError,
    ConflictError,
    NoAvailabilityError,
    OverlapRejected,
)
from ..services.slots.config import minutes_to_time_str


router = APIRouter(prefix="/bookings", tags=["bookings"])


def _booking_read(obj: DBAppointments) -> BookingRead:
    return BookingRead(
        id=obj.id,
        tenant_id=obj.tenant_id,
        provider_id=obj.provider_id,
        provider_name=obj.provider.name if obj.provider else None,
        service_id=obj.service_id,
        service_type=obj.service_type,
        date=obj.date,
        time=obj.time,
        start_minute=obj.start_minute,
        duration_minutes=obj.duration_minutes,
        status=obj.status,
        notes=obj.notes,
        created_at=obj.created_at,
        updated_at=obj.updated_at,
    )


def _get_appointment(db: Session, id: int) -> DBAppointments:
    obj = db.get(DBAppointments, id)
    if not obj or obj.deleted_at is not None:
        raise HTTPException(status_code=404, detail="Not found")
    return obj


@router.post("/", response_model=BookingRead, status_code=status.HTTP_201_CREATED)
def create_booking_endpoint(
    data: BookingCreate,
    db: Session = Depends(get_db),
):
    """
    Create a booking with a strictly assigned provider.

    409 on "no provider free" and on "slot just taken"; the client should
    refresh the slot list in both cases.
    """
    if data.service_id is None and not data.service_name:
        raise HTTPException(status_code=400, detail="service_id or service_name required")

    try:
        obj = create_booking(
            db,
            tenant_id=data.tenant_id,
            target_date=data.date,
            time_str=data.time,
            patient_name=data.patient_name,
            service_id=data.service_id,
            service_name=data.service_name,
            status=data.status,
            notes=data.notes,
        )
    except ConfigurationError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Configuration Error: {e}",
        )
    except NoAvailabilityError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except ConflictError:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="This time slot was just taken",
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return _booking_read(obj)


@router.get("/schedule", response_model=list[ScheduleEntry])
def get_schedule(
    tenant_id: int,
    start_date: date,
    end_date: date,
    db: Session = Depends(get_db),
):
    """Lightweight schedule for calendar views (no patient data)."""
    if end_date < start_date:
        raise HTTPException(status_code=400, detail="end_date must not be before start_date")

    snapshot = load_snapshot(db, tenant_id, start_date, end_date)
    entries = []
    for obj in get_tenant_schedule(db, tenant_id, start_date, end_date):
        interval = resolve_interval(row_to_booking(obj), snapshot)
        is_blocked = obj.status == BookingStatus.BLOCKED.value
        entries.append(ScheduleEntry(
            id=obj.id,
            date=obj.date,
            time=obj.time,
            service_type=obj.service_type,
            status=obj.status,
            provider_id=obj.provider_id,
            provider_name=obj.provider.name if obj.provider else None,
            duration_minutes=interval.end_minute - interval.start_minute,
            display_notes=strip_annotations(obj.notes) if is_blocked else obj.notes,
        ))
    return entries


@router.get("/{id}", response_model=BookingRead)
def get_booking(id: int, db: Session = Depends(get_db)):
    return _booking_read(_get_appointment(db, id))


@router.patch("/{id}/status", response_model=BookingRead)
def patch_booking_status(
    id: int,
    data: BookingStatusUpdate,
    db: Session = Depends(get_db),
):
    obj = _get_appointment(db, id)
    try:
        obj = update_booking_status(db, obj, data.status)
    except ConflictError:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="This time slot was just taken",
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return _booking_read(obj)


@router.post("/blocks", response_model=BlockTimeRead, status_code=status.HTTP_201_CREATED)
def create_block(
    data: BlockTimeCreate,
    db: Session = Depends(get_db),
):
    """Block time for a provider, or for the whole practice without provider_id."""
    try:
        obj = block_time(
            db,
            tenant_id=data.tenant_id,
            target_date=data.date,
            start_time=data.start_time,
            end_time=data.end_time,
            provider_id=data.provider_id,
            reason=data.reason,
        )
    except OverlapRejected as e:
        conflict = e.conflicting
        detail = {"message": str(e)}
        if conflict is not None:
            detail["conflicting"] = {
                "id": conflict.booking_id,
                "start": minutes_to_time_str(conflict.start_minute),
                "end": minutes_to_time_str(conflict.end_minute),
            }
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=detail)
    except ConflictError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return obj


@router.delete("/blocks/{id}", response_model=BlockTimeRead)
def delete_block(id: int, db: Session = Depends(get_db)):
    """Soft delete blocked time."""
    obj = _get_appointment(db, id)
    if obj.status != BookingStatus.BLOCKED.value:
        raise HTTPException(status_code=404, detail="Blocked time not found")
    return delete_blocked_time(db, obj)
