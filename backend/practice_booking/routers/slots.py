# backend/practice_booking/routers/slots.py
"""
Slots API endpoints.

GET  /slots/day             - Capacity of every candidate slot for a service/day
GET  /slots/check           - Capacity of one requested time
GET  /slots/first-available - First date within the horizon with an open slot
GET  /slots/layout          - Calendar column layout for a day's appointments
POST /slots/invalidate      - Drop cached candidate slots (admin)
"""

from datetime import date, datetime, timedelta
from fastapi import APIRouter, Depends, HTTPException, Query
from redis import Redis
from sqlalchemy.orm import Session

from ..database import get_db
from ..redis_client import get_slots_redis
from ..schemas.slots import (
    DayLayoutResponse,
    FirstAvailableResponse,
    LayoutBoxInfo,
    SlotCheckResponse,
    SlotsDayResponse,
    SlotsInvalidateResponse,
    TimeSlotInfo,
)
from ..services.snapshot import load_snapshot
from ..services.slots import (
    calculate_day_availability,
    check_time_slot,
    find_first_available_date,
    get_booking_config,
    invalidate_tenant_cache,
    layout_bookings,
)
from ..services.slots.calculator import get_day_hours
from ..services.slots.config import minutes_to_time_str
from ..services.slots.errors import ConfigurationError
from ..services.slots.invalidator import get_affected_dates


router = APIRouter(prefix="/slots", tags=["slots"])


def _slot_info(slot) -> TimeSlotInfo:
    return TimeSlotInfo(
        time=slot.time,
        display_time=slot.display_time,
        is_available=slot.is_available,
        qualified_capacity=slot.qualified_capacity,
        used_capacity=slot.used_capacity,
    )


@router.get("/day", response_model=SlotsDayResponse)
def get_slots_day(
    tenant_id: int,
    service_id: int,
    target_date: date = Query(..., alias="date"),
    db: Session = Depends(get_db),
    redis: Redis | None = Depends(get_slots_redis),
):
    """Get capacity of every candidate slot for a service on a day (Level 2)."""
    config = get_booking_config()
    now = datetime.now()

    if target_date < now.date():
        raise HTTPException(status_code=400, detail="Date cannot be in the past")

    snapshot = load_snapshot(db, tenant_id, target_date, target_date)
    service = snapshot.get_service(service_id)
    if service is None:
        raise HTTPException(status_code=404, detail="Service not found")

    slots = calculate_day_availability(
        snapshot, tenant_id, service_id, target_date, now, config, redis
    )

    return SlotsDayResponse(
        tenant_id=tenant_id,
        service_id=service_id,
        date=target_date,
        service_duration_min=service.duration_minutes,
        slot_step_minutes=config.slot_step_minutes,
        slots=[_slot_info(slot) for slot in slots],
        available_times=[slot.time for slot in slots if slot.is_available],
    )


@router.get("/check", response_model=SlotCheckResponse)
def check_slot(
    tenant_id: int,
    service_id: int,
    time: str,
    target_date: date = Query(..., alias="date"),
    db: Session = Depends(get_db),
):
    """Check one requested time ("10:00 AM" or "10:00")."""
    snapshot = load_snapshot(db, tenant_id, target_date, target_date)
    try:
        slot = check_time_slot(
            snapshot, tenant_id, service_id, target_date, time, now=datetime.now()
        )
    except ConfigurationError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return SlotCheckResponse(
        tenant_id=tenant_id,
        service_id=service_id,
        date=target_date,
        slot=_slot_info(slot),
    )


@router.get("/first-available", response_model=FirstAvailableResponse)
def get_first_available(
    tenant_id: int,
    service_id: int,
    db: Session = Depends(get_db),
    redis: Redis | None = Depends(get_slots_redis),
):
    """First date within the booking horizon that has an open slot."""
    config = get_booking_config()
    now = datetime.now()
    today = now.date()

    snapshot = load_snapshot(
        db, tenant_id, today, today + timedelta(days=config.horizon_days)
    )
    try:
        result = find_first_available_date(
            snapshot, tenant_id, service_id, now, config, redis
        )
    except ConfigurationError as e:
        raise HTTPException(status_code=404, detail=str(e))

    return FirstAvailableResponse(
        tenant_id=tenant_id,
        service_id=service_id,
        date=result.date,
        found=result.found,
        available_times=result.available_times,
        horizon_days=config.horizon_days,
    )


@router.get("/layout", response_model=DayLayoutResponse)
def get_day_layout(
    tenant_id: int,
    target_date: date = Query(..., alias="date"),
    provider_id: int | None = None,
    db: Session = Depends(get_db),
):
    """Column layout of a day's appointments for calendar rendering."""
    config = get_booking_config()
    snapshot = load_snapshot(db, tenant_id, target_date, target_date)

    day_hours = get_day_hours(snapshot.operating_hours, target_date, config)
    if day_hours is None:
        start_hour, end_hour = config.default_start_hour, config.default_end_hour
    else:
        start_hour, end_hour = day_hours.start_hour, day_hours.end_hour

    bookings = snapshot.bookings_on(target_date)
    if provider_id is not None:
        bookings = [
            b for b in bookings
            if b.provider_id == provider_id or (b.provider_id is None and b.is_blocked)
        ]

    boxes = layout_bookings(bookings, start_hour, end_hour, snapshot, config)

    return DayLayoutResponse(
        tenant_id=tenant_id,
        date=target_date,
        start_hour=start_hour,
        end_hour=end_hour,
        boxes=[
            LayoutBoxInfo(
                appointment_id=box.key,
                start=minutes_to_time_str(box.start_minute),
                end=minutes_to_time_str(box.end_minute),
                column=box.column,
                columns=box.columns,
                top=box.top,
                height=box.height,
                left=box.left,
                width=box.width,
                z_index=box.z_index,
            )
            for box in boxes
        ],
    )


@router.post("/invalidate", response_model=SlotsInvalidateResponse)
def invalidate_slots_cache(
    tenant_id: int,
    date_start: date | None = None,
    date_end: date | None = None,
    redis: Redis | None = Depends(get_slots_redis),
):
    """Manually invalidate slots cache for tenant (admin endpoint)."""
    if redis is None:
        raise HTTPException(status_code=409, detail="Slots cache is disabled")

    dates = None
    if date_start is not None:
        dates = get_affected_dates(date_start, date_end or date_start)

    deleted = invalidate_tenant_cache(redis, tenant_id, dates)

    return SlotsInvalidateResponse(
        tenant_id=tenant_id,
        deleted_keys=deleted,
        dates=dates if dates else "all",
    )
