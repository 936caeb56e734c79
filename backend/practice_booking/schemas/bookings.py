# backend/practice_booking/schemas/bookings.py

import re
from datetime import date
from typing import Optional
from pydantic import BaseModel, Field, field_validator

from ..services.slots.entities import BookingStatus

_TIME_RE = re.compile(r"^\d{1,2}:\d{2}(\s*[AaPp][Mm])?$")
_MILITARY_RE = re.compile(r"^\d{2}:\d{2}$")


class BookingCreate(BaseModel):
    tenant_id: int
    service_id: Optional[int] = None
    service_name: Optional[str] = None

    date: date
    time: str = Field(description='"HH:MM" or "9:30 AM"')

    patient_name: str
    status: BookingStatus = BookingStatus.PENDING
    notes: Optional[str] = None

    @field_validator("time")
    @classmethod
    def validate_time(cls, v: str) -> str:
        """Validate time format."""
        if not _TIME_RE.match(v.strip()):
            raise ValueError("Time must be in HH:MM or H:MM AM/PM format")
        return v.strip()


class BookingRead(BaseModel):
    id: int

    tenant_id: int
    provider_id: Optional[int] = None
    provider_name: Optional[str] = None
    service_id: Optional[int] = None
    service_type: str

    date: str
    time: str
    start_minute: int
    duration_minutes: Optional[int] = None

    status: str
    notes: Optional[str] = None

    created_at: str
    updated_at: str

    model_config = {"from_attributes": True}


class BookingStatusUpdate(BaseModel):
    status: BookingStatus


class BlockTimeCreate(BaseModel):
    tenant_id: int
    provider_id: Optional[int] = None

    date: date
    start_time: str = Field(description='Military time "HH:MM"')
    end_time: str = Field(description='Military time "HH:MM"')

    reason: Optional[str] = None

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_military_time(cls, v: str) -> str:
        """Validate time format."""
        if not _MILITARY_RE.match(v):
            raise ValueError("Time must be in HH:MM format")
        return v


class BlockTimeRead(BaseModel):
    id: int

    tenant_id: int
    provider_id: Optional[int] = None

    date: str
    time: str
    duration_minutes: Optional[int] = None
    status: str
    notes: Optional[str] = None
    deleted_at: Optional[str] = None

    model_config = {"from_attributes": True}


class ScheduleEntry(BaseModel):
    """Lightweight, PII-free appointment for calendar rendering."""
    id: int
    date: str
    time: str
    service_type: str
    status: str
    provider_id: Optional[int] = None
    provider_name: Optional[str] = None
    duration_minutes: int
    display_notes: Optional[str] = None
