# backend/practice_booking/schemas/slots.py
"""
Pydantic schemas for slots API.
"""

from datetime import date
from typing import Optional
from pydantic import BaseModel, Field


class TimeSlotInfo(BaseModel):
    """Availability of one candidate start time."""
    time: str  # "HH:MM"
    display_time: str  # "9:30 AM"
    is_available: bool
    qualified_capacity: int
    used_capacity: int

    model_config = {"from_attributes": True}


class SlotsDayResponse(BaseModel):
    """Response with detailed slots for a day (Level 2)."""
    tenant_id: int
    service_id: int
    date: date
    service_duration_min: int
    slot_step_minutes: int = Field(description="Candidate grid step in minutes")
    slots: list[TimeSlotInfo]
    available_times: list[str]

    model_config = {"from_attributes": True}


class SlotCheckResponse(BaseModel):
    """Availability of a single requested time."""
    tenant_id: int
    service_id: int
    date: date
    slot: TimeSlotInfo


class FirstAvailableResponse(BaseModel):
    """First date in the search horizon with an open slot."""
    tenant_id: int
    service_id: int
    date: date
    found: bool = Field(description="False means the horizon was exhausted and date is today")
    available_times: list[str]
    horizon_days: int


class LayoutBoxInfo(BaseModel):
    """Position of one appointment in a rendered day column (percentages)."""
    appointment_id: Optional[int] = None
    start: str
    end: str
    column: int
    columns: int
    top: float
    height: float
    left: float
    width: float
    z_index: int


class DayLayoutResponse(BaseModel):
    tenant_id: int
    date: date
    start_hour: int
    end_hour: int
    boxes: list[LayoutBoxInfo]


class SlotsInvalidateResponse(BaseModel):
    tenant_id: int
    deleted_keys: int
    dates: list[date] | str
