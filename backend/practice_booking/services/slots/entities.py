# backend/practice_booking/services/slots/entities.py
"""
Engine-side value objects.

The engine never touches the database: routers/services load rows into a
ScheduleSnapshot and every calculation is a pure function of it.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Mapping, Optional


BLOCKED_TIME_TYPE = "Blocked Time"


class BookingStatus(str, Enum):
    PENDING = "Pending"
    CONFIRMED = "Confirmed"
    COMPLETED = "Completed"
    MISSED = "Missed"
    CANCELLED = "Cancelled"
    BLOCKED = "Blocked"


@dataclass(frozen=True)
class Service:
    id: int
    name: str
    duration_minutes: int
    tenant_id: Optional[int] = None


@dataclass(frozen=True)
class Provider:
    id: int
    tenant_id: int
    name: str = ""
    is_active: bool = True

    @property
    def display_name(self) -> str:
        return self.name or f"Provider {self.id}"


@dataclass(frozen=True)
class WorkingWindow:
    """One contiguous shift; at most one per provider per weekday."""
    provider_id: int
    day_of_week: int  # 0 = Sunday
    start_minute: int
    end_minute: int
    is_working: bool = True


@dataclass(frozen=True)
class DayHours:
    """Business operating hours for one weekday."""
    enabled: bool
    start_hour: int
    end_hour: int


@dataclass(frozen=True)
class Booking:
    id: Optional[int]
    tenant_id: int
    provider_id: Optional[int]
    date: date
    start_minute: int
    status: BookingStatus = BookingStatus.PENDING
    service_type: str = ""
    duration_minutes: Optional[int] = None
    notes: Optional[str] = None
    deleted_at: Optional[datetime] = None

    @property
    def is_blocked(self) -> bool:
        return self.status == BookingStatus.BLOCKED or self.service_type == BLOCKED_TIME_TYPE

    @property
    def occupies_time(self) -> bool:
        """Cancelled and soft-deleted rows never occupy a provider."""
        return self.status != BookingStatus.CANCELLED and self.deleted_at is None


@dataclass(frozen=True)
class ResolvedInterval:
    """Normalized [start_minute, end_minute) on a date for a provider."""
    provider_id: Optional[int]
    date: date
    start_minute: int
    end_minute: int
    booking_id: Optional[int] = None

    def overlaps(self, start_minute: int, end_minute: int) -> bool:
        return start_minute < self.end_minute and end_minute > self.start_minute


@dataclass(frozen=True)
class TimeSlot:
    time: str  # "HH:MM"
    display_time: str  # "9:30 AM"
    is_available: bool
    qualified_capacity: int
    used_capacity: int


@dataclass(frozen=True)
class ProviderAssignment:
    provider_id: int
    provider_name: str


@dataclass(frozen=True)
class ScheduleSnapshot:
    """
    Consistent read-only view of one tenant's scheduling data.

    qualifications keeps (provider_id, service_id) pairs in their stored order.
    operating_hours maps weekday name -> DayHours; None means "default hours
    every day". duration_map maps appointment type -> minutes.
    """
    tenant_id: int
    services: tuple[Service, ...] = ()
    providers: tuple[Provider, ...] = ()
    qualifications: tuple[tuple[int, int], ...] = ()
    windows: tuple[WorkingWindow, ...] = ()
    bookings: tuple[Booking, ...] = ()
    operating_hours: Optional[Mapping[str, DayHours]] = None
    duration_map: Mapping[str, int] = field(default_factory=dict)

    def __post_init__(self):
        seen: set[tuple[int, int]] = set()
        for window in self.windows:
            if not window.is_working:
                continue
            key = (window.provider_id, window.day_of_week)
            if key in seen:
                raise ValueError(
                    f"Provider {window.provider_id} has more than one working "
                    f"window on weekday {window.day_of_week}"
                )
            seen.add(key)

    def get_service(self, service_id: int) -> Optional[Service]:
        for service in self.services:
            if service.id == service_id and service.tenant_id in (None, self.tenant_id):
                return service
        return None

    def bookings_on(self, target_date: date) -> list[Booking]:
        return [b for b in self.bookings if b.date == target_date]
