# backend/practice_booking/services/slots/availability.py
"""
Level 2: Service availability calculation.

Calculates which candidate slots can take a booking for a specific
service on a specific day, and which provider a new booking goes to.

For a slot [start, start + duration):
- qualified capacity = qualified providers whose working window covers it
- used capacity      = those of them already busy during it
- available          = used < qualified and the slot lies within operating hours

Takes into account:
- Candidate slots from operating hours (Level 1, optionally cached in Redis)
- Providers qualified for the service
- Provider working windows
- Existing bookings and blocked time
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Mapping, Optional

from redis import Redis

from .busy import build_busy_index, is_busy
from .calculator import calculate_day_slots, get_day_hours
from .config import (
    BookingConfig,
    get_booking_config,
    minutes_to_display_time,
    minutes_to_time_str,
    time_str_to_minutes,
)
from .entities import (
    Provider,
    ProviderAssignment,
    ResolvedInterval,
    ScheduleSnapshot,
    TimeSlot,
)
from .errors import ConfigurationError, NoAvailabilityError
from .qualification import resolve_qualified_providers
from .redis_store import SlotsRedisStore
from .working_windows import get_working_window, window_covers

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _DayContext:
    """Everything the capacity check needs for one (service, date)."""
    duration: int
    hours: Optional[tuple[int, int]]  # (opening, closing) minutes; None = closed
    qualified: list[Provider]
    windows: dict[int, Optional[tuple[int, int]]]
    busy: dict[int, list[ResolvedInterval]]


@dataclass(frozen=True)
class _SlotEvaluation:
    qualified_capacity: int
    used_capacity: int
    free: list[Provider]
    within_hours: bool

    @property
    def is_available(self) -> bool:
        return self.within_hours and self.used_capacity < self.qualified_capacity


def _open_minutes(
    snapshot: ScheduleSnapshot,
    target_date: date,
    config: BookingConfig,
) -> Optional[tuple[int, int]]:
    day_hours = get_day_hours(snapshot.operating_hours, target_date, config)
    if day_hours is None:
        return None
    return day_hours.start_hour * 60, day_hours.end_hour * 60


def _build_day_context(
    snapshot: ScheduleSnapshot,
    tenant_id: int,
    service_id: int,
    target_date: date,
    config: BookingConfig,
) -> _DayContext:
    service = snapshot.get_service(service_id)
    if service is None:
        raise ConfigurationError(f"Service {service_id} not found")

    qualified = resolve_qualified_providers(snapshot, tenant_id, service_id)
    provider_ids = [p.id for p in qualified]

    return _DayContext(
        duration=service.duration_minutes,
        hours=_open_minutes(snapshot, target_date, config),
        qualified=qualified,
        windows={
            pid: get_working_window(snapshot.windows, pid, target_date)
            for pid in provider_ids
        },
        busy=build_busy_index(snapshot, tenant_id, provider_ids, target_date, config),
    )


def _evaluate_slot(ctx: _DayContext, start_minute: int) -> _SlotEvaluation:
    end_minute = start_minute + ctx.duration
    qualified_capacity = 0
    used_capacity = 0
    free: list[Provider] = []

    for provider in ctx.qualified:
        if not window_covers(ctx.windows[provider.id], start_minute, end_minute):
            continue
        qualified_capacity += 1
        if is_busy(ctx.busy[provider.id], start_minute, end_minute):
            used_capacity += 1
        else:
            free.append(provider)

    within_hours = False
    if ctx.hours is not None:
        opening, closing = ctx.hours
        within_hours = opening <= start_minute and end_minute <= closing

    return _SlotEvaluation(
        qualified_capacity=qualified_capacity,
        used_capacity=used_capacity,
        free=free,
        within_hours=within_hours,
    )


def _to_time_slot(start_minute: int, evaluation: _SlotEvaluation, is_available: bool) -> TimeSlot:
    return TimeSlot(
        time=minutes_to_time_str(start_minute),
        display_time=minutes_to_display_time(start_minute),
        is_available=is_available,
        qualified_capacity=evaluation.qualified_capacity,
        used_capacity=evaluation.used_capacity,
    )


def _has_elapsed(target_date: date, start_minute: int, now: Optional[datetime]) -> bool:
    if now is None:
        return False
    if target_date != now.date():
        return target_date < now.date()
    return start_minute < now.hour * 60 + now.minute


# ── Public API ───────────────────────────────────────────────────────────


def check_time_slot(
    snapshot: ScheduleSnapshot,
    tenant_id: int,
    service_id: int,
    target_date: date,
    time_str: str,
    config: BookingConfig | None = None,
    now: datetime | None = None,
) -> TimeSlot:
    """
    Availability of one requested start time ("10:00 AM" or "10:00").

    When now is given, an elapsed start time is reported unavailable.
    """
    config = config or get_booking_config()
    start_minute = time_str_to_minutes(time_str)
    ctx = _build_day_context(snapshot, tenant_id, service_id, target_date, config)

    evaluation = _evaluate_slot(ctx, start_minute)
    is_available = evaluation.is_available and not _has_elapsed(target_date, start_minute, now)
    return _to_time_slot(start_minute, evaluation, is_available)


def calculate_day_availability(
    snapshot: ScheduleSnapshot,
    tenant_id: int,
    service_id: int,
    target_date: date,
    now: datetime,
    config: BookingConfig | None = None,
    redis: Redis | None = None,
) -> list[TimeSlot]:
    """
    TimeSlot for every candidate start time of the day, in time order.

    Closed days, past dates and elapsed slots produce no entries.
    """
    config = config or get_booking_config()
    ctx = _build_day_context(snapshot, tenant_id, service_id, target_date, config)

    if not ctx.qualified:
        logger.warning(
            f"No qualified providers: tenant={tenant_id}, service={service_id}"
        )

    times = _get_candidate_times(snapshot, tenant_id, target_date, config, now, redis)

    slots = []
    for time_str in times:
        start_minute = time_str_to_minutes(time_str)
        evaluation = _evaluate_slot(ctx, start_minute)
        slots.append(_to_time_slot(start_minute, evaluation, evaluation.is_available))
    return slots


def get_available_times(
    snapshot: ScheduleSnapshot,
    tenant_id: int,
    service_id: int,
    target_date: date,
    now: datetime,
    config: BookingConfig | None = None,
    redis: Redis | None = None,
) -> list[str]:
    """Only the bookable "HH:MM" start times."""
    slots = calculate_day_availability(
        snapshot, tenant_id, service_id, target_date, now, config, redis
    )
    return [slot.time for slot in slots if slot.is_available]


def select_provider(
    snapshot: ScheduleSnapshot,
    tenant_id: int,
    service_id: int,
    target_date: date,
    time_str: str,
    config: BookingConfig | None = None,
    load: Mapping[int, int] | None = None,
    now: datetime | None = None,
) -> ProviderAssignment:
    """
    Pick the provider for a new booking at target_date/time_str.

    Without load: first free qualified provider by id.
    With load (provider_id -> assigned bookings): least loaded, ties by id.

    Raises:
        ConfigurationError: no provider is qualified for the service at all
        NoAvailabilityError: nobody qualified is working and free at that time
    """
    config = config or get_booking_config()
    start_minute = time_str_to_minutes(time_str)
    ctx = _build_day_context(snapshot, tenant_id, service_id, target_date, config)

    if not ctx.qualified:
        logger.warning(
            f"No provider configured: tenant={tenant_id}, service={service_id}"
        )
        raise ConfigurationError("No provider configured for this service")

    if _has_elapsed(target_date, start_minute, now):
        raise NoAvailabilityError(f"{target_date} {time_str} is in the past")

    evaluation = _evaluate_slot(ctx, start_minute)
    if not evaluation.within_hours:
        raise NoAvailabilityError(
            f"{target_date} {time_str} is outside operating hours"
        )
    if not evaluation.free:
        raise NoAvailabilityError(
            f"No provider available for service {service_id} at {target_date} {time_str}"
        )

    if load:
        chosen = min(evaluation.free, key=lambda p: (load.get(p.id, 0), p.id))
    else:
        chosen = evaluation.free[0]

    logger.info(
        f"Provider selected: provider_id={chosen.id}, service={service_id}, "
        f"time={target_date} {time_str}, free={len(evaluation.free)}"
    )
    return ProviderAssignment(provider_id=chosen.id, provider_name=chosen.display_name)


# ── Candidate times (Level 1 with cache) ─────────────────────────────────


def _get_candidate_times(
    snapshot: ScheduleSnapshot,
    tenant_id: int,
    target_date: date,
    config: BookingConfig,
    now: datetime,
    redis: Redis | None,
) -> list[str]:
    """Get candidate times, using Redis cache when available."""
    if redis is not None:
        store = SlotsRedisStore(redis, config)
        cached = store.get_available_slots(tenant_id, target_date, now)
        if cached is not None:
            return cached

        # Cache miss: calculate full day (independent of now) and store
        if target_date < now.date():
            return []
        midnight = datetime.combine(target_date, datetime.min.time())
        slots = calculate_day_slots(snapshot.operating_hours, target_date, midnight, config)
        store.store_day_slots(tenant_id, target_date, slots)
        now_ts = now.replace(second=0, microsecond=0).timestamp()
        return [time_str for time_str, slot_ts in slots if slot_ts >= now_ts]

    # No Redis: calculate on the fly
    slots = calculate_day_slots(snapshot.operating_hours, target_date, now, config)
    return [time_str for time_str, _ in slots]
