# backend/practice_booking/services/slots/__init__.py
"""
Availability and conflict-resolution engine.

Level 1: Candidate slots from operating hours (cached in Redis Sorted Sets)
Level 2: Capacity per slot from qualified, working, free providers
"""

from .config import BookingConfig, get_booking_config
from .calculator import calculate_day_slots, generate_candidate_slots
from .redis_store import SlotsRedisStore
from .invalidator import invalidate_tenant_cache
from .availability import (
    calculate_day_availability,
    check_time_slot,
    get_available_times,
    select_provider,
)
from .first_available import FirstAvailableDate, find_first_available_date
from .blocks import build_block_booking, validate_block
from .layout import LayoutBox, LayoutItem, compute_calendar_layout, layout_bookings

__all__ = [
    "BookingConfig",
    "get_booking_config",
    "calculate_day_slots",
    "generate_candidate_slots",
    "SlotsRedisStore",
    "invalidate_tenant_cache",
    "calculate_day_availability",
    "check_time_slot",
    "get_available_times",
    "select_provider",
    "FirstAvailableDate",
    "find_first_available_date",
    "build_block_booking",
    "validate_block",
    "LayoutBox",
    "LayoutItem",
    "compute_calendar_layout",
    "layout_bookings",
]
