# backend/practice_booking/services/slots/durations.py
"""
Booking duration resolution.

Rows written before appointments had a structured duration column carry
their length inside the free-text notes:

    "Lunch | END_TIME:13:00 | DURATION:60"

Resolution order for a booking:
  1. structured duration_minutes
  2. blocked time: DURATION:<minutes> annotation
  3. END_TIME:HH:MM annotation, accepted when end - start is in (0, cap]
  4. service duration / duration map by appointment type, else defaults
     (60 for services, 30 for un-annotated legacy blocks)

The notes codec is kept only for backward compatibility; new rows always
store duration_minutes as well.
"""

import logging
import re
from typing import Iterable, Mapping, Optional

from .config import BookingConfig, get_booking_config, minutes_to_time_str
from .entities import Booking, Service
from .errors import MalformedDurationAnnotation

logger = logging.getLogger(__name__)

DURATION_RE = re.compile(r"DURATION:\s*(\d+)", re.IGNORECASE)
END_TIME_RE = re.compile(r"END_TIME:\s*(\d{1,2}):(\d{2})", re.IGNORECASE)
ANNOTATION_RE = re.compile(r"\b(?:DURATION|END_TIME)\s*:", re.IGNORECASE)

_STRIP_END_TIME_RE = re.compile(r"\s*\|?\s*END_TIME:\s*\d{1,2}:\d{2}\s*", re.IGNORECASE)
_STRIP_DURATION_RE = re.compile(r"\s*\|?\s*DURATION:\s*\d+\s*", re.IGNORECASE)

DEFAULT_BLOCK_REASON = "Time blocked by provider"


# ── Annotation codec ─────────────────────────────────────────────────────


def parse_duration_annotation(notes: Optional[str]) -> Optional[int]:
    """Extract DURATION:<minutes> from notes, or None."""
    if not notes:
        return None
    match = DURATION_RE.search(notes)
    if not match:
        return None
    return int(match.group(1))


def parse_end_time_annotation(notes: Optional[str]) -> Optional[int]:
    """Extract END_TIME:HH:MM from notes as minutes since midnight, or None."""
    if not notes:
        return None
    match = END_TIME_RE.search(notes)
    if not match:
        return None
    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 24 or minutes > 59:
        return None
    return hours * 60 + minutes


def parse_annotated_duration(
    notes: Optional[str],
    start_minute: int,
    config: BookingConfig | None = None,
    allow_duration: bool = True,
) -> int:
    """
    Strict parser: DURATION first (if allowed), then END_TIME.

    Raises MalformedDurationAnnotation when neither yields a usable value.
    """
    config = config or get_booking_config()

    if allow_duration:
        duration = parse_duration_annotation(notes)
        if duration is not None:
            return duration

    end_minute = parse_end_time_annotation(notes)
    if end_minute is not None:
        derived = end_minute - start_minute
        if 0 < derived <= config.max_derived_duration_minutes:
            return derived
        raise MalformedDurationAnnotation(
            f"END_TIME gives {derived} min, outside (0, {config.max_derived_duration_minutes}]"
        )

    raise MalformedDurationAnnotation(f"No duration annotation in notes: {notes!r}")


def has_annotation(notes: Optional[str]) -> bool:
    return bool(notes and ANNOTATION_RE.search(notes))


def build_block_notes(
    reason: Optional[str],
    end_minute: int,
    duration_minutes: int,
) -> str:
    """Encode a block's end time and duration the way legacy readers expect."""
    text = (reason or "").strip() or DEFAULT_BLOCK_REASON
    return f"{text} | END_TIME:{minutes_to_time_str(end_minute)} | DURATION:{duration_minutes}"


def strip_annotations(notes: Optional[str]) -> str:
    """Notes without END_TIME/DURATION markers, for display."""
    if not notes:
        return ""
    cleaned = _STRIP_END_TIME_RE.sub(" ", notes)
    cleaned = _STRIP_DURATION_RE.sub(" ", cleaned)
    cleaned = " ".join(cleaned.split()).strip(" |")
    return cleaned or "Blocked time"


# ── Resolution ───────────────────────────────────────────────────────────


def lookup_duration(
    duration_map: Mapping[str, int] | None,
    appointment_type: str,
) -> Optional[int]:
    """Exact match first, then case-insensitive."""
    if not duration_map or not appointment_type:
        return None
    if appointment_type in duration_map:
        return duration_map[appointment_type]
    lowered = appointment_type.lower()
    for key, value in duration_map.items():
        if key.lower() == lowered:
            return value
    return None


def resolve_booking_duration(
    booking: Booking,
    duration_map: Mapping[str, int] | None = None,
    services: Iterable[Service] = (),
    config: BookingConfig | None = None,
) -> int:
    """Resolve how many minutes a booking occupies."""
    config = config or get_booking_config()

    if booking.duration_minutes is not None:
        return booking.duration_minutes

    if booking.is_blocked:
        if not has_annotation(booking.notes):
            return config.legacy_block_duration_minutes
        try:
            return parse_annotated_duration(booking.notes, booking.start_minute, config)
        except MalformedDurationAnnotation as e:
            logger.warning(f"Booking {booking.id}: {e}; using default duration")
            mapped = lookup_duration(duration_map, booking.service_type)
            return mapped if mapped is not None else config.default_service_duration_minutes

    if has_annotation(booking.notes):
        try:
            return parse_annotated_duration(
                booking.notes, booking.start_minute, config, allow_duration=False
            )
        except MalformedDurationAnnotation as e:
            logger.warning(f"Booking {booking.id}: {e}; using default duration")

    for service in services:
        if service.name == booking.service_type:
            return service.duration_minutes

    mapped = lookup_duration(duration_map, booking.service_type)
    if mapped is not None:
        return mapped
    return config.default_service_duration_minutes
