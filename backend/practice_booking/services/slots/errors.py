# backend/practice_booking/services/slots/errors.py
"""
Scheduling error taxonomy.

ConfigurationError    - no provider can ever serve the request (hard failure)
NoAvailabilityError   - qualified providers exist, none free at that instant
ConflictError         - slot claimed between read and write (retry with refresh)
OverlapRejected       - manual block overlaps an existing block
MalformedDurationAnnotation - notes annotation unparseable (recovered locally)
"""

from typing import Optional

from .entities import ResolvedInterval


class SchedulingError(Exception):
    """Base class for availability engine errors."""


class ConfigurationError(SchedulingError):
    """No provider is configured for the requested service."""


class NoAvailabilityError(SchedulingError):
    """Qualified providers exist but none is free/working at the requested time."""


class ConflictError(SchedulingError):
    """The persistence layer rejected the booking: the slot was just taken."""


class OverlapRejected(SchedulingError):
    """A manual block overlaps an existing block."""

    def __init__(self, message: str, conflicting: Optional[ResolvedInterval] = None):
        super().__init__(message)
        self.conflicting = conflicting


class MalformedDurationAnnotation(SchedulingError):
    """A notes field carries an annotation none of the parsers accept."""
