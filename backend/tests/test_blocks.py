from datetime import datetime

import pytest

from practice_booking.services.slots.blocks import (
    build_block_booking,
    existing_block_intervals,
    validate_block,
)
from practice_booking.services.slots.durations import resolve_booking_duration
from practice_booking.services.slots.entities import BLOCKED_TIME_TYPE, BookingStatus
from practice_booking.services.slots.errors import OverlapRejected

from .conftest import MONDAY, TENANT_ID, make_booking


def block(id, start_minute, provider_id=1, notes=None, duration=None):
    return make_booking(
        id, start_minute,
        provider_id=provider_id,
        status=BookingStatus.BLOCKED,
        service_type=BLOCKED_TIME_TYPE,
        notes=notes,
        duration=duration,
    )


class TestValidateBlock:
    def test_overlap_rejected(self):
        existing = [block(7, 750, notes="Lunch | END_TIME:13:30 | DURATION:60")]
        with pytest.raises(OverlapRejected) as exc:
            validate_block(existing, TENANT_ID, 1, MONDAY, 720, 780)
        conflict = exc.value.conflicting
        assert (conflict.booking_id, conflict.start_minute, conflict.end_minute) == (7, 750, 810)

    def test_adjacent_allowed(self):
        existing = [block(7, 750, duration=60)]
        validate_block(existing, TENANT_ID, 1, MONDAY, 810, 840)
        validate_block(existing, TENANT_ID, 1, MONDAY, 720, 750)

    def test_other_provider_ignored(self):
        existing = [block(7, 750, provider_id=2, duration=60)]
        validate_block(existing, TENANT_ID, 1, MONDAY, 720, 780)

    def test_tenant_wide_block_conflicts_with_provider_block(self):
        existing = [block(7, 750, provider_id=None, duration=60)]
        with pytest.raises(OverlapRejected):
            validate_block(existing, TENANT_ID, 1, MONDAY, 720, 780)

    def test_new_tenant_wide_block_conflicts_with_any_provider_block(self):
        existing = [block(7, 750, provider_id=3, duration=60)]
        with pytest.raises(OverlapRejected):
            validate_block(existing, TENANT_ID, None, MONDAY, 720, 780)

    def test_unannotated_block_assumed_one_hour(self):
        existing = [block(7, 720, notes="Lunch")]
        with pytest.raises(OverlapRejected):
            validate_block(existing, TENANT_ID, 1, MONDAY, 765, 775)

    def test_patient_bookings_and_deleted_blocks_ignored(self):
        existing = [
            make_booking(1, 720, duration=60),
            make_booking(
                2, 720,
                status=BookingStatus.BLOCKED,
                service_type=BLOCKED_TIME_TYPE,
                duration=60,
                deleted_at=datetime(2026, 10, 1),
            ),
        ]
        assert existing_block_intervals(existing, TENANT_ID, 1, MONDAY) == []
        validate_block(existing, TENANT_ID, 1, MONDAY, 720, 780)

    def test_end_must_follow_start(self):
        with pytest.raises(ValueError):
            validate_block([], TENANT_ID, 1, MONDAY, 780, 780)


class TestBuildBlockBooking:
    def test_structured_and_annotated(self):
        booking = build_block_booking(TENANT_ID, 1, MONDAY, 720, 780, "Lunch")
        assert booking.status == BookingStatus.BLOCKED
        assert booking.service_type == BLOCKED_TIME_TYPE
        assert booking.duration_minutes == 60
        assert booking.notes == "Lunch | END_TIME:13:00 | DURATION:60"

    def test_legacy_readers_agree(self):
        booking = build_block_booking(TENANT_ID, 1, MONDAY, 720, 795, None)
        legacy = make_booking(
            None, 720,
            status=BookingStatus.BLOCKED,
            service_type=BLOCKED_TIME_TYPE,
            notes=booking.notes,
        )
        assert resolve_booking_duration(legacy) == 75
