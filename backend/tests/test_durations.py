import pytest

from practice_booking.services.slots.config import BookingConfig
from practice_booking.services.slots.durations import (
    build_block_notes,
    has_annotation,
    lookup_duration,
    parse_annotated_duration,
    parse_duration_annotation,
    parse_end_time_annotation,
    resolve_booking_duration,
    strip_annotations,
)
from practice_booking.services.slots.entities import BLOCKED_TIME_TYPE, BookingStatus
from practice_booking.services.slots.errors import MalformedDurationAnnotation

from .conftest import CHECKUP, CLEANING, make_booking


def blocked(start_minute, notes=None, duration=None):
    return make_booking(
        1,
        start_minute,
        status=BookingStatus.BLOCKED,
        service_type=BLOCKED_TIME_TYPE,
        notes=notes,
        duration=duration,
    )


class TestAnnotationParsers:
    def test_duration(self):
        assert parse_duration_annotation("Lunch | END_TIME:13:00 | DURATION:60") == 60
        assert parse_duration_annotation("duration: 45") == 45
        assert parse_duration_annotation("nothing here") is None
        assert parse_duration_annotation(None) is None

    def test_end_time(self):
        assert parse_end_time_annotation("END_TIME:13:00") == 780
        assert parse_end_time_annotation("Meeting | END_TIME:9:30") == 570
        assert parse_end_time_annotation("END_TIME:13:75") is None
        assert parse_end_time_annotation("") is None

    def test_strict_prefers_duration(self):
        assert parse_annotated_duration("END_TIME:13:00 | DURATION:90", 720) == 90

    def test_strict_end_time_when_duration_not_allowed(self):
        assert parse_annotated_duration(
            "END_TIME:13:00 | DURATION:90", 720, allow_duration=False
        ) == 60

    def test_end_time_before_start_is_malformed(self):
        with pytest.raises(MalformedDurationAnnotation):
            parse_annotated_duration("END_TIME:11:00", 720)

    def test_end_time_beyond_cap_is_malformed(self):
        # 00:00 -> 09:00 is 540 minutes, above the 480 cap
        with pytest.raises(MalformedDurationAnnotation):
            parse_annotated_duration("END_TIME:09:00", 0)

    def test_cap_is_configurable(self):
        config = BookingConfig(max_derived_duration_minutes=600)
        assert parse_annotated_duration("END_TIME:09:00", 0, config) == 540

    def test_no_annotation_is_malformed(self):
        with pytest.raises(MalformedDurationAnnotation):
            parse_annotated_duration("just text", 600)

    def test_has_annotation(self):
        assert has_annotation("x | DURATION:5")
        assert has_annotation("END_TIME:10:00")
        assert not has_annotation("dentist lunch")
        assert not has_annotation(None)


class TestBlockNotes:
    def test_build(self):
        assert build_block_notes("Lunch", 780, 60) == "Lunch | END_TIME:13:00 | DURATION:60"

    def test_build_default_reason(self):
        notes = build_block_notes("  ", 600, 30)
        assert notes.startswith("Time blocked by provider | ")
        assert parse_duration_annotation(notes) == 30

    def test_strip(self):
        assert strip_annotations("Lunch | END_TIME:13:00 | DURATION:60") == "Lunch"
        assert strip_annotations("END_TIME:13:00 | DURATION:60") == "Blocked time"
        assert strip_annotations(None) == ""


class TestLookupDuration:
    def test_exact_then_case_insensitive(self):
        durations = {"Cleaning": 30, "deep cleaning": 90}
        assert lookup_duration(durations, "Cleaning") == 30
        assert lookup_duration(durations, "Deep Cleaning") == 90
        assert lookup_duration(durations, "X-Ray") is None
        assert lookup_duration(None, "Cleaning") is None


class TestResolveBookingDuration:
    def test_structured_duration_wins(self):
        booking = blocked(720, notes="DURATION:90", duration=45)
        assert resolve_booking_duration(booking) == 45

    def test_blocked_duration_annotation(self):
        assert resolve_booking_duration(blocked(720, notes="Lunch | DURATION:90")) == 90

    def test_blocked_end_time_annotation(self):
        assert resolve_booking_duration(blocked(720, notes="Lunch | END_TIME:13:00")) == 60

    def test_legacy_unannotated_block(self):
        assert resolve_booking_duration(blocked(720, notes="Lunch")) == 30

    def test_malformed_block_falls_back_to_default(self):
        assert resolve_booking_duration(blocked(720, notes="END_TIME:11:00")) == 60

    def test_patient_booking_end_time(self):
        booking = make_booking(1, 600, notes="Running late | END_TIME:10:45")
        assert resolve_booking_duration(booking, services=(CLEANING,)) == 45

    def test_patient_booking_uses_service_duration(self):
        booking = make_booking(1, 600, service_type="Checkup")
        assert resolve_booking_duration(booking, services=(CLEANING, CHECKUP)) == 60
        booking = make_booking(2, 600, service_type="Cleaning")
        assert resolve_booking_duration(booking, services=(CLEANING, CHECKUP)) == 30

    def test_patient_booking_uses_duration_map(self):
        booking = make_booking(1, 600, service_type="Whitening")
        assert resolve_booking_duration(booking, duration_map={"whitening": 75}) == 75

    def test_unmapped_type_uses_default(self):
        booking = make_booking(1, 600, service_type="Mystery")
        assert resolve_booking_duration(booking) == 60
