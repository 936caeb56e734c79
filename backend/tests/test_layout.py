import pytest

from practice_booking.services.slots.entities import BookingStatus
from practice_booking.services.slots.layout import (
    LayoutItem,
    compute_calendar_layout,
    layout_bookings,
)

from .conftest import make_booking, make_snapshot


def at(key, hour, minute, duration):
    return LayoutItem(key=key, start_minute=hour * 60 + minute, duration_minutes=duration)


class TestColumns:
    def test_non_overlapping_take_full_width(self):
        boxes = compute_calendar_layout([at("a", 9, 0, 60), at("b", 10, 0, 30)], 9, 17)
        for box in boxes:
            assert (box.column, box.columns, box.left, box.width) == (0, 1, 0, 100)
            assert box.z_index == 10

    def test_overlapping_pair_splits(self):
        boxes = compute_calendar_layout([at("a", 9, 0, 60), at("b", 9, 30, 60)], 9, 17)
        assert [(b.column, b.columns) for b in boxes] == [(0, 2), (1, 2)]
        assert [b.width for b in boxes] == [50, 50]
        assert [b.left for b in boxes] == [0, 50]
        assert [b.z_index for b in boxes] == [10, 11]

    def test_column_reused_inside_cluster(self):
        items = [at("a", 9, 0, 60), at("b", 9, 30, 60), at("c", 10, 0, 60)]
        boxes = compute_calendar_layout(items, 9, 17)
        assert [b.column for b in boxes] == [0, 1, 0]
        assert all(b.columns == 2 for b in boxes)

    def test_clusters_are_independent(self):
        items = [at("a", 9, 0, 60), at("b", 9, 0, 60), at("c", 13, 0, 30)]
        boxes = compute_calendar_layout(items, 9, 17)
        assert [b.columns for b in boxes] == [2, 2, 1]
        assert boxes[2].width == 100

    def test_same_start_shorter_first(self):
        boxes = compute_calendar_layout([at("long", 9, 0, 60), at("short", 9, 0, 30)], 9, 17)
        by_key = {b.key: b for b in boxes}
        assert by_key["short"].column == 0
        assert by_key["long"].column == 1

    def test_identical_items_keep_input_order(self):
        boxes = compute_calendar_layout([at("x", 9, 0, 30), at("y", 9, 0, 30)], 9, 17)
        assert [(b.key, b.column) for b in boxes] == [("x", 0), ("y", 1)]

    def test_overlapping_boxes_never_share_a_column(self):
        items = [
            at(1, 9, 0, 90), at(2, 9, 30, 30), at(3, 10, 0, 60),
            at(4, 10, 0, 10), at(5, 10, 50, 40), at(6, 14, 0, 0),
        ]
        boxes = compute_calendar_layout(items, 9, 17)
        for i, a in enumerate(boxes):
            for b in boxes[i + 1:]:
                if a.start_minute < b.end_minute and a.end_minute > b.start_minute:
                    assert a.column != b.column
                    assert a.columns == b.columns

    def test_deterministic(self):
        items = [at(1, 9, 0, 90), at(2, 9, 30, 30), at(3, 10, 0, 60)]
        assert compute_calendar_layout(items, 9, 17) == compute_calendar_layout(items, 9, 17)


class TestVertical:
    def test_linear_mapping(self):
        (box,) = compute_calendar_layout([at("a", 9, 0, 60)], 9, 17)
        assert box.top == 0
        assert box.height == pytest.approx(12.5)

    def test_zero_duration_gets_floor(self):
        (box,) = compute_calendar_layout([at("a", 13, 0, 0)], 9, 17)
        assert box.top == pytest.approx(50)
        assert box.height == 2.0

    def test_box_stays_inside_window(self):
        (box,) = compute_calendar_layout([at("a", 16, 59, 0)], 9, 17)
        assert box.top + box.height <= 100

    def test_zero_duration_items_do_not_conflict(self):
        boxes = compute_calendar_layout([at("a", 10, 0, 0), at("b", 10, 0, 0)], 9, 17)
        assert all(b.width == 100 for b in boxes)


class TestEdgeCases:
    def test_empty(self):
        assert compute_calendar_layout([], 9, 17) == []

    def test_invalid_window(self):
        with pytest.raises(ValueError):
            compute_calendar_layout([at("a", 9, 0, 30)], 17, 9)


class TestLayoutBookings:
    def test_resolves_durations_and_skips_cancelled(self):
        bookings = [
            make_booking(1, 600, service_type="Checkup"),
            make_booking(2, 630, service_type="Cleaning"),
            make_booking(3, 600, status=BookingStatus.CANCELLED),
        ]
        boxes = layout_bookings(bookings, 9, 17, make_snapshot())
        assert [b.key for b in boxes] == [1, 2]
        assert boxes[0].end_minute == 660
        assert boxes[1].end_minute == 660
        assert [b.column for b in boxes] == [0, 1]
