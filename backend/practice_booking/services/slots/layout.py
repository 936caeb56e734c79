# backend/practice_booking/services/slots/layout.py
"""
Calendar layout: place a day's appointments in one vertical day column.

Vertical: [start, end) mapped linearly onto the operating window as
top/height percentages, with a height floor so very short (or legacy
zero-length) entries stay clickable.

Horizontal: overlapping appointments form clusters; inside a cluster each
appointment takes the lowest column whose previous occupant has ended.
Every member of a cluster gets width 100 / columns_in_cluster.

Order: start time, then shorter first, then input order.
"""

from dataclasses import dataclass
from typing import Any, Iterable, Optional, Sequence

from .busy import resolve_interval
from .config import BookingConfig, get_booking_config
from .entities import Booking, ScheduleSnapshot


@dataclass(frozen=True)
class LayoutItem:
    key: Any
    start_minute: int
    duration_minutes: int

    @property
    def end_minute(self) -> int:
        return self.start_minute + max(self.duration_minutes, 0)


@dataclass(frozen=True)
class LayoutBox:
    key: Any
    start_minute: int
    end_minute: int
    column: int
    columns: int
    top: float  # percent
    height: float  # percent
    left: float  # percent
    width: float  # percent
    z_index: int


def _assign_columns(ordered: list[tuple[int, LayoutItem]]) -> dict[int, tuple[int, int]]:
    """position -> (column, columns_in_cluster)."""
    result: dict[int, tuple[int, int]] = {}
    cluster: list[tuple[int, int]] = []  # (position, column)
    column_ends: list[int] = []
    cluster_end: Optional[int] = None

    def close_cluster():
        width = max(len(column_ends), 1)
        for position, column in cluster:
            result[position] = (column, width)

    for position, item in ordered:
        if cluster_end is not None and item.start_minute >= cluster_end:
            close_cluster()
            cluster, column_ends, cluster_end = [], [], None

        for column, column_end in enumerate(column_ends):
            if column_end <= item.start_minute:
                column_ends[column] = item.end_minute
                break
        else:
            column = len(column_ends)
            column_ends.append(item.end_minute)

        cluster.append((position, column))
        cluster_end = item.end_minute if cluster_end is None else max(cluster_end, item.end_minute)

    if cluster:
        close_cluster()
    return result


def compute_calendar_layout(
    items: Sequence[LayoutItem],
    start_hour: int,
    end_hour: int,
    config: BookingConfig | None = None,
) -> list[LayoutBox]:
    """Boxes for items, returned in the same order as items."""
    if not items:
        return []
    if end_hour <= start_hour:
        raise ValueError(f"Invalid operating window: {start_hour}-{end_hour}")

    config = config or get_booking_config()
    window_start = start_hour * 60
    total = (end_hour - start_hour) * 60
    floor = config.min_layout_height_percent

    ordered = sorted(
        enumerate(items),
        key=lambda pair: (pair[1].start_minute, pair[1].end_minute - pair[1].start_minute, pair[0]),
    )
    columns = _assign_columns(ordered)

    boxes = []
    for position, item in enumerate(items):
        column, width_columns = columns[position]
        width = 100 / width_columns

        visible_start = min(max(item.start_minute, window_start), window_start + total)
        visible_end = min(max(item.end_minute, window_start), window_start + total)
        top = (visible_start - window_start) / total * 100
        height = max((visible_end - visible_start) / total * 100, floor)
        if top + height > 100:
            top = max(100 - height, 0.0)

        boxes.append(LayoutBox(
            key=item.key,
            start_minute=item.start_minute,
            end_minute=item.end_minute,
            column=column,
            columns=width_columns,
            top=top,
            height=height,
            left=column * width,
            width=width,
            z_index=10 + column,
        ))
    return boxes


def layout_bookings(
    bookings: Iterable[Booking],
    start_hour: int,
    end_hour: int,
    snapshot: ScheduleSnapshot | None = None,
    config: BookingConfig | None = None,
) -> list[LayoutBox]:
    """Resolve each booking's duration, then lay the day out."""
    config = config or get_booking_config()
    items = []
    for booking in bookings:
        if not booking.occupies_time:
            continue
        interval = resolve_interval(booking, snapshot, config)
        items.append(LayoutItem(
            key=booking.id,
            start_minute=interval.start_minute,
            duration_minutes=interval.end_minute - interval.start_minute,
        ))
    return compute_calendar_layout(items, start_hour, end_hour, config)
