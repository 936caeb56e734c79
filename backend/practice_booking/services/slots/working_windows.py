# backend/practice_booking/services/slots/working_windows.py
"""Provider working windows per weekday."""

from datetime import date
from typing import Iterable, Optional

from .config import day_of_week
from .entities import WorkingWindow


def get_working_window(
    windows: Iterable[WorkingWindow],
    provider_id: int,
    target_date: date,
) -> Optional[tuple[int, int]]:
    """
    (start_minute, end_minute) the provider works on target_date,
    or None if there is no enabled window for that weekday.
    """
    weekday = day_of_week(target_date)
    for window in windows:
        if (
            window.provider_id == provider_id
            and window.day_of_week == weekday
            and window.is_working
            and window.end_minute > window.start_minute
        ):
            return window.start_minute, window.end_minute
    return None


def window_covers(
    window: Optional[tuple[int, int]],
    start_minute: int,
    end_minute: int,
) -> bool:
    """True if [start_minute, end_minute) lies fully inside the window."""
    if window is None:
        return False
    window_start, window_end = window
    return window_start <= start_minute and end_minute <= window_end
