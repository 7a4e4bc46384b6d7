"""Grid Builder: the ordered cells and hour slots a calendar view renders."""
from __future__ import annotations
import calendar
from datetime import date, datetime, timedelta
from typing import Iterable, List, Tuple

from .formatting import hour_label
from .models import Event, HourSlot, MonthCell, has_valid_times

MONTH_GRID_CELLS = 42  # fixed 6x7 grid


def _as_date(value: date) -> date:
    return value.date() if isinstance(value, datetime) else value


def _weekday_sunday_first(day: date) -> int:
    # date.weekday() is Monday=0; the grid counts from Sunday=0
    return (day.weekday() + 1) % 7


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def month_range(reference: date) -> Tuple[date, date]:
    """First and last calendar day of the month containing ``reference``."""
    first = _as_date(reference).replace(day=1)
    last = first.replace(day=days_in_month(first.year, first.month))
    return first, last


def build_month_grid(reference: date, events: Iterable[Event]) -> List[MonthCell]:
    """
    Returns exactly 42 cells for the month containing ``reference``.

    Leading and trailing cells belong to the adjacent months and always carry
    an empty event list, even when events exist on those dates.
    """
    first, last = month_range(reference)
    events = [e for e in events if has_valid_times(e)]

    leading_count = _weekday_sunday_first(first)
    cells: List[MonthCell] = []

    # Previous month, built walking backwards from the 1st then reversed
    for i in range(1, leading_count + 1):
        cells.insert(0, MonthCell(date=first - timedelta(days=i), is_current_period=False))

    for day_num in range(1, last.day + 1):
        day = first.replace(day=day_num)
        day_events = [
            e for e in events
            if e.start.year == day.year and e.start.month == day.month and e.start.day == day.day
        ]
        cells.append(MonthCell(date=day, is_current_period=True, events=day_events))

    trailing_count = MONTH_GRID_CELLS - len(cells)
    for i in range(1, trailing_count + 1):
        cells.append(MonthCell(date=last + timedelta(days=i), is_current_period=False))

    return cells


def build_week_grid(reference: date) -> List[date]:
    reference = _as_date(reference)
    start = reference - timedelta(days=_weekday_sunday_first(reference))
    return [start + timedelta(days=i) for i in range(7)]


def build_day_timeline() -> List[HourSlot]:
    return [HourSlot(hour=h, label=hour_label(h)) for h in range(24)]
