"""
Event Placer: converts an event's time span into pixel space.

Overlapping events are not stacked side by side; they are drawn in list order
so later events sit on top. Events that run past midnight are laid out with
the naive end-minus-start hour difference and are not clipped or split.
"""
from __future__ import annotations
import logging
from datetime import date, datetime
from typing import Iterable, List, Optional, Tuple

from .formatting import format_time
from .models import DEFAULT_EVENT_COLOR, Event, MonthCell, PositionedEvent, ViewMetrics, has_valid_times

log = logging.getLogger(__name__)

MAX_CELL_EVENTS = 3

_COLOR_CLASSES = {
    "#3b82f6": "event-item-blue",
    "#10b981": "event-item-green",
    "#ef4444": "event-item-red",
    "#f59e0b": "event-item-amber",
    "#8b5cf6": "event-item-purple",
}
COLOR_CLASS_FILLS = {cls: color for color, cls in _COLOR_CLASSES.items()}


def _fractional_hour(dt: datetime) -> float:
    return dt.hour + dt.minute / 60


def naive_duration_hours(event: Event) -> float:
    # clock-hour difference; no correction for events that cross midnight
    return _fractional_hour(event.end) - _fractional_hour(event.start)


def position_event(event: Event, pixels_per_hour: float, minimum_height: float = 30) -> PositionedEvent:
    start_hour = _fractional_hour(event.start)
    duration = naive_duration_hours(event)
    return PositionedEvent(
        event=event,
        top=start_hour * pixels_per_hour,
        height=max(duration * pixels_per_hour, minimum_height),
        formatted_start=format_time(event.start),
        formatted_end=format_time(event.end),
    )


def filter_events_for_day(events: Iterable[Event], day: date) -> List[Event]:
    if isinstance(day, datetime):
        day = day.date()
    matched: List[Event] = []
    for e in events:
        if not has_valid_times(e):
            log.debug("Skipping event %r with malformed timestamps", e.id)
            continue
        if e.start.date() == day:
            matched.append(e)
    return matched


def position_day_events(events: Iterable[Event], day: date, metrics: ViewMetrics) -> List[PositionedEvent]:
    """Positions the events starting on ``day``, keeping input order as z-order."""
    positioned = []
    for e in filter_events_for_day(events, day):
        p = position_event(e, metrics.pixels_per_hour, metrics.minimum_height)
        if metrics.header_offset:
            p = PositionedEvent(
                event=p.event,
                top=p.top + metrics.header_offset,
                height=p.height,
                formatted_start=p.formatted_start,
                formatted_end=p.formatted_end,
            )
        positioned.append(p)
    return positioned


def current_time_offset(now: datetime, pixels_per_hour: float) -> float:
    return _fractional_hour(now) * pixels_per_hour


def now_indicator_offset(now: datetime, day: date, metrics: ViewMetrics) -> Optional[float]:
    """Offset of the live "now" line, or None when ``day`` is not today."""
    if isinstance(day, datetime):
        day = day.date()
    if now.date() != day:
        return None
    return metrics.header_offset + current_time_offset(now, metrics.pixels_per_hour)


def search_events(events: Iterable[Event], query: str) -> List[Event]:
    events = list(events)
    if not query:
        return events
    q = query.lower()
    return [
        e for e in events
        if q in e.title.lower() or (e.description and q in e.description.lower())
    ]


def visible_cell_events(cell: MonthCell, limit: int = MAX_CELL_EVENTS) -> Tuple[List[Event], Optional[str]]:
    shown = list(cell.events[:limit])
    hidden = len(cell.events) - len(shown)
    return shown, (f"+{hidden} more" if hidden > 0 else None)


def event_color_class(event: Event, default_color: str = DEFAULT_EVENT_COLOR) -> str:
    return _COLOR_CLASSES.get(event.display_color(default_color), "event-item-blue")
