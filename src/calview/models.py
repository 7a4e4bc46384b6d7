from __future__ import annotations
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import List, Optional

DEFAULT_EVENT_COLOR = "#3b82f6"

@dataclass(frozen=True)
class Event:
    id: str
    title: str
    start: datetime
    end: datetime
    color: Optional[str] = None
    location: Optional[str] = None
    description: Optional[str] = None
    source: str = "local"       # "google" / "icloud" / "local"

    def display_color(self, default: str = DEFAULT_EVENT_COLOR) -> str:
        return self.color or default

@dataclass(frozen=True)
class MonthCell:
    date: date
    is_current_period: bool
    events: List[Event] = field(default_factory=list)

@dataclass(frozen=True)
class HourSlot:
    hour: int                   # 0..23
    label: str                  # "12 AM" .. "11 PM"

@dataclass(frozen=True)
class PositionedEvent:
    event: Event
    top: float
    height: float
    formatted_start: str
    formatted_end: str

    @property
    def id(self) -> str:
        return self.event.id

@dataclass(frozen=True)
class ViewMetrics:
    pixels_per_hour: float
    minimum_height: float
    header_offset: float = 0.0

DAY_VIEW_METRICS = ViewMetrics(pixels_per_hour=60, minimum_height=30)
WEEK_VIEW_METRICS = ViewMetrics(pixels_per_hour=40, minimum_height=20, header_offset=48)

def has_valid_times(e: Event) -> bool:
    return isinstance(e.start, datetime) and isinstance(e.end, datetime)
