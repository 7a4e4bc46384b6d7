from __future__ import annotations
from datetime import date, datetime
from typing import Sequence

WEEKDAY_LABELS = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")

def format_time(dt: datetime) -> str:
    # Example: 9:00 AM
    return dt.strftime("%-I:%M %p")

def hour_label(hour: int) -> str:
    if hour == 0:
        return "12 AM"
    if hour < 12:
        return f"{hour} AM"
    if hour == 12:
        return "12 PM"
    return f"{hour - 12} PM"

def day_header(day: date) -> str:
    # Example: Tuesday, November 18, 2025
    return day.strftime("%A, %B %-d, %Y")

def month_header(day: date) -> str:
    return day.strftime("%B %Y")

def week_header(week: Sequence[date]) -> str:
    first, last = week[0], week[-1]
    return f"Week of {first.strftime('%B %-d')} - {last.strftime('%B %-d, %Y')}"

def event_count_label(count: int) -> str:
    return f"{count} {'event' if count == 1 else 'events'} scheduled"
