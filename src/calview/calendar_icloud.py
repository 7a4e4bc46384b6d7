from __future__ import annotations
from datetime import date, datetime
import logging
from typing import List, Optional
from zoneinfo import ZoneInfo

import caldav
from caldav.elements import dav

from .models import Event

ICLOUD_CALDAV_URL = "https://caldav.icloud.com/"
_ICAL_COMPAT_MSG = "Ical data was modified to avoid compatibility issues"


class _IcalCompatibilityFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        return _ICAL_COMPAT_MSG not in record.getMessage()


def _install_ical_compatibility_filter() -> None:
    root_logger = logging.getLogger()
    if any(isinstance(f, _IcalCompatibilityFilter) for f in root_logger.filters):
        return
    root_logger.addFilter(_IcalCompatibilityFilter())


def _as_local(value, tz: ZoneInfo) -> datetime:
    # dtstart/dtend may be a date (all-day), a naive datetime or an aware one
    if isinstance(value, datetime):
        return value.astimezone(tz) if value.tzinfo else value.replace(tzinfo=tz)
    if isinstance(value, date):
        return datetime.combine(value, datetime.min.time(), tzinfo=tz)
    raise ValueError(f"Unsupported iCalendar time value: {value!r}")


def _text(vevent, name: str) -> Optional[str]:
    prop = getattr(vevent, name, None)
    return str(prop.value) if prop is not None else None


def event_from_vevent(vevent, tz: ZoneInfo) -> Optional[Event]:
    try:
        start = _as_local(vevent.dtstart.value, tz)
        end = _as_local(vevent.dtend.value, tz) if hasattr(vevent, "dtend") else start
    except (AttributeError, ValueError):
        return None

    return Event(
        id=_text(vevent, "uid") or f"icloud-{start.isoformat()}",
        title=_text(vevent, "summary") or "(No title)",
        start=start,
        end=end,
        color=_text(vevent, "color"),
        location=_text(vevent, "location"),
        description=_text(vevent, "description"),
        source="icloud",
    )


def fetch_icloud_events(
    range_start: datetime,
    range_end: datetime,
    tz: ZoneInfo,
    username: str,
    app_password: str,
    calendar_name_allowlist: List[str],
) -> List[Event]:
    _install_ical_compatibility_filter()

    client = caldav.DAVClient(
        url=ICLOUD_CALDAV_URL,
        username=username,
        password=app_password,
    )
    principal = client.principal()
    calendars = principal.calendars()

    events: List[Event] = []

    for cal in calendars:
        name = getattr(cal, "name", None) or cal.get_properties([dav.DisplayName()]).get(dav.DisplayName(), "")
        if calendar_name_allowlist and name not in calendar_name_allowlist:
            continue

        results = cal.date_search(range_start, range_end)

        for r in results:
            vobj = r.vobject_instance
            vevent = getattr(vobj, "vevent", None)
            if vevent is None:
                continue
            event = event_from_vevent(vevent, tz)
            if event is not None:
                events.append(event)

    return events
