from __future__ import annotations
from datetime import datetime
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional
from zoneinfo import ZoneInfo

from .calendar_google import fetch_google_events
from .calendar_icloud import fetch_icloud_events
from .models import Event

log = logging.getLogger(__name__)


def _parse_timestamp(value: Any, tz: ZoneInfo) -> Optional[datetime]:
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str) and value.strip():
        try:
            dt = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None
    return dt.astimezone(tz) if dt.tzinfo else dt.replace(tzinfo=tz)


def event_from_record(record: Dict[str, Any], tz: ZoneInfo) -> Optional[Event]:
    """Builds an Event from a loosely-typed record, or None when its times don't parse."""
    start = _parse_timestamp(record.get("start"), tz)
    end = _parse_timestamp(record.get("end"), tz)
    if start is None or end is None:
        log.debug("Dropping event record %r: unparsable start/end", record.get("id"))
        return None

    return Event(
        id=str(record.get("id") or f"local-{start.isoformat()}"),
        title=str(record.get("title") or "(No title)"),
        start=start,
        end=end,
        color=record.get("color") or None,
        location=record.get("location") or None,
        description=record.get("description") or None,
        source=str(record.get("source") or "local"),
    )


def load_events_file(path: str, tz: ZoneInfo) -> List[Event]:
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    records = data.get("events", []) if isinstance(data, dict) else data
    events = []
    for record in records:
        event = event_from_record(record, tz)
        if event is not None:
            events.append(event)
    return events


def fetch_events(cfg, range_start: datetime, range_end: datetime, tz: ZoneInfo) -> List[Event]:
    """Collects events from every enabled source; a failing source is skipped."""
    events: List[Event] = []

    if cfg.local.enabled and cfg.local.events_path:
        try:
            events.extend(
                e for e in load_events_file(cfg.local.events_path, tz)
                if e.start < range_end and e.end >= range_start
            )
        except (OSError, ValueError) as e:
            print(f"Local events file could not be read; continuing without local events. Error: {e}")

    if cfg.google.enabled:
        creds_path = os.environ.get("GOOGLE_CREDENTIALS_JSON", "")
        token_path = os.environ.get("GOOGLE_TOKEN_JSON", "")
        if creds_path and token_path:
            try:
                events.extend(
                    fetch_google_events(cfg.google.calendar_ids, range_start, range_end, tz, creds_path, token_path)
                )
            except Exception as e:
                print(f"Google Calendar fetch failed; continuing without Google events. Error: {e}")
        else:
            print("Google enabled but GOOGLE_CREDENTIALS_JSON/GOOGLE_TOKEN_JSON not set; skipping Google.")

    if cfg.icloud.enabled:
        user = os.environ.get("ICLOUD_USERNAME", "")
        pw = os.environ.get("ICLOUD_APP_PASSWORD", "")
        if user and pw:
            try:
                events.extend(
                    fetch_icloud_events(range_start, range_end, tz, user, pw, cfg.icloud.calendar_name_allowlist)
                )
            except Exception as e:
                print(f"iCloud fetch failed; continuing without iCloud events. Error: {e}")
        else:
            print("iCloud enabled but ICLOUD_USERNAME/ICLOUD_APP_PASSWORD not set; skipping iCloud.")

    return events
