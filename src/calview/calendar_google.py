from __future__ import annotations
from datetime import datetime
from typing import List, Optional
from zoneinfo import ZoneInfo
import os

from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow
from googleapiclient.discovery import build

from .models import Event

SCOPES = ["https://www.googleapis.com/auth/calendar.readonly"]

# Google event colorId -> hex, restricted to the palette the views style
GOOGLE_COLOR_IDS = {
    "1": "#8b5cf6",
    "2": "#10b981",
    "5": "#f59e0b",
    "9": "#3b82f6",
    "10": "#10b981",
    "11": "#ef4444",
}

def _get_creds(credentials_path: str, token_path: str) -> Credentials:
    if os.path.exists(token_path):
        return Credentials.from_authorized_user_file(token_path, SCOPES)

    flow = InstalledAppFlow.from_client_secrets_file(credentials_path, SCOPES)
    creds = flow.run_local_server(port=0)
    os.makedirs(os.path.dirname(token_path), exist_ok=True)
    with open(token_path, "w", encoding="utf-8") as f:
        f.write(creds.to_json())
    return creds

def _parse_google_time(obj: dict, tz: ZoneInfo) -> Optional[datetime]:
    # All-day events have "date" not "dateTime"; interpret as local midnight
    if obj.get("dateTime"):
        return datetime.fromisoformat(obj["dateTime"].replace("Z", "+00:00")).astimezone(tz)
    if obj.get("date"):
        return datetime.fromisoformat(obj["date"]).replace(tzinfo=tz)
    return None

def event_from_google_item(item: dict, tz: ZoneInfo) -> Optional[Event]:
    try:
        start = _parse_google_time(item.get("start", {}), tz)
        end = _parse_google_time(item.get("end", {}), tz)
    except ValueError:
        return None
    if start is None or end is None:
        return None

    return Event(
        id=str(item.get("id", "")),
        title=item.get("summary", "(No title)"),
        start=start,
        end=end,
        color=GOOGLE_COLOR_IDS.get(str(item.get("colorId", ""))),
        location=item.get("location"),
        description=item.get("description"),
        source="google",
    )

def fetch_google_events(
    calendar_ids: List[str],
    range_start: datetime,
    range_end: datetime,
    tz: ZoneInfo,
    credentials_path: str,
    token_path: str,
) -> List[Event]:
    creds = _get_creds(credentials_path, token_path)
    service = build("calendar", "v3", credentials=creds, cache_discovery=False)

    events: List[Event] = []
    time_min = range_start.isoformat()
    time_max = range_end.isoformat()

    for cal_id in calendar_ids:
        resp = service.events().list(
            calendarId=cal_id,
            timeMin=time_min,
            timeMax=time_max,
            singleEvents=True,
            orderBy="startTime",
        ).execute()

        for item in resp.get("items", []):
            event = event_from_google_item(item, tz)
            if event is not None:
                events.append(event)

    return events
