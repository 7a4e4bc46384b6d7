from __future__ import annotations
from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional

PREFERENCES_VERSION = 1
VIEW_MODES = ("month", "week", "day")

@dataclass(frozen=True)
class Preferences:
    version: int = PREFERENCES_VERSION
    default_view: str = "month"
    show_current_time: bool = True
    max_events_per_cell: int = 3
    default_event_color: str = "#3b82f6"

def _migrate_v0(data: Dict[str, Any]) -> Dict[str, Any]:
    # Unversioned records were written with camelCase keys
    renames = {
        "defaultView": "default_view",
        "showCurrentTime": "show_current_time",
        "maxEventsPerCell": "max_events_per_cell",
        "defaultEventColor": "default_event_color",
    }
    migrated = {renames.get(k, k): v for k, v in data.items()}
    migrated["version"] = 1
    return migrated

def load_preferences(data: Optional[Dict[str, Any]]) -> Preferences:
    data = dict(data or {})
    version = int(data.get("version", 0))
    if version > PREFERENCES_VERSION:
        raise ValueError(f"Unsupported preferences version {version}; newest known is {PREFERENCES_VERSION}.")
    if version == 0:
        data = _migrate_v0(data)

    default_view = str(data.get("default_view", "month")).lower()
    if default_view not in VIEW_MODES:
        raise ValueError(f"Unknown view mode {default_view!r}; expected one of {', '.join(VIEW_MODES)}.")

    show_current_time = data.get("show_current_time", True)
    if not isinstance(show_current_time, bool):
        raise ValueError(f"show_current_time must be true or false, got {show_current_time!r}.")

    max_events = int(data.get("max_events_per_cell", 3))
    if max_events < 1:
        raise ValueError("max_events_per_cell must be at least 1.")

    return Preferences(
        version=PREFERENCES_VERSION,
        default_view=default_view,
        show_current_time=show_current_time,
        max_events_per_cell=max_events,
        default_event_color=str(data.get("default_event_color", "#3b82f6")),
    )

def dump_preferences(prefs: Preferences) -> Dict[str, Any]:
    return asdict(prefs)
