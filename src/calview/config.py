from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional
import yaml

from .models import DAY_VIEW_METRICS, WEEK_VIEW_METRICS, ViewMetrics
from .preferences import Preferences, load_preferences

@dataclass
class DisplayConfig:
    width: int
    height: int

@dataclass
class GoogleConfig:
    enabled: bool
    calendar_ids: List[str]

@dataclass
class ICloudConfig:
    enabled: bool
    calendar_name_allowlist: List[str]

@dataclass
class LocalConfig:
    enabled: bool
    events_path: str

@dataclass
class AppConfig:
    timezone: str
    display: DisplayConfig
    day_view: ViewMetrics
    week_view: ViewMetrics
    google: GoogleConfig
    icloud: ICloudConfig
    local: LocalConfig
    preferences: Preferences

def _load_metrics(data: Dict[str, Any], default: ViewMetrics) -> ViewMetrics:
    metrics = ViewMetrics(
        pixels_per_hour=float(data.get("pixels_per_hour", default.pixels_per_hour)),
        minimum_height=float(data.get("minimum_height", default.minimum_height)),
        header_offset=float(data.get("header_offset", default.header_offset)),
    )
    if metrics.pixels_per_hour <= 0:
        raise ValueError("pixels_per_hour must be positive.")
    return metrics

def load_config(path: Optional[str]) -> AppConfig:
    data: Dict[str, Any] = {}
    if path:
        p = Path(path)
        data = yaml.safe_load(p.read_text(encoding="utf-8")) or {}

    display = data.get("display", {})
    views = data.get("views", {})
    calendars = data.get("calendars", {})

    google = calendars.get("google", {})
    icloud = calendars.get("icloud", {})
    local = calendars.get("local", {})

    return AppConfig(
        timezone=data.get("timezone", "UTC"),
        display=DisplayConfig(
            width=int(display.get("width", 1400)),
            height=int(display.get("height", 1100)),
        ),
        day_view=_load_metrics(views.get("day", {}), DAY_VIEW_METRICS),
        week_view=_load_metrics(views.get("week", {}), WEEK_VIEW_METRICS),
        google=GoogleConfig(
            enabled=bool(google.get("enabled", False)),
            calendar_ids=list(google.get("calendar_ids", ["primary"])),
        ),
        icloud=ICloudConfig(
            enabled=bool(icloud.get("enabled", False)),
            calendar_name_allowlist=list(icloud.get("calendar_name_allowlist", [])),
        ),
        local=LocalConfig(
            enabled=bool(local.get("enabled", bool(local.get("events_path")))),
            events_path=str(local.get("events_path", "")),
        ),
        preferences=load_preferences(data.get("preferences")),
    )
