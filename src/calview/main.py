from __future__ import annotations

import hashlib
import json
from dataclasses import asdict, replace
from datetime import date, datetime, time, timedelta
from pathlib import Path
from typing import List, Optional
from zoneinfo import ZoneInfo

from dotenv import load_dotenv

from .config import load_config
from .layout import search_events
from .models import Event
from .render import render_view
from .sources import fetch_events
from .view_state import (
    ViewState,
    load_state,
    navigate_next,
    navigate_previous,
    navigate_today,
    save_state,
    set_view,
    visible_range,
)

STATE_PATH_DEFAULT = "~/.local/state/calview/view.json"
OUTPUT_PATH_DEFAULT = "calendar.png"


def _normalize_text(value: str | None) -> str:
    if not value:
        return ""
    return " ".join(value.strip().lower().split())


def _event_sort_key(e: Event):
    return (e.start, e.title.lower())


def _dedupe_events(events: List[Event]) -> List[Event]:
    deduped: List[Event] = []
    seen = set()
    for e in sorted(events, key=_event_sort_key):
        key = (
            _normalize_text(e.title),
            e.start.isoformat(),
            e.end.isoformat(),
            _normalize_text(e.location),
        )
        if key in seen:
            continue
        seen.add(key)
        deduped.append(e)
    return deduped


def _fetch_events_for_state(cfg, state: ViewState, tz: ZoneInfo) -> List[Event]:
    first, last = visible_range(state)
    range_start = datetime.combine(first, time.min, tzinfo=tz)
    range_end = datetime.combine(last, time.min, tzinfo=tz) + timedelta(days=1)
    return fetch_events(cfg, range_start, range_end, tz)


def _render_signature(tz: ZoneInfo, state: ViewState, events: List[Event], now: datetime, cfg) -> str:
    # Only include fields that affect rendering.
    def _event_payload(e: Event) -> dict:
        return {
            "id": e.id,
            "title": e.title,
            "start": e.start.astimezone(tz).isoformat(),
            "end": e.end.astimezone(tz).isoformat(),
            "color": e.color or "",
            "location": e.location or "",
        }

    payload = {
        "view": state.view,
        "current_date": state.current_date.isoformat(),
        "selected": state.selected_event_id or "",
        "today": now.date().isoformat(),
        "events": [_event_payload(e) for e in events],
        "config": {
            "display": asdict(cfg.display),
            "day_view": asdict(cfg.day_view),
            "week_view": asdict(cfg.week_view),
            "preferences": asdict(cfg.preferences),
        },
    }
    first, last = visible_range(state)
    if state.view != "month" and first <= now.date() <= last:
        # the now indicator moves, so an on-screen today re-renders every minute
        payload["minute"] = now.strftime("%H:%M")
    b = json.dumps(payload, sort_keys=True, ensure_ascii=False).encode("utf-8")
    return hashlib.sha256(b).hexdigest()


def _apply_navigation(state: ViewState, today: date, view: Optional[str], go: Optional[str], on: Optional[date]) -> ViewState:
    if view:
        state = set_view(state, view)
    if on is not None:
        state = replace(state, current_date=on)
    if go == "prev":
        state = navigate_previous(state)
    elif go == "next":
        state = navigate_next(state)
    elif go == "today":
        state = navigate_today(state, today)
    return state


def run_once(
    config_path: Optional[str] = None,
    state_path: str = STATE_PATH_DEFAULT,
    output_path: str = OUTPUT_PATH_DEFAULT,
    view: Optional[str] = None,
    go: Optional[str] = None,
    on: Optional[date] = None,
    query: Optional[str] = None,
    select: Optional[str] = None,
    force: bool = False,
) -> ViewState:
    load_dotenv()
    cfg = load_config(config_path)
    tz = ZoneInfo(cfg.timezone)
    now = datetime.now(tz=tz)
    state_path = str(Path(state_path).expanduser())

    state = load_state(state_path, today=now.date(), default_view=cfg.preferences.default_view)
    state = _apply_navigation(state, now.date(), view, go, on)
    if query is not None:
        state = replace(state, search_query=query)
    if select is not None:
        state = replace(state, selected_event_id=select or None)

    events = _dedupe_events(_fetch_events_for_state(cfg, state, tz))
    events = search_events(events, state.search_query)

    sig = _render_signature(tz, state, events, now, cfg)
    print(f"Fetched {len(events)} events for {state.view} view of {state.current_date.isoformat()}; force={force}")
    if not force and sig == state.last_hash and Path(output_path).exists():
        print("No calendar change; skipping render")
        save_state(state_path, state)
        return state

    img = render_view(
        state.view,
        state.current_date,
        events,
        now,
        canvas_w=cfg.display.width,
        canvas_h=cfg.display.height,
        day_metrics=cfg.day_view,
        week_metrics=cfg.week_view,
        prefs=cfg.preferences,
        selected_event_id=state.selected_event_id,
    )
    img.save(output_path)
    print(f"Rendered {state.view} view to {output_path}")

    state = replace(state, last_hash=sig)
    save_state(state_path, state)
    return state


def main():
    import argparse

    ap = argparse.ArgumentParser(description="Render a month, week or day calendar view to an image.")
    ap.add_argument("--config", default=None)
    ap.add_argument("--state", default=STATE_PATH_DEFAULT)
    ap.add_argument("--output", "-o", default=OUTPUT_PATH_DEFAULT)
    ap.add_argument("--view", choices=["month", "week", "day"])
    ap.add_argument("--date", type=date.fromisoformat, help="reference date, YYYY-MM-DD")
    ap.add_argument("--prev", dest="go", action="store_const", const="prev")
    ap.add_argument("--next", dest="go", action="store_const", const="next")
    ap.add_argument("--today", dest="go", action="store_const", const="today")
    ap.add_argument("--search", default=None, help="only show events whose title or description contains this")
    ap.add_argument("--select", default=None, help="event id to highlight; pass an empty string to clear")
    ap.add_argument("--force", action="store_true")
    args = ap.parse_args()

    run_once(
        config_path=args.config,
        state_path=args.state,
        output_path=args.output,
        view=args.view,
        go=args.go,
        on=args.date,
        query=args.search,
        select=args.select,
        force=args.force,
    )


if __name__ == "__main__":
    main()
