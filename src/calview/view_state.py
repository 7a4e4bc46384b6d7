from __future__ import annotations
from dataclasses import dataclass, asdict, replace
from datetime import date, timedelta
from pathlib import Path
from typing import Optional, Dict, Any, Tuple
import json

from .grid import build_week_grid, month_range
from .preferences import VIEW_MODES

@dataclass(frozen=True)
class ViewState:
    current_date: date
    view: str = "month"
    selected_event_id: Optional[str] = None
    search_query: str = ""
    last_hash: str = ""         # signature of the last rendered image

def navigate_previous(state: ViewState) -> ViewState:
    if state.view == "day":
        return replace(state, current_date=state.current_date - timedelta(days=1))
    if state.view == "week":
        return replace(state, current_date=state.current_date - timedelta(days=7))
    first = state.current_date.replace(day=1)
    return replace(state, current_date=(first - timedelta(days=1)).replace(day=1))

def navigate_next(state: ViewState) -> ViewState:
    if state.view == "day":
        return replace(state, current_date=state.current_date + timedelta(days=1))
    if state.view == "week":
        return replace(state, current_date=state.current_date + timedelta(days=7))
    _, last = month_range(state.current_date)
    return replace(state, current_date=last + timedelta(days=1))

def navigate_today(state: ViewState, today: date) -> ViewState:
    return replace(state, current_date=today)

def set_view(state: ViewState, view: str) -> ViewState:
    if view not in VIEW_MODES:
        raise ValueError(f"Unknown view mode {view!r}; expected one of {', '.join(VIEW_MODES)}.")
    return replace(state, view=view)

def visible_range(state: ViewState) -> Tuple[date, date]:
    """Inclusive date span whose events must be known to render ``state``."""
    if state.view == "week":
        week = build_week_grid(state.current_date)
        return week[0], week[-1]
    if state.view == "day":
        return state.current_date, state.current_date
    return month_range(state.current_date)

def load_state(path: str, today: date, default_view: str = "month") -> ViewState:
    p = Path(path)
    if not p.exists():
        return ViewState(current_date=today, view=default_view)
    data: Dict[str, Any] = json.loads(p.read_text(encoding="utf-8"))
    try:
        current = date.fromisoformat(str(data.get("current_date", "")))
    except ValueError:
        current = today
    view = str(data.get("view", default_view))
    if view not in VIEW_MODES:
        view = default_view
    selected = data.get("selected_event_id")
    return ViewState(
        current_date=current,
        view=view,
        selected_event_id=str(selected) if selected else None,
        search_query=str(data.get("search_query", "")),
        last_hash=str(data.get("last_hash", "")),
    )

def save_state(path: str, state: ViewState) -> None:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    data = asdict(state)
    data["current_date"] = state.current_date.isoformat()
    p.write_text(json.dumps(data, indent=2), encoding="utf-8")
