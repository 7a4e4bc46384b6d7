from __future__ import annotations
from datetime import date, datetime
from typing import List, Optional
from PIL import Image, ImageColor, ImageDraw, ImageFont

from .formatting import WEEKDAY_LABELS, day_header, event_count_label, month_header, week_header
from .grid import build_day_timeline, build_month_grid, build_week_grid
from .layout import (
    COLOR_CLASS_FILLS,
    event_color_class,
    naive_duration_hours,
    now_indicator_offset,
    position_day_events,
    visible_cell_events,
)
from .models import DEFAULT_EVENT_COLOR, Event, PositionedEvent, ViewMetrics
from .preferences import Preferences

FONT_PATH = "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf"

PADDING = 40
TIME_COL_W = 80
NOW_LINE_COLOR = (239, 68, 68)
GRID_LINE_COLOR = (209, 213, 219)
MUTED_TEXT_COLOR = (156, 163, 175)
PADDING_CELL_FILL = (249, 250, 251)
TODAY_FILL = (229, 231, 235)

def _load_font(size: int) -> ImageFont.FreeTypeFont:
    # DejaVu ships with most Linux distributions (fonts-dejavu-core)
    try:
        return ImageFont.truetype(FONT_PATH, size)
    except OSError:
        return ImageFont.load_default(size=size)

def _event_fill(e: Event, default_color: str = DEFAULT_EVENT_COLOR) -> tuple[int, int, int]:
    try:
        return ImageColor.getrgb(e.display_color(default_color))[:3]
    except ValueError:
        return ImageColor.getrgb(DEFAULT_EVENT_COLOR)[:3]

def _class_fill(e: Event, default_color: str = DEFAULT_EVENT_COLOR) -> tuple[int, int, int]:
    # month bars use the fixed palette; unknown colors fall back to blue
    return ImageColor.getrgb(COLOR_CLASS_FILLS[event_color_class(e, default_color)])[:3]

def _wrap_text(
    draw: ImageDraw.ImageDraw,
    text: str,
    font: ImageFont.FreeTypeFont,
    max_width: float,
    max_lines: Optional[int] = 2,
) -> List[str]:
    words = text.split()
    lines: List[str] = []
    cur = ""
    for w in words:
        test = (cur + " " + w).strip()
        if draw.textlength(test, font=font) <= max_width:
            cur = test
        else:
            if cur:
                lines.append(cur)
            cur = w
    if cur:
        lines.append(cur)
    return lines if max_lines is None else lines[:max_lines]

def _draw_centered(draw: ImageDraw.ImageDraw, cx: float, y: float, text: str, font, fill="black") -> None:
    draw.text((cx - draw.textlength(text, font=font) / 2, y), text, fill=fill, font=font)

def _draw_time_labels(
    d: ImageDraw.ImageDraw,
    grid_top: float,
    right: float,
    metrics: ViewMetrics,
    font: ImageFont.FreeTypeFont,
) -> None:
    for slot in build_day_timeline():
        y = grid_top + slot.hour * metrics.pixels_per_hour
        d.text((PADDING, y + 2), slot.label, fill=MUTED_TEXT_COLOR, font=font)
        d.line((PADDING + TIME_COL_W, y, right, y), fill=GRID_LINE_COLOR, width=1)

def _draw_event_block(
    d: ImageDraw.ImageDraw,
    p: PositionedEvent,
    x0: float,
    x1: float,
    column_top: float,
    lines: List[str],
    font: ImageFont.FreeTypeFont,
    default_color: str,
    selected: bool = False,
) -> None:
    y0 = column_top + p.top
    y1 = y0 + p.height
    d.rounded_rectangle(
        (x0 + 2, y0 + 1, x1 - 2, y1 - 1),
        radius=4,
        fill=_event_fill(p.event, default_color),
        outline="black" if selected else None,
        width=3 if selected else 0,
    )
    line_h = font.size + 4
    for i, line in enumerate(lines):
        ty = y0 + 4 + i * line_h
        # keep text inside the block, but always show the first line
        if i and ty + line_h > y1:
            break
        d.text((x0 + 8, ty), line, fill="white", font=font)

def render_month_view(
    canvas_w: int,
    canvas_h: int,
    reference: date,
    events: List[Event],
    now: datetime,
    prefs: Optional[Preferences] = None,
    selected_event_id: Optional[str] = None,
) -> Image.Image:
    prefs = prefs or Preferences()
    img = Image.new("RGB", (canvas_w, canvas_h), "white")
    d = ImageDraw.Draw(img)

    font_header = _load_font(48)
    font_weekday = _load_font(22)
    font_day = _load_font(22)
    font_event = _load_font(18)

    y = PADDING
    d.text((PADDING, y), month_header(reference), fill="black", font=font_header)
    y += font_header.size + 20

    col_w = (canvas_w - 2 * PADDING) / 7
    for i, label in enumerate(WEEKDAY_LABELS):
        _draw_centered(d, PADDING + col_w * i + col_w / 2, y, label, font_weekday, fill=MUTED_TEXT_COLOR)
    y += font_weekday.size + 12
    d.line((PADDING, y, canvas_w - PADDING, y), fill="black", width=2)

    grid_top = y
    row_h = (canvas_h - PADDING - grid_top) / 6
    today = now.date()

    for idx, cell in enumerate(build_month_grid(reference, events)):
        row, col = divmod(idx, 7)
        x0 = PADDING + col * col_w
        y0 = grid_top + row * row_h
        box = (x0, y0, x0 + col_w, y0 + row_h)
        if cell.date == today:
            d.rectangle(box, fill=TODAY_FILL, outline=GRID_LINE_COLOR)
        elif not cell.is_current_period:
            d.rectangle(box, fill=PADDING_CELL_FILL, outline=GRID_LINE_COLOR)
        else:
            d.rectangle(box, outline=GRID_LINE_COLOR)

        day_fill = "black" if cell.is_current_period else MUTED_TEXT_COLOR
        d.text((x0 + 8, y0 + 6), str(cell.date.day), fill=day_fill, font=font_day)
        if cell.date == today:
            badge = "Today"
            d.text((x0 + col_w - 8 - d.textlength(badge, font=font_event), y0 + 8), badge, fill="black", font=font_event)

        shown, overflow = visible_cell_events(cell, prefs.max_events_per_cell)
        ey = y0 + font_day.size + 14
        bar_h = font_event.size + 8
        for e in shown:
            if ey + bar_h > y0 + row_h:
                break
            d.rounded_rectangle(
                (x0 + 4, ey, x0 + col_w - 4, ey + bar_h - 2),
                radius=3,
                fill=_class_fill(e, prefs.default_event_color),
                outline="black" if e.id == selected_event_id else None,
                width=2 if e.id == selected_event_id else 0,
            )
            title = _wrap_text(d, e.title, font_event, col_w - 20, max_lines=1)
            d.text((x0 + 10, ey + 3), title[0] if title else "", fill="white", font=font_event)
            ey += bar_h
        if overflow and ey + font_event.size <= y0 + row_h:
            _draw_centered(d, x0 + col_w / 2, ey, overflow, font_event, fill=MUTED_TEXT_COLOR)

    return img

def render_week_view(
    canvas_w: int,
    reference: date,
    events: List[Event],
    now: datetime,
    metrics: ViewMetrics,
    prefs: Optional[Preferences] = None,
    selected_event_id: Optional[str] = None,
) -> Image.Image:
    prefs = prefs or Preferences()
    font_header = _load_font(36)
    font_day = _load_font(18)
    font_label = _load_font(16)
    font_event = _load_font(14)

    column_top = PADDING + font_header.size + 20
    grid_top = column_top + metrics.header_offset
    canvas_h = int(grid_top + 24 * metrics.pixels_per_hour + PADDING)

    img = Image.new("RGB", (canvas_w, canvas_h), "white")
    d = ImageDraw.Draw(img)

    week = build_week_grid(reference)
    d.text((PADDING, PADDING), week_header(week), fill="black", font=font_header)

    right = canvas_w - PADDING
    _draw_time_labels(d, grid_top, right, metrics, font_label)

    col_w = (right - PADDING - TIME_COL_W) / 7
    for i, day in enumerate(week):
        x0 = PADDING + TIME_COL_W + i * col_w
        x1 = x0 + col_w
        if day == now.date():
            d.rectangle((x0, column_top, x1, grid_top), fill=TODAY_FILL)
        _draw_centered(d, x0 + col_w / 2, column_top + 2, WEEKDAY_LABELS[i], font_day, fill=MUTED_TEXT_COLOR)
        _draw_centered(d, x0 + col_w / 2, column_top + 4 + font_day.size, str(day.day), font_day)
        d.line((x0, column_top, x0, canvas_h - PADDING), fill=GRID_LINE_COLOR, width=1)

        for p in position_day_events(events, day, metrics):
            lines = _wrap_text(d, p.event.title, font_event, col_w - 16, max_lines=2)
            if naive_duration_hours(p.event) > 1 and p.event.location:
                lines.append(p.event.location)
            _draw_event_block(
                d, p, x0, x1, column_top, lines, font_event, prefs.default_event_color,
                selected=p.id == selected_event_id,
            )

        if prefs.show_current_time:
            offset = now_indicator_offset(now, day, metrics)
            if offset is not None:
                d.line((x0, column_top + offset, x1, column_top + offset), fill=NOW_LINE_COLOR, width=2)

    d.line((right, column_top, right, canvas_h - PADDING), fill=GRID_LINE_COLOR, width=1)
    return img

def render_day_view(
    canvas_w: int,
    reference: date,
    events: List[Event],
    now: datetime,
    metrics: ViewMetrics,
    prefs: Optional[Preferences] = None,
    selected_event_id: Optional[str] = None,
) -> Image.Image:
    prefs = prefs or Preferences()
    font_header = _load_font(36)
    font_small = _load_font(20)
    font_label = _load_font(16)
    font_event = _load_font(18)

    positioned = position_day_events(events, reference, metrics)

    column_top = PADDING + font_header.size + font_small.size + 30
    grid_top = column_top + metrics.header_offset
    canvas_h = int(grid_top + 24 * metrics.pixels_per_hour + PADDING)

    img = Image.new("RGB", (canvas_w, canvas_h), "white")
    d = ImageDraw.Draw(img)

    d.text((PADDING, PADDING), day_header(reference), fill="black", font=font_header)
    d.text(
        (PADDING, PADDING + font_header.size + 10),
        event_count_label(len(positioned)),
        fill=MUTED_TEXT_COLOR,
        font=font_small,
    )

    right = canvas_w - PADDING
    _draw_time_labels(d, grid_top, right, metrics, font_label)

    x0 = PADDING + TIME_COL_W
    for p in positioned:
        lines = _wrap_text(d, p.event.title, font_event, right - x0 - 16, max_lines=1)
        lines.append(f"{p.formatted_start} - {p.formatted_end}")
        if p.event.location:
            lines.append(p.event.location)
        _draw_event_block(
            d, p, x0, right, column_top, lines, font_event, prefs.default_event_color,
            selected=p.id == selected_event_id,
        )

    if prefs.show_current_time:
        offset = now_indicator_offset(now, reference, metrics)
        if offset is not None:
            y = column_top + offset
            d.ellipse((x0 - 5, y - 5, x0 + 5, y + 5), fill=NOW_LINE_COLOR)
            d.line((x0, y, right, y), fill=NOW_LINE_COLOR, width=2)

    return img

def render_view(
    view: str,
    reference: date,
    events: List[Event],
    now: datetime,
    canvas_w: int,
    canvas_h: int,
    day_metrics: ViewMetrics,
    week_metrics: ViewMetrics,
    prefs: Optional[Preferences] = None,
    selected_event_id: Optional[str] = None,
) -> Image.Image:
    if view == "day":
        return render_day_view(canvas_w, reference, events, now, day_metrics, prefs, selected_event_id)
    if view == "week":
        return render_week_view(canvas_w, reference, events, now, week_metrics, prefs, selected_event_id)
    return render_month_view(canvas_w, canvas_h, reference, events, now, prefs, selected_event_id)
