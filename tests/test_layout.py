from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

from calview.layout import (
    current_time_offset,
    event_color_class,
    filter_events_for_day,
    naive_duration_hours,
    now_indicator_offset,
    position_day_events,
    position_event,
    search_events,
    visible_cell_events,
)
from calview.models import DAY_VIEW_METRICS, WEEK_VIEW_METRICS, Event, MonthCell

TZ = ZoneInfo("America/Phoenix")


def _event(event_id: str, start: datetime, end: datetime, **kwargs) -> Event:
    return Event(id=event_id, title=kwargs.pop("title", event_id), start=start, end=end, **kwargs)


def test_position_event_scales_start_and_duration():
    e = _event("review", datetime(2025, 11, 18, 9, 0, tzinfo=TZ), datetime(2025, 11, 18, 10, 30, tzinfo=TZ))

    p = position_event(e, pixels_per_hour=60)

    assert p.top == 9 * 60
    assert p.height == 1.5 * 60
    assert p.formatted_start == "9:00 AM"
    assert p.formatted_end == "10:30 AM"
    assert p.id == "review"


def test_zero_duration_event_gets_minimum_height():
    start = datetime(2025, 11, 18, 14, 15, tzinfo=TZ)
    e = _event("ping", start, start)

    assert position_event(e, pixels_per_hour=60, minimum_height=30).height == 30
    assert position_event(e, pixels_per_hour=40, minimum_height=20).height == 20


def test_short_event_is_clamped_to_minimum_height():
    start = datetime(2025, 11, 18, 8, 0, tzinfo=TZ)
    e = _event("quick", start, start + timedelta(minutes=10))

    assert position_event(e, pixels_per_hour=60, minimum_height=30).height == 30


def test_event_past_midnight_uses_naive_hour_difference():
    e = _event("late", datetime(2025, 11, 18, 23, 0, tzinfo=TZ), datetime(2025, 11, 19, 1, 0, tzinfo=TZ))

    p = position_event(e, pixels_per_hour=60, minimum_height=30)

    assert p.top == 23 * 60
    # end hour 1 - start hour 23 is negative, so the block collapses to the floor
    assert p.height == 30


def test_week_metrics_add_header_offset_to_tops():
    e = _event("sync", datetime(2025, 11, 18, 9, 0, tzinfo=TZ), datetime(2025, 11, 18, 10, 0, tzinfo=TZ))

    [p] = position_day_events([e], date(2025, 11, 18), WEEK_VIEW_METRICS)

    assert p.top == 48 + 9 * 40
    assert p.height == 40


def test_position_day_events_keeps_input_order_for_overlaps():
    a = _event("a", datetime(2025, 11, 18, 9, 0, tzinfo=TZ), datetime(2025, 11, 18, 11, 0, tzinfo=TZ))
    b = _event("b", datetime(2025, 11, 18, 10, 0, tzinfo=TZ), datetime(2025, 11, 18, 10, 30, tzinfo=TZ))

    positioned = position_day_events([a, b], date(2025, 11, 18), DAY_VIEW_METRICS)

    assert [p.id for p in positioned] == ["a", "b"]
    assert positioned[1].top < positioned[0].top + positioned[0].height


def test_filter_events_for_day_matches_start_date_only():
    spanning = _event("trip", datetime(2025, 11, 17, 18, 0, tzinfo=TZ), datetime(2025, 11, 19, 9, 0, tzinfo=TZ))
    today = _event("today", datetime(2025, 11, 18, 9, 0, tzinfo=TZ), datetime(2025, 11, 18, 10, 0, tzinfo=TZ))
    events = [spanning, today]

    once = filter_events_for_day(events, date(2025, 11, 18))

    assert once == [today]
    assert filter_events_for_day(once, date(2025, 11, 18)) == once
    assert filter_events_for_day(events, date(2025, 11, 20)) == []
    assert filter_events_for_day(events, datetime(2025, 11, 17, 12, 0)) == [spanning]


def test_filter_events_for_day_skips_malformed_timestamps():
    broken = Event(id="broken", title="Broken", start="not-a-date", end="later")
    ok = _event("ok", datetime(2025, 11, 18, 9, 0, tzinfo=TZ), datetime(2025, 11, 18, 10, 0, tzinfo=TZ))

    assert filter_events_for_day([broken, ok], date(2025, 11, 18)) == [ok]
    assert filter_events_for_day([], date(2025, 11, 18)) == []


def test_current_time_offset_uses_fractional_hour():
    now = datetime(2025, 11, 18, 13, 45, tzinfo=TZ)

    assert current_time_offset(now, 60) == 13.75 * 60
    assert current_time_offset(now, 40) == 13.75 * 40


def test_now_indicator_only_on_matching_date():
    now = datetime(2025, 11, 18, 6, 30, tzinfo=TZ)

    assert now_indicator_offset(now, date(2025, 11, 18), DAY_VIEW_METRICS) == 6.5 * 60
    assert now_indicator_offset(now, date(2025, 11, 18), WEEK_VIEW_METRICS) == 48 + 6.5 * 40
    assert now_indicator_offset(now, date(2025, 11, 19), DAY_VIEW_METRICS) is None


def test_search_events_matches_title_or_description_case_insensitively():
    start = datetime(2025, 11, 18, 9, 0, tzinfo=TZ)
    standup = _event("1", start, start, title="Daily Standup Meeting")
    review = _event("2", start, start, title="Code Review", description="Reviewing the STANDUP notes")
    lunch = _event("3", start, start, title="Lunch Break")

    assert search_events([standup, review, lunch], "standup") == [standup, review]
    assert search_events([standup, review, lunch], "") == [standup, review, lunch]
    assert search_events([standup, review, lunch], "dentist") == []


def test_visible_cell_events_caps_at_three_with_overflow_label():
    start = datetime(2025, 11, 18, 9, 0, tzinfo=TZ)
    events = [_event(str(i), start, start) for i in range(5)]

    shown, overflow = visible_cell_events(MonthCell(date=date(2025, 11, 18), is_current_period=True, events=events))

    assert [e.id for e in shown] == ["0", "1", "2"]
    assert overflow == "+2 more"

    shown, overflow = visible_cell_events(MonthCell(date=date(2025, 11, 18), is_current_period=True, events=events[:3]))
    assert len(shown) == 3
    assert overflow is None


def test_event_color_class_defaults_to_blue():
    start = datetime(2025, 11, 18, 9, 0, tzinfo=TZ)

    assert event_color_class(_event("a", start, start)) == "event-item-blue"
    assert event_color_class(_event("b", start, start, color="#10b981")) == "event-item-green"
    assert event_color_class(_event("c", start, start, color="#8b5cf6")) == "event-item-purple"
    assert event_color_class(_event("d", start, start, color="#123456")) == "event-item-blue"


def test_event_color_class_uses_default_color_preference():
    start = datetime(2025, 11, 18, 9, 0, tzinfo=TZ)
    plain = _event("a", start, start)

    assert plain.display_color() == "#3b82f6"
    assert plain.display_color("#ef4444") == "#ef4444"
    assert event_color_class(plain, "#ef4444") == "event-item-red"
    assert event_color_class(_event("b", start, start, color="#10b981"), "#ef4444") == "event-item-green"


def test_naive_duration_ignores_midnight_rollover():
    e = _event("late", datetime(2025, 11, 18, 23, 0, tzinfo=TZ), datetime(2025, 11, 19, 1, 0, tzinfo=TZ))

    assert naive_duration_hours(e) == -22
