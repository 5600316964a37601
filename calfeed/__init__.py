# Keep this package lightweight; re-export the feed/layout entry points only.
from .parse_ics import parse_events, parse_feed
from .layout import layout_month, layout_week, layout_window, month_weeks, window_week
from .filters import filter_by_time_range
from .models import CalendarData, CalendarDate, Event, Instant, Placement, WeekRow

__all__ = [
    "parse_events",
    "parse_feed",
    "layout_month",
    "layout_week",
    "layout_window",
    "month_weeks",
    "window_week",
    "filter_by_time_range",
    "CalendarData",
    "CalendarDate",
    "Event",
    "Instant",
    "Placement",
    "WeekRow",
]
