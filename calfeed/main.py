# calfeed/main.py
"""
Main entrypoint (run as a module): `python -m calfeed.main --calendar <id|url>`

- Fetches (or reads) one iCalendar feed, filters it to a time window and
  writes the layout model for a month, week or agenda view as JSON.
- Calendars can also be picked by name from calendars.yml:
    calendars:
      - name: club
        url: club@group.calendar.google.com
        tzname: America/Chicago
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from . import config
from .dates import parse_date, safe_timezone
from .errors import FeedFetchError
from .filters import default_window, filter_by_time_range
from .ics_fetch import get_ics_text
from .layout import (
    MONTH_VISIBLE_ITEMS,
    WEEK_DAY_VISIBLE_ITEMS,
    WeekLayout,
    agenda,
    day_events,
    layout_month,
    layout_window,
    split_overflow,
)
from .models import CalendarData, Event
from .parse_ics import parse_feed

VIEWS = ("month", "week", "agenda")


def _week_to_dict(wl: WeekLayout, limit: int) -> Dict[str, Any]:
    shown, more = split_overflow(wl.placements, limit)
    return {
        "index": wl.week.index,
        "days": [d.isoformat() if d else None for d in wl.week.days],
        "placements": [p.to_dict() for p in wl.placements],
        "visible": [p.event_id for p in shown],
        "more": more,
    }


def build_view(view: str, events: List[Event], anchor: date, tzname: str) -> Dict[str, Any]:
    tz = safe_timezone(tzname)
    if view == "month":
        weeks = layout_month(events, anchor.year, anchor.month - 1, tz)
        return {
            "view": "month",
            "year": anchor.year,
            "monthIndex": anchor.month - 1,
            "weeks": [_week_to_dict(w, MONTH_VISIBLE_ITEMS) for w in weeks],
        }
    if view == "week":
        wl = layout_window(events, anchor, tz)
        days = []
        for d in wl.week.days:
            hits = day_events(events, d, tz)
            days.append({
                "date": d.isoformat(),
                "eventIds": [e.id for e in hits[:WEEK_DAY_VISIBLE_ITEMS]],
                "more": max(0, len(hits) - WEEK_DAY_VISIBLE_ITEMS),
            })
        return {"view": "week", "weeks": [_week_to_dict(wl, len(wl.placements))], "days": days}
    return {
        "view": "agenda",
        "items": [
            {
                "eventId": it.event.id,
                "firstDay": it.first_day.isoformat(),
                "lastDay": it.last_day.isoformat(),
                "multiDay": it.multi_day,
            }
            for it in agenda(events, tz=tz)
        ],
    }


def load_calendar(source: Optional[str], feed_file: Optional[Path], name: str, tzname: str) -> CalendarData:
    if feed_file is not None:
        text = feed_file.read_text(encoding="utf-8")
    else:
        text = get_ics_text(source or "")
    return parse_feed(text, default_name=name, default_tz=tzname)


def _parse_args(argv: Optional[List[str]]) -> argparse.Namespace:
    ap = argparse.ArgumentParser(description="Lay out a public calendar feed for a month, week or agenda view.")
    src = ap.add_mutually_exclusive_group(required=True)
    src.add_argument("--calendar", help="Calendar id, embed URL or .ics URL.")
    src.add_argument("--name", help="Calendar name from calendars.yml.")
    src.add_argument("--file", type=Path, help="Local .ics file.")
    ap.add_argument("--config", type=Path, default=None, help="YAML calendar list (default: calendars.yml).")
    ap.add_argument("--view", choices=VIEWS, default="month")
    ap.add_argument("--date", default=None, help="Day the view is anchored on (free-form, default today).")
    ap.add_argument("--from", dest="time_min", default=None, help="Window start (free-form, default now).")
    ap.add_argument("--to", dest="time_max", default=None, help="Window end (free-form, default now + window days).")
    ap.add_argument("--tz", default=None, help="Display time zone (default: feed's, then CALFEED_DEFAULT_TZ).")
    ap.add_argument("--out", type=Path, default=None, help="Write JSON here instead of stdout.")
    ap.add_argument("-v", "--verbose", action="store_true")
    return ap.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    source, name, tzname = args.calendar, "Calendar", args.tz or config.DEFAULT_TZ
    if args.name:
        cal = config.get_calendar(config.load_calendars(config.find_config(args.config)), args.name)
        if cal is None:
            print(f"ERROR: calendar {args.name!r} not found in config.", file=sys.stderr)
            return 2
        source, name, tzname = cal.url, cal.name, args.tz or cal.tzname or tzname

    try:
        data = load_calendar(source, args.file, name, tzname)
    except (FeedFetchError, OSError) as ex:
        print(f"ERROR: {ex}", file=sys.stderr)
        return 1

    display_tz = safe_timezone(args.tz or data.time_zone).zone
    now_min, now_max = default_window(days=config.WINDOW_DAYS)
    time_min = parse_date(args.time_min, display_tz) or now_min
    time_max = parse_date(args.time_max, display_tz) or now_max
    data.events = filter_by_time_range(data.events, time_min, time_max, display_tz)

    anchor_dt = parse_date(args.date, display_tz) or datetime.now(safe_timezone(display_tz))
    payload = data.to_dict()
    payload["layout"] = build_view(args.view, data.events, anchor_dt.date(), display_tz)

    print(f"{data.summary}: {len(data.events)} events in window", file=sys.stderr)
    if args.out:
        args.out.parent.mkdir(parents=True, exist_ok=True)
        with args.out.open("w", encoding="utf-8") as f:
            json.dump(payload, f, ensure_ascii=False, indent=2)
    else:
        json.dump(payload, sys.stdout, ensure_ascii=False, indent=2)
        sys.stdout.write("\n")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
