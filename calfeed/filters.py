# calfeed/filters.py
from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Iterable, List, Optional, Union

import pytz

from .dates import TzLike, boundary_key, parse_bound
from .models import Event

DEFAULT_WINDOW_DAYS = 90

Bound = Union[str, datetime, date, None]


def default_window(now: Optional[datetime] = None, days: int = DEFAULT_WINDOW_DAYS):
    now = now or datetime.now(pytz.UTC)
    return now, now + timedelta(days=days)


def filter_by_time_range(
    events: Iterable[Event],
    time_min: Bound = None,
    time_max: Bound = None,
    tz: TzLike = None,
) -> List[Event]:
    """
    Keep events whose start lies in [time_min, time_max] (inclusive) and sort
    them by start. All-day starts count as midnight in `tz`. A missing bound
    leaves that side open.
    """
    lo = parse_bound(time_min, tz)
    hi = parse_bound(time_max, tz)
    kept = []
    for ev in events:
        key = boundary_key(ev.start, tz)
        if lo is not None and key < lo:
            continue
        if hi is not None and key > hi:
            continue
        kept.append(ev)
    kept.sort(key=lambda ev: boundary_key(ev.start, tz))
    return kept
