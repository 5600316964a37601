# calfeed/layout.py
"""
Week-grid layout for month and week views.

Every week row has 7 slots, Sunday first. Padding slots (days outside the
displayed month) are None and never host an event. Each event visible in a
week gets one Placement: a start column, a column span and a stacking row
chosen first-fit, so two placements sharing a row never share a column.
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterable, List, Optional, Sequence, Tuple

from .dates import (
    TzLike,
    boundary_key,
    duration,
    event_days,
    is_multi_day,
    spans_day,
    starts_on_day,
    sunday_on_or_before,
)
from .models import Event, Placement, WeekRow

DAYS_PER_WEEK = 7

# How many stacked items each view surfaces before "+N more".
MONTH_VISIBLE_ITEMS = 3
WEEK_DAY_VISIBLE_ITEMS = 8
AGENDA_LIMIT = 20


@dataclass(frozen=True)
class WeekLayout:
    week: WeekRow
    placements: Tuple[Placement, ...]


@dataclass(frozen=True)
class AgendaItem:
    event: Event
    first_day: date
    last_day: date
    multi_day: bool


# -- grids --------------------------------------------------------------------

def month_weeks(year: int, month_index: int) -> List[WeekRow]:
    """
    Sunday-first week rows for a month. `month_index` is zero-based; values
    outside 0..11 roll over into neighbouring years.
    """
    extra_years, month_index = divmod(month_index, 12)
    year += extra_years
    month = month_index + 1

    leading = (date(year, month, 1).weekday() + 1) % 7   # Sunday = 0
    days_in_month = calendar.monthrange(year, month)[1]

    slots: List[Optional[date]] = [None] * leading
    slots += [date(year, month, d) for d in range(1, days_in_month + 1)]
    slots += [None] * (-len(slots) % DAYS_PER_WEEK)

    return [
        WeekRow(index=i // DAYS_PER_WEEK, days=tuple(slots[i:i + DAYS_PER_WEEK]))
        for i in range(0, len(slots), DAYS_PER_WEEK)
    ]


def window_week(day: date, index: int = 0) -> WeekRow:
    """The full Sunday..Saturday window containing `day`."""
    sunday = sunday_on_or_before(day)
    return WeekRow(index=index, days=tuple(sunday + timedelta(days=i) for i in range(DAYS_PER_WEEK)))


# -- per-week placement -------------------------------------------------------

def week_events(events: Iterable[Event], week: WeekRow, tz: TzLike = None) -> List[Event]:
    """
    Events whose inclusive day range touches the week's populated days, ordered
    by start, then longer first so multi-day bars claim the lowest rows.
    """
    first, last = week.first_day, week.last_day
    if first is None or last is None:
        return []
    hits = []
    for ev in events:
        start_day, end_day = event_days(ev, tz)
        if start_day <= last and end_day >= first:
            hits.append(ev)
    # stable sort: equal keys keep feed order
    hits.sort(key=lambda ev: (boundary_key(ev.start, tz), -duration(ev, tz)))
    return hits


def _claim_columns(week: WeekRow, event: Event, tz: TzLike) -> Optional[Tuple[int, int]]:
    days = week.days
    start_col = next(
        (i for i, d in enumerate(days) if d is not None and spans_day(event, d, tz)),
        None,
    )
    if start_col is None:
        return None
    span = 0
    for d in days[start_col:]:
        if d is None or not spans_day(event, d, tz):
            break
        span += 1
    return start_col, span


def _first_free_row(occupied: List[List[bool]], start_col: int, span: int) -> int:
    row = 0
    while row < len(occupied) and any(occupied[row][start_col:start_col + span]):
        row += 1
    if row == len(occupied):
        occupied.append([False] * DAYS_PER_WEEK)
    for col in range(start_col, start_col + span):
        occupied[row][col] = True
    return row


def layout_week(events: Iterable[Event], week: WeekRow, tz: TzLike = None) -> List[Placement]:
    occupied: List[List[bool]] = []    # rows x 7
    placements: List[Placement] = []
    for ev in week_events(events, week, tz):
        claim = _claim_columns(week, ev, tz)
        if claim is None:
            continue
        start_col, span = claim
        row = _first_free_row(occupied, start_col, span)
        last_col = start_col + span - 1
        _, end_day = event_days(ev, tz)
        placements.append(Placement(
            event_id=ev.id,
            week_index=week.index,
            start_column=start_col,
            column_span=span,
            row=row,
            starts_here=starts_on_day(ev, week.days[start_col], tz),
            ends_here=week.days[last_col] == end_day,
        ))
    return placements


def layout_weeks(events: Sequence[Event], weeks: Iterable[WeekRow], tz: TzLike = None) -> List[WeekLayout]:
    return [WeekLayout(week=w, placements=tuple(layout_week(events, w, tz))) for w in weeks]


def layout_month(events: Sequence[Event], year: int, month_index: int, tz: TzLike = None) -> List[WeekLayout]:
    return layout_weeks(events, month_weeks(year, month_index), tz)


def layout_window(events: Sequence[Event], day: date, tz: TzLike = None) -> WeekLayout:
    week = window_week(day)
    return WeekLayout(week=week, placements=tuple(layout_week(events, week, tz)))


# -- renderer helpers ---------------------------------------------------------

def split_overflow(placements: Sequence[Placement], limit: int = MONTH_VISIBLE_ITEMS) -> Tuple[List[Placement], int]:
    """(first `limit` placements, how many more)."""
    shown = list(placements[:limit])
    return shown, max(0, len(placements) - limit)


def day_events(events: Iterable[Event], day: date, tz: TzLike = None) -> List[Event]:
    """Events touching one day, in start order (week view columns)."""
    hits = [ev for ev in events if spans_day(ev, day, tz)]
    hits.sort(key=lambda ev: boundary_key(ev.start, tz))
    return hits


def agenda(events: Iterable[Event], limit: int = AGENDA_LIMIT, tz: TzLike = None) -> List[AgendaItem]:
    items = []
    for ev in list(events)[:limit]:
        first, last = event_days(ev, tz)
        items.append(AgendaItem(event=ev, first_day=first, last_day=last, multi_day=is_multi_day(ev, tz)))
    return items
