# calfeed/dates.py
from __future__ import annotations

import re
from datetime import date, datetime, timedelta, tzinfo
from typing import Optional, Tuple, Union

import dateparser
import pytz
from dateutil import parser as duparser

from .errors import InvalidDateToken
from .models import CalendarDate, Event, Instant, TemporalBoundary

DEFAULT_TZNAME = "UTC"

_DATE_RE = re.compile(r"^(\d{4})(\d{2})(\d{2})$")
_DATETIME_RE = re.compile(r"^(\d{4})(\d{2})(\d{2})T(\d{2})(\d{2})(\d{2})(Z?)$")

TzLike = Union[str, tzinfo, None]


def safe_timezone(tzname: Optional[str], fallback: str = DEFAULT_TZNAME) -> pytz.BaseTzInfo:
    try:
        return pytz.timezone(tzname or fallback)
    except Exception:
        try:
            return pytz.timezone(fallback)
        except Exception:
            return pytz.UTC


def _coerce_tz(tz: TzLike) -> Optional[tzinfo]:
    if tz is None or isinstance(tz, tzinfo):
        return tz
    return safe_timezone(tz)


def _localize(naive: datetime, tz: tzinfo) -> datetime:
    if hasattr(tz, "localize"):
        return tz.localize(naive)
    return naive.replace(tzinfo=tz)


# -- feed tokens --------------------------------------------------------------

def parse_ical_date(token: str) -> CalendarDate:
    """`YYYYMMDD` -> CalendarDate."""
    m = _DATE_RE.match(token.strip())
    if not m:
        raise InvalidDateToken(token)
    try:
        d = date(int(m.group(1)), int(m.group(2)), int(m.group(3)))
    except ValueError as ex:
        raise InvalidDateToken(token) from ex
    return CalendarDate.from_date(d)


def parse_ical_datetime(token: str, tzname: Optional[str], fallback_tz: str = DEFAULT_TZNAME) -> Instant:
    """
    `YYYYMMDDTHHMMSS[Z]` -> Instant. A trailing Z pins the value to UTC;
    otherwise it is wall-clock time in `tzname` (or `fallback_tz`).
    """
    m = _DATETIME_RE.match(token.strip())
    if not m:
        raise InvalidDateToken(token)
    try:
        naive = datetime(*(int(g) for g in m.groups()[:6]))
    except ValueError as ex:
        raise InvalidDateToken(token) from ex
    if m.group(7):
        return Instant(naive.replace(tzinfo=pytz.UTC), "UTC")
    tz = safe_timezone(tzname, fallback_tz)
    return Instant(_localize(naive, tz), tz.zone)


def parse_boundary(token: str, is_date: bool, tzname: Optional[str],
                   fallback_tz: str = DEFAULT_TZNAME) -> TemporalBoundary:
    if is_date or _DATE_RE.match(token.strip()):
        return parse_ical_date(token)
    return parse_ical_datetime(token, tzname, fallback_tz)


# -- boundary arithmetic ------------------------------------------------------

def boundary_day(b: TemporalBoundary, tz: TzLike = None) -> date:
    """Calendar day of a boundary; instants are read in `tz` when given, else in their own zone."""
    if isinstance(b, CalendarDate):
        return b.as_date()
    zone = _coerce_tz(tz)
    return (b.timestamp.astimezone(zone) if zone else b.timestamp).date()


def boundary_key(b: TemporalBoundary, tz: TzLike = None) -> datetime:
    """Aware datetime used to order boundaries; dates count as local midnight."""
    if isinstance(b, Instant):
        return b.timestamp
    zone = _coerce_tz(tz) or pytz.UTC
    return _localize(datetime(b.year, b.month, b.day), zone)


def effective_end(event: Event, tz: TzLike = None) -> TemporalBoundary:
    """
    Inclusive end of an event. Feed end-dates are exclusive, so a date end is
    moved back one day. A missing end, or one before the start, yields the start.
    """
    end = event.end
    if end is None:
        return event.start
    if isinstance(end, CalendarDate):
        end = CalendarDate.from_date(end.as_date() - timedelta(days=1))
    if boundary_key(end, tz) < boundary_key(event.start, tz):
        return event.start
    return end


def event_days(event: Event, tz: TzLike = None) -> Tuple[date, date]:
    """(first_day, last_day) of the event, both inclusive."""
    return boundary_day(event.start, tz), boundary_day(effective_end(event, tz), tz)


def spans_day(event: Event, day: date, tz: TzLike = None) -> bool:
    first, last = event_days(event, tz)
    return first <= day <= last


def starts_on_day(event: Event, day: date, tz: TzLike = None) -> bool:
    return boundary_day(event.start, tz) == day


def duration(event: Event, tz: TzLike = None) -> timedelta:
    return boundary_key(effective_end(event, tz), tz) - boundary_key(event.start, tz)


def is_multi_day(event: Event, tz: TzLike = None) -> bool:
    first, last = event_days(event, tz)
    return first != last


def sunday_on_or_before(day: date) -> date:
    return day - timedelta(days=(day.weekday() + 1) % 7)


# -- caller-supplied bounds ---------------------------------------------------

def parse_bound(value: Union[str, datetime, date, None], tz: TzLike = None) -> Optional[datetime]:
    """ISO string / datetime / date -> aware datetime (naive values are read in `tz`)."""
    if value is None or value == "":
        return None
    zone = _coerce_tz(tz) or pytz.UTC
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        dt = datetime(value.year, value.month, value.day)
    else:
        dt = duparser.isoparse(str(value).strip())
    if dt.tzinfo is None:
        dt = _localize(dt, zone)
    return dt


def parse_date(s: Optional[str], tzname: Optional[str] = None) -> Optional[datetime]:
    """
    Parse free-form date/time ("2025-06-01", "next monday", "in 2 weeks")
    to an aware datetime in `tzname`.
    """
    if not s:
        return None
    zone = safe_timezone(tzname).zone
    settings = {
        "RETURN_AS_TIMEZONE_AWARE": True,
        "PREFER_DATES_FROM": "future",
        "TIMEZONE": zone,
        "TO_TIMEZONE": zone,
    }
    return dateparser.parse(s, settings=settings)
