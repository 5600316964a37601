from datetime import date, datetime, timedelta

import pytest
import pytz

from calfeed.dates import (
    boundary_day,
    duration,
    effective_end,
    is_multi_day,
    parse_bound,
    parse_date,
    parse_ical_date,
    parse_ical_datetime,
    safe_timezone,
    spans_day,
    starts_on_day,
    sunday_on_or_before,
)
from calfeed.errors import InvalidDateToken
from calfeed.models import CalendarDate, Event, Instant

UTC = pytz.UTC


def _instant(*args, zone="UTC"):
    tz = pytz.timezone(zone)
    return Instant(tz.localize(datetime(*args)), zone)


def test_parse_ical_date():
    assert parse_ical_date("20250610") == CalendarDate(2025, 6, 10)
    for bad in ("2025061", "2025-06-10", "20250230", "abcdefgh"):
        with pytest.raises(InvalidDateToken):
            parse_ical_date(bad)


def test_parse_ical_datetime_utc_and_floating():
    utc = parse_ical_datetime("20250610T093000Z", None)
    assert utc.timestamp == datetime(2025, 6, 10, 9, 30, tzinfo=UTC)
    local = parse_ical_datetime("20250610T093000", "America/New_York")
    assert local.zone == "America/New_York"
    assert local.timestamp.astimezone(UTC).hour == 13
    with pytest.raises(InvalidDateToken):
        parse_ical_datetime("20250610T2500", None)


def test_safe_timezone_fallback():
    assert safe_timezone("Nowhere/Special").zone == "UTC"
    assert safe_timezone(None, "Europe/Oslo").zone == "Europe/Oslo"
    assert safe_timezone("bad", "also-bad") is UTC


def test_effective_end_all_day_is_exclusive():
    ev = Event(id="a", start=CalendarDate(2025, 6, 10), end=CalendarDate(2025, 6, 12))
    # feed end D+2 -> inclusive D+1
    assert effective_end(ev) == CalendarDate(2025, 6, 11)


def test_effective_end_defaults_and_clamps():
    start = _instant(2025, 6, 10, 9)
    assert effective_end(Event(id="a", start=start)) == start
    assert effective_end(Event(id="b", start=start, end=_instant(2025, 6, 9, 9))) == start
    one_day = Event(id="c", start=CalendarDate(2025, 6, 10), end=CalendarDate(2025, 6, 10))
    assert effective_end(one_day) == CalendarDate(2025, 6, 10)


def test_spans_day_scenario():
    ev = Event(id="camp", start=CalendarDate(2025, 6, 10), end=CalendarDate(2025, 6, 13))
    assert [spans_day(ev, date(2025, 6, d)) for d in (9, 10, 11, 12, 13)] == [False, True, True, True, False]
    assert starts_on_day(ev, date(2025, 6, 10))
    assert not starts_on_day(ev, date(2025, 6, 11))


def test_spans_day_ignores_time_of_day():
    ev = Event(id="late", start=_instant(2025, 6, 10, 23, 30), end=_instant(2025, 6, 11, 0, 30))
    assert spans_day(ev, date(2025, 6, 10))
    assert spans_day(ev, date(2025, 6, 11))
    assert not spans_day(ev, date(2025, 6, 12))
    assert is_multi_day(ev)


def test_instant_day_depends_on_display_zone():
    ev = Event(id="x", start=_instant(2025, 6, 11, 2, 0))   # 02:00 UTC
    assert boundary_day(ev.start) == date(2025, 6, 11)
    assert boundary_day(ev.start, "America/Chicago") == date(2025, 6, 10)
    assert starts_on_day(ev, date(2025, 6, 10), "America/Chicago")


def test_duration():
    ev = Event(id="a", start=CalendarDate(2025, 6, 10), end=CalendarDate(2025, 6, 13))
    assert duration(ev) == timedelta(days=2)
    assert duration(Event(id="b", start=_instant(2025, 6, 10, 9))) == timedelta(0)


def test_sunday_on_or_before():
    assert sunday_on_or_before(date(2025, 6, 8)) == date(2025, 6, 8)
    assert sunday_on_or_before(date(2025, 6, 14)) == date(2025, 6, 8)
    assert sunday_on_or_before(date(2025, 6, 10)) == date(2025, 6, 8)


def test_parse_bound():
    assert parse_bound(None) is None
    assert parse_bound("2025-06-10T00:00:00Z") == datetime(2025, 6, 10, tzinfo=UTC)
    chicago = parse_bound("2025-06-10", "America/Chicago")
    assert chicago.astimezone(UTC) == datetime(2025, 6, 10, 5, tzinfo=UTC)
    assert parse_bound(date(2025, 6, 10)) == datetime(2025, 6, 10, tzinfo=UTC)


def test_parse_date_with_unknown_zone():
    got = parse_date("2025-06-01", "Not/AZone")
    assert got.tzinfo is not None
    assert got.date() == date(2025, 6, 1)
