# calfeed/parse_ics.py
"""
iCalendar text -> normalized Event records.

Feed text comes from third parties, so nothing here raises for bad input:
a broken VEVENT block is dropped and the rest of the feed still parses.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple, Union

from .dates import DEFAULT_TZNAME, parse_boundary, safe_timezone
from .errors import InvalidDateToken, MalformedFeed, MissingRequiredField
from .models import DEFAULT_TITLE, CalendarData, Event

DEFAULT_CALENDAR_NAME = "Calendar"

_LINE_SPLIT = re.compile(r"\r?\n")
_CALNAME_RE = re.compile(r"X-WR-CALNAME[^:\n]*:(.+)")
_TIMEZONE_RE = re.compile(r"X-WR-TIMEZONE[^:\n]*:(.+)")


def unfold_lines(text: str) -> List[str]:
    """Join folded physical lines (leading space/tab) into logical lines."""
    lines: List[str] = []
    for raw in _LINE_SPLIT.split(text):
        if raw[:1] in (" ", "\t") and lines:
            lines[-1] += raw[1:]
        else:
            lines.append(raw)
    return lines


def unescape_text(s: str) -> str:
    # backslash-backslash must go last or it re-creates escapes
    return (
        s.replace("\\n", "\n")
        .replace("\\N", "\n")
        .replace("\\,", ",")
        .replace("\\;", ";")
        .replace("\\\\", "\\")
    )


def split_content_line(line: str) -> Optional[Tuple[str, Dict[str, str], str]]:
    """
    'DTSTART;VALUE=DATE:20250610' -> ('DTSTART', {'VALUE': 'DATE'}, '20250610').
    Colons inside quoted parameter values do not end the name part.
    """
    quoted = False
    colon = -1
    for i, ch in enumerate(line):
        if ch == '"':
            quoted = not quoted
        elif ch == ":" and not quoted:
            colon = i
            break
    if colon <= 0:
        return None
    head, value = line[:colon], line[colon + 1:]
    parts = head.split(";")
    params: Dict[str, str] = {}
    for p in parts[1:]:
        k, _, v = p.partition("=")
        params[k.strip().upper()] = v.strip().strip('"')
    return parts[0].strip().upper(), params, value


def _search_meta(pattern: re.Pattern, text: str) -> Optional[str]:
    m = pattern.search(text)
    if not m:
        return None
    return m.group(1).strip() or None


def extract_calendar_name(text: str) -> Optional[str]:
    name = _search_meta(_CALNAME_RE, text)
    return unescape_text(name) if name else None


def extract_timezone(text: str) -> Optional[str]:
    return _search_meta(_TIMEZONE_RE, text)


def resolve_timezone(text: str, default_tz: str = DEFAULT_TZNAME) -> str:
    """Feed X-WR-TIMEZONE when it names a real zone, else `default_tz`."""
    return safe_timezone(extract_timezone(text), default_tz).zone


def _apply_field(cur: dict, key: str, params: Dict[str, str], value: str, fallback_tz: str) -> None:
    if key == "UID":
        cur["id"] = value.strip()
    elif key == "SUMMARY":
        cur["title"] = unescape_text(value).strip() or DEFAULT_TITLE
    elif key == "DESCRIPTION":
        cur["description"] = unescape_text(value)
    elif key == "LOCATION":
        cur["location"] = unescape_text(value)
    elif key == "URL":
        cur["external_link"] = value.strip() or None
    elif key in ("DTSTART", "DTEND"):
        field = "start" if key == "DTSTART" else "end"
        is_date = params.get("VALUE", "").upper() == "DATE"
        try:
            cur[field] = parse_boundary(value, is_date, params.get("TZID"), fallback_tz)
        except InvalidDateToken as ex:
            logging.debug("ignoring %s with bad date token %r", key, str(ex))
            cur.pop(field, None)


def _commit(cur: dict) -> Event:
    if not cur.get("id") or cur.get("start") is None:
        raise MissingRequiredField(f"event without UID/DTSTART: {cur.get('title', DEFAULT_TITLE)!r}")
    return Event(
        id=cur["id"],
        start=cur["start"],
        end=cur.get("end"),
        title=cur.get("title", DEFAULT_TITLE),
        description=cur.get("description"),
        location=cur.get("location"),
        external_link=cur.get("external_link"),
    )


def _iter_events(lines: List[str], fallback_tz: str):
    cur: Optional[dict] = None
    nested = 0
    for line in lines:
        line = line.rstrip("\r")
        upper = line.strip().upper()
        if upper == "BEGIN:VEVENT":
            if cur is not None:
                logging.debug("VEVENT opened inside VEVENT; dropping the open one")
            cur, nested = {}, 0
            continue
        if cur is None:
            continue
        if upper == "END:VEVENT":
            try:
                yield _commit(cur)
            except MissingRequiredField as ex:
                logging.debug("dropped: %s", ex)
            cur = None
            continue
        # VALARM and friends carry their own DESCRIPTION/SUMMARY
        if upper.startswith("BEGIN:"):
            nested += 1
            continue
        if upper.startswith("END:"):
            nested = max(0, nested - 1)
            continue
        if nested:
            continue
        parsed = split_content_line(line)
        if parsed is None:
            continue
        _apply_field(cur, *parsed, fallback_tz=fallback_tz)
    if cur is not None:
        raise MalformedFeed("feed ended inside a VEVENT block")


def _as_text(feed: Union[str, bytes, None]) -> str:
    if feed is None:
        return ""
    if isinstance(feed, bytes):
        return feed.decode("utf-8", errors="replace")
    return feed


def parse_events(feed: Union[str, bytes, None], default_tz: str = DEFAULT_TZNAME) -> List[Event]:
    """
    Parse every committed VEVENT in feed order. Floating date-times are read in
    the feed's X-WR-TIMEZONE, or `default_tz` when the feed names none.
    """
    text = _as_text(feed)
    fallback_tz = resolve_timezone(text, default_tz)
    events: List[Event] = []
    try:
        for event in _iter_events(unfold_lines(text), fallback_tz):
            events.append(event)
    except MalformedFeed as ex:
        logging.debug("keeping %d events from truncated feed: %s", len(events), ex)
    return events


def parse_feed(
    feed: Union[str, bytes, None],
    default_name: str = DEFAULT_CALENDAR_NAME,
    default_tz: str = DEFAULT_TZNAME,
) -> CalendarData:
    text = _as_text(feed)
    tzname = resolve_timezone(text, default_tz)
    events = parse_events(text, default_tz=tzname)
    return CalendarData(
        summary=extract_calendar_name(text) or default_name,
        time_zone=tzname,
        events=events,
        updated=datetime.now(timezone.utc),
    )
