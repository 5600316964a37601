# calfeed/ics_fetch.py
from __future__ import annotations

import logging
import re
import time
from typing import Dict, List, Optional, Tuple
from urllib.parse import quote, unquote

import requests

from . import config
from .errors import FeedFetchError

UA = "calfeed/1.0 (+https://github.com/calfeed/calfeed)"

HEADERS = {
    "User-Agent": UA,
    "Accept": "text/calendar, text/plain, */*;q=0.8",
}

ICAL_BASE = "https://calendar.google.com/calendar/ical"

_SRC_PATTERNS = [
    re.compile(r"src=([^&]+)"),
    re.compile(r"calendar/embed\?.*src=([^&]+)"),
    re.compile(r"calendar/u/0/embed\?.*src=([^&]+)"),
]
_ICAL_PATH = re.compile(r"calendar/ical/([^/]+)")

# calendar id or feed url -> (fetched_at, text)
_CACHE: Dict[str, Tuple[float, str]] = {}


def extract_calendar_id(value: str) -> Optional[str]:
    """
    Accepts a bare calendar id (`abc@group.calendar.google.com`), an embed URL
    with `src=...`, or a `calendar/ical/<id>/...` export URL.
    """
    value = (value or "").strip()
    if not value:
        return None
    if "@" in value and "http" not in value:
        return value
    for pat in _SRC_PATTERNS:
        m = pat.search(value)
        if m:
            return unquote(m.group(1))
    m = _ICAL_PATH.search(value)
    if m:
        return unquote(m.group(1))
    return None


def feed_urls(calendar_id: str) -> List[str]:
    cid = quote(calendar_id, safe="")
    return [
        f"{ICAL_BASE}/{cid}/public/basic.ics",
        f"{ICAL_BASE}/{cid}/public/full.ics",
    ]


def _looks_like_ics(text: str, content_type: str) -> bool:
    return "text/calendar" in content_type.lower() or "BEGIN:VCALENDAR" in text[:2000]


def _try_get(url: str, timeout: int) -> str:
    r = requests.get(url, headers=HEADERS, timeout=timeout, allow_redirects=True)
    r.raise_for_status()
    if not _looks_like_ics(r.text, r.headers.get("Content-Type", "")):
        raise FeedFetchError(f"not an iCalendar document: {url}")
    return r.text


def clear_cache() -> None:
    _CACHE.clear()


def get_ics_text(source: str, timeout: Optional[int] = None, cache_seconds: Optional[int] = None) -> str:
    """
    Fetch raw feed text for a calendar id or URL. A direct .ics/webcal URL is
    fetched as-is; a Google calendar id tries basic.ics then full.ics.
    Raises FeedFetchError when every attempt fails.
    """
    timeout = config.REQ_TIMEOUT if timeout is None else timeout
    ttl = config.CACHE_SECONDS if cache_seconds is None else cache_seconds

    source = (source or "").strip()
    if source.startswith("webcal://"):
        source = "https://" + source[len("webcal://"):]

    if source.startswith("http") and "calendar.google.com" not in source:
        key, urls = source, [source]
    else:
        cid = extract_calendar_id(source)
        if not cid:
            raise FeedFetchError(f"invalid calendar id or URL: {source!r}")
        key, urls = cid, feed_urls(cid)

    now = time.monotonic()
    for stale in [k for k, (t, _) in _CACHE.items() if now - t >= ttl]:
        del _CACHE[stale]
    hit = _CACHE.get(key)
    if hit:
        return hit[1]

    tried = []
    for url in urls:
        try:
            text = _try_get(url, timeout)
        except (requests.RequestException, FeedFetchError) as e:
            logging.info("feed fetch failed for %s: %s", url, e)
            tried.append((url, repr(e)))
            continue
        _CACHE[key] = (now, text)
        return text

    raise FeedFetchError(
        f"Calendar not found or not public. Make sure the calendar is set to public. Tried: {tried}"
    )
