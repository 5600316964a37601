# calfeed/config.py
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

REQ_TIMEOUT = int(os.environ.get("CALFEED_REQ_TIMEOUT", "25"))
CACHE_SECONDS = int(os.environ.get("CALFEED_CACHE_SECONDS", "300"))
DEFAULT_TZ = os.environ.get("CALFEED_DEFAULT_TZ", "UTC")
WINDOW_DAYS = int(os.environ.get("CALFEED_WINDOW_DAYS", "90"))

CONFIG_CANDIDATES = ["calendars.yml", "calendars.yaml"]


@dataclass
class CalendarSource:
    name: str
    url: str
    tzname: Optional[str] = None


def find_config(explicit: Optional[Path] = None) -> Optional[Path]:
    if explicit is not None:
        return explicit if explicit.is_file() else None
    return next((Path(c) for c in CONFIG_CANDIDATES if os.path.isfile(c)), None)


def load_calendars(path: Optional[Path]) -> List[CalendarSource]:
    """
    Read `calendars:` from a YAML file. Disabled entries and entries missing
    a name or url are skipped.
    """
    if path is None or not path.exists():
        return []
    with path.open("r", encoding="utf-8") as f:
        raw: Dict[str, Any] = yaml.safe_load(f) or {}
    out: List[CalendarSource] = []
    for c in raw.get("calendars") or []:
        if not isinstance(c, dict):
            continue
        if c.get("enabled") is False:
            continue
        name, url = c.get("name"), c.get("url")
        if not name or not url:
            logging.warning("skipping calendar entry without name/url in %s: %r", path, c)
            continue
        out.append(CalendarSource(name=str(name), url=str(url), tzname=c.get("tzname")))
    return out


def get_calendar(sources: List[CalendarSource], name: str) -> Optional[CalendarSource]:
    return next((s for s in sources if s.name == name), None)
