# scripts/check_calendars.py
"""
Validate calendars.yml: every enabled entry needs a name and a url that
resolves to a calendar id or a direct .ics URL.

Usage: python scripts/check_calendars.py [path]
"""
import sys
from pathlib import Path

from calfeed.config import find_config, load_calendars
from calfeed.ics_fetch import extract_calendar_id


def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv
    path = find_config(Path(argv[0]) if argv else None)
    if not path:
        print("ERROR: calendars.yml not found.", file=sys.stderr)
        return 1

    calendars = load_calendars(path)
    bad = [c for c in calendars if not (c.url.startswith(("http", "webcal")) or extract_calendar_id(c.url))]
    for c in bad:
        print(f"ERROR: {c.name}: cannot resolve calendar from {c.url!r}", file=sys.stderr)

    if not calendars:
        print("ERROR: no valid calendars found.", file=sys.stderr)
        return 1
    print(f"{len(calendars) - len(bad)} of {len(calendars)} calendars OK in {path}")
    return 1 if bad else 0


if __name__ == "__main__":
    sys.exit(main())
