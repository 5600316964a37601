# calfeed/models.py
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Tuple, Union

DEFAULT_TITLE = "Untitled Event"


@dataclass(frozen=True)
class Instant:
    timestamp: datetime      # always tz-aware
    zone: str

    def to_dict(self) -> Dict[str, Any]:
        return {"dateTime": self.timestamp.isoformat(), "timeZone": self.zone}


@dataclass(frozen=True)
class CalendarDate:
    year: int
    month: int
    day: int

    @classmethod
    def from_date(cls, d: date) -> "CalendarDate":
        return cls(d.year, d.month, d.day)

    def as_date(self) -> date:
        return date(self.year, self.month, self.day)

    def to_dict(self) -> Dict[str, Any]:
        return {"date": self.as_date().isoformat()}


TemporalBoundary = Union[Instant, CalendarDate]


@dataclass(frozen=True)
class Event:
    id: str
    start: TemporalBoundary
    end: Optional[TemporalBoundary] = None
    title: str = DEFAULT_TITLE
    description: Optional[str] = None
    location: Optional[str] = None
    external_link: Optional[str] = None

    @property
    def all_day(self) -> bool:
        return isinstance(self.start, CalendarDate)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "location": self.location,
            "start": self.start.to_dict(),
            "end": self.end.to_dict() if self.end else None,
            "allDay": self.all_day,
            "htmlLink": self.external_link,
        }


@dataclass(frozen=True)
class WeekRow:
    index: int
    days: Tuple[Optional[date], ...]   # 7 slots, Sunday first; None = padding

    @property
    def first_day(self) -> Optional[date]:
        return next((d for d in self.days if d is not None), None)

    @property
    def last_day(self) -> Optional[date]:
        return next((d for d in reversed(self.days) if d is not None), None)


@dataclass(frozen=True)
class Placement:
    event_id: str
    week_index: int
    start_column: int
    column_span: int
    row: int
    starts_here: bool = True
    ends_here: bool = True

    @property
    def end_column(self) -> int:
        """Exclusive end column."""
        return self.start_column + self.column_span

    def to_dict(self) -> Dict[str, Any]:
        return {
            "eventId": self.event_id,
            "weekIndex": self.week_index,
            "startColumn": self.start_column,
            "columnSpan": self.column_span,
            "row": self.row,
            "startsHere": self.starts_here,
            "endsHere": self.ends_here,
        }


@dataclass
class CalendarData:
    summary: str
    time_zone: str
    events: List[Event] = field(default_factory=list)
    updated: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "summary": self.summary,
            "timeZone": self.time_zone,
            "events": [e.to_dict() for e in self.events],
            "updated": self.updated.isoformat() if self.updated else None,
        }
