from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, Literal

Mode = Literal["online", "offline", "hybrid"]
MODES: tuple[str, ...] = ("online", "offline", "hybrid")


def as_day(value: date) -> date:
    # datetime is a date subclass; keep only the calendar day
    if isinstance(value, datetime):
        return value.date()
    return value


@dataclass(frozen=True, slots=True)
class Event:
    id: str
    title: str
    date: date
    slug: str | None = None
    description: str = ""
    location: str = ""
    mode: str | None = None
    tags: tuple[str, ...] = ()
    organizer: str = ""
    venue: str | None = None
    price: float | None = None
    capacity: int | None = None

    @classmethod
    def from_mapping(cls, raw: dict[str, Any]) -> Event:
        raw_date = raw.get("date")
        if isinstance(raw_date, datetime):
            day = raw_date.date()
        elif isinstance(raw_date, date):
            day = raw_date
        else:
            # "2026-12-18" or "2026-12-18T19:00:00"; only the day matters
            day = date.fromisoformat(str(raw_date or "")[:10])
        tags = raw.get("tags") or []
        if isinstance(tags, str):
            tags = [tags]
        return cls(
            id=str(raw.get("id") or raw.get("slug") or ""),
            title=str(raw.get("title") or ""),
            date=day,
            slug=raw.get("slug"),
            description=str(raw.get("description") or ""),
            location=str(raw.get("location") or ""),
            mode=raw.get("mode"),
            tags=tuple(str(t) for t in tags if t),
            organizer=str(raw.get("organizer") or ""),
            venue=raw.get("venue"),
            price=raw.get("price"),
            capacity=raw.get("capacity"),
        )


@dataclass(frozen=True, slots=True)
class ExtractedFilter:
    location: str | None = None
    location_variants: tuple[str, ...] = ()
    mode: str | None = None
    tag: str | None = None
    date_from: date | None = None
    date_to: date | None = None
    # set by date normalization: date_to is the first day *after* the window
    date_to_exclusive: bool = False
    all: bool = False
    search: str | None = None

    @property
    def has_date_range(self) -> bool:
        return self.date_from is not None and self.date_to is not None

    def date_range(self) -> tuple[date, date] | None:
        """Inclusive (first_day, last_day) of the requested window, if any."""
        if not self.has_date_range:
            return None
        first = as_day(self.date_from)
        last = as_day(self.date_to)
        if self.date_to_exclusive:
            last = last - timedelta(days=1)
        return first, last

    def as_dict(self) -> dict[str, Any]:
        def _iso(value: Any) -> Any:
            if isinstance(value, date):
                return value.isoformat()
            return value

        return {
            "location": self.location,
            "location_variants": list(self.location_variants),
            "mode": self.mode,
            "tag": self.tag,
            "date_from": _iso(self.date_from),
            "date_to": _iso(self.date_to),
            "all": self.all,
            "search": self.search,
        }


@dataclass(slots=True)
class ScoredEvent:
    event: Event
    score: float


@dataclass(slots=True)
class EventPage:
    """One page of a listing or keyword search; `scores` is set on the prompt path."""

    events: list[Event]
    total: int
    page: int = 1
    per_page: int = 12
    scores: list[float] | None = None

    @property
    def total_pages(self) -> int:
        if self.per_page <= 0:
            return 0
        return math.ceil(self.total / self.per_page)


@dataclass(slots=True)
class EventStats:
    total: int = 0
    online: int = 0
    offline: int = 0
    hybrid: int = 0
