import os
import sys
from datetime import date, timedelta
from pathlib import Path

import pytest
import sentry_sdk

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# Disable outbound Sentry calls during tests
sentry_sdk.init = lambda *args, **kwargs: None  # type: ignore[assignment]
os.environ["SENTRY_DSN"] = ""
test_data_dir = ROOT / "artifacts" / "test-data"
test_data_dir.mkdir(parents=True, exist_ok=True)
os.environ["DATA_DIR"] = str(test_data_dir)

from eventfinder.recommend.errors import StoreUnavailable  # noqa: E402
from eventfinder.recommend.normalize import normalize_text  # noqa: E402
from eventfinder.recommend.types import Event, EventPage, EventStats, ExtractedFilter  # noqa: E402

# A Monday; every test pins "today" here instead of reading the clock.
TODAY = date(2026, 10, 19)


def build_event(**overrides) -> Event:
    base = dict(
        id="evt-1",
        slug="evt-1",
        title="Python Workshop",
        description="Hands-on introduction to Python",
        date=TODAY,
        location="Lisboa",
        mode="offline",
        tags=("Python",),
        organizer="PyLisboa",
    )
    base.update(overrides)
    if "slug" not in overrides:
        base["slug"] = base["id"]
    return Event(**base)


class FakeStore:
    """In-memory stand-in for EventStore with the same filtering rules."""

    def __init__(self, events=(), tags=None):
        self.events = list(events)
        self.tags = tags
        self.calls: list[tuple[ExtractedFilter, int]] = []

    async def distinct_tags(self):
        if self.tags is not None:
            return list(self.tags)
        return sorted({tag for event in self.events for tag in event.tags})

    async def fetch_candidates(self, filters, cap, *, today=None):
        self.calls.append((filters, cap))
        today = today or TODAY
        window = filters.date_range()
        out = []
        for event in self.events:
            if window and not (window[0] <= event.date <= window[1]):
                continue
            if not window and event.date < today:
                continue
            if filters.location:
                keys = [normalize_text(v) for v in filters.location_variants or (filters.location,)]
                if not any(key in normalize_text(event.location) for key in keys):
                    continue
            if filters.mode and event.mode != filters.mode:
                continue
            if filters.tag:
                wanted = normalize_text(filters.tag)
                if not any(wanted in normalize_text(tag) for tag in event.tags):
                    continue
            out.append(event)
        out.sort(key=lambda event: (event.date, event.id))
        return out[:cap]

    async def get_event(self, slug_or_id):
        for event in self.events:
            if slug_or_id in (event.id, event.slug):
                return event
        return None

    async def fetch_similar(self, event, limit, *, today=None):
        today = today or TODAY
        shared = [
            other
            for other in self.events
            if other.id != event.id and other.date >= today and set(other.tags) & set(event.tags)
        ]
        shared.sort(key=lambda other: other.date)
        return shared[:limit]

    @staticmethod
    def _page(events, page, per_page):
        start = (page - 1) * per_page
        return EventPage(
            events=events[start : start + per_page], total=len(events), page=page, per_page=per_page
        )

    async def list_upcoming(self, *, mode=None, tag=None, sort=None, page=1, per_page=12, today=None):
        today = today or TODAY
        found = [event for event in self.events if event.date >= today]
        if mode:
            found = [event for event in found if event.mode == mode]
        if tag:
            wanted = normalize_text(tag)
            found = [event for event in found if any(wanted in normalize_text(t) for t in event.tags)]
        found.sort(key=lambda event: (event.date, event.id), reverse=sort == "date-desc")
        return self._page(found, page, per_page)

    async def search_events(self, query, *, page=1, per_page=12):
        needle = query.strip().lower()
        found = [
            event
            for event in self.events
            if not needle
            or any(
                needle in field.lower()
                for field in (event.title, event.description, event.organizer, event.location, *event.tags)
            )
        ]
        found.sort(key=lambda event: (event.date, event.id))
        return self._page(found, page, per_page)

    async def event_stats(self, *, today=None):
        upcoming = [event for event in self.events if event.date >= (today or TODAY)]
        return EventStats(
            total=len(upcoming),
            online=sum(event.mode == "online" for event in upcoming),
            offline=sum(event.mode == "offline" for event in upcoming),
            hybrid=sum(event.mode == "hybrid" for event in upcoming),
        )


class BrokenStore(FakeStore):
    async def fetch_candidates(self, filters, cap, *, today=None):
        raise StoreUnavailable("event store unavailable")


@pytest.fixture
def fake_store() -> FakeStore:
    return FakeStore(
        [
            build_event(),
            build_event(
                id="evt-2",
                title="Data Science Meetup",
                description="Pandas and notebooks",
                date=TODAY + timedelta(days=2),
                tags=("Data", "Python"),
            ),
            build_event(
                id="evt-3",
                title="Jazz Night",
                description="Live jazz quartet",
                date=TODAY + timedelta(days=1),
                location="Porto",
                tags=("Music",),
            ),
            build_event(
                id="evt-4",
                title="Remote Rust Talk",
                description="Ownership explained",
                date=TODAY + timedelta(days=3),
                location="",
                mode="online",
                tags=("Rust",),
            ),
        ]
    )
