import asyncio
from datetime import timedelta

import pytest
from conftest import TODAY, build_event
from eventfinder.recommend.errors import StoreUnavailable
from eventfinder.recommend.types import ExtractedFilter
from eventfinder.storage import EventStore

EVENTS = [
    build_event(id="py-lx", title="Python Workshop", location="Lisboa, Portugal", tags=("Python", "Workshop")),
    build_event(
        id="jazz-porto",
        title="Jazz Night",
        location="Pórto",
        date=TODAY + timedelta(days=1),
        tags=("Música",),
    ),
    build_event(
        id="ml-online",
        title="Machine Learning Talk",
        location="",
        mode="online",
        date=TODAY + timedelta(days=5),
        tags=("Machine Learning", "Python"),
    ),
    build_event(id="old", title="Past Python Meetup", date=TODAY - timedelta(days=3)),
]


def run_with_store(tmp_path, body):
    async def scenario():
        store = EventStore(f"sqlite:///{tmp_path / 'events.db'}")
        try:
            await store.add_events(EVENTS)
            return await body(store)
        finally:
            await store.close()

    return asyncio.run(scenario())


def ids(events):
    return [event.id for event in events]


def test_distinct_tags(tmp_path):
    tags = run_with_store(tmp_path, lambda store: store.distinct_tags())
    assert tags == sorted({"Python", "Workshop", "Música", "Machine Learning"})


def test_upcoming_candidates_in_date_order(tmp_path):
    found = run_with_store(tmp_path, lambda store: store.fetch_candidates(ExtractedFilter(), 50, today=TODAY))
    assert ids(found) == ["py-lx", "jazz-porto", "ml-online"]
    assert found[0].tags == ("Python", "Workshop")


def test_location_matches_any_variant_ignoring_accents(tmp_path):
    porto = ExtractedFilter(location="porto", location_variants=("porto", "oporto"))
    lisboa = ExtractedFilter(location="lisboa", location_variants=("lisboa", "lisbon"))

    async def body(store):
        return (
            await store.fetch_candidates(porto, 10, today=TODAY),
            await store.fetch_candidates(lisboa, 10, today=TODAY),
        )

    in_porto, in_lisboa = run_with_store(tmp_path, body)
    assert ids(in_porto) == ["jazz-porto"]
    assert ids(in_lisboa) == ["py-lx"]


def test_mode_tag_and_window_filters(tmp_path):
    async def body(store):
        online = await store.fetch_candidates(ExtractedFilter(mode="online"), 10, today=TODAY)
        learning = await store.fetch_candidates(ExtractedFilter(tag="learning"), 10, today=TODAY)
        window = ExtractedFilter(date_from=TODAY - timedelta(days=7), date_to=TODAY)
        in_window = await store.fetch_candidates(window, 10, today=TODAY)
        capped = await store.fetch_candidates(ExtractedFilter(), 1, today=TODAY)
        return online, learning, in_window, capped

    online, learning, in_window, capped = run_with_store(tmp_path, body)
    assert ids(online) == ["ml-online"]
    assert ids(learning) == ["ml-online"]
    assert ids(in_window) == ["old", "py-lx"]
    assert ids(capped) == ["py-lx"]


def test_get_event_and_similar(tmp_path):
    async def body(store):
        reference = await store.get_event("py-lx")
        missing = await store.get_event("nope")
        similar = await store.fetch_similar(reference, 5, today=TODAY)
        return reference, missing, similar

    reference, missing, similar = run_with_store(tmp_path, body)
    assert reference.title == "Python Workshop"
    assert missing is None
    assert ids(similar) == ["ml-online"]


def test_add_events_replaces_by_id(tmp_path):
    async def body(store):
        await store.add_events([build_event(id="py-lx", title="Python Workshop II", tags=("Python",))])
        return await store.get_event("py-lx")

    event = run_with_store(tmp_path, body)
    assert event.title == "Python Workshop II"
    assert event.tags == ("Python",)


def test_unreachable_database_raises_store_unavailable(tmp_path):
    store = EventStore(f"sqlite:///{tmp_path / 'missing' / 'dir' / 'events.db'}")

    async def scenario():
        try:
            await store.distinct_tags()
        finally:
            await store.close()

    with pytest.raises(StoreUnavailable):
        asyncio.run(scenario())


def test_list_upcoming_pages_sorts_and_filters(tmp_path):
    async def body(store):
        return (
            await store.list_upcoming(page=2, per_page=2, today=TODAY),
            await store.list_upcoming(sort="date-desc", today=TODAY),
            await store.list_upcoming(sort="popular", today=TODAY),
            await store.list_upcoming(mode="online", today=TODAY),
            await store.list_upcoming(tag="PYTHON", today=TODAY),
        )

    second, latest, fallback, online, python = run_with_store(tmp_path, body)
    assert ids(second.events) == ["ml-online"]
    assert (second.total, second.page, second.total_pages) == (3, 2, 2)
    assert ids(latest.events) == ["ml-online", "jazz-porto", "py-lx"]
    assert ids(fallback.events) == ["py-lx", "jazz-porto", "ml-online"]
    assert ids(online.events) == ["ml-online"]
    assert ids(python.events) == ["py-lx", "ml-online"]


def test_search_events_matches_text_fields_and_tags(tmp_path):
    async def body(store):
        return (
            await store.search_events("JAZZ"),
            await store.search_events("musica"),
            await store.search_events("porto"),
            await store.search_events("   "),
            await store.search_events("pylisboa", page=2, per_page=3),
            await store.search_events("100%"),
        )

    jazz, musica, porto, blank, organizer, literal = run_with_store(tmp_path, body)
    assert ids(jazz.events) == ["jazz-porto"]
    assert ids(musica.events) == ["jazz-porto"]
    assert ids(porto.events) == ["jazz-porto"]
    # past events are searchable too
    assert ids(blank.events) == ["old", "py-lx", "jazz-porto", "ml-online"]
    assert ids(organizer.events) == ["ml-online"]
    assert (organizer.total, organizer.total_pages) == (4, 2)
    assert literal.total == 0


def test_event_stats_count_upcoming_by_mode(tmp_path):
    stats = run_with_store(tmp_path, lambda store: store.event_stats(today=TODAY))
    assert (stats.total, stats.online, stats.offline, stats.hybrid) == (3, 1, 2, 0)
