import math
from datetime import timedelta

from conftest import TODAY, build_event
from eventfinder.recommend.selector import (
    SearchState,
    _backtrack,
    candidate_cost,
    is_location_only,
    select_schedule,
)
from eventfinder.recommend.types import ExtractedFilter

NO_FILTERS = ExtractedFilter()


def matching_events(count, *, same_day=False):
    # every event carries every query token and sits on or before today (zero date penalty)
    return [
        build_event(
            id=f"evt-{i}",
            title=f"Python Workshop {i}",
            date=TODAY if same_day else TODAY - timedelta(days=i),
        )
        for i in range(count)
    ]


def test_candidate_cost_counts_missing_tokens_and_distance():
    event = build_event(title="Python Workshop", date=TODAY + timedelta(days=15))
    assert math.isclose(candidate_cost(event, ["python", "django"], TODAY), 1.5)


def test_conflict_free_zero_cost_window_is_returned_whole():
    window = matching_events(3)
    chosen = select_schedule(window, NO_FILTERS, "python workshop", limit=5, today=TODAY)
    assert sorted(item.event.id for item in chosen) == ["evt-0", "evt-1", "evt-2"]
    assert all(item.score == 0 for item in chosen)


def test_limit_bounds_the_schedule():
    chosen = select_schedule(matching_events(3), NO_FILTERS, "python workshop", limit=2, today=TODAY)
    assert len(chosen) == 2
    assert all(item.score == 0 for item in chosen)


def test_same_day_events_are_never_both_selected():
    window = matching_events(2, same_day=True) + [
        build_event(id="other-day", title="Python Workshop", date=TODAY - timedelta(days=1))
    ]
    chosen = select_schedule(window, NO_FILTERS, "python workshop", limit=5, today=TODAY)
    days = [item.event.date for item in chosen]
    assert len(days) == len(set(days)) == 2
    assert "other-day" in {item.event.id for item in chosen}


def test_schedule_days_are_distinct_over_mixed_window():
    window = [
        build_event(id=f"evt-{i}", title=("Python" if i % 2 else "Jazz"), date=TODAY + timedelta(days=i % 4))
        for i in range(12)
    ]
    chosen = select_schedule(window, NO_FILTERS, "python night", limit=4, today=TODAY)
    days = [item.event.date for item in chosen]
    assert chosen
    assert len(days) == len(set(days))


def test_costlier_additions_do_not_replace_a_cheaper_set():
    cheap = build_event(id="cheap", title="Python Workshop", date=TODAY)
    costly = build_event(id="costly", title="Jazz", description="", tags=(), date=TODAY - timedelta(days=1))
    chosen = select_schedule([costly, cheap], NO_FILTERS, "python workshop", limit=2, today=TODAY)
    assert [item.event.id for item in chosen] == ["cheap"]
    assert chosen[0].score == 0


def test_all_intent_returns_whole_window():
    window = matching_events(4, same_day=True)
    chosen = select_schedule(window, ExtractedFilter(all=True, search=""), "todos", limit=2, today=TODAY)
    assert [item.event.id for item in chosen] == [event.id for event in window]
    assert all(item.score == 0.0 for item in chosen)


def test_location_only_query_takes_cheapest():
    filters = ExtractedFilter(location="lisboa", location_variants=("lisboa", "lisbon"))
    window = [
        build_event(id="late", date=TODAY + timedelta(days=20)),
        build_event(id="soon", date=TODAY + timedelta(days=1)),
        build_event(id="soon-too", date=TODAY + timedelta(days=1)),
    ]
    chosen = select_schedule(window, filters, "eventos em Lisbon", limit=2, today=TODAY)
    # same-day events are allowed on this path
    assert [item.event.id for item in chosen] == ["soon", "soon-too"]
    assert chosen[0].score <= chosen[1].score


def test_is_location_only():
    filters = ExtractedFilter(location="porto", location_variants=("porto",))
    assert is_location_only(filters, ["eventos", "no", "porto"])
    assert is_location_only(filters, [])
    assert not is_location_only(filters, ["jazz", "no", "porto"])
    assert not is_location_only(NO_FILTERS, ["porto"])


def test_empty_window_selects_nothing():
    assert select_schedule([], NO_FILTERS, "python", today=TODAY) == []


def test_equal_cost_search_stays_linear_when_days_run_out():
    # 200 zero-cost candidates over 4 days: once one event per day is chosen,
    # no equal-cost branch can grow the schedule, so none is explored.
    days = [TODAY - timedelta(days=i % 4) for i in range(200)]
    state = SearchState.for_window(costs=[0.0] * 200, days=days, max_depth=5)
    _backtrack(state, 0, 0.0)
    assert len(state.best) == 4
    assert state.best_cost == 0
    assert state.visits <= 10


def test_large_zero_cost_window_is_scheduled_one_per_day():
    window = [
        build_event(id=f"evt-{i:03d}", title="Python Workshop", date=TODAY - timedelta(days=i % 6))
        for i in range(200)
    ]
    chosen = select_schedule(window, NO_FILTERS, "", limit=8, today=TODAY)
    days = {item.event.date for item in chosen}
    assert len(chosen) == len(days) == 6
    assert all(item.score == 0 for item in chosen)
