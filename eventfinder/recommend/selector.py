"""Conflict-free schedule selection.

Picks up to ``limit`` events, no two on the same calendar day, minimizing the
summed cost (missing query terms plus a date-distance penalty). The search is
a depth-first backtracking over candidates sorted by cost, with
branch-and-bound pruning against the best set found so far.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import date

from .dates import current_date, days_until
from .normalize import tokenize
from .types import Event, ExtractedFilter, ScoredEvent, as_day

logger = logging.getLogger(__name__)

DATE_PENALTY_DAYS = 30

STOPWORDS = frozenset(
    {
        # pt
        "quero",
        "quer",
        "mostrar",
        "ver",
        "eventos",
        "evento",
        "em",
        "no",
        "na",
        "nos",
        "nas",
        "por",
        "do",
        "da",
        "de",
        "para",
        "todos",
        "os",
        "as",
        "o",
        "a",
        # en
        "all",
        "show",
        "list",
        "me",
        "i",
        "want",
        "events",
        "event",
        "in",
        "at",
        "the",
        "near",
    }
)


def event_tokens(event: Event) -> set[str]:
    text = " ".join([event.title, event.description, *event.tags, event.location])
    return set(tokenize(text))


def candidate_cost(event: Event, query_tokens: Sequence[str], today: date) -> float:
    present = event_tokens(event)
    missing = sum(1 for token in query_tokens if token not in present)
    penalty = max(0, days_until(event.date, today)) / DATE_PENALTY_DAYS
    return missing + penalty


def is_location_only(filters: ExtractedFilter, query_tokens: Sequence[str]) -> bool:
    """True when the prompt says nothing beyond the place it names."""
    if not filters.location:
        return False
    significant = [token for token in query_tokens if token not in STOPWORDS]
    if not significant:
        return True
    variants = filters.location_variants or (filters.location,)
    location_tokens = {token for variant in variants for token in tokenize(variant)}
    return all(token in location_tokens for token in significant)


@dataclass(slots=True)
class SearchState:
    """Mutable state of one selector run; never shared between runs."""

    costs: list[float]
    days: list[date]
    max_depth: int
    # days present among candidates[i:]; minus the days already used, this bounds how far a branch can grow
    suffix_days: list[frozenset[date]]
    chosen: list[int] = field(default_factory=list)
    used_days: set[date] = field(default_factory=set)
    best: list[int] = field(default_factory=list)
    best_cost: float = math.inf
    visits: int = 0

    @classmethod
    def for_window(cls, costs: list[float], days: list[date], max_depth: int) -> SearchState:
        suffix_days: list[frozenset[date]] = [frozenset()] * (len(days) + 1)
        for i in range(len(days) - 1, -1, -1):
            suffix_days[i] = suffix_days[i + 1] | {days[i]}
        return cls(costs=costs, days=days, max_depth=max_depth, suffix_days=suffix_days)

    def improves(self, cost: float, size: int) -> bool:
        # strictly cheaper, or as cheap with more events; plain ties never replace the best
        return cost < self.best_cost or (cost == self.best_cost and size > len(self.best))

    def record(self, cost: float) -> None:
        self.best = list(self.chosen)
        self.best_cost = cost


def _backtrack(state: SearchState, start: int, current_cost: float) -> None:
    state.visits += 1
    depth = len(state.chosen)
    if depth and state.improves(current_cost, depth):
        state.record(current_cost)
    if depth == state.max_depth:
        return

    for i in range(start, len(state.costs)):
        day = state.days[i]
        if day in state.used_days:
            continue
        new_cost = current_cost + state.costs[i]
        if new_cost > state.best_cost:
            # costs ascend, so no later candidate fits either
            break
        if new_cost == state.best_cost:
            fresh_days = len(state.suffix_days[i + 1] - state.used_days - {day})
            reachable = depth + 1 + min(state.max_depth - depth - 1, fresh_days)
            if reachable <= len(state.best):
                continue

        state.chosen.append(i)
        state.used_days.add(day)
        _backtrack(state, i + 1, new_cost)
        state.used_days.discard(day)
        state.chosen.pop()


def select_schedule(
    candidates: Sequence[Event],
    filters: ExtractedFilter,
    query_text: str,
    *,
    limit: int = 5,
    today: date | None = None,
) -> list[ScoredEvent]:
    if not candidates:
        return []

    if filters.all:
        logger.debug("Selector returning whole window (%d events)", len(candidates))
        return [ScoredEvent(event=event, score=0.0) for event in candidates]

    today = today or current_date()
    query_tokens = tokenize(query_text)
    ranked = sorted(
        (ScoredEvent(event=event, score=candidate_cost(event, query_tokens, today)) for event in candidates),
        key=lambda item: item.score,
    )

    if is_location_only(filters, query_tokens):
        logger.debug("Selector taking location-only path for %s", filters.location)
        return ranked[: max(0, limit)]

    max_depth = min(limit, len(ranked))
    if max_depth <= 0:
        return []
    state = SearchState.for_window(
        costs=[item.score for item in ranked],
        days=[as_day(item.event.date) for item in ranked],
        max_depth=max_depth,
    )
    _backtrack(state, 0, 0.0)

    logger.debug(
        "Selector picked %d of %d candidates, total cost %.3f",
        len(state.best),
        len(ranked),
        state.best_cost if state.best else 0.0,
    )
    return [ScoredEvent(event=ranked[i].event, score=state.best_cost) for i in state.best]


__all__ = [
    "STOPWORDS",
    "SearchState",
    "candidate_cost",
    "event_tokens",
    "is_location_only",
    "select_schedule",
]
