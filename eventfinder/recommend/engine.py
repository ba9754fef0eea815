from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from datetime import date
from typing import Any, Protocol

from ..settings import settings
from .constraints import apply_overrides, normalize_dates, validate_filters
from .dates import current_date
from .errors import InvalidMode
from .intent import extract_filters
from .scorer import score_candidates
from .selector import select_schedule
from .types import MODES, Event, EventPage, EventStats, ExtractedFilter, ScoredEvent

logger = logging.getLogger(__name__)


class EventSource(Protocol):
    async def distinct_tags(self) -> Sequence[str]: ...

    async def fetch_candidates(
        self, filters: ExtractedFilter, cap: int, *, today: date | None = None
    ) -> Sequence[Event]: ...

    async def get_event(self, slug_or_id: str) -> Event | None: ...

    async def fetch_similar(
        self, event: Event, limit: int, *, today: date | None = None
    ) -> Sequence[Event]: ...

    async def list_upcoming(
        self,
        *,
        mode: str | None = None,
        tag: str | None = None,
        sort: str | None = None,
        page: int = 1,
        per_page: int = 12,
        today: date | None = None,
    ) -> EventPage: ...

    async def search_events(self, query: str, *, page: int = 1, per_page: int = 12) -> EventPage: ...

    async def event_stats(self, *, today: date | None = None) -> EventStats: ...


def ranking_window(limit: int) -> int:
    return max(limit * settings.RANK_CANDIDATE_MULTIPLIER, settings.RANK_CANDIDATE_MIN)


class RecommendationEngine:
    """
    Prompt in, events out.

    Both entry points share the same front half (tags from the store, prompt
    extraction, validation, date normalization, candidate fetch) and then hand
    the window to either the relevance scorer (`rank`) or the schedule
    selector (`select`). Nothing is cached between calls.
    """

    def __init__(
        self,
        store: EventSource,
        known_cities: Sequence[str] | None = None,
        clock: Callable[[], date] = current_date,
    ) -> None:
        self.store = store
        self.known_cities = list(known_cities) if known_cities is not None else None
        self.clock = clock

    async def _known_tags(self) -> list[str]:
        return [str(tag) for tag in await self.store.distinct_tags() if tag]

    async def parse(self, query: str) -> ExtractedFilter:
        known_tags = await self._known_tags()
        return extract_filters(query, known_tags, self.known_cities, today=self.clock())

    async def _prepare(
        self, query: str, today: date, overrides: dict[str, Any]
    ) -> ExtractedFilter:
        known_tags = await self._known_tags()
        filters = extract_filters(query, known_tags, self.known_cities, today=today)
        filters = apply_overrides(filters, **overrides)
        validate_filters(filters, known_tags)
        return normalize_dates(filters, today=today)

    async def rank(
        self, query: str, limit: int | None = None, **overrides: Any
    ) -> list[ScoredEvent]:
        if not query or not query.strip():
            return []
        limit = limit or settings.RANK_DEFAULT_LIMIT
        today = self.clock()

        filters = await self._prepare(query, today, overrides)
        window = list(await self.store.fetch_candidates(filters, ranking_window(limit), today=today))
        logger.debug("Ranking %d candidates for filters %s", len(window), filters.as_dict())

        return score_candidates(
            window, filters.search or query, tag=filters.tag, limit=limit, today=today
        )

    async def select(
        self,
        query: str,
        limit: int | None = None,
        candidate_cap: int | None = None,
        **overrides: Any,
    ) -> list[ScoredEvent]:
        limit = limit or settings.SELECT_DEFAULT_LIMIT
        cap = candidate_cap or settings.SELECT_CANDIDATE_CAP
        today = self.clock()

        filters = await self._prepare(query or "", today, overrides)
        window = list(await self.store.fetch_candidates(filters, cap, today=today))
        logger.debug("Scheduling over %d candidates for filters %s", len(window), filters.as_dict())

        return select_schedule(
            window, filters, filters.search or query or "", limit=limit, today=today
        )

    async def similar(self, slug_or_id: str, limit: int = 3) -> list[Event]:
        reference = await self.store.get_event(slug_or_id)
        if reference is None:
            logger.warning("Reference event not found: %s", slug_or_id)
            return []
        return list(await self.store.fetch_similar(reference, limit, today=self.clock()))

    async def list_events(
        self,
        prompt: str | None = None,
        page: int = 1,
        limit: int | None = None,
        mode: str | None = None,
        tag: str | None = None,
        sort: str | None = None,
    ) -> EventPage:
        """
        Browse upcoming events.

        A non-blank prompt replaces the listing with a conflict-free schedule
        for that prompt, returned as a single page. Otherwise mode and tag
        narrow the upcoming events; the tag is a case-insensitive substring.
        """
        limit = limit or settings.LIST_PAGE_SIZE
        if prompt and prompt.strip():
            results = await self.select(prompt, limit=limit)
            return EventPage(
                events=[item.event for item in results],
                total=len(results),
                page=1,
                # the "all" intent can return more than limit; still one page
                per_page=max(limit, len(results)),
                scores=[item.score for item in results],
            )

        mode = (mode or "").strip() or None
        if mode and mode not in MODES:
            raise InvalidMode(f"mode must be one of {', '.join(MODES)}; got {mode!r}")
        return await self.store.list_upcoming(
            mode=mode,
            tag=(tag or "").strip() or None,
            sort=sort,
            page=page,
            per_page=limit,
            today=self.clock(),
        )

    async def search(self, query: str, page: int = 1, limit: int | None = None) -> EventPage:
        return await self.store.search_events(
            query or "", page=page, per_page=limit or settings.LIST_PAGE_SIZE
        )

    async def stats(self) -> EventStats:
        return await self.store.event_stats(today=self.clock())

    async def tags(self) -> list[str]:
        return await self._known_tags()


__all__ = ["EventSource", "RecommendationEngine", "ranking_window"]
