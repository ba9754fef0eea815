from __future__ import annotations

import datetime as dt
from typing import Literal

from pydantic import BaseModel, Field

from .recommend.types import Event, EventPage, EventStats, ExtractedFilter, ScoredEvent


class ParsePromptRequest(BaseModel):
    prompt: str = Field(default="", max_length=600)


class ParsedPrompt(BaseModel):
    location: str | None = None
    location_variants: list[str] = Field(default_factory=list)
    mode: Literal["online", "offline", "hybrid"] | None = None
    tag: str | None = None
    date_from: dt.date | None = None
    date_to: dt.date | None = None
    all: bool = False
    search: str | None = None

    @classmethod
    def from_filter(cls, filters: ExtractedFilter) -> ParsedPrompt:
        return cls(**filters.as_dict())


class ParsePromptResponse(BaseModel):
    parsed: ParsedPrompt


class RecommendRequest(BaseModel):
    prompt: str = Field(default="", max_length=600)
    limit: int = Field(default=10, ge=1, le=100)
    mode: str | None = Field(default=None, max_length=16)
    tag: str | None = Field(default=None, max_length=80)
    # ISO dates or datetimes; validated by the recommendation pipeline
    date_from: str | None = None
    date_to: str | None = None

    def overrides(self) -> dict[str, str | None]:
        return {
            "mode": self.mode,
            "tag": self.tag,
            "date_from": self.date_from,
            "date_to": self.date_to,
        }


class ScheduleRequest(RecommendRequest):
    limit: int = Field(default=5, ge=1, le=20)
    candidate_cap: int = Field(default=200, ge=1, le=1000)


class EventResult(BaseModel):
    id: str
    slug: str | None = None
    title: str
    description: str = ""
    date: dt.date
    location: str = ""
    mode: str | None = None
    tags: list[str] = Field(default_factory=list)
    organizer: str = ""
    venue: str | None = None
    price: float | None = None
    capacity: int | None = None
    score: float | None = None

    @classmethod
    def from_event(cls, event: Event, score: float | None = None) -> EventResult:
        return cls(
            id=event.id,
            slug=event.slug,
            title=event.title,
            description=event.description,
            date=event.date,
            location=event.location,
            mode=event.mode,
            tags=list(event.tags),
            organizer=event.organizer,
            venue=event.venue,
            price=event.price,
            capacity=event.capacity,
            score=round(score, 4) if score is not None else None,
        )

    @classmethod
    def from_scored(cls, item: ScoredEvent) -> EventResult:
        return cls.from_event(item.event, item.score)


class RecommendResponse(BaseModel):
    results: list[EventResult]


class EventPageResponse(BaseModel):
    results: list[EventResult]
    total: int
    page: int
    total_pages: int

    @classmethod
    def from_page(cls, page: EventPage) -> EventPageResponse:
        scores = page.scores or [None] * len(page.events)
        return cls(
            results=[EventResult.from_event(event, score) for event, score in zip(page.events, scores)],
            total=page.total,
            page=page.page,
            total_pages=page.total_pages,
        )


class EventStatsResponse(BaseModel):
    total_events: int
    online_events: int
    offline_events: int
    hybrid_events: int

    @classmethod
    def from_stats(cls, stats: EventStats) -> EventStatsResponse:
        return cls(
            total_events=stats.total,
            online_events=stats.online,
            offline_events=stats.offline,
            hybrid_events=stats.hybrid,
        )


class TagsResponse(BaseModel):
    tags: list[str]


class HealthResponse(BaseModel):
    status: Literal["ok"] = "ok"
    service: str
    version: str
