from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query

from ...logging_config import get_logger
from ...recommend import RecommendationEngine
from ...recommend.errors import FilterValidationError
from ...schemas import EventPageResponse, EventStatsResponse, TagsResponse
from ...utils import prompt_fingerprint
from .recommendations import _invalid, get_engine

router = APIRouter(tags=["events"])
logger = get_logger(__name__)

LISTING_FAILURE_DETAIL = "Failed to load events"


@router.get("/events", response_model=EventPageResponse)
async def list_events(
    page: int = Query(1, ge=1),
    limit: int = Query(12, ge=1, le=100),
    prompt: str | None = Query(None, max_length=600),
    mode: str | None = Query(None, max_length=16),
    tag: str | None = Query(None, max_length=80),
    sort: str | None = Query(None, max_length=16),
    engine: RecommendationEngine = Depends(get_engine),
) -> EventPageResponse:
    try:
        result = await engine.list_events(
            prompt=prompt, page=page, limit=limit, mode=mode, tag=tag, sort=sort
        )
    except FilterValidationError as exc:
        raise _invalid(exc) from exc
    except Exception:
        logger.exception(
            "list_events_failed",
            prompt_fingerprint=prompt_fingerprint(prompt) if prompt else None,
            page=page,
            mode=mode,
        )
        raise HTTPException(status_code=500, detail=LISTING_FAILURE_DETAIL) from None
    return EventPageResponse.from_page(result)


@router.get("/events/search", response_model=EventPageResponse)
async def search_events(
    q: str = Query("", max_length=200),
    page: int = Query(1, ge=1),
    limit: int = Query(12, ge=1, le=100),
    engine: RecommendationEngine = Depends(get_engine),
) -> EventPageResponse:
    try:
        result = await engine.search(q, page=page, limit=limit)
    except Exception:
        logger.exception("search_events_failed", page=page, query_length=len(q))
        raise HTTPException(status_code=500, detail=LISTING_FAILURE_DETAIL) from None
    return EventPageResponse.from_page(result)


@router.get("/events/stats", response_model=EventStatsResponse)
async def event_stats(engine: RecommendationEngine = Depends(get_engine)) -> EventStatsResponse:
    try:
        stats = await engine.stats()
    except Exception:
        logger.exception("event_stats_failed")
        raise HTTPException(status_code=500, detail=LISTING_FAILURE_DETAIL) from None
    return EventStatsResponse.from_stats(stats)


@router.get("/tags", response_model=TagsResponse)
async def list_tags(engine: RecommendationEngine = Depends(get_engine)) -> TagsResponse:
    try:
        tags = await engine.tags()
    except Exception:
        logger.exception("list_tags_failed")
        raise HTTPException(status_code=500, detail=LISTING_FAILURE_DETAIL) from None
    return TagsResponse(tags=tags)
