from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query

from ...logging_config import get_logger
from ...recommend import RecommendationEngine
from ...recommend.errors import FilterValidationError
from ...schemas import (
    EventResult,
    ParsedPrompt,
    ParsePromptRequest,
    ParsePromptResponse,
    RecommendRequest,
    RecommendResponse,
    ScheduleRequest,
)
from ...settings import settings
from ...storage import EventStore
from ...utils import prompt_fingerprint

router = APIRouter(tags=["recommendations"])
logger = get_logger(__name__)

FAILURE_DETAIL = "Failed to compute recommendations"

_ENGINE: RecommendationEngine | None = None


def get_engine() -> RecommendationEngine:
    """Process-wide engine over the configured database, built on first use."""
    global _ENGINE
    if _ENGINE is None:
        _ENGINE = RecommendationEngine(EventStore.default(), known_cities=settings.known_cities)
    return _ENGINE


def _invalid(exc: FilterValidationError) -> HTTPException:
    return HTTPException(status_code=422, detail=f"Invalid {exc.field}: {exc}")


@router.post("/parse-prompt", response_model=ParsePromptResponse)
async def parse_prompt(
    req: ParsePromptRequest, engine: RecommendationEngine = Depends(get_engine)
) -> ParsePromptResponse:
    try:
        filters = await engine.parse(req.prompt)
    except Exception:
        logger.exception("parse_prompt_failed", prompt_fingerprint=prompt_fingerprint(req.prompt))
        raise HTTPException(status_code=500, detail="Failed to parse prompt") from None
    return ParsePromptResponse(parsed=ParsedPrompt.from_filter(filters))


@router.post("/recommend", response_model=RecommendResponse)
async def recommend(
    req: RecommendRequest, engine: RecommendationEngine = Depends(get_engine)
) -> RecommendResponse:
    try:
        results = await engine.rank(req.prompt, limit=req.limit, **req.overrides())
    except FilterValidationError as exc:
        raise _invalid(exc) from exc
    except Exception:
        logger.exception(
            "recommend_failed",
            prompt_fingerprint=prompt_fingerprint(req.prompt),
            limit=req.limit,
        )
        raise HTTPException(status_code=500, detail=FAILURE_DETAIL) from None
    return RecommendResponse(results=[EventResult.from_scored(item) for item in results])


@router.post("/recommend-csp", response_model=RecommendResponse)
async def recommend_schedule(
    req: ScheduleRequest, engine: RecommendationEngine = Depends(get_engine)
) -> RecommendResponse:
    try:
        results = await engine.select(
            req.prompt,
            limit=req.limit,
            candidate_cap=req.candidate_cap,
            **req.overrides(),
        )
    except FilterValidationError as exc:
        raise _invalid(exc) from exc
    except Exception:
        logger.exception(
            "recommend_schedule_failed",
            prompt_fingerprint=prompt_fingerprint(req.prompt),
            limit=req.limit,
            candidate_cap=req.candidate_cap,
        )
        raise HTTPException(status_code=500, detail=FAILURE_DETAIL) from None
    return RecommendResponse(results=[EventResult.from_scored(item) for item in results])


@router.get("/events/{slug}/similar", response_model=RecommendResponse)
async def similar_events(
    slug: str,
    limit: int = Query(3, ge=1, le=20),
    engine: RecommendationEngine = Depends(get_engine),
) -> RecommendResponse:
    try:
        events = await engine.similar(slug, limit=limit)
    except Exception:
        logger.exception("similar_events_failed", slug=slug, limit=limit)
        raise HTTPException(status_code=500, detail=FAILURE_DETAIL) from None
    return RecommendResponse(results=[EventResult.from_event(event) for event in events])
