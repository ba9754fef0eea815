"""Relevance ranking over a candidate window.

Each candidate gets a weighted term table built from its text fields. Query
terms are weighted by a smoothed inverse document frequency computed over the
window itself, so the same window and query always produce the same order.
"""

from __future__ import annotations

import math
from collections import Counter
from collections.abc import Sequence
from datetime import date

from .dates import current_date, days_until
from .normalize import normalize_text, tokenize
from .types import Event, ScoredEvent

TITLE_WEIGHT = 3
DESCRIPTION_WEIGHT = 1
TAG_WEIGHT = 2
LOCATION_WEIGHT = 2

RECENCY_HORIZON_DAYS = 30
RECENCY_MAX_BOOST = 0.1
TAG_MATCH_BONUS = 0.5


def term_table(event: Event) -> Counter[str]:
    terms: Counter[str] = Counter()
    for token in tokenize(event.title):
        terms[token] += TITLE_WEIGHT
    for token in tokenize(event.description):
        terms[token] += DESCRIPTION_WEIGHT
    for raw_tag in event.tags:
        # a tag counts as a single term, "machine learning" included
        tag = normalize_text(raw_tag)
        if tag:
            terms[tag] += TAG_WEIGHT
    for token in tokenize(event.location):
        terms[token] += LOCATION_WEIGHT
    return terms


def inverse_document_frequency(df: int, n: int) -> float:
    return math.log(1 + (n - df + 0.5) / (df + 0.5))


def recency_boost(event: Event, today: date) -> float:
    remaining = max(0, days_until(event.date, today))
    return max(0.0, (RECENCY_HORIZON_DAYS - remaining) / RECENCY_HORIZON_DAYS) * RECENCY_MAX_BOOST


def tag_bonus(event: Event, tag: str | None) -> float:
    if not tag:
        return 0.0
    wanted = normalize_text(tag)
    if wanted in {normalize_text(t) for t in event.tags}:
        return TAG_MATCH_BONUS
    return 0.0


def score_candidates(
    candidates: Sequence[Event],
    query_text: str,
    *,
    tag: str | None = None,
    limit: int = 10,
    today: date | None = None,
) -> list[ScoredEvent]:
    if not candidates:
        return []
    today = today or current_date()

    tables = [term_table(event) for event in candidates]
    doc_freq: Counter[str] = Counter()
    for table in tables:
        doc_freq.update(table.keys())

    query_tokens = tokenize(query_text)
    n = max(1, len(candidates))
    idf = {token: inverse_document_frequency(doc_freq[token], n) for token in query_tokens}

    scored: list[ScoredEvent] = []
    for event, table in zip(candidates, tables):
        score = sum(table[token] * idf[token] for token in query_tokens if table[token])
        score += recency_boost(event, today)
        score += tag_bonus(event, tag)
        scored.append(ScoredEvent(event=event, score=score))

    # list.sort is stable, so ties keep window (date) order
    scored.sort(key=lambda item: item.score, reverse=True)
    return scored[: max(0, limit)]


__all__ = [
    "inverse_document_frequency",
    "recency_boost",
    "score_candidates",
    "tag_bonus",
    "term_table",
]
