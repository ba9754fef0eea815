"""Rule-based prompt parser: free text in, ExtractedFilter out.

Every signal is looked up in an ordered table of ``KeywordRule`` entries.
The table order is the precedence: aliases before plain city names, mode
rules where the last hit wins, date rules where the first hit wins.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from datetime import date
from typing import Any

from ..settings import settings
from .dates import (
    current_date,
    explicit_day,
    next_month_window,
    this_week_window,
    today_window,
    tomorrow_window,
    weekend_window,
)
from .normalize import contains_phrase, normalize_text
from .types import ExtractedFilter

DateResolver = Callable[[date], tuple[date, date]]


@dataclass(frozen=True, slots=True)
class KeywordRule:
    phrases: tuple[str, ...]
    value: Any

    def matches(self, text: str) -> bool:
        return any(contains_phrase(text, phrase) for phrase in self.phrases)


# English/variant city name -> canonical local name
CITY_ALIASES: tuple[KeywordRule, ...] = (
    KeywordRule(("lisbon",), "lisboa"),
    KeywordRule(("oporto",), "porto"),
)

# Evaluated in order; a later hit overwrites an earlier one (hybrid > offline > online).
MODE_RULES: tuple[KeywordRule, ...] = (
    KeywordRule(("online",), "online"),
    KeywordRule(("presencial", "presencialmente", "in person", "in-person", "offline"), "offline"),
    KeywordRule(("hibrido", "hybrid"), "hybrid"),
)

# Evaluated in order; the first hit wins.
DATE_RULES: tuple[KeywordRule, ...] = (
    KeywordRule(("hoje", "today"), today_window),
    KeywordRule(("amanha", "tomorrow"), tomorrow_window),
    KeywordRule(("esta semana", "this week"), this_week_window),
    KeywordRule(("fim de semana", "fim-de-semana", "final de semana", "weekend"), weekend_window),
    KeywordRule(("proximo mes", "mes que vem", "next month"), next_month_window),
)

ALL_PHRASES: tuple[str, ...] = (
    "todos",
    "todos os eventos",
    "quero todos",
    "quero todos os eventos",
    "mostrar todos",
    "ver todos",
    "all events",
    "show all",
    "list all events",
    "everything",
)


def _detect_location(text: str, known_cities: Iterable[str]) -> tuple[str | None, tuple[str, ...]]:
    # Aliases first so "lisbon" is never shadowed by a later plain-city hit.
    for rule in CITY_ALIASES:
        if rule.matches(text):
            canonical = normalize_text(rule.value)
            alias = normalize_text(rule.phrases[0])
            return canonical, (canonical, alias)
    for raw_city in known_cities:
        city = normalize_text(raw_city)
        if city and contains_phrase(text, city):
            return city, (city,)
    return None, ()


def _detect_mode(text: str) -> str | None:
    mode = None
    for rule in MODE_RULES:
        if rule.matches(text):
            mode = rule.value
    return mode


def _detect_dates(text: str, raw: str, today: date) -> tuple[date | None, date | None]:
    for rule in DATE_RULES:
        if rule.matches(text):
            resolver: DateResolver = rule.value
            return resolver(today)
    day = explicit_day(raw, today)
    if day is not None:
        return day, day
    return None, None


def _detect_tag(text: str, known_tags: Sequence[Any]) -> str | None:
    for raw_tag in known_tags:
        normalized = normalize_text(str(raw_tag))
        if normalized and contains_phrase(text, normalized):
            return str(raw_tag)
    return None


def wants_everything(text: str) -> bool:
    return any(contains_phrase(text, phrase) for phrase in ALL_PHRASES)


def extract_filters(
    prompt: str,
    known_tags: Sequence[Any] | None = None,
    known_cities: Sequence[str] | None = None,
    today: date | None = None,
) -> ExtractedFilter:
    """Turn a free-text prompt into structured filters.

    Never raises: a missing signal simply leaves its field unset. ``search``
    keeps the raw prompt (case and punctuation intact) unless the user asked
    for everything.
    """
    raw = (prompt or "").strip()
    if not raw:
        return ExtractedFilter()

    text = normalize_text(raw)
    cities = settings.known_cities if known_cities is None else known_cities
    location, variants = _detect_location(text, cities)
    date_from, date_to = _detect_dates(text, raw, today or current_date())
    everything = wants_everything(text)

    return ExtractedFilter(
        location=location,
        location_variants=variants,
        mode=_detect_mode(text),
        tag=_detect_tag(text, known_tags or []),
        date_from=date_from,
        date_to=date_to,
        all=everything,
        search="" if everything else raw,
    )


__all__ = [
    "ALL_PHRASES",
    "CITY_ALIASES",
    "DATE_RULES",
    "MODE_RULES",
    "KeywordRule",
    "extract_filters",
    "wants_everything",
]
