from __future__ import annotations

from collections.abc import Iterable
from dataclasses import replace
from datetime import date, datetime, time, timedelta
from typing import Any

from .dates import current_date, roll_to_year
from .errors import InvalidCategory, InvalidDate, InvalidMode
from .types import MODES, ExtractedFilter, as_day


def parse_date_value(value: Any, *, field: str) -> date:
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            return date.fromisoformat(text)
        except ValueError:
            pass
        try:
            return datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError as exc:
            raise InvalidDate(f"{field} is not a valid date: {value!r}", field=field) from exc
    raise InvalidDate(f"{field} is not a valid date: {value!r}", field=field)


def validate_filters(filters: ExtractedFilter, known_tags: Iterable[str]) -> ExtractedFilter:
    """Reject structurally invalid values; returns the filter unchanged."""
    if filters.mode and filters.mode not in MODES:
        raise InvalidMode(f"mode must be one of {', '.join(MODES)}; got {filters.mode!r}")

    if filters.tag and filters.tag not in set(known_tags):
        raise InvalidCategory(f"tag {filters.tag!r} is not a known category")

    first = last = None
    if filters.date_from is not None:
        first = parse_date_value(filters.date_from, field="date_from")
    if filters.date_to is not None:
        last = parse_date_value(filters.date_to, field="date_to")
    if first is not None and last is not None and as_day(first) > as_day(last):
        raise InvalidDate("date_from must not be after date_to", field="date_to")

    return filters


def normalize_dates(filters: ExtractedFilter, today: date | None = None) -> ExtractedFilter:
    """Expand a single detected day into a half-open [day, day + 1) window.

    A day already behind us is read as its next occurrence (next year).
    Genuine ranges are left as they are.
    """
    if filters.date_from is None or filters.date_to is None:
        return filters

    date_from = parse_date_value(filters.date_from, field="date_from")
    date_to = parse_date_value(filters.date_to, field="date_to")
    if as_day(date_from) != as_day(date_to):
        return replace(filters, date_from=date_from, date_to=date_to)

    today = today or current_date()
    day = as_day(date_from)
    if day < today:
        day = roll_to_year(day, today.year + 1)

    start = datetime.combine(day, time.min)
    return replace(
        filters,
        date_from=start,
        date_to=start + timedelta(days=1),
        date_to_exclusive=True,
    )


def apply_overrides(
    filters: ExtractedFilter,
    *,
    mode: str | None = None,
    tag: str | None = None,
    date_from: Any = None,
    date_to: Any = None,
) -> ExtractedFilter:
    """Fill fields the prompt left unset with explicit caller parameters.

    Values parsed from the prompt take precedence. Date overrides only apply
    as a pair, and only when the prompt did not name a window.
    """
    changes: dict[str, Any] = {}
    if mode and not filters.mode:
        changes["mode"] = mode.strip()
    if tag and not filters.tag:
        changes["tag"] = tag.strip()
    if date_from and date_to and not filters.has_date_range:
        changes["date_from"] = date_from
        changes["date_to"] = date_to
    if not changes:
        return filters
    return replace(filters, **changes)


__all__ = ["apply_overrides", "normalize_dates", "parse_date_value", "validate_filters"]
