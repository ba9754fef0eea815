"""Calendar arithmetic for relative date phrases and date-distance penalties."""

from __future__ import annotations

import calendar
import logging
import re
from datetime import date, datetime, time, timedelta
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dateparser.search import search_dates

from ..settings import settings
from .types import as_day

logger = logging.getLogger(__name__)

DATE_LANGUAGES = ["pt", "en"]

_HAS_DIGIT = re.compile(r"\d")
# a number beside a word or a separator; a lone "10" is a count, not a day
_DAY_IN_CONTEXT = re.compile(r"\d\s*[/.-]\s*\d|\d\s*[^\W\d_]|[^\W\d_]\s*\d")


def current_date() -> date:
    try:
        zone = ZoneInfo(settings.TIMEZONE)
    except ZoneInfoNotFoundError:
        zone = ZoneInfo("UTC")
    return datetime.now(zone).date()


def today_window(today: date) -> tuple[date, date]:
    return today, today


def tomorrow_window(today: date) -> tuple[date, date]:
    tomorrow = today + timedelta(days=1)
    return tomorrow, tomorrow


def this_week_window(today: date) -> tuple[date, date]:
    monday = today - timedelta(days=today.weekday())
    return monday, monday + timedelta(days=6)


def weekend_window(today: date) -> tuple[date, date]:
    # Saturday is weekday 5; on a Saturday this is today, never a past weekend
    saturday = today + timedelta(days=(5 - today.weekday()) % 7)
    return saturday, saturday + timedelta(days=1)


def next_month_window(today: date) -> tuple[date, date]:
    year, month = (today.year + 1, 1) if today.month == 12 else (today.year, today.month + 1)
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def explicit_day(text: str, today: date) -> date | None:
    """First concrete day written in the prompt: "18 de dezembro", "dec 18", "18/12/2027".

    Works on the raw prompt so separators and years survive. Without a year
    the next occurrence after ``today`` is used. Bare numbers and month names
    without a day are ignored.
    """
    if not text or not _HAS_DIGIT.search(text):
        return None
    try:
        found = search_dates(
            text,
            languages=DATE_LANGUAGES,
            settings={
                "RELATIVE_BASE": datetime.combine(today, time.min),
                "PREFER_DATES_FROM": "future",
                "DATE_ORDER": "DMY",
                "REQUIRE_PARTS": ["day", "month"],
            },
        )
    except (ValueError, OverflowError):
        logger.debug("Date search failed for %r", text, exc_info=True)
        return None

    for fragment, moment in found or []:
        if _DAY_IN_CONTEXT.search(fragment):
            return moment.date()
    return None


def roll_to_year(day: date, year: int) -> date:
    try:
        return day.replace(year=year)
    except ValueError:
        # Feb 29 into a non-leap year
        return day.replace(year=year, day=28)


def days_until(event_day: date, today: date) -> int:
    return (as_day(event_day) - today).days


__all__ = [
    "DATE_LANGUAGES",
    "current_date",
    "days_until",
    "explicit_day",
    "next_month_window",
    "roll_to_year",
    "this_week_window",
    "today_window",
    "tomorrow_window",
    "weekend_window",
]
