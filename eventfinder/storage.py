from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Iterable
from contextlib import asynccontextmanager
from datetime import date

from sqlalchemy import delete, func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from .db.core import build_engine, build_sessionmaker, init_db
from .db.models import EventRecord, EventTagRecord
from .recommend.dates import current_date
from .recommend.errors import StoreUnavailable
from .recommend.normalize import normalize_text
from .recommend.types import Event, EventPage, EventStats, ExtractedFilter
from .settings import settings

logger = logging.getLogger(__name__)


def _record_to_event(record: EventRecord) -> Event:
    return Event(
        id=record.id,
        slug=record.slug,
        title=record.title,
        description=record.description or "",
        location=record.location or "",
        mode=record.mode,
        date=record.date,
        tags=tuple(t.tag for t in record.tags),
        organizer=record.organizer or "",
        venue=record.venue,
        price=record.price,
        capacity=record.capacity,
    )


def _event_to_record(event: Event) -> EventRecord:
    return EventRecord(
        id=event.id,
        slug=event.slug,
        title=event.title,
        description=event.description,
        location=event.location,
        location_key=normalize_text(event.location),
        mode=event.mode,
        date=event.date,
        organizer=event.organizer,
        venue=event.venue,
        price=event.price,
        capacity=event.capacity,
        tags=[
            EventTagRecord(position=pos, tag=tag, tag_key=normalize_text(tag))
            for pos, tag in enumerate(event.tags)
        ],
    )


def candidate_statement(filters: ExtractedFilter, cap: int, today: date):
    """Hard-filter query: location/mode/tag/date only, soonest first, capped."""
    stmt = select(EventRecord)

    window = filters.date_range()
    if window:
        first, last = window
        stmt = stmt.where(EventRecord.date >= first, EventRecord.date <= last)
    else:
        stmt = stmt.where(EventRecord.date >= today)

    if filters.location:
        variants = filters.location_variants or (filters.location,)
        keys = [normalize_text(v) for v in variants if normalize_text(v)]
        if keys:
            stmt = stmt.where(
                or_(*(EventRecord.location_key.contains(key, autoescape=True) for key in keys))
            )

    if filters.mode:
        stmt = stmt.where(EventRecord.mode == filters.mode)

    if filters.tag:
        tag_key = normalize_text(filters.tag)
        stmt = stmt.where(EventRecord.tags.any(EventTagRecord.tag_key.contains(tag_key, autoescape=True)))

    return stmt.order_by(EventRecord.date.asc(), EventRecord.id.asc()).limit(max(0, cap))


# listing sort keys; anything else falls back to "date"
LISTING_ORDER = {
    "date": (EventRecord.date.asc(), EventRecord.id.asc()),
    "date-desc": (EventRecord.date.desc(), EventRecord.id.asc()),
    "created": (EventRecord.created_at.desc(), EventRecord.id.asc()),
}
SEARCH_ORDER = (EventRecord.date.asc(), EventRecord.created_at.desc(), EventRecord.id.asc())


def search_statement(query: str):
    """Keyword match over title, description, organizer, location and tags."""
    stmt = select(EventRecord)
    needle = (query or "").strip()
    if not needle:
        return stmt
    key = normalize_text(needle)
    clauses = [
        EventRecord.title.icontains(needle, autoescape=True),
        EventRecord.description.icontains(needle, autoescape=True),
        EventRecord.organizer.icontains(needle, autoescape=True),
        EventRecord.location.icontains(needle, autoescape=True),
        EventRecord.tags.any(EventTagRecord.tag.icontains(needle, autoescape=True)),
    ]
    if key:
        # accent-folded columns catch "musica" against "Música"
        clauses.append(EventRecord.location_key.contains(key, autoescape=True))
        clauses.append(EventRecord.tags.any(EventTagRecord.tag_key.contains(key, autoescape=True)))
    return stmt.where(or_(*clauses))


class EventStore:
    """
    SQL-backed event collection.

    Read paths are what the recommendation engine consumes; `add_events` exists for
    seeding. Any database or I/O failure surfaces as `StoreUnavailable`.
    """

    def __init__(self, database_url: str | None = None) -> None:
        self.database_url = database_url or settings.database_url
        self._engine = build_engine(self.database_url)
        self._sessions = build_sessionmaker(self._engine)
        self._schema_ready = False

    @classmethod
    def default(cls) -> EventStore:
        return cls(settings.database_url)

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[AsyncSession]:
        try:
            if not self._schema_ready:
                await init_db(self._engine)
                self._schema_ready = True
            async with self._sessions() as session:
                yield session
        except (SQLAlchemyError, OSError) as exc:
            logger.exception("Event store operation failed (%s)", type(exc).__name__)
            raise StoreUnavailable("event store unavailable") from exc

    async def distinct_tags(self) -> list[str]:
        async with self._session() as session:
            rows = await session.execute(
                select(EventTagRecord.tag).distinct().order_by(EventTagRecord.tag)
            )
            return [tag for tag in rows.scalars().all() if tag]

    async def fetch_candidates(
        self, filters: ExtractedFilter, cap: int, *, today: date | None = None
    ) -> list[Event]:
        stmt = candidate_statement(filters, cap, today or current_date())
        async with self._session() as session:
            rows = await session.execute(stmt)
            return [_record_to_event(record) for record in rows.scalars().all()]

    async def get_event(self, slug_or_id: str) -> Event | None:
        async with self._session() as session:
            rows = await session.execute(
                select(EventRecord).where(
                    or_(EventRecord.slug == slug_or_id, EventRecord.id == slug_or_id)
                )
            )
            record = rows.scalars().first()
            return _record_to_event(record) if record else None

    async def fetch_similar(
        self, event: Event, limit: int, *, today: date | None = None
    ) -> list[Event]:
        if not event.tags:
            return []
        stmt = (
            select(EventRecord)
            .where(
                EventRecord.id != event.id,
                EventRecord.date >= (today or current_date()),
                EventRecord.tags.any(EventTagRecord.tag.in_(event.tags)),
            )
            .order_by(EventRecord.date.asc(), EventRecord.created_at.desc())
            .limit(max(0, limit))
        )
        async with self._session() as session:
            rows = await session.execute(stmt)
            return [_record_to_event(record) for record in rows.scalars().all()]

    async def _page(self, stmt, order, page: int, per_page: int) -> EventPage:
        page = max(1, page)
        per_page = max(1, per_page)
        count_stmt = select(func.count()).select_from(stmt.subquery())
        page_stmt = stmt.order_by(*order).offset((page - 1) * per_page).limit(per_page)
        async with self._session() as session:
            total = (await session.execute(count_stmt)).scalar_one()
            rows = await session.execute(page_stmt)
            events = [_record_to_event(record) for record in rows.scalars().all()]
        return EventPage(events=events, total=total, page=page, per_page=per_page)

    async def list_upcoming(
        self,
        *,
        mode: str | None = None,
        tag: str | None = None,
        sort: str | None = None,
        page: int = 1,
        per_page: int = 12,
        today: date | None = None,
    ) -> EventPage:
        stmt = select(EventRecord).where(EventRecord.date >= (today or current_date()))
        if mode:
            stmt = stmt.where(EventRecord.mode == mode)
        tag_key = normalize_text(tag or "")
        if tag_key:
            stmt = stmt.where(
                EventRecord.tags.any(EventTagRecord.tag_key.contains(tag_key, autoescape=True))
            )
        order = LISTING_ORDER.get(sort or "date", LISTING_ORDER["date"])
        return await self._page(stmt, order, page, per_page)

    async def search_events(self, query: str, *, page: int = 1, per_page: int = 12) -> EventPage:
        """Past events included; a blank query matches everything."""
        return await self._page(search_statement(query), SEARCH_ORDER, page, per_page)

    async def event_stats(self, *, today: date | None = None) -> EventStats:
        stmt = (
            select(EventRecord.mode, func.count())
            .where(EventRecord.date >= (today or current_date()))
            .group_by(EventRecord.mode)
        )
        async with self._session() as session:
            rows = await session.execute(stmt)
            counts = {mode: count for mode, count in rows.all()}
        return EventStats(
            total=sum(counts.values()),
            online=counts.get("online", 0),
            offline=counts.get("offline", 0),
            hybrid=counts.get("hybrid", 0),
        )

    async def add_events(self, events: Iterable[Event]) -> int:
        """Insert or replace events by id; returns how many were written."""
        count = 0
        async with self._session() as session:
            async with session.begin():
                for event in events:
                    await session.execute(
                        delete(EventTagRecord).where(EventTagRecord.event_id == event.id)
                    )
                    await session.execute(delete(EventRecord).where(EventRecord.id == event.id))
                    session.add(_event_to_record(event))
                    count += 1
        logger.info("Stored %d events", count)
        return count

    async def close(self) -> None:
        await self._engine.dispose()


__all__ = ["EventStore", "candidate_statement", "search_statement"]
