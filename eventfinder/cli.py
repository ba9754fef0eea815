#!/usr/bin/env python3
from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any

from .recommend import RecommendationEngine
from .recommend.errors import RecommendationError
from .recommend.types import Event, ScoredEvent
from .settings import settings
from .storage import EventStore


class SeedFileError(RecommendationError):
    """Raised when --seed points at a file that cannot be read as events."""


def load_events(path: Path) -> list[Event]:
    raw = json.loads(path.read_text(encoding="utf-8"))
    if isinstance(raw, dict):
        raw = raw.get("events", [])
    return [Event.from_mapping(item) for item in raw]


def _as_row(item: ScoredEvent) -> dict[str, Any]:
    event = item.event
    return {
        "id": event.id,
        "slug": event.slug,
        "title": event.title,
        "date": event.date.isoformat(),
        "location": event.location,
        "mode": event.mode,
        "tags": list(event.tags),
        "score": round(item.score, 4),
    }


async def run(args: argparse.Namespace) -> int:
    store = EventStore(args.database_url) if args.database_url else EventStore.default()
    try:
        if args.seed:
            try:
                events = load_events(Path(args.seed))
            except (OSError, ValueError, TypeError, AttributeError) as exc:
                raise SeedFileError(f"cannot load {args.seed}: {exc}") from exc
            written = await store.add_events(events)
            print(f"Seeded {written} events", file=sys.stderr)

        engine = RecommendationEngine(store, known_cities=settings.known_cities)
        if args.select:
            results = await engine.select(args.query, limit=args.top_k, candidate_cap=args.cap)
        else:
            results = await engine.rank(args.query, limit=args.top_k)
    finally:
        await store.close()

    if args.json:
        print(json.dumps([_as_row(item) for item in results], ensure_ascii=False, indent=2))
    elif not results:
        print("No matching events.")
    else:
        for item in results:
            event = item.event
            where = event.location or event.mode or "-"
            print(f"{event.date.isoformat()}  {event.title}  ({where})  score={item.score:.3f}")
    return 0


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Event recommendations from a free-text prompt.")
    parser.add_argument("query", help="Free-text request, e.g. 'workshops de python em lisboa'")
    parser.add_argument(
        "--select",
        action="store_true",
        help="Build a conflict-free schedule (one event per day) instead of a ranked list",
    )
    parser.add_argument("-k", "--top-k", type=int, default=None, help="Number of events to show")
    parser.add_argument("--cap", type=int, default=None, help="Candidate window size for --select")
    parser.add_argument("--json", action="store_true", help="Emit JSON instead of text")
    parser.add_argument("--seed", help="JSON file of events to load before querying")
    parser.add_argument("--database-url", help="Override DATABASE_URL for this run")
    args = parser.parse_args(argv)

    try:
        code = asyncio.run(run(args))
    except RecommendationError as exc:
        print(f"error: {exc}", file=sys.stderr)
        code = 1
    sys.exit(code)


if __name__ == "__main__":
    main()
