"""Shared search runner for the in-memory and Celery job queues."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Dict, Optional

from itinerary_composer.adapters.io.exports import serialize_outcome
from itinerary_composer.adapters.seats.base import FetchDriver
from itinerary_composer.adapters.seats.client import SeatsClient
from itinerary_composer.adapters.storage.cache import FileCache
from itinerary_composer.api.schemas import JobSearchPayload
from itinerary_composer.core.config import EngineSettings, load_paths, load_settings
from itinerary_composer.modules.availability.calendar import validate_date_range
from itinerary_composer.pipeline.events import SEGMENT
from itinerary_composer.pipeline.orchestrator import ItineraryComposer
from itinerary_composer.pipeline.results import SearchOutcome

LOG = logging.getLogger(__name__)

ProgressCallback = Callable[[str, float], None]
EngineCallback = Callable[[ItineraryComposer], None]

AVAILABILITY_TTL_SECONDS = 6 * 3600


def _noop_progress(_: str, __: float) -> None:
    return None


def build_driver(api_key: str, settings: EngineSettings) -> FetchDriver:
    cache = None
    if settings.cache_availability:
        cache = FileCache(load_paths().cache_dir / "availability", ttl_seconds=AVAILABILITY_TTL_SECONDS)
    return SeatsClient(api_key, settings=settings, cache=cache)


def build_engine(api_key: str, settings: Optional[EngineSettings] = None) -> ItineraryComposer:
    settings = settings or load_settings()
    return ItineraryComposer(build_driver(api_key, settings), settings=settings)


async def close_driver(driver: Any) -> None:
    close = getattr(driver, "aclose", None)
    if close is not None:
        await close()


async def _search(engine: ItineraryComposer, payload: JobSearchPayload) -> SearchOutcome:
    try:
        return await engine.search(
            payload.route,
            payload.date_range(),
            payload.stopover.to_spec() if payload.stopover else None,
        )
    finally:
        await close_driver(engine.driver)


def run_search(
    payload: JobSearchPayload,
    *,
    progress_cb: Optional[ProgressCallback] = None,
    engine_cb: Optional[EngineCallback] = None,
) -> Dict[str, object]:
    """Run one full search on a fresh engine and return the serialized outcome.

    ``engine_cb`` receives the engine before the search starts so the caller
    can reset it to cancel.
    """
    progress_cb = progress_cb or _noop_progress
    settings = load_settings()
    validate_date_range(payload.start_date, payload.end_date, max_days=settings.max_range_days)
    engine = build_engine(payload.api_key, settings)

    def on_segment(*, segment: Any, completed: int, total: int, **_: Any) -> None:
        progress_cb(f"Fetched {segment.route} ({completed}/{total})", 0.1 + 0.85 * completed / max(total, 1))

    engine.events.on(SEGMENT, on_segment)
    if engine_cb is not None:
        engine_cb(engine)

    progress_cb("Fetching availability", 0.05)
    outcome = asyncio.run(_search(engine, payload))
    LOG.info("Search %s finished with status %s", "-".join(outcome.route), outcome.status)
    progress_cb("Complete", 1.0)
    return serialize_outcome(outcome)
