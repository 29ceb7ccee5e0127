"""Per-segment fetch step: query every date of a window and normalize."""

from __future__ import annotations

import asyncio
import logging
from datetime import date
from typing import Dict, Iterable, List, Optional, Tuple

from itinerary_composer.adapters.seats.base import FetchDriver
from itinerary_composer.core.config import EngineSettings
from itinerary_composer.core.errors import ProviderError
from itinerary_composer.core.models import AvailabilityRecord, Leg, SearchWindow
from itinerary_composer.core.normalization import normalize_airport
from itinerary_composer.modules.legs.normalizer import merge_legs, normalize_batch
from itinerary_composer.modules.routing.window import window_dates
from itinerary_composer.pipeline.results import FetchReport

LOG = logging.getLogger(__name__)


class AvailabilityIndex:
    def __init__(self, records: Iterable[AvailabilityRecord]) -> None:
        self._records: Dict[Tuple[str, str, date], AvailabilityRecord] = {}
        for record in records:
            self._records.setdefault((record.origin, record.destination, record.date), record)

    def __len__(self) -> int:
        return len(self._records)

    def lookup(self, origin: str, destination: str, day: date) -> Optional[AvailabilityRecord]:
        return self._records.get((normalize_airport(origin), normalize_airport(destination), day))


async def fetch_date(
    driver: FetchDriver,
    segment_index: int,
    origin: str,
    destination: str,
    day: date,
    window: Optional[SearchWindow],
    index: AvailabilityIndex,
    *,
    settings: EngineSettings,
    semaphore: asyncio.Semaphore,
) -> Tuple[List[Leg], FetchReport]:
    route = f"{origin}-{destination}"
    record = index.lookup(origin, destination, day)
    if record is None:
        LOG.info("No route found for %s on %s", route, day)
        return [], FetchReport(segment_index, route, day, ok=True, message="no availability")

    try:
        async with semaphore:
            raw = await driver.fetch_legs(record.segment_id)
    except ProviderError as exc:
        LOG.warning("Error fetching %s for %s (segment id %s): %s", route, day, record.segment_id, exc)
        return [], FetchReport(segment_index, route, day, ok=False, message=str(exc))

    batch = normalize_batch(raw, segment_index, window, settings=settings)
    LOG.debug("%s on %s: %d raw record(s), %d leg(s)", route, day, len(raw), len(batch.legs))
    return batch.legs, FetchReport(segment_index, route, day, ok=True, legs=len(batch.legs))


async def fetch_segment(
    driver: FetchDriver,
    segment_index: int,
    origin: str,
    destination: str,
    window: SearchWindow,
    index: AvailabilityIndex,
    *,
    settings: EngineSettings,
    semaphore: asyncio.Semaphore,
    filter_window: bool = True,
) -> Tuple[List[Leg], List[FetchReport]]:
    """Fetch all dates of ``window`` concurrently; the segment is final once all return."""
    days = window_dates(window)
    LOG.info("Fetching %s-%s for %s", origin, destination, ", ".join(day.isoformat() for day in days))
    results = await asyncio.gather(
        *(
            fetch_date(
                driver,
                segment_index,
                origin,
                destination,
                day,
                window if filter_window else None,
                index,
                settings=settings,
                semaphore=semaphore,
            )
            for day in days
        )
    )

    legs: List[Leg] = []
    reports: List[FetchReport] = []
    for batch_legs, report in results:
        legs = merge_legs(legs, batch_legs)
        reports.append(report)
    legs.sort(key=lambda leg: (leg.departs_at, leg.flight_id))
    return legs, reports
