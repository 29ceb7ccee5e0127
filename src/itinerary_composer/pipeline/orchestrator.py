"""Itinerary composition engine."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import List, Optional, Sequence

from itinerary_composer.adapters.seats.base import FetchDriver
from itinerary_composer.core.config import EngineSettings
from itinerary_composer.core.errors import ProviderError, SearchCancelled, ValidationError
from itinerary_composer.core.models import (
    AvailabilityRecord,
    Combination,
    DateRange,
    Leg,
    LegView,
    Segment,
    Selection,
    StopoverSpec,
    ToggleResult,
)
from itinerary_composer.core.normalization import normalize_airport
from itinerary_composer.modules.legs.normalizer import arrival_bounds
from itinerary_composer.modules.routing.combinations import compute_combinations, displayable_legs
from itinerary_composer.modules.routing.selection import apply_visibility, toggle_selection
from itinerary_composer.modules.routing.window import compute_window
from itinerary_composer.pipeline.events import RESET, SEARCH, SEGMENT, EngineEvents
from itinerary_composer.pipeline.results import FetchReport, SearchOutcome
from itinerary_composer.pipeline.steps import AvailabilityIndex, fetch_segment

LOG = logging.getLogger(__name__)


def validate_route(route: Sequence[str]) -> List[str]:
    airports = [normalize_airport(code) for code in route]
    if len(airports) < 2:
        raise ValidationError("route needs at least two airports")
    if not all(airports):
        raise ValidationError("route contains an empty airport code")
    return airports


class ItineraryComposer:
    """Stateful engine for one search context (one results modal in the UI).

    Every search runs under a generation token. ``reset()`` or a newer search
    bumps the token; a search that wakes up under a stale token raises
    ``SearchCancelled`` instead of writing its results.
    """

    def __init__(
        self,
        driver: FetchDriver,
        *,
        settings: Optional[EngineSettings] = None,
        events: Optional[EngineEvents] = None,
    ) -> None:
        self.driver = driver
        self.settings = settings or EngineSettings()
        self.events = events or EngineEvents()
        self._generation = 0
        self.route: List[str] = []
        self.date_range: Optional[DateRange] = None
        self.stopover: Optional[StopoverSpec] = None
        self.segments: List[Segment] = []
        self.combinations: List[Combination] = []
        self.selection: Selection = {}
        self.reports: List[FetchReport] = []

    @property
    def generation(self) -> int:
        return self._generation

    def reset(self, reason: str = "reset") -> int:
        self._generation += 1
        self.route = []
        self.date_range = None
        self.stopover = None
        self.segments = []
        self.combinations = []
        self.selection = {}
        self.reports = []
        self.events.emit(RESET, generation=self._generation, reason=reason)
        return self._generation

    def _ensure_current(self, generation: int) -> None:
        if generation != self._generation:
            LOG.warning("Discarding results of search %d, current search is %d", generation, self._generation)
            raise SearchCancelled(generation, self._generation)

    async def _fetch_availability(self, airports: List[str], date_range: DateRange) -> List[AvailabilityRecord]:
        try:
            return await self.driver.fetch_availability(airports, date_range.start)
        except ProviderError as exc:
            LOG.warning("Availability lookup for %s failed: %s", "-".join(airports), exc)
            return []

    async def compute_segments(
        self,
        route: Sequence[str],
        date_range: DateRange,
        stopover: Optional[StopoverSpec] = None,
    ) -> List[Segment]:
        airports = validate_route(route)
        if date_range.end < date_range.start:
            raise ValidationError("date range ends before it starts")

        generation = self.reset(reason="search")
        self.route = airports
        self.date_range = date_range
        self.stopover = stopover

        availability = await self._fetch_availability(airports, date_range)
        self._ensure_current(generation)
        index = AvailabilityIndex(availability)
        semaphore = asyncio.Semaphore(max(1, self.settings.max_concurrent_requests))

        total = len(airports) - 1
        segments: List[Segment] = []
        reports: List[FetchReport] = []
        for position in range(total):
            origin, destination = airports[position], airports[position + 1]
            previous = segments[-1] if segments else None
            window = compute_window(position, previous, date_range, stopover=stopover, route=airports)
            LOG.info("Time window for %s-%s: %s to %s", origin, destination, window.start, window.end)

            legs, segment_reports = await fetch_segment(
                self.driver,
                position,
                origin,
                destination,
                window,
                index,
                settings=self.settings,
                semaphore=semaphore,
                filter_window=position > 0,
            )
            self._ensure_current(generation)

            bounds = arrival_bounds(legs)
            segment = Segment(
                index=position,
                origin=origin,
                destination=destination,
                legs=legs,
                search_window=window,
                earliest_arrival=bounds.earliest if bounds else None,
                latest_arrival=bounds.latest if bounds else None,
            )
            segments.append(segment)
            reports.extend(segment_reports)
            LOG.info("Segment %s: %d leg(s)", segment.route, len(legs))
            self.events.emit(SEGMENT, generation=generation, segment=segment, completed=position + 1, total=total)

            if position == 0 and segment.is_empty:
                LOG.warning("No flights for first segment %s, nothing can connect", segment.route)
                break

        self.segments = segments
        self.reports = reports
        return segments

    def compute_combinations(self, stopover: Optional[StopoverSpec] = None) -> List[Combination]:
        stopover = stopover if stopover is not None else self.stopover
        self.combinations = compute_combinations(
            self.segments,
            stopover,
            route=self.route or None,
            settings=self.settings,
        )
        return self.combinations

    @property
    def shown_legs(self) -> List[Leg]:
        return displayable_legs(self.segments, self.combinations)

    @property
    def legs(self) -> List[LegView]:
        return apply_visibility(self.shown_legs, self.combinations, self.selection)

    def find_leg(self, segment_index: int, flight_id: str, departs_at: datetime) -> Optional[Leg]:
        for segment in self.segments:
            if segment.index != segment_index:
                continue
            for leg in segment.legs:
                if leg.key == (flight_id, departs_at):
                    return leg
        return None

    def toggle(self, leg: Leg, segment_index: int) -> ToggleResult:
        result = toggle_selection(
            self.combinations,
            self.selection,
            leg,
            segment_index,
            shown=self.shown_legs,
        )
        self.selection = result.selection
        return result

    def clear_selection(self) -> List[LegView]:
        self.selection = {}
        return self.legs

    async def search(
        self,
        route: Sequence[str],
        date_range: DateRange,
        stopover: Optional[StopoverSpec] = None,
    ) -> SearchOutcome:
        segments = await self.compute_segments(route, date_range, stopover)
        combinations = self.compute_combinations()
        outcome = SearchOutcome(
            generation=self._generation,
            route=list(self.route),
            date_range=date_range,
            stopover=stopover,
            segments=segments,
            combinations=combinations,
            legs=self.legs,
            reports=list(self.reports),
        )
        self.events.emit(SEARCH, outcome=outcome)
        return outcome
