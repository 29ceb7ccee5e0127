"""Connection windows between consecutive route segments."""

from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import List, Optional, Sequence

from itinerary_composer.core.models import DateRange, Segment, SearchWindow, StopoverSpec
from itinerary_composer.core.normalization import end_of_day, normalize_airport, start_of_day

LOG = logging.getLogger(__name__)

CONNECTION_SPAN = timedelta(hours=24)


def full_range_window(date_range: DateRange) -> SearchWindow:
    return SearchWindow(start=start_of_day(date_range.start), end=end_of_day(date_range.end))


def is_stopover_airport(airport: Optional[str], stopover: Optional[StopoverSpec]) -> bool:
    if stopover is None or not airport:
        return False
    return normalize_airport(airport) == normalize_airport(stopover.airport)


def compute_window(
    index: int,
    previous: Optional[Segment],
    date_range: DateRange,
    *,
    stopover: Optional[StopoverSpec] = None,
    route: Optional[Sequence[str]] = None,
) -> SearchWindow:
    """Admissible departure interval for segment ``index``.

    The connecting airport is ``route[index]`` when a route is given, else the
    previous segment's destination.
    """
    if index == 0:
        return full_range_window(date_range)
    if previous is None:
        raise ValueError(f"segment {index} needs the previous segment to derive its window")

    if previous.is_empty or previous.earliest_arrival is None or previous.latest_arrival is None:
        # Observed policy: an empty hop falls back to the whole user range
        # instead of stopping the route. Possibly unintended; kept as is.
        LOG.info("Segment %d: previous segment %s empty, using full date range", index, previous.route)
        return full_range_window(date_range)

    connecting = route[index] if route is not None else previous.destination
    if is_stopover_airport(connecting, stopover):
        shift = timedelta(days=stopover.days)
        return SearchWindow(
            start=previous.earliest_arrival + shift,
            end=previous.latest_arrival + shift + CONNECTION_SPAN,
        )
    return SearchWindow(
        start=previous.earliest_arrival,
        end=previous.latest_arrival + CONNECTION_SPAN,
    )


def window_dates(window: SearchWindow) -> List[date]:
    """Calendar dates the fetch driver must query, one per day, inclusive."""
    return window.dates()
