"""Enumeration of feasible end-to-end leg combinations."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Dict, List, Optional, Sequence, Set, Tuple

from itinerary_composer.core.config import EngineSettings
from itinerary_composer.core.models import Combination, Leg, LegKey, Segment, StopoverSpec
from itinerary_composer.modules.routing.window import is_stopover_airport

LOG = logging.getLogger(__name__)

MINUTES_PER_DAY = 1440


def connection_minutes(arrival: datetime, departure: datetime) -> int:
    return int((departure - arrival).total_seconds() // 60)


def is_feasible_connection(
    previous: Leg,
    following: Leg,
    *,
    stopover_days: Optional[int] = None,
    settings: Optional[EngineSettings] = None,
) -> bool:
    minutes = connection_minutes(previous.arrives_at, following.departs_at)
    if stopover_days is not None:
        return stopover_days * MINUTES_PER_DAY <= minutes <= (stopover_days + 1) * MINUTES_PER_DAY
    settings = settings or EngineSettings()
    return settings.min_connection_minutes <= minutes <= settings.max_connection_minutes


def searchable_range(segments: Sequence[Segment]) -> Optional[Tuple[int, int]]:
    """Positions ``(first, last)`` of the contiguous run the search covers.

    Leading and trailing empty segments are dropped. An empty segment between
    the first and last non-empty ones cuts the run short at that gap, so the
    search silently narrows to the part before it. That mirrors observed
    behaviour and may be a latent bug; do not change it without a decision.
    """
    filled = [pos for pos, segment in enumerate(segments) if not segment.is_empty]
    if not filled:
        return None
    first, last = filled[0], filled[-1]
    for pos in range(first, last + 1):
        if segments[pos].is_empty:
            LOG.info("Gap at segment %s, narrowing search to positions %d-%d", segments[pos].route, first, pos - 1)
            return first, pos - 1
    return first, last


def _stopover_days(
    segments: Sequence[Segment],
    position: int,
    stopover: Optional[StopoverSpec],
    route: Optional[Sequence[str]],
) -> Optional[int]:
    # Connection between segments[position] and segments[position + 1].
    airport = route[position + 1] if route is not None else segments[position].destination
    if is_stopover_airport(airport, stopover):
        return stopover.days
    return None


def compute_combinations(
    segments: Sequence[Segment],
    stopover: Optional[StopoverSpec] = None,
    *,
    route: Optional[Sequence[str]] = None,
    settings: Optional[EngineSettings] = None,
) -> List[Combination]:
    settings = settings or EngineSettings()
    bounds = searchable_range(segments)
    if bounds is None:
        return []
    first, last = bounds
    layers = [segments[pos].legs for pos in range(first, last + 1)]
    if first == last:
        return [(leg,) for leg in layers[0]]

    stop_days = [_stopover_days(segments, first + depth, stopover, route) for depth in range(len(layers) - 1)]
    final = len(layers) - 1
    reaches: Dict[Tuple[int, LegKey], bool] = {}

    def feasible(depth: int, leg: Leg, nxt: Leg) -> bool:
        return is_feasible_connection(leg, nxt, stopover_days=stop_days[depth], settings=settings)

    def reaches_end(depth: int, leg: Leg) -> bool:
        if depth == final:
            return True
        memo_key = (depth, leg.key)
        if memo_key not in reaches:
            reaches[memo_key] = any(
                feasible(depth, leg, nxt) and reaches_end(depth + 1, nxt) for nxt in layers[depth + 1]
            )
        return reaches[memo_key]

    combinations: List[Combination] = []

    def extend(path: List[Leg]) -> None:
        depth = len(path) - 1
        if depth == final:
            combinations.append(tuple(path))
            return
        for nxt in layers[depth + 1]:
            if feasible(depth, path[-1], nxt) and reaches_end(depth + 1, nxt):
                path.append(nxt)
                extend(path)
                path.pop()

    for leg in layers[0]:
        if reaches_end(0, leg):
            extend([leg])

    LOG.info("Found %d combination(s) across segments %d-%d", len(combinations), first, last)
    return combinations


def displayable_legs(segments: Sequence[Segment], combinations: Sequence[Combination]) -> List[Leg]:
    """Legs to show: those in any combination, or every leg when there are none."""
    if not combinations:
        return [leg for segment in segments for leg in segment.legs]
    used: Set[Tuple[int, LegKey]] = {(leg.segment_index, leg.key) for combo in combinations for leg in combo}
    return [
        leg
        for segment in segments
        for leg in segment.legs
        if (leg.segment_index, leg.key) in used
    ]
