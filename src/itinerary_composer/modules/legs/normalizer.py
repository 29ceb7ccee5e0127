"""Raw seat records to canonical legs."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Dict, Iterable, List, Optional

from itinerary_composer.core.config import EngineSettings
from itinerary_composer.core.models import ArrivalBounds, CabinFlags, Leg, LegKey, RawFlightRecord, SearchWindow
from itinerary_composer.core.normalization import normalize_airport, parse_local_timestamp
from itinerary_composer.modules.legs.carriers import (
    aircraft_name,
    canonical_carrier,
    canonical_flight_id,
    is_excluded,
)

LOG = logging.getLogger(__name__)


@dataclass(frozen=True)
class NormalizedBatch:
    legs: List[Leg]
    bounds: Optional[ArrivalBounds]


def arrival_bounds(legs: Iterable[Leg]) -> Optional[ArrivalBounds]:
    arrivals = [leg.arrives_at for leg in legs]
    if not arrivals:
        return None
    return ArrivalBounds(earliest=min(arrivals), latest=max(arrivals))


def _leg_from_record(record: RawFlightRecord, segment_index: int, settings: EngineSettings) -> Optional[Leg]:
    try:
        departs_at = parse_local_timestamp(record.departs_at)
        arrives_at = parse_local_timestamp(record.arrives_at)
    except ValueError:
        LOG.debug("Skipped %s: unparseable timestamps %r/%r", record.flight_number, record.departs_at, record.arrives_at)
        return None
    return Leg(
        flight_id=canonical_flight_id(record.flight_number, record.carrier, settings.carrier_aliases),
        origin=normalize_airport(record.origin),
        destination=normalize_airport(record.destination),
        departs_at=departs_at,
        arrives_at=arrives_at,
        duration_minutes=record.duration_minutes,
        distance_miles=record.distance,
        cabins=CabinFlags.from_cabin(record.cabin),
        segment_index=segment_index,
        carrier=canonical_carrier(record.carrier, settings.carrier_aliases),
        aircraft=aircraft_name(record.aircraft),
    )


def normalize_batch(
    records: Iterable[RawFlightRecord],
    segment_index: int,
    window: Optional[SearchWindow] = None,
    *,
    settings: Optional[EngineSettings] = None,
) -> NormalizedBatch:
    """Normalize one ``(segment, date)`` fetch into legs.

    Direct flights only; excluded carriers are dropped before the alias
    rewrite. Within the batch a flight id keeps its latest departure (schedule
    revision), and records sharing flight id and departure merge their cabins.
    """
    settings = settings or EngineSettings()
    by_flight: Dict[str, Leg] = {}

    for record in records:
        if record.stops != 0:
            LOG.debug("Skipped %s: %d stop(s)", record.flight_number, record.stops)
            continue
        if is_excluded(record.carrier, settings.excluded_carriers):
            LOG.debug("Skipped %s: excluded carrier %s", record.flight_number, record.carrier)
            continue

        leg = _leg_from_record(record, segment_index, settings)
        if leg is None:
            continue
        if window is not None and not window.contains(leg.departs_at):
            LOG.debug(
                "Skipped %s: departs %s outside [%s, %s)",
                leg.flight_id,
                leg.departs_at,
                window.start,
                window.end,
            )
            continue

        existing = by_flight.get(leg.flight_id)
        if existing is not None:
            if leg.departs_at < existing.departs_at:
                continue
            if leg.departs_at == existing.departs_at:
                by_flight[leg.flight_id] = replace(existing, cabins=existing.cabins.merge(leg.cabins))
                continue
        by_flight[leg.flight_id] = leg

    legs = list(by_flight.values())
    return NormalizedBatch(legs=legs, bounds=arrival_bounds(legs))


def merge_legs(existing: Iterable[Leg], incoming: Iterable[Leg]) -> List[Leg]:
    """Concatenate per-date batches keeping ``Leg.key`` unique."""
    merged: Dict[LegKey, Leg] = {}
    for leg in list(existing) + list(incoming):
        current = merged.get(leg.key)
        if current is None:
            merged[leg.key] = leg
        else:
            merged[leg.key] = replace(current, cabins=current.cabins.merge(leg.cabins))
    return list(merged.values())
