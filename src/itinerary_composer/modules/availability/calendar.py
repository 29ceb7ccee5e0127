"""Per-day cabin availability for every segment of a route."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Dict, Iterable, List, Sequence

from itinerary_composer.core.errors import ValidationError
from itinerary_composer.core.models import AvailabilityRecord, CabinFlags, DateRange
from itinerary_composer.core.normalization import normalize_airport


@dataclass(frozen=True)
class SegmentAvailability:
    index: int
    route: str
    cabins: CabinFlags
    segment_id: str = ""


def validate_date_range(start: date, end: date, *, max_days: int = 7) -> DateRange:
    if end < start:
        raise ValidationError("End date cannot be before start date")
    if (end - start).days > max_days:
        raise ValidationError(f"Date range cannot exceed {max_days} days")
    return DateRange(start=start, end=end)


def route_pairs(route: Sequence[str]) -> List[str]:
    airports = [normalize_airport(code) for code in route]
    return [f"{airports[i]}-{airports[i + 1]}" for i in range(len(airports) - 1)]


def build_calendar(records: Iterable[AvailabilityRecord], route: Sequence[str]) -> Dict[date, List[SegmentAvailability]]:
    pairs = route_pairs(route)
    positions = {pair: index for index, pair in enumerate(pairs)}
    by_day: Dict[date, Dict[int, SegmentAvailability]] = {}
    for record in records:
        index = positions.get(record.route)
        if index is None:
            continue
        day = by_day.setdefault(record.date, {})
        current = day.get(index)
        cabins = record.cabins if current is None else current.cabins.merge(record.cabins)
        day[index] = SegmentAvailability(
            index=index,
            route=record.route,
            cabins=cabins,
            segment_id=record.segment_id if current is None else current.segment_id,
        )

    calendar: Dict[date, List[SegmentAvailability]] = {}
    for day in sorted(by_day):
        entries = by_day[day]
        calendar[day] = [
            entries.get(index) or SegmentAvailability(index=index, route=pair, cabins=CabinFlags())
            for index, pair in enumerate(pairs)
        ]
    return calendar


def has_any_availability(entries: Iterable[SegmentAvailability]) -> bool:
    return any(entry.cabins.any_open for entry in entries)
