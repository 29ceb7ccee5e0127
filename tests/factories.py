"""Builders shared by the test modules."""

from __future__ import annotations

import asyncio
from datetime import date, datetime
from typing import Dict, Iterable, List, Optional, Sequence, Set

from itinerary_composer.core.errors import ProviderError
from itinerary_composer.core.models import AvailabilityRecord, CabinFlags, Leg, RawFlightRecord, Segment
from itinerary_composer.modules.legs.normalizer import arrival_bounds


def ts(value: str) -> datetime:
    return datetime.strptime(value, "%Y-%m-%d %H:%M")


def make_leg(
    flight_id: str,
    departs: str,
    arrives: str,
    segment_index: int = 0,
    origin: str = "AAA",
    destination: str = "BBB",
    cabins: Optional[CabinFlags] = None,
) -> Leg:
    return Leg(
        flight_id=flight_id,
        origin=origin,
        destination=destination,
        departs_at=ts(departs),
        arrives_at=ts(arrives),
        duration_minutes=None,
        distance_miles=None,
        cabins=cabins or CabinFlags(economy=True),
        segment_index=segment_index,
        carrier=flight_id[:2],
    )


def make_segment(index: int, origin: str, destination: str, legs: Iterable[Leg]) -> Segment:
    legs = list(legs)
    bounds = arrival_bounds(legs)
    return Segment(
        index=index,
        origin=origin,
        destination=destination,
        legs=legs,
        earliest_arrival=bounds.earliest if bounds else None,
        latest_arrival=bounds.latest if bounds else None,
    )


def raw(
    flight_number: str,
    departs: str,
    arrives: str,
    cabin: str = "economy",
    *,
    carrier: Optional[str] = None,
    stops: int = 0,
    origin: str = "AAA",
    destination: str = "BBB",
    aircraft: Sequence[str] = ("A320",),
) -> RawFlightRecord:
    return RawFlightRecord(
        carrier=carrier or flight_number[:2],
        flight_number=flight_number,
        stops=stops,
        departs_at=departs,
        arrives_at=arrives,
        cabin=cabin,
        origin=origin,
        destination=destination,
        aircraft=tuple(aircraft),
        distance=500,
        duration_minutes=180,
    )


def availability(origin: str, destination: str, day: date, segment_id: str) -> AvailabilityRecord:
    return AvailabilityRecord(
        date=day,
        origin=origin,
        destination=destination,
        segment_id=segment_id,
        distance=500,
        cabins=CabinFlags(economy=True),
    )


class FakeDriver:
    """In-memory ``FetchDriver``; records calls and can fail or block ids."""

    def __init__(
        self,
        records: Iterable[AvailabilityRecord],
        legs: Dict[str, List[RawFlightRecord]],
        *,
        failing: Optional[Set[str]] = None,
    ) -> None:
        self.records = list(records)
        self.legs = legs
        self.failing = failing or set()
        self.calls: List[str] = []
        self.gates: Dict[str, asyncio.Event] = {}

    async def fetch_availability(self, route, from_date=None):
        return list(self.records)

    async def fetch_legs(self, segment_id: str):
        self.calls.append(segment_id)
        gate = self.gates.get(segment_id)
        if gate is not None:
            await gate.wait()
        if segment_id in self.failing:
            raise ProviderError(f"seat lookup {segment_id} failed")
        return list(self.legs.get(segment_id, []))


# AAA-BBB-CCC over 2024-05-01..02: two legs per hop, one connection per day.
def sample_records():
    return [
        availability("AAA", "BBB", date(2024, 5, 1), "s1"),
        availability("AAA", "BBB", date(2024, 5, 2), "s2"),
        availability("BBB", "CCC", date(2024, 5, 1), "t1"),
        availability("BBB", "CCC", date(2024, 5, 2), "t2"),
        availability("BBB", "CCC", date(2024, 5, 3), "t3"),
    ]


def sample_legs():
    def ab(number, departs, arrives):
        return raw(number, departs, arrives, origin="AAA", destination="BBB")

    def bc(number, departs, arrives):
        return raw(number, departs, arrives, origin="BBB", destination="CCC")

    return {
        "s1": [ab("AB1", "2024-05-01T08:00:00Z", "2024-05-01T12:00:00Z")],
        "s2": [ab("AB2", "2024-05-02T13:00:00Z", "2024-05-02T17:00:00Z")],
        "t1": [
            bc("BC0", "2024-05-01T11:00:00Z", "2024-05-01T13:00:00Z"),
            bc("BC1", "2024-05-01T14:00:00Z", "2024-05-01T16:00:00Z"),
        ],
        "t2": [bc("BC2", "2024-05-02T19:00:00Z", "2024-05-02T21:00:00Z")],
        "t3": [bc("BC3", "2024-05-03T18:00:00Z", "2024-05-03T20:00:00Z")],
    }
