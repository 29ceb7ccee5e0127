"""Shared domain models for itinerary composition."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Dict, List, Optional, Tuple


@dataclass(frozen=True)
class CabinFlags:
    economy: bool = False
    business: bool = False
    first: bool = False

    @staticmethod
    def from_cabin(cabin: Optional[str]) -> "CabinFlags":
        name = (cabin or "").strip().lower()
        return CabinFlags(
            economy=name == "economy",
            business=name == "business",
            first=name == "first",
        )

    def merge(self, other: "CabinFlags") -> "CabinFlags":
        return CabinFlags(
            economy=self.economy or other.economy,
            business=self.business or other.business,
            first=self.first or other.first,
        )

    @property
    def any_open(self) -> bool:
        return self.economy or self.business or self.first


LegKey = Tuple[str, datetime]


@dataclass(frozen=True)
class Leg:
    flight_id: str
    origin: str
    destination: str
    departs_at: datetime
    arrives_at: datetime
    duration_minutes: Optional[int]
    distance_miles: Optional[int]
    cabins: CabinFlags
    segment_index: int
    carrier: str = ""
    aircraft: Optional[str] = None

    @property
    def key(self) -> LegKey:
        return self.flight_id, self.departs_at


@dataclass(frozen=True)
class DateRange:
    start: date
    end: date

    @property
    def days(self) -> int:
        return (self.end - self.start).days + 1

    def dates(self) -> List[date]:
        return [self.start + timedelta(days=offset) for offset in range(max(0, self.days))]


@dataclass(frozen=True)
class SearchWindow:
    start: datetime
    end: datetime

    def contains(self, value: datetime) -> bool:
        return self.start <= value < self.end

    def dates(self) -> List[date]:
        current = self.start.date()
        last = self.end.date()
        dates: List[date] = []
        while current <= last:
            dates.append(current)
            current += timedelta(days=1)
        return dates


@dataclass(frozen=True)
class ArrivalBounds:
    earliest: datetime
    latest: datetime


@dataclass(frozen=True)
class StopoverSpec:
    airport: str
    days: int


@dataclass
class Segment:
    index: int
    origin: str
    destination: str
    legs: List[Leg] = field(default_factory=list)
    search_window: Optional[SearchWindow] = None
    earliest_arrival: Optional[datetime] = None
    latest_arrival: Optional[datetime] = None

    @property
    def route(self) -> str:
        return f"{self.origin}-{self.destination}"

    @property
    def is_empty(self) -> bool:
        return not self.legs


Combination = Tuple[Leg, ...]
Selection = Dict[int, List[Leg]]


@dataclass(frozen=True)
class LegView:
    leg: Leg
    is_selected: bool = False
    hidden: bool = False


@dataclass
class ToggleResult:
    selection: Selection
    legs: List[LegView]


@dataclass(frozen=True)
class RawFlightRecord:
    carrier: str
    flight_number: str
    stops: int
    departs_at: str
    arrives_at: str
    cabin: str
    origin: str = ""
    destination: str = ""
    aircraft: Tuple[str, ...] = ()
    distance: Optional[int] = None
    duration_minutes: Optional[int] = None


@dataclass(frozen=True)
class AvailabilityRecord:
    date: date
    origin: str
    destination: str
    segment_id: str
    distance: Optional[int]
    cabins: CabinFlags

    @property
    def route(self) -> str:
        return f"{self.origin}-{self.destination}"
