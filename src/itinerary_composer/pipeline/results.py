"""Search results and per-fetch diagnostics."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional

from itinerary_composer.core.models import Combination, DateRange, LegView, Segment, StopoverSpec


@dataclass
class FetchReport:
    segment_index: int
    route: str
    date: date
    ok: bool
    legs: int = 0
    message: Optional[str] = None


@dataclass
class SearchOutcome:
    generation: int
    route: List[str]
    date_range: DateRange
    stopover: Optional[StopoverSpec]
    segments: List[Segment]
    combinations: List[Combination]
    legs: List[LegView]
    reports: List[FetchReport] = field(default_factory=list)

    @property
    def status(self) -> str:
        if not self.segments or self.segments[0].is_empty:
            return "no_flights"
        if not self.combinations:
            return "no_connections"
        return "ok"
