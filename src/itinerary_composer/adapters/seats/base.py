"""Contract for the availability/seat collaborator."""

from __future__ import annotations

from datetime import date
from typing import List, Optional, Protocol, Sequence

from itinerary_composer.core.models import AvailabilityRecord, RawFlightRecord


class FetchDriver(Protocol):
    async def fetch_availability(
        self, route: Sequence[str], from_date: Optional[date] = None
    ) -> List[AvailabilityRecord]:
        """Per-date, per-segment availability for every hop of ``route``."""
        ...

    async def fetch_legs(self, segment_id: str) -> List[RawFlightRecord]:
        """Raw flight records behind one availability entry."""
        ...
