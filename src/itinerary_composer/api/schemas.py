"""Request schemas for the Itinerary Composer API."""

from __future__ import annotations

from datetime import date, datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from itinerary_composer.core.models import CabinFlags, DateRange, Leg, Segment, StopoverSpec
from itinerary_composer.core.normalization import normalize_airport, parse_local_timestamp
from itinerary_composer.modules.legs.normalizer import arrival_bounds


class LegPayload(BaseModel):
    """A leg as exported by the API; exported legs can be posted back as is."""

    model_config = ConfigDict(populate_by_name=True)

    flight_id: str = Field(..., min_length=1)
    origin: str = Field(..., alias="from")
    destination: str = Field(..., alias="to")
    departs_at: datetime
    arrives_at: datetime
    duration_minutes: Optional[int] = Field(None, alias="duration")
    distance_miles: Optional[int] = Field(None, alias="distance")
    economy: bool = False
    business: bool = False
    first: bool = False
    segment_index: int = Field(..., ge=0)
    carrier: str = ""
    aircraft: Optional[str] = None

    @field_validator("departs_at", "arrives_at", mode="before")
    @classmethod
    def _naive_local(cls, value: object) -> object:
        if isinstance(value, (str, datetime)):
            return parse_local_timestamp(value)
        return value

    def to_leg(self) -> Leg:
        return Leg(
            flight_id=self.flight_id.strip().upper(),
            origin=normalize_airport(self.origin),
            destination=normalize_airport(self.destination),
            departs_at=self.departs_at,
            arrives_at=self.arrives_at,
            duration_minutes=self.duration_minutes,
            distance_miles=self.distance_miles,
            cabins=CabinFlags(economy=self.economy, business=self.business, first=self.first),
            segment_index=self.segment_index,
            carrier=self.carrier,
            aircraft=self.aircraft,
        )


class StopoverPayload(BaseModel):
    airport: str = Field(..., min_length=3, max_length=4)
    days: int = Field(..., ge=0)

    def to_spec(self) -> StopoverSpec:
        return StopoverSpec(airport=normalize_airport(self.airport), days=self.days)


class SegmentPayload(BaseModel):
    index: int = Field(..., ge=0)
    origin: str
    destination: str
    legs: List[LegPayload] = Field(default_factory=list)

    def to_segment(self) -> Segment:
        legs = [leg.to_leg() for leg in self.legs]
        bounds = arrival_bounds(legs)
        return Segment(
            index=self.index,
            origin=normalize_airport(self.origin),
            destination=normalize_airport(self.destination),
            legs=legs,
            earliest_arrival=bounds.earliest if bounds else None,
            latest_arrival=bounds.latest if bounds else None,
        )


class CombinationsPayload(BaseModel):
    segments: List[SegmentPayload] = Field(..., min_length=1)
    stopover: Optional[StopoverPayload] = None
    base_date: Optional[date] = None


class TogglePayload(BaseModel):
    combinations: List[List[LegPayload]] = Field(default_factory=list)
    selection: Dict[int, List[LegPayload]] = Field(default_factory=dict)
    leg: LegPayload
    segment_index: int = Field(..., ge=0)
    shown: Optional[List[LegPayload]] = None
    segments: Optional[List[SegmentPayload]] = None
    base_date: Optional[date] = None


class RangePayload(BaseModel):
    route: List[str] = Field(..., min_length=2)
    start_date: date
    end_date: date

    def date_range(self) -> DateRange:
        return DateRange(start=self.start_date, end=self.end_date)


class AvailabilityPayload(RangePayload):
    api_key: str = ""


class SearchPayload(RangePayload):
    stopover: Optional[StopoverPayload] = None


class JobSearchPayload(SearchPayload):
    api_key: str = Field(..., min_length=1)


class SessionPayload(BaseModel):
    api_key: str = Field(..., min_length=1)


class SessionTogglePayload(BaseModel):
    segment_index: int = Field(..., ge=0)
    flight_id: str = Field(..., min_length=1)
    departs_at: datetime

    @field_validator("departs_at", mode="before")
    @classmethod
    def _naive_local(cls, value: object) -> object:
        if isinstance(value, (str, datetime)):
            return parse_local_timestamp(value)
        return value
