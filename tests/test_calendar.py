from datetime import date

import pytest
from factories import availability

from itinerary_composer.core.errors import ValidationError
from itinerary_composer.core.models import AvailabilityRecord, CabinFlags
from itinerary_composer.modules.availability.calendar import (
    build_calendar,
    has_any_availability,
    route_pairs,
    validate_date_range,
)


def test_validate_date_range_limits():
    assert validate_date_range(date(2024, 5, 1), date(2024, 5, 8)).days == 8
    with pytest.raises(ValidationError, match="before start"):
        validate_date_range(date(2024, 5, 2), date(2024, 5, 1))
    with pytest.raises(ValidationError, match="exceed 7 days"):
        validate_date_range(date(2024, 5, 1), date(2024, 5, 9))


def test_route_pairs():
    assert route_pairs(["yyz", "LHR", "jfk"]) == ["YYZ-LHR", "LHR-JFK"]


def test_calendar_fills_missing_segments_per_day():
    records = [
        availability("YYZ", "LHR", date(2024, 5, 1), "a"),
        availability("LHR", "JFK", date(2024, 5, 2), "b"),
        availability("CDG", "JFK", date(2024, 5, 1), "ignored"),
    ]
    calendar = build_calendar(records, ["YYZ", "LHR", "JFK"])
    assert list(calendar) == [date(2024, 5, 1), date(2024, 5, 2)]

    first_day = calendar[date(2024, 5, 1)]
    assert [entry.route for entry in first_day] == ["YYZ-LHR", "LHR-JFK"]
    assert first_day[0].segment_id == "a"
    assert first_day[0].cabins.economy
    assert not first_day[1].cabins.any_open
    assert has_any_availability(first_day)


def test_calendar_merges_cabins_for_same_day():
    records = [
        AvailabilityRecord(date(2024, 5, 1), "YYZ", "LHR", "a", None, CabinFlags(economy=True)),
        AvailabilityRecord(date(2024, 5, 1), "YYZ", "LHR", "b", None, CabinFlags(first=True)),
    ]
    entry = build_calendar(records, ["YYZ", "LHR"])[date(2024, 5, 1)][0]
    assert entry.cabins == CabinFlags(economy=True, first=True)
    assert entry.segment_id == "a"


def test_closed_day_has_no_availability():
    record = AvailabilityRecord(date(2024, 5, 1), "YYZ", "LHR", "a", None, CabinFlags())
    day = build_calendar([record], ["YYZ", "LHR"])[date(2024, 5, 1)]
    assert not has_any_availability(day)
