from datetime import date, timedelta

import pytest
from factories import make_leg, make_segment, ts

from itinerary_composer.core.models import DateRange, SearchWindow, StopoverSpec
from itinerary_composer.modules.routing.window import compute_window, full_range_window, window_dates

RANGE = DateRange(start=date(2024, 5, 1), end=date(2024, 5, 3))


def _first_segment():
    return make_segment(
        0,
        "AAA",
        "BBB",
        [
            make_leg("AA1", "2024-05-01 08:00", "2024-05-01 12:00"),
            make_leg("AA2", "2024-05-01 13:00", "2024-05-01 17:00"),
        ],
    )


def test_first_segment_uses_full_range():
    window = compute_window(0, None, RANGE)
    assert window.start == ts("2024-05-01 00:00")
    assert window.end.date() == date(2024, 5, 3)
    assert (window.end.hour, window.end.minute, window.end.second) == (23, 59, 59)


def test_window_spans_arrivals_plus_a_day():
    window = compute_window(1, _first_segment(), RANGE)
    assert window.start == ts("2024-05-01 12:00")
    assert window.end == ts("2024-05-02 17:00")


def test_stopover_shifts_window_by_days():
    stopover = StopoverSpec(airport="BBB", days=2)
    window = compute_window(1, _first_segment(), RANGE, stopover=stopover)
    assert window.start == ts("2024-05-03 12:00")
    assert window.end == ts("2024-05-04 17:00")


def test_stopover_elsewhere_does_not_shift():
    stopover = StopoverSpec(airport="ZZZ", days=2)
    window = compute_window(1, _first_segment(), RANGE, stopover=stopover, route=["AAA", "BBB", "CCC"])
    assert window.start == ts("2024-05-01 12:00")


def test_stopover_matched_on_route_airport():
    stopover = StopoverSpec(airport="bbb", days=1)
    window = compute_window(1, _first_segment(), RANGE, stopover=stopover, route=["AAA", "BBB", "CCC"])
    assert window.start == ts("2024-05-02 12:00")


def test_empty_previous_segment_falls_back_to_full_range():
    empty = make_segment(0, "AAA", "BBB", [])
    assert compute_window(1, empty, RANGE) == full_range_window(RANGE)


def test_missing_previous_segment_is_an_error():
    with pytest.raises(ValueError):
        compute_window(2, None, RANGE)


def test_window_dates_are_inclusive_calendar_days():
    window = SearchWindow(start=ts("2024-05-01 12:00"), end=ts("2024-05-02 17:00"))
    assert window_dates(window) == [date(2024, 5, 1), date(2024, 5, 2)]


def test_full_range_dates_match_user_range():
    assert window_dates(full_range_window(RANGE)) == [RANGE.start + timedelta(days=n) for n in range(3)]


def test_connection_window_for_two_morning_and_afternoon_arrivals():
    previous = make_segment(
        0,
        "AAA",
        "BBB",
        [
            make_leg("AB1", "2024-05-01 09:00", "2024-05-01 12:00"),
            make_leg("AB2", "2024-05-01 14:00", "2024-05-01 17:00"),
        ],
    )
    window = compute_window(1, previous, RANGE, route=["AAA", "BBB", "CCC"])
    assert window == SearchWindow(start=ts("2024-05-01 12:00"), end=ts("2024-05-02 17:00"))
    assert window.contains(ts("2024-05-01 13:00"))
    assert window.contains(ts("2024-05-01 18:30"))
    assert not window.contains(ts("2024-05-01 11:59"))
