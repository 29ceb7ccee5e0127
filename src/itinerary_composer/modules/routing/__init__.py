"""Routing module: connection windows, combination search, selection."""

from itinerary_composer.modules.routing.combinations import (
    compute_combinations,
    connection_minutes,
    displayable_legs,
    is_feasible_connection,
    searchable_range,
)
from itinerary_composer.modules.routing.selection import apply_visibility, consistent_combinations, toggle, toggle_selection
from itinerary_composer.modules.routing.window import compute_window, window_dates

__all__ = [
    "apply_visibility",
    "compute_combinations",
    "compute_window",
    "connection_minutes",
    "consistent_combinations",
    "displayable_legs",
    "is_feasible_connection",
    "searchable_range",
    "toggle",
    "toggle_selection",
    "window_dates",
]
