"""Availability module."""

from itinerary_composer.modules.availability.calendar import (
    SegmentAvailability,
    build_calendar,
    has_any_availability,
    validate_date_range,
)

__all__ = ["SegmentAvailability", "build_calendar", "has_any_availability", "validate_date_range"]
