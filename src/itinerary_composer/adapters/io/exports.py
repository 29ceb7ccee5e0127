"""Export helpers turning engine state into JSON-ready payloads."""

from __future__ import annotations

from datetime import date
from typing import Any, Dict, List, Optional, Sequence

from itinerary_composer.core.models import CabinFlags, Combination, Leg, LegView, Segment, SearchWindow, ToggleResult
from itinerary_composer.core.normalization import annotate_time, format_minutes, format_timestamp
from itinerary_composer.modules.availability.calendar import SegmentAvailability, has_any_availability
from itinerary_composer.modules.routing.combinations import connection_minutes
from itinerary_composer.pipeline.results import FetchReport, SearchOutcome


def _serialize_cabins(cabins: CabinFlags) -> Dict[str, bool]:
    return {"economy": cabins.economy, "business": cabins.business, "first": cabins.first}


def serialize_leg(leg: Leg, base_date: Optional[date] = None) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "flight_id": leg.flight_id,
        "carrier": leg.carrier,
        "from": leg.origin,
        "to": leg.destination,
        "aircraft": leg.aircraft,
        "duration": leg.duration_minutes,
        "distance": leg.distance_miles,
        "departs_at": format_timestamp(leg.departs_at),
        "arrives_at": format_timestamp(leg.arrives_at),
        "segment_index": leg.segment_index,
        **_serialize_cabins(leg.cabins),
    }
    if base_date is not None:
        payload["departs"] = annotate_time(leg.departs_at, base_date)
        payload["arrives"] = annotate_time(leg.arrives_at, base_date)
    return payload


def serialize_leg_view(view: LegView, base_date: Optional[date] = None) -> Dict[str, Any]:
    payload = serialize_leg(view.leg, base_date)
    payload["is_selected"] = view.is_selected
    payload["hidden"] = view.hidden
    return payload


def _serialize_window(window: Optional[SearchWindow]) -> Optional[Dict[str, str]]:
    if window is None:
        return None
    return {"start": format_timestamp(window.start), "end": format_timestamp(window.end)}


def serialize_segment(segment: Segment, base_date: Optional[date] = None) -> Dict[str, Any]:
    return {
        "index": segment.index,
        "route": segment.route,
        "origin": segment.origin,
        "destination": segment.destination,
        "search_window": _serialize_window(segment.search_window),
        "earliest_arrival": format_timestamp(segment.earliest_arrival) if segment.earliest_arrival else None,
        "latest_arrival": format_timestamp(segment.latest_arrival) if segment.latest_arrival else None,
        "legs": [serialize_leg(leg, base_date) for leg in segment.legs],
    }


def serialize_combination(combination: Combination, base_date: Optional[date] = None) -> Dict[str, Any]:
    connections: List[Dict[str, Any]] = []
    for previous, following in zip(combination, combination[1:]):
        minutes = connection_minutes(previous.arrives_at, following.departs_at)
        connections.append(
            {
                "airport": previous.destination,
                "minutes": minutes,
                "formatted": format_minutes(minutes),
            }
        )
    return {
        "legs": [serialize_leg(leg, base_date) for leg in combination],
        "connections": connections,
    }


def serialize_report(report: FetchReport) -> Dict[str, Any]:
    return {
        "segment_index": report.segment_index,
        "route": report.route,
        "date": report.date.isoformat(),
        "ok": report.ok,
        "legs": report.legs,
        "message": report.message,
    }


def serialize_toggle(result: ToggleResult, base_date: Optional[date] = None) -> Dict[str, Any]:
    return {
        "selection": {
            str(index): [serialize_leg(leg, base_date) for leg in pinned]
            for index, pinned in sorted(result.selection.items())
        },
        "legs": [serialize_leg_view(view, base_date) for view in result.legs],
    }


def serialize_outcome(outcome: SearchOutcome) -> Dict[str, Any]:
    base_date = outcome.date_range.start
    return {
        "generation": outcome.generation,
        "status": outcome.status,
        "route": outcome.route,
        "date_range": {
            "start": outcome.date_range.start.isoformat(),
            "end": outcome.date_range.end.isoformat(),
        },
        "stopover": (
            {"airport": outcome.stopover.airport, "days": outcome.stopover.days} if outcome.stopover else None
        ),
        "segments": [serialize_segment(segment, base_date) for segment in outcome.segments],
        "combinations": [serialize_combination(combo, base_date) for combo in outcome.combinations],
        "legs": [serialize_leg_view(view, base_date) for view in outcome.legs],
        "reports": [serialize_report(report) for report in outcome.reports],
    }


def serialize_calendar(calendar: Dict[date, Sequence[SegmentAvailability]]) -> List[Dict[str, Any]]:
    return [
        {
            "date": day.isoformat(),
            "available": has_any_availability(entries),
            "segments": [
                {
                    "index": entry.index,
                    "route": entry.route,
                    "segment_id": entry.segment_id,
                    "classes": {"Y": entry.cabins.economy, "J": entry.cabins.business, "F": entry.cabins.first},
                }
                for entry in entries
            ],
        }
        for day, entries in sorted(calendar.items())
    ]
