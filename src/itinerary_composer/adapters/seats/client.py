"""Async HTTP client for the remote availability/seat API."""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Sequence

import httpx

from itinerary_composer.adapters.storage.cache import FileCache
from itinerary_composer.core.config import EngineSettings
from itinerary_composer.core.errors import ProviderError
from itinerary_composer.core.models import AvailabilityRecord, CabinFlags, RawFlightRecord
from itinerary_composer.core.normalization import normalize_airport

LOG = logging.getLogger(__name__)


def parse_int(value: Any) -> Optional[int]:
    if value is None:
        return None
    text = str(value).strip()
    if not text or text.lower() == "none":
        return None
    try:
        return int(text)
    except ValueError:
        try:
            return int(float(text))
        except ValueError:
            return None


def _first(payload: Dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in payload and payload[key] is not None:
            return payload[key]
    return None


def record_from_payload(payload: Dict[str, Any]) -> RawFlightRecord:
    """Raise ``ValueError`` for rows that are not objects or lack a stop count."""
    if not isinstance(payload, dict):
        raise ValueError(f"seat row is {type(payload).__name__}, expected an object")
    stops = parse_int(payload.get("Stops"))
    if stops is None:
        raise ValueError("seat row has no stop count")
    aircraft = payload.get("Aircraft") or ()
    if isinstance(aircraft, str):
        aircraft = (aircraft,)
    return RawFlightRecord(
        carrier=str(payload.get("Carriers") or ""),
        flight_number=str(payload.get("FlightNumbers") or ""),
        stops=stops,
        departs_at=str(payload.get("DepartsAt") or ""),
        arrives_at=str(payload.get("ArrivesAt") or ""),
        cabin=str(payload.get("Cabin") or ""),
        origin=str(payload.get("OriginAirport") or ""),
        destination=str(payload.get("DestinationAirport") or ""),
        aircraft=tuple(str(item) for item in aircraft),
        distance=parse_int(payload.get("Distance")),
        duration_minutes=parse_int(payload.get("TotalDuration")),
    )


def availability_from_payload(payload: Dict[str, Any]) -> AvailabilityRecord:
    if not isinstance(payload, dict):
        raise ValueError(f"availability row is {type(payload).__name__}, expected an object")
    classes = payload.get("classOpen") or {}
    return AvailabilityRecord(
        date=datetime.strptime(str(payload["date"])[:10], "%Y-%m-%d").date(),
        origin=normalize_airport(_first(payload, "originAirport", "origin")),
        destination=normalize_airport(_first(payload, "destinationAirport", "destination")),
        segment_id=str(_first(payload, "segmentId", "ID", "id") or ""),
        distance=parse_int(payload.get("distance")),
        cabins=CabinFlags(
            economy=bool(classes.get("Y")),
            business=bool(classes.get("J")),
            first=bool(classes.get("F")),
        ),
    )


def seat_rows(payload: Dict[str, Any]) -> List[Any]:
    results = payload.get("results") or []
    if not results:
        return []
    if not isinstance(results, list) or not isinstance(results[0] or {}, dict):
        raise ProviderError("seat payload has an unexpected results shape")
    data = (results[0] or {}).get("data") or {}
    if not isinstance(data, dict):
        raise ProviderError("seat payload has an unexpected data shape")
    rows = data.get("data") or []
    if not isinstance(rows, list):
        raise ProviderError("seat payload rows are not a list")
    return rows


class SeatsClient:
    """``FetchDriver`` over HTTP; ``api_key`` is the user's opaque credential."""

    def __init__(
        self,
        api_key: str,
        *,
        settings: Optional[EngineSettings] = None,
        cache: Optional[FileCache] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.settings = settings or EngineSettings()
        self._api_key = api_key
        self._cache = cache
        self._client = httpx.AsyncClient(
            base_url=self.settings.seats_base_url,
            timeout=self.settings.request_timeout,
            transport=transport,
            headers={"accept": "application/json"},
        )

    async def __aenter__(self) -> "SeatsClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _get_json(self, url: str, **kwargs: Any) -> Dict[str, Any]:
        try:
            response = await self._client.get(url, **kwargs)
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as exc:
            raise ProviderError(f"{url} answered {exc.response.status_code}") from exc
        except (httpx.HTTPError, ValueError) as exc:
            raise ProviderError(f"{url} failed: {exc}") from exc
        if not isinstance(payload, dict):
            raise ProviderError(f"{url} returned an unexpected payload")
        return payload

    async def fetch_availability(
        self, route: Sequence[str], from_date: Optional[date] = None
    ) -> List[AvailabilityRecord]:
        route_key = "-".join(normalize_airport(code) for code in route)
        params = {"route": route_key}
        if from_date is not None:
            params["from"] = from_date.isoformat()
        cache_key = f"availability_{route_key}_{params.get('from', 'any')}"

        rows: Optional[List[Dict[str, Any]]] = None
        if self._cache is not None and self.settings.cache_availability:
            rows = self._cache.get(cache_key)
        if rows is None:
            payload = await self._get_json("/api/availability", params=params)
            rows = list(payload.get("data") or [])
            if self._cache is not None and self.settings.cache_availability:
                self._cache.set(cache_key, rows)

        records: List[AvailabilityRecord] = []
        for row in rows:
            try:
                records.append(availability_from_payload(row))
            except (KeyError, TypeError, ValueError) as exc:
                LOG.warning("Skipping malformed availability row %r: %s", row, exc)
        return records

    async def fetch_legs(self, segment_id: str) -> List[RawFlightRecord]:
        headers = {
            "Partner-Authorization": self._api_key,
            "Segment-ID": segment_id,
        }
        payload = await self._get_json(f"/api/seats/{segment_id}", headers=headers)
        records: List[RawFlightRecord] = []
        for row in seat_rows(payload):
            try:
                records.append(record_from_payload(row))
            except (TypeError, ValueError) as exc:
                LOG.warning("Skipping malformed seat row %r for segment id %s: %s", row, segment_id, exc)
        return records
