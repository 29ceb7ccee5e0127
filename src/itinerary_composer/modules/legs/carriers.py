"""Carrier and aircraft canonicalization for raw seat records."""

from __future__ import annotations

from typing import Iterable, Mapping, Optional, Tuple

_AIRCRAFT_ALIASES = {
    "787  All": "Boeing 787-10",
}


def canonical_carrier(carrier: str, aliases: Mapping[str, str]) -> str:
    code = (carrier or "").strip().upper()
    return aliases.get(code, code)


def canonical_flight_id(flight_number: str, carrier: str, aliases: Mapping[str, str]) -> str:
    """Rewrite an aliased carrier prefix, e.g. ``RV1801`` to ``AC1801``."""
    number = (flight_number or "").strip().upper()
    code = (carrier or "").strip().upper()
    target = aliases.get(code)
    if target and number.startswith(code):
        return target + number[len(code):]
    for alias, operating in aliases.items():
        if number.startswith(alias) and number[len(alias):].isdigit():
            return operating + number[len(alias):]
    return number


def is_excluded(carrier: str, excluded: Iterable[str]) -> bool:
    return (carrier or "").strip().upper() in set(excluded)


def aircraft_name(aircraft: Tuple[str, ...]) -> Optional[str]:
    if not aircraft:
        return None
    name = aircraft[0]
    if not name:
        return None
    return _AIRCRAFT_ALIASES.get(name, name)
