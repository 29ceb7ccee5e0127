"""Normalization helpers for naive local timestamps, airport codes and API meta."""

from __future__ import annotations

import os
from datetime import date, datetime, time, timedelta
from typing import Dict, Optional, Union

DEFAULT_LOCALE = os.getenv("ITINERARY_COMPOSER_LOCALE", "en-US")

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def parse_local_timestamp(value: Union[str, datetime]) -> datetime:
    """Parse an API timestamp as naive local time.

    The seat API stamps local wall-clock times with a ``Z`` suffix; the suffix
    (or any UTC offset) is dropped without shifting the clock.
    """
    if isinstance(value, datetime):
        return value.replace(tzinfo=None)
    text = value.strip()
    if text.endswith("Z") or text.endswith("z"):
        text = text[:-1]
    return datetime.fromisoformat(text).replace(tzinfo=None)


def parse_optional_timestamp(value: Optional[Union[str, datetime]]) -> Optional[datetime]:
    if value is None or value == "":
        return None
    try:
        return parse_local_timestamp(value)
    except ValueError:
        return None


def format_timestamp(value: datetime) -> str:
    return value.strftime(TIMESTAMP_FORMAT)


def start_of_day(value: date) -> datetime:
    return datetime.combine(value, time.min)


def end_of_day(value: date) -> datetime:
    return datetime.combine(value, time(23, 59, 59, 999000))


def day_offset(value: datetime, base: date) -> int:
    # Whole days since base midnight, truncated toward zero.
    delta = value - start_of_day(base)
    return int(delta / timedelta(days=1))


def annotate_time(value: datetime, base: date) -> str:
    offset = day_offset(value, base)
    clock = value.strftime("%H:%M")
    return f"{clock} (+{offset})" if offset > 0 else clock


def format_minutes(minutes: int) -> str:
    hours, mins = divmod(max(0, minutes), 60)
    return f"{hours:02d}:{mins:02d}"


def normalize_airport(value: Optional[str]) -> str:
    return value.strip().upper() if value else ""


def normalize_locale(value: Optional[str]) -> str:
    return value.strip() if value else DEFAULT_LOCALE


def build_meta() -> Dict[str, str]:
    return {
        "locale": normalize_locale(DEFAULT_LOCALE),
        "timezone": "local",
        "date_format": "YYYY-MM-DD",
        "datetime_format": "YYYY-MM-DD HH:mm:ss",
    }
