"""Configuration helpers for filesystem layout and engine defaults."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, FrozenSet, Optional

DEFAULT_EXCLUDED_CARRIERS = frozenset({"EK", "FZ"})
DEFAULT_CARRIER_ALIASES = {"RV": "AC"}


@dataclass(frozen=True)
class PathsConfig:
    root: Path
    data_dir: Path
    cache_dir: Path

    @staticmethod
    def from_root(root: Path) -> "PathsConfig":
        root = root.resolve()
        data_dir = root / "data"
        cache_dir = data_dir / "cache"
        return PathsConfig(root=root, data_dir=data_dir, cache_dir=cache_dir)


def resolve_repo_root() -> Path:
    env_root = Path.cwd()
    for parent in [env_root] + list(env_root.parents):
        if (parent / "pyproject.toml").exists():
            return parent
    return env_root


def load_paths() -> PathsConfig:
    return PathsConfig.from_root(resolve_repo_root())


@dataclass(frozen=True)
class EngineSettings:
    min_connection_minutes: int = 30
    max_connection_minutes: int = 1440
    excluded_carriers: FrozenSet[str] = DEFAULT_EXCLUDED_CARRIERS
    carrier_aliases: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_CARRIER_ALIASES))
    max_range_days: int = 7
    max_concurrent_requests: int = 8
    seats_base_url: str = "http://localhost:8080"
    request_timeout: float = 30.0
    cache_availability: bool = False


def _env(name: str, default: str) -> str:
    return os.getenv(f"ITINERARY_COMPOSER_{name}", default)


def _env_codes(name: str, default: FrozenSet[str]) -> FrozenSet[str]:
    raw = os.getenv(f"ITINERARY_COMPOSER_{name}")
    if raw is None:
        return default
    return frozenset(code.strip().upper() for code in raw.split(",") if code.strip())


def _env_aliases(name: str, default: Dict[str, str]) -> Dict[str, str]:
    # Format: "RV:AC,XX:YY"
    raw = os.getenv(f"ITINERARY_COMPOSER_{name}")
    if raw is None:
        return dict(default)
    aliases: Dict[str, str] = {}
    for item in raw.split(","):
        alias, _, target = item.partition(":")
        if alias.strip() and target.strip():
            aliases[alias.strip().upper()] = target.strip().upper()
    return aliases


def _env_flag(name: str, default: bool) -> bool:
    raw = _env(name, "").strip().lower()
    if raw in {"1", "true", "yes", "on"}:
        return True
    if raw in {"0", "false", "no", "off"}:
        return False
    return default


def load_settings(overrides: Optional[Dict[str, object]] = None) -> EngineSettings:
    values: Dict[str, object] = {
        "min_connection_minutes": int(_env("MIN_CONNECTION_MINUTES", "30")),
        "max_connection_minutes": int(_env("MAX_CONNECTION_MINUTES", "1440")),
        "excluded_carriers": _env_codes("EXCLUDED_CARRIERS", DEFAULT_EXCLUDED_CARRIERS),
        "carrier_aliases": _env_aliases("CARRIER_ALIASES", DEFAULT_CARRIER_ALIASES),
        "max_range_days": int(_env("MAX_RANGE_DAYS", "7")),
        "max_concurrent_requests": int(_env("MAX_CONCURRENT_REQUESTS", "8")),
        "seats_base_url": _env("SEATS_URL", "http://localhost:8080").rstrip("/"),
        "request_timeout": float(_env("REQUEST_TIMEOUT", "30")),
        "cache_availability": _env_flag("CACHE_AVAILABILITY", False),
    }
    if overrides:
        values.update(overrides)
    return EngineSettings(**values)
