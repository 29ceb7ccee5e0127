"""JSON file cache with per-entry freshness."""

from __future__ import annotations

import json
import logging
import time
from pathlib import Path
from typing import Any, Optional

LOG = logging.getLogger(__name__)


class FileCache:
    def __init__(self, cache_dir: Path, *, ttl_seconds: Optional[int] = None) -> None:
        self.cache_dir = cache_dir
        self.ttl_seconds = ttl_seconds
        self.cache_dir.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        safe_key = key.replace("/", "_").replace(":", "_")
        return self.cache_dir / f"{safe_key}.json"

    def _is_fresh(self, entry: dict) -> bool:
        if self.ttl_seconds is None:
            return True
        ts = entry.get("ts")
        if not isinstance(ts, (int, float)):
            return False
        return (time.time() - ts) <= self.ttl_seconds

    def get(self, key: str) -> Optional[Any]:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            with path.open("r", encoding="utf-8") as handle:
                entry = json.load(handle)
        except json.JSONDecodeError:
            LOG.warning("Ignoring corrupt cache entry %s", path)
            return None
        if not isinstance(entry, dict) or not self._is_fresh(entry):
            return None
        return entry.get("value")

    def set(self, key: str, value: Any) -> None:
        path = self._path(key)
        with path.open("w", encoding="utf-8") as handle:
            json.dump({"ts": time.time(), "value": value}, handle, ensure_ascii=True, indent=2)
