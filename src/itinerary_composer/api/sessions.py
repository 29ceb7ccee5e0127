"""In-memory registry of per-modal engine sessions."""

from __future__ import annotations

import threading
import time
import uuid
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from itinerary_composer.pipeline.orchestrator import ItineraryComposer


@dataclass
class Session:
    id: str
    engine: ItineraryComposer
    created_at: float
    updated_at: float
    status: str = "idle"
    error: Optional[str] = None

    def touch(self, status: Optional[str] = None, error: Optional[str] = None) -> None:
        if status:
            self.status = status
        self.error = error
        self.updated_at = time.time()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "status": self.status,
            "generation": self.engine.generation,
            "route": self.engine.route,
            "segments": len(self.engine.segments),
            "combinations": len(self.engine.combinations),
            "selected_segments": sorted(self.engine.selection),
            "created_at": self.created_at,
            "updated_at": self.updated_at,
            "error": self.error,
        }


class SessionRegistry:
    def __init__(self, *, max_sessions: int = 200) -> None:
        self._lock = threading.Lock()
        self._sessions: Dict[str, Session] = {}
        self._max_sessions = max(1, max_sessions)

    def create(self, engine: ItineraryComposer) -> Tuple[Session, List[Session]]:
        """Register a session; returns it with the sessions evicted to make room.

        Evicted engines are reset here; the caller closes their drivers.
        """
        now = time.time()
        session = Session(id=uuid.uuid4().hex, engine=engine, created_at=now, updated_at=now)
        evicted: List[Session] = []
        with self._lock:
            while len(self._sessions) >= self._max_sessions:
                oldest = min(self._sessions.values(), key=lambda item: item.updated_at)
                evicted.append(self._sessions.pop(oldest.id))
            self._sessions[session.id] = session
        for stale in evicted:
            stale.engine.reset(reason="evicted")
        return session, evicted

    def get(self, session_id: str) -> Optional[Session]:
        with self._lock:
            return self._sessions.get(session_id)

    def drop(self, session_id: str) -> Optional[Session]:
        with self._lock:
            session = self._sessions.pop(session_id, None)
        if session is not None:
            session.engine.reset(reason="closed")
        return session

    def list(self) -> List[Session]:
        with self._lock:
            return sorted(self._sessions.values(), key=lambda item: item.created_at, reverse=True)
