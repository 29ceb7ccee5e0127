"""Event hooks the host passes into the engine."""

from __future__ import annotations

from typing import Any, Callable, Dict, List

EventHandler = Callable[..., None]

RESET = "reset"
SEGMENT = "segment"
SEARCH = "search"


class EngineEvents:
    def __init__(self) -> None:
        self._handlers: Dict[str, List[EventHandler]] = {}

    def on(self, event: str, handler: EventHandler) -> EventHandler:
        self._handlers.setdefault(event, []).append(handler)
        return handler

    def off(self, event: str, handler: EventHandler) -> None:
        handlers = self._handlers.get(event, [])
        if handler in handlers:
            handlers.remove(handler)

    def emit(self, event: str, **payload: Any) -> None:
        for handler in list(self._handlers.get(event, [])):
            handler(**payload)
