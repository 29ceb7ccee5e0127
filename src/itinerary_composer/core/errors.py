"""Custom exceptions for the itinerary composer."""

class ComposerError(Exception):
    """Base error for itinerary composition failures."""


class ValidationError(ComposerError):
    """Raised when inputs are malformed (short route, inverted date range)."""


class ProviderError(ComposerError):
    """Raised when the availability/seat API fails."""


class SearchCancelled(ComposerError):
    """Raised when a search was superseded by a newer generation or reset."""

    def __init__(self, generation: int, current: int) -> None:
        super().__init__(f"search generation {generation} superseded by {current}")
        self.generation = generation
        self.current = current
