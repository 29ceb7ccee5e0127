"""Legs module."""

from itinerary_composer.modules.legs.normalizer import NormalizedBatch, arrival_bounds, merge_legs, normalize_batch

__all__ = ["NormalizedBatch", "arrival_bounds", "merge_legs", "normalize_batch"]
