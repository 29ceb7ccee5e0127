"""Pinning legs and propagating the selection to the other segments."""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Sequence, Set, Tuple

from itinerary_composer.core.models import Combination, Leg, LegKey, LegView, Segment, Selection, ToggleResult
from itinerary_composer.modules.routing.combinations import displayable_legs

LOG = logging.getLogger(__name__)


def _pin_keys(selection: Selection) -> Set[Tuple[int, LegKey]]:
    return {(index, leg.key) for index, pinned in selection.items() for leg in pinned}


def toggle(selection: Selection, leg: Leg, segment_index: int) -> Selection:
    """Return a new selection with ``leg`` pinned or unpinned.

    Several legs may be pinned on one segment at the same time.
    """
    updated: Selection = {index: list(pinned) for index, pinned in selection.items()}
    pinned = updated.get(segment_index, [])
    if any(existing.key == leg.key for existing in pinned):
        remaining = [existing for existing in pinned if existing.key != leg.key]
        if remaining:
            updated[segment_index] = remaining
        else:
            updated.pop(segment_index, None)
    else:
        updated[segment_index] = pinned + [leg]
    return updated


def is_consistent(combination: Combination, selection: Selection) -> bool:
    by_index = {leg.segment_index: leg for leg in combination}
    for index, pinned in selection.items():
        leg = by_index.get(index)
        if leg is None:
            return False
        if not any(candidate.key == leg.key for candidate in pinned):
            return False
    return True


def consistent_combinations(combinations: Iterable[Combination], selection: Selection) -> List[Combination]:
    if not selection:
        return list(combinations)
    return [combo for combo in combinations if is_consistent(combo, selection)]


def legs_of(combinations: Iterable[Combination]) -> List[Leg]:
    seen: Set[Tuple[int, LegKey]] = set()
    legs: List[Leg] = []
    for combo in combinations:
        for leg in combo:
            marker = (leg.segment_index, leg.key)
            if marker not in seen:
                seen.add(marker)
                legs.append(leg)
    return sorted(legs, key=lambda leg: leg.segment_index)


def apply_visibility(legs: Iterable[Leg], combinations: Sequence[Combination], selection: Selection) -> List[LegView]:
    if not selection:
        return [LegView(leg=leg) for leg in legs]

    pinned = _pin_keys(selection)
    reachable = {(leg.segment_index, leg.key) for combo in consistent_combinations(combinations, selection) for leg in combo}
    views: List[LegView] = []
    for leg in legs:
        marker = (leg.segment_index, leg.key)
        selected = marker in pinned
        views.append(LegView(leg=leg, is_selected=selected, hidden=not selected and marker not in reachable))
    return views


def toggle_selection(
    combinations: Sequence[Combination],
    selection: Selection,
    leg: Leg,
    segment_index: int,
    *,
    shown: Optional[Sequence[Leg]] = None,
    segments: Optional[Sequence[Segment]] = None,
) -> ToggleResult:
    """Toggle ``leg`` and recompute visibility.

    Views cover ``shown`` when given, else the displayable legs of
    ``segments`` (every leg when there are no combinations), else the legs
    of the combinations.
    """
    updated = toggle(selection, leg, segment_index)
    if shown is not None:
        legs = list(shown)
    elif segments is not None:
        legs = displayable_legs(segments, combinations)
    else:
        legs = legs_of(combinations)
    views = apply_visibility(legs, combinations, updated)
    if updated and not consistent_combinations(combinations, updated):
        LOG.info("Selection on segments %s leaves no connecting flights", sorted(updated))
    return ToggleResult(selection=updated, legs=views)
