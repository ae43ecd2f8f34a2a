from __future__ import annotations

from typing import Iterable, List, Optional

from .direction import FloorCall


def candidate_floors(requests: Iterable[int], calls: Iterable[FloorCall]) -> List[int]:
    """Requests in enumeration order, then call floors in submission order."""

    return [*requests, *(call.floor for call in calls)]


def nearest_target(candidates: Iterable[int], current_floor: int) -> Optional[int]:
    """Pick the candidate closest to ``current_floor``.

    Ties go to the first candidate encountered. Direction of travel is not
    considered, so this is a nearest-stop heuristic rather than a SCAN sweep.
    Returns ``None`` when there are no candidates.
    """

    target: Optional[int] = None
    best_distance: Optional[int] = None
    for floor in candidates:
        distance = abs(floor - current_floor)
        if best_distance is None or distance < best_distance:
            best_distance = distance
            target = floor
    return target
