"""
Purpose: Visit-order sequencing for a single courier.
What it does:

- nearest_neighbor_order: greedy walk from the pickup point, always heading to the
  closest delivery not yet visited. Local heuristic, not globally optimal:
  P=(0,0), A=(10,0), B=(1,0) gives [B, A] even when that means backtracking.
- optimize_sequence: greedy order for pending deliveries, completed ones appended
  after them in their existing relative order.
- move_item: the manual reorder primitive (drag one entry to a new index).

Rule: Sequencing is only ever run on an explicit "optimize" action. Manual moves and
field edits never trigger it.

Complexity is O(n^2) in the pending count, which is fine for one courier's daily load.
"""

from __future__ import annotations

from typing import Callable, List, Sequence, TypeVar

from routing.geo import LatLon, haversine_m

from .models import Delivery

T = TypeVar("T")

DistanceFn = Callable[[LatLon, LatLon], float]


def nearest_neighbor_order(
    pickup: LatLon,
    pending: Sequence[Delivery],
    distance: DistanceFn = haversine_m,
) -> List[Delivery]:
    """
    Greedy nearest-neighbour order starting at the pickup point.

    Ties on exactly equal distance go to the delivery met first in the
    working list (strict < comparison, the list is never re-sorted).
    """
    remaining = list(pending)
    ordered: List[Delivery] = []
    current = pickup

    while remaining:
        nearest_idx = 0
        min_dist = float("inf")

        for idx, delivery in enumerate(remaining):
            d = distance(current, delivery.location)
            if d < min_dist:
                min_dist = d
                nearest_idx = idx

        next_delivery = remaining.pop(nearest_idx)
        ordered.append(next_delivery)
        current = next_delivery.location

    return ordered


def optimize_sequence(
    pickup: LatLon,
    deliveries: Sequence[Delivery],
    distance: DistanceFn = haversine_m,
) -> List[Delivery]:
    """
    Pending deliveries in greedy order followed by completed ones (relative order kept).
    """
    pending = [d for d in deliveries if d.is_pending]
    completed = [d for d in deliveries if not d.is_pending]
    return nearest_neighbor_order(pickup, pending, distance) + completed


def move_item(items: Sequence[T], old_index: int, new_index: int) -> List[T]:
    """
    Return a copy with the item at old_index moved to new_index; everything
    between shifts by one. Indexes are clamped to the list bounds.
    """
    result = list(items)
    if not result:
        return result

    old_index = max(0, min(old_index, len(result) - 1))
    new_index = max(0, min(new_index, len(result) - 1))
    result.insert(new_index, result.pop(old_index))
    return result
