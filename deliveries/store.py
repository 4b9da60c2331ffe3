"""
Purpose: Owns the delivery collection and the pickup point.
What it does:
- Owns the in-memory lists:
   - _deliveries (all records by id)
   - _pending_ids (ordered: this IS the visit order)
   - _completed_ids (delivered; order irrelevant, kept stable for display)

Provides operations:
   - set_pickup(coordinate)
   - add_delivery(location, fee)       -> appends to the end of the pending order
   - update_customer / update_order / update_address / move_delivery
   - set_status(id, status)            -> moves ids between pending and completed
   - delete(id)
   - reorder_pending(ids) / move_pending(id, index) / apply_sequence(deliveries)

Every update is addressed by id. An id that no longer exists is a no-op that
returns None, so late geocoding results for deleted deliveries are harmless.

Rule: Store owns state transitions, sequencing owns ordering logic.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from routing.geo import LatLon, validate_coordinate

from .models import (
    Delivery,
    DeliveryStatus,
    LOADING_ADDRESS,
    UPDATING_ADDRESS,
)
from .sequencing import move_item
from .state import check_transition

logger = logging.getLogger(__name__)


@dataclass
class StoreStats:
    pending_count: int
    completed_count: int
    has_pickup: bool
    now: datetime = field(default_factory=datetime.utcnow)


@dataclass
class DeliveryStore:
    """
    In-memory delivery collection:

    PENDING (ordered) <-> DELIVERED

    Readers only ever receive frozen Delivery snapshots; nothing outside the
    store can hold a copy that diverges from it.
    """
    pickup: Optional[LatLon] = None

    _deliveries: Dict[str, Delivery] = field(default_factory=dict)  # all deliveries by id
    _pending_ids: List[str] = field(default_factory=list)  # visit order
    _completed_ids: List[str] = field(default_factory=list)

    # geocoding callbacks write from a worker thread
    _lock: threading.RLock = field(default_factory=threading.RLock, repr=False, compare=False)

    # --- Public API ---

    def set_pickup(self, coordinate: Optional[LatLon]) -> Optional[LatLon]:
        with self._lock:
            self.pickup = validate_coordinate(coordinate) if coordinate is not None else None
            return self.pickup

    def add_delivery(self, location: LatLon, *, delivery_fee: float = 0.0,
                     address: str = LOADING_ADDRESS) -> Delivery:
        """
        Create a pending delivery at the end of the visit order. Never re-sorts.
        The same coordinate added twice yields two independent deliveries.
        """
        delivery = Delivery.new(validate_coordinate(location), delivery_fee=delivery_fee, address=address)
        with self._lock:
            self._deliveries[delivery.id] = delivery
            self._pending_ids.append(delivery.id)
        logger.debug("Added delivery %s at %s", delivery.id, delivery.location)
        return delivery

    def get(self, delivery_id: str) -> Optional[Delivery]:
        with self._lock:
            return self._deliveries.get(delivery_id)

    def __contains__(self, delivery_id: str) -> bool:
        with self._lock:
            return delivery_id in self._deliveries

    def __len__(self) -> int:
        with self._lock:
            return len(self._deliveries)

    def pending(self) -> List[Delivery]:
        with self._lock:
            return [self._deliveries[delivery_id] for delivery_id in self._pending_ids]

    def completed(self) -> List[Delivery]:
        with self._lock:
            return [self._deliveries[delivery_id] for delivery_id in self._completed_ids]

    def all(self) -> List[Delivery]:
        """Pending in visit order, then completed."""
        with self._lock:
            return self.pending() + self.completed()

    def stats(self) -> StoreStats:
        with self._lock:
            return StoreStats(
                pending_count=len(self._pending_ids),
                completed_count=len(self._completed_ids),
                has_pickup=self.pickup is not None,
            )

    # ---- Field updates (no-op on unknown id) ----

    def _replace(self, delivery_id: str, **changes) -> Optional[Delivery]:
        with self._lock:
            current = self._deliveries.get(delivery_id)
            if current is None:
                logger.debug("Update for missing delivery %s ignored", delivery_id)
                return None
            updated = replace(current, **changes)
            self._deliveries[delivery_id] = updated
            return updated

    def update_address(self, delivery_id: str, address: str) -> Optional[Delivery]:
        return self._replace(delivery_id, address=address)

    def update_customer(self, delivery_id: str, **fields) -> Optional[Delivery]:
        """Partial update: update_customer(id, phone="...") keeps the name."""
        with self._lock:
            current = self._deliveries.get(delivery_id)
            if current is None:
                return None
            return self._replace(delivery_id, customer=replace(current.customer, **fields))

    def update_order(self, delivery_id: str, **fields) -> Optional[Delivery]:
        """Partial update of items / is_paid / amount / delivery_fee / payment_details."""
        with self._lock:
            current = self._deliveries.get(delivery_id)
            if current is None:
                return None
            return self._replace(delivery_id, order=replace(current.order, **fields))

    def move_delivery(self, delivery_id: str, location: LatLon) -> Optional[Delivery]:
        """New coordinate (marker drag); the address goes back to a placeholder until re-geocoded."""
        return self._replace(delivery_id, location=validate_coordinate(location), address=UPDATING_ADDRESS)

    # ---- Status transitions ----

    def set_status(self, delivery_id: str, status) -> Optional[Delivery]:
        """
        pending -> delivered: the id leaves the pending order, the others keep their positions.
        delivered -> pending: the id is appended to the end of the pending order.
        """
        with self._lock:
            current = self._deliveries.get(delivery_id)
            if current is None:
                return None

            target = check_transition(current, status)
            if target == current.status:
                return current

            if target == DeliveryStatus.DELIVERED:
                self._pending_ids.remove(delivery_id)
                self._completed_ids.append(delivery_id)
            else:
                self._completed_ids.remove(delivery_id)
                self._pending_ids.append(delivery_id)

            return self._replace(delivery_id, status=target)

    def delete(self, delivery_id: str) -> Optional[Delivery]:
        """
        Remove a delivery from any stage.
        """
        with self._lock:
            removed = self._deliveries.pop(delivery_id, None)
            if removed is None:
                return None
            if delivery_id in self._pending_ids:
                self._pending_ids.remove(delivery_id)
            if delivery_id in self._completed_ids:
                self._completed_ids.remove(delivery_id)
            return removed

    def clear(self) -> None:
        """Forget the pickup and every delivery (start a new run)."""
        with self._lock:
            self.pickup = None
            self._deliveries.clear()
            self._pending_ids.clear()
            self._completed_ids.clear()

    # ---- Ordering ----

    def reorder_pending(self, delivery_ids: Sequence[str]) -> List[Delivery]:
        """
        Replace the visit order. delivery_ids must be exactly the current pending ids.
        """
        with self._lock:
            if sorted(delivery_ids) != sorted(self._pending_ids):
                raise ValueError("New order must contain exactly the pending delivery ids")
            self._pending_ids = list(delivery_ids)
            return self.pending()

    def move_pending(self, delivery_id: str, new_index: int) -> List[Delivery]:
        """Manual drag of one pending delivery to a new position."""
        with self._lock:
            if delivery_id not in self._pending_ids:
                raise ValueError(f"Delivery {delivery_id} is not pending")
            old_index = self._pending_ids.index(delivery_id)
            self._pending_ids = move_item(self._pending_ids, old_index, new_index)
            return self.pending()

    def apply_sequence(self, deliveries: Sequence[Delivery]) -> List[Delivery]:
        """
        Commit a sequencer result (pending first, completed after).
        Only the relative order is taken from it; records are re-read from the store.
        """
        with self._lock:
            current_pending = set(self._pending_ids)
            current_completed = set(self._completed_ids)
            pending_ids = [d.id for d in deliveries if d.id in current_pending]
            completed_ids = [d.id for d in deliveries if d.id in current_completed]

            # anything added meanwhile keeps its place at the end
            seen_pending, seen_completed = set(pending_ids), set(completed_ids)
            pending_ids += [i for i in self._pending_ids if i not in seen_pending]
            completed_ids += [i for i in self._completed_ids if i not in seen_completed]

            self._pending_ids = pending_ids
            self._completed_ids = completed_ids
            return self.all()
