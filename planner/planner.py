"""
Purpose: Orchestrator for one courier's run (the "glue" the UI talks to).
What it does:
Accepts UI-level events (location selected, marker dragged, status changed, manual
reorder, "optimize" pressed), applies them to the DeliveryStore, and keeps the
current driving route in sync with the pending visit order.

- Fees are priced against the pickup when a delivery is created.
- Addresses are filled in asynchronously through the GeocodeQueue, written back by id.
- Sequencing only runs from optimize(); every other change keeps the current order.
- Route requests carry a monotonically increasing token; a result that comes back
  after a newer request started is dropped instead of overwriting fresher data.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future
from typing import Callable, List, Optional, Sequence, Tuple

from deliveries.models import Delivery, DeliveryStatus
from deliveries.pricing import PricingTable, default_pricing
from deliveries.sequencing import optimize_sequence
from deliveries.store import DeliveryStore
from geocoding.link_unwrapper import LinkUnwrapper
from geocoding.nominatim_client import NominatimClient
from geocoding.queue import GeocodeQueue
from geocoding.resolver import LocationResolver, ResolvedLocation
from routing.geo import LatLon, haversine_m, validate_coordinate
from routing.osrm_client import OSRMClient
from routing.route_service import RouteResult, compute_route

from .settings import PlannerSettings, settings_from_env

logger = logging.getLogger(__name__)

RouteFn = Callable[[OSRMClient, LatLon, Sequence[LatLon]], Optional[RouteResult]]


class DeliveryPlanner:
    """
    Coordinates the store, pricing, sequencing, routing and geocoding for a single run.
    """
    def __init__(self,
                 store: Optional[DeliveryStore] = None,
                 pricing: Optional[PricingTable] = None,
                 osrm_client: Optional[OSRMClient] = None,
                 geocode_queue: Optional[GeocodeQueue] = None,
                 resolver: Optional[LocationResolver] = None,
                 route_fn: RouteFn = compute_route):
        self.store = store or DeliveryStore()
        self.pricing = pricing or default_pricing()
        self.osrm_client = osrm_client
        self.geocode_queue = geocode_queue
        self.resolver = resolver or LocationResolver()
        self.route_fn = route_fn

        self._route_lock = threading.Lock()
        self._route_token = 0
        self.route: Optional[RouteResult] = None

    # ---- Pickup & deliveries ----

    def select_location(self, coordinate: LatLon) -> Optional[Delivery]:
        """
        A tap on the map / accepted text input. The first selection becomes the
        pickup point; every later one adds a delivery.
        """
        if self.store.pickup is None:
            self.set_pickup(coordinate)
            return None
        return self.add_delivery(coordinate)

    def set_pickup(self, coordinate: LatLon) -> LatLon:
        """Set or move the pickup point. Existing deliveries and fees are kept."""
        pickup = self.store.set_pickup(coordinate)
        logger.info("Pickup set to %s", pickup)
        self.refresh_route()
        return pickup

    def add_delivery(self, coordinate: LatLon) -> Delivery:
        pickup = self.store.pickup
        if pickup is None:
            raise ValueError("Set a pickup point before adding deliveries")

        location = validate_coordinate(coordinate)
        fee = self.pricing.price_for(haversine_m(pickup, location))
        delivery = self.store.add_delivery(location, delivery_fee=fee)
        logger.info("Delivery %s added (fee %.2f)", delivery.id, fee)

        self._request_address(delivery.id, delivery.location)
        self.refresh_route()
        return self.store.get(delivery.id) or delivery

    def move_delivery(self, delivery_id: str, coordinate: LatLon) -> Optional[Delivery]:
        """Marker dragged: new coordinate, fresh address lookup, new route. The fee is kept."""
        moved = self.store.move_delivery(delivery_id, coordinate)
        if moved is None:
            return None
        self._request_address(moved.id, moved.location)
        self.refresh_route()
        return moved

    def update_customer(self, delivery_id: str, **fields) -> Optional[Delivery]:
        return self.store.update_customer(delivery_id, **fields)

    def update_order(self, delivery_id: str, **fields) -> Optional[Delivery]:
        return self.store.update_order(delivery_id, **fields)

    def mark_delivered(self, delivery_id: str) -> Optional[Delivery]:
        return self._set_status(delivery_id, DeliveryStatus.DELIVERED)

    def mark_pending(self, delivery_id: str) -> Optional[Delivery]:
        return self._set_status(delivery_id, DeliveryStatus.PENDING)

    def _set_status(self, delivery_id: str, status: DeliveryStatus) -> Optional[Delivery]:
        updated = self.store.set_status(delivery_id, status)
        if updated is not None:
            self.refresh_route()
        return updated

    def delete_delivery(self, delivery_id: str) -> Optional[Delivery]:
        removed = self.store.delete(delivery_id)
        if removed is not None:
            self.refresh_route()
        return removed

    def distance_from_pickup(self, delivery_id: str) -> Optional[float]:
        """Straight-line metres from the pickup (the distance label on each card)."""
        delivery = self.store.get(delivery_id)
        if delivery is None or self.store.pickup is None:
            return None
        return haversine_m(self.store.pickup, delivery.location)

    def reset(self) -> None:
        """Start over: no pickup, no deliveries, no route."""
        self.store.clear()
        with self._route_lock:
            self._route_token += 1  # anything in flight is now stale
            self.route = None
        logger.info("Planner reset")

    # ---- Ordering ----

    def move_pending(self, delivery_id: str, new_index: int) -> List[Delivery]:
        """Manual drag in the pending list. Never re-sorts anything else."""
        pending = self.store.move_pending(delivery_id, new_index)
        self.refresh_route()
        return pending

    def reorder(self, delivery_ids: Sequence[str]) -> List[Delivery]:
        pending = self.store.reorder_pending(delivery_ids)
        self.refresh_route()
        return pending

    def optimize(self) -> List[Delivery]:
        """
        Explicit "optimize" action: greedy nearest-neighbour order from the pickup,
        completed deliveries kept after the pending ones.
        """
        pickup = self.store.pickup
        deliveries = self.store.all()
        if pickup is None or not deliveries:
            return deliveries

        ordered = optimize_sequence(pickup, deliveries)
        result = self.store.apply_sequence(ordered)
        logger.info("Optimized %d pending deliveries", len(self.store.pending()))
        self.refresh_route()
        return result

    # ---- Pricing ----

    def set_pricing(self, pricing: PricingTable) -> None:
        """New fee table for deliveries added from now on; existing fees are left alone."""
        pricing.validate()
        self.pricing = pricing

    # ---- Text input ----

    def submit_location_text(self, raw_text: str) -> Tuple[ResolvedLocation, Optional[Delivery]]:
        """
        Resolve pasted text and treat the result as a map selection.
        Raises ParseFailure (input untouched) when the text cannot be resolved.
        """
        resolved = self.resolver.resolve(raw_text)
        return resolved, self.select_location(resolved.coordinate)

    # ---- Route ----

    def refresh_route(self) -> Optional[RouteResult]:
        """
        Recompute the driving route for pickup + pending deliveries in visit order.

        With no pickup or nothing pending the route is cleared. A failed request also
        clears it, so a stale path is never shown.
        """
        pickup = self.store.pickup
        pending = self.store.pending()

        with self._route_lock:
            self._route_token += 1
            token = self._route_token

        if pickup is None or not pending or self.osrm_client is None:
            result = None
        else:
            result = self.route_fn(self.osrm_client, pickup, [d.location for d in pending])

        with self._route_lock:
            if token != self._route_token:
                logger.info("Discarding stale route result (request %d, latest %d)", token, self._route_token)
                return self.route
            self.route = result

        if result is None and pending and pickup is not None:
            logger.warning("No route available for %d pending deliveries", len(pending))
        return result

    # ---- Geocoding ----

    def _request_address(self, delivery_id: str, location: LatLon) -> Optional[Future]:
        if self.geocode_queue is None:
            return None
        future = self.geocode_queue.enqueue(location)
        future.add_done_callback(lambda f: self._apply_address(delivery_id, location, f))
        return future

    def _apply_address(self, delivery_id: str, location: LatLon, future: Future) -> None:
        if future.cancelled():
            return
        address = future.result()

        current = self.store.get(delivery_id)
        if current is None:
            # deleted while the lookup was queued
            return
        if current.location != location:
            # moved again; a newer lookup is on its way
            return
        self.store.update_address(delivery_id, address)

    def close(self, wait: bool = False, timeout: Optional[float] = None) -> None:
        """Stop the geocode queue. With wait=True, queued lookups land before this returns."""
        if self.geocode_queue is not None:
            self.geocode_queue.close(wait=wait, timeout=timeout)


def build_planner(settings: Optional[PlannerSettings] = None) -> DeliveryPlanner:
    """
    Wire a planner against the real OSRM / Nominatim services.
    """
    settings = settings or settings_from_env()
    settings.validate()

    osrm_client = OSRMClient(
        base_url=settings.osrm_base_url,
        profile=settings.osrm_profile,
        timeout=settings.http_timeout_sec,
    )
    nominatim = NominatimClient(
        base_url=settings.nominatim_base_url,
        user_agent=settings.geocoder_user_agent,
        timeout=settings.http_timeout_sec,
    )
    unwrapper = LinkUnwrapper(
        proxy_url=settings.link_unwrap_proxy_url,
        timeout=settings.http_timeout_sec,
    )

    return DeliveryPlanner(
        osrm_client=osrm_client,
        geocode_queue=GeocodeQueue(nominatim, min_interval_sec=settings.geocode_min_interval_sec),
        resolver=LocationResolver(link_unwrapper=unwrapper, place_search=nominatim),
    )
