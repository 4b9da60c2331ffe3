#Purpose: Route computation for downstream use.
#Returns the "current route" information needed by:
#map display (decoded polyline geometry)
#the run summary (total distance / duration)
#Uses OSRM /route and never raises: no route is reported as None.

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

import requests

from .geo import LatLon
from .osrm_client import OSRMClient, OSRMError
from .polyline import decode

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RouteResult:
    """
    A driving route for the current visit order.
    Derived and ephemeral: recomputed whenever the pending order or pickup changes.
    """
    distance_m: float
    duration_s: float
    path: List[LatLon] = field(default_factory=list)

    @property
    def distance_km(self) -> float:
        return self.distance_m / 1000.0

    @property
    def duration_min(self) -> int:
        return int(self.duration_s // 60)


def compute_route(
        client: OSRMClient,
        pickup: LatLon,
        ordered_points: Sequence[LatLon],
) -> Optional[RouteResult]:
    """
    Route from the pickup through the points in the given order.

    Returns None when there is nothing to route (fewer than two waypoints)
    or when OSRM is unavailable / returns no route. Callers treat None as
    "no route available", not as an error.
    """
    waypoints: List[LatLon] = [pickup, *ordered_points]
    if len(waypoints) < 2:
        return None

    try:
        route = client.fetch_route(waypoints)
        path = decode(route["geometry"]) if route["geometry"] else []
    except (requests.RequestException, OSRMError, ValueError, KeyError) as e:
        logger.warning("Route request failed for %d waypoints: %s", len(waypoints), e)
        return None

    return RouteResult(
        distance_m=route["distance"],
        duration_s=route["duration"],
        path=path,
    )
