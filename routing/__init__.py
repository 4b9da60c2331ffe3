#Marks routing as a package.
#Re-exports the public APIs (OSRMClient, compute_route, polyline codec, distance math)
#so other modules import from routing without knowing internal file names.
#No business logic.

from .geo import LatLon, haversine_m, is_valid_coordinate, validate_coordinate
from .osrm_client import OSRMClient, OSRMError
from .polyline import decode, encode
from .route_service import RouteResult, compute_route

__all__ = [
    "LatLon",
    "haversine_m",
    "is_valid_coordinate",
    "validate_coordinate",
    "OSRMClient",
    "OSRMError",
    "decode",
    "encode",
    "RouteResult",
    "compute_route",
]
