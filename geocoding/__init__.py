"""
Geocoding package: everything that turns text into coordinates or coordinates into text.

Public API:
- NominatimClient, GeocodeFailure, PlaceMatch
- GeocodeQueue (rate-limited reverse geocoding)
- LinkUnwrapper (short-link resolution)
- LocationResolver, ResolvedLocation, ResolutionSource, ParseFailure
"""

from .link_unwrapper import LinkUnwrapper, LinkUnwrapError, UnwrappedLink
from .nominatim_client import GeocodeFailure, NominatimClient, PlaceMatch
from .queue import ADDRESS_LOOKUP_FAILED, GeocodeQueue
from .resolver import LocationResolver, ParseFailure, ResolutionSource, ResolvedLocation

__all__ = [
    "LinkUnwrapper",
    "LinkUnwrapError",
    "UnwrappedLink",
    "GeocodeFailure",
    "NominatimClient",
    "PlaceMatch",
    "ADDRESS_LOOKUP_FAILED",
    "GeocodeQueue",
    "LocationResolver",
    "ParseFailure",
    "ResolutionSource",
    "ResolvedLocation",
]
