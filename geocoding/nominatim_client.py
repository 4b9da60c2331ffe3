#Purpose: The Nominatim (OpenStreetMap geocoder) adapter.
#Sole responsibility: talk to Nominatim via HTTP and return normalized outputs.
#- reverse(lat, lon) -> short human-readable address for a delivery card
#- search(query)     -> first matching place (coordinate + label) for free-text input
#Rate limiting lives in geocoding.queue, not here.

from dotenv import load_dotenv
import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

import requests

load_dotenv()
DEFAULT_BASE_URL = "https://nominatim.openstreetmap.org"
DEFAULT_USER_AGENT = "CourierRunPlanner/1.0"

UNKNOWN_LOCATION = "Unknown Location"

logger = logging.getLogger(__name__)

LatLon = Tuple[float, float]


class GeocodeFailure(Exception):
    """Raised when a Nominatim lookup fails (transport, HTTP status or bad payload)."""
    pass


@dataclass(frozen=True)
class PlaceMatch:
    coordinate: LatLon
    label: str


def format_address(payload: Dict[str, Any]) -> str:
    """
    Build "road house_number (suburb)" from a reverse-geocoding payload.

    Falls back to the neighbourhood for the part in brackets, then to the first
    part of display_name, then to a fixed literal.
    """
    address = payload.get("address") if isinstance(payload, dict) else None
    if not isinstance(address, dict):
        return UNKNOWN_LOCATION

    parts = []
    if address.get("road"):
        parts.append(address["road"])
    if address.get("house_number"):
        parts.append(address["house_number"])
    if address.get("suburb"):
        parts.append(f"({address['suburb']})")
    elif address.get("neighbourhood"):
        parts.append(f"({address['neighbourhood']})")

    if parts:
        return " ".join(parts)

    display_name = (payload.get("display_name") or "").split(",")[0].strip()
    return display_name or UNKNOWN_LOCATION


class NominatimClient:
    """
    Nominatim Adapter / Client

    Nominatim's usage policy requires an identifying User-Agent and at most one
    request per second; callers go through GeocodeQueue for the latter.
    """
    def __init__(self,
                 base_url: Optional[str] = None,
                 user_agent: Optional[str] = None,
                 timeout: float = 10,
                 session: Optional[requests.Session] = None):
        self.base_url = (base_url or os.getenv("NOMINATIM_BASE_URL") or DEFAULT_BASE_URL).rstrip("/")
        self.user_agent = user_agent or os.getenv("GEOCODER_USER_AGENT") or DEFAULT_USER_AGENT
        self.timeout = timeout
        self.session = session or requests.Session()

    def _get(self, path: str, params: Dict[str, Any]) -> Any:
        try:
            response = self.session.get(
                f"{self.base_url}/{path}",
                params=params,
                headers={"User-Agent": self.user_agent},
                timeout=self.timeout,
            )
            response.raise_for_status()
            return response.json()
        except (requests.RequestException, ValueError) as e:
            raise GeocodeFailure(f"Nominatim /{path} failed: {e}") from e

    def reverse(self, lat: float, lon: float) -> str:
        """
        Street-level reverse lookup. Returns a display string; raises GeocodeFailure
        when the request itself fails.
        """
        payload = self._get("reverse", {
            "format": "json",
            "lat": lat,
            "lon": lon,
            "zoom": 18,            # street / building level
            "addressdetails": 1,
        })
        return format_address(payload)

    def search(self, query: str) -> Optional[PlaceMatch]:
        """
        Free-text place search. Returns the first result, or None when nothing matched.
        """
        results = self._get("search", {
            "format": "json",
            "q": query,
            "limit": 1,
        })
        if not results:
            return None

        first = results[0]
        try:
            coordinate = (float(first["lat"]), float(first["lon"]))
        except (KeyError, TypeError, ValueError) as e:
            raise GeocodeFailure(f"Unexpected search result shape: {first!r}") from e

        return PlaceMatch(coordinate=coordinate, label=first.get("display_name") or query)
