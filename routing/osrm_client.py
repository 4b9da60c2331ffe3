#Purpose: The OSRM "adapter/client".
#Sole responsibility: talk to OSRM via HTTP and return normalized outputs.
#Encapsulates OSRM-specific details:
#coordinate formatting (lon,lat)
#URL construction (/route)
#timeouts and error handling
#parsing response JSON into our internal shape
#It should not contain sequencing or pricing rules.


from dotenv import load_dotenv
import logging
import os
from typing import List, Tuple, Dict, Any, Optional
import requests

# Read OSRM base URL from environment
# Example in .env:
# OSRM_BASE_URL=http://router.project-osrm.org
load_dotenv()
DEFAULT_BASE_URL = "https://router.project-osrm.org"

logger = logging.getLogger(__name__)

# Internal coordinate type: (lat, lon)
LatLon = Tuple[float, float]

class OSRMError(Exception):
    """Custom exception for OSRM client errors."""
    pass

class OSRMClient:
    """
    OSRM Adapter / Client

    Sole responsibility:
    - Talk to OSRM via HTTP
    - Convert internal (lat, lon) → OSRM (lon,lat)
    - Return normalized outputs

    """
    def __init__(self,
                 base_url: Optional[str] = None,
                 profile: str = "driving",
                 timeout: float = 10,
                 session: Optional[requests.Session] = None):
        self.base_url = (base_url or os.getenv("OSRM_BASE_URL") or DEFAULT_BASE_URL).rstrip("/")
        self.timeout = timeout #the time to wait for a response from OSRM before giving up
        self.profile = profile #the mode of transportation (driving, walking, cycling)
        self.session = session or requests.Session()

    #----------------
    # Internal helpers
    #----------------
    def format_coordinates(self, coords: List[LatLon]) -> str:
        """Convert list of (lat, lon) to OSRM format 'lon,lat;lon,lat;...'"""
        return ';'.join([f"{lon},{lat}" for lat, lon in coords])

    #----------------
    # Public methods
    #----------------
    def fetch_route(self, coordinates: List[LatLon]) -> Dict[str, Any]:
        """
        Calls the OSRM /route endpoint with the given coordinates (in visit order)
        and returns the first route with its full geometry.

        Returns:
            {
                "distance": float, # in meters
                "duration": float, # in seconds
                "geometry": str,   # encoded polyline, precision 5
            }

        Raises OSRMError when OSRM answers without a usable route and
        requests.RequestException on transport errors.
        """
        if len(coordinates) < 2:
            raise ValueError("At least two coordinates are required to compute a route.")

        formatted = self.format_coordinates(coordinates)
        url = f"{self.base_url}/route/v1/{self.profile}/{formatted}"

        logger.debug("OSRM route request with %d waypoints", len(coordinates))
        response = self.session.get(
            url,
            params={
                "overview": "full",         # one geometry for the whole path
                "geometries": "polyline",   # precision 5
            },
            timeout=self.timeout,
        )
        response.raise_for_status()

        data = response.json() #OSRM returns a JSON response with routes, each containing distance and duration

        #validating OSRM response
        if not isinstance(data, dict):
            raise OSRMError("Unexpected OSRM answer")

        if data.get("code") != "Ok":
            raise OSRMError(f"OSRM error: {data.get('message', data.get('code', 'Unknown error'))}")

        routes = data.get("routes") or []
        if not routes:
            raise OSRMError("OSRM returned no routes")

        route = routes[0] #take the first route (OSRM may return alternatives)

        #Normalize output to internal format
        return {
            "distance": float(route["distance"]),
            "duration": float(route["duration"]),
            "geometry": route.get("geometry") or "",
        }
