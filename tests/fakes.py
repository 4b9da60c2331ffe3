"""
Hand-written stand-ins for the HTTP layer and the external services, so no test
touches the network.
"""

import threading
import time
from typing import List, Optional

import requests

from geocoding.nominatim_client import GeocodeFailure, PlaceMatch
from routing.route_service import RouteResult


class FakeResponse:
    def __init__(self, payload=None, status_code=200, url="", text=""):
        self._payload = payload
        self.status_code = status_code
        self.url = url
        self.text = text

    def json(self):
        if self._payload is None:
            raise ValueError("No JSON object could be decoded")
        return self._payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error")


class FakeSession:
    """
    Replays queued responses (or raises queued exceptions) and records every call.
    """
    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    def get(self, url, **kwargs):
        self.calls.append((url, kwargs))
        if not self.responses:
            raise AssertionError(f"Unexpected request to {url}")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


class FakeGeocoder:
    """
    Reverse geocoder returning "addr lat,lon". Coordinates listed in `fail_on`
    raise GeocodeFailure. Records when each call finished.
    """
    def __init__(self, fail_on=(), delay: float = 0.0, places=None):
        self.fail_on = set(fail_on)
        self.delay = delay
        self.places = places or {}
        self.calls: List[tuple] = []
        self.search_calls: List[str] = []
        self._lock = threading.Lock()

    def reverse(self, lat, lon):
        if self.delay:
            time.sleep(self.delay)
        with self._lock:
            self.calls.append((lat, lon))
        if (lat, lon) in self.fail_on:
            raise GeocodeFailure("provider down")
        return f"addr {lat},{lon}"

    def search(self, query) -> Optional[PlaceMatch]:
        self.search_calls.append(query)
        return self.places.get(query)


class FakeRouteFn:
    """
    Drop-in for routing.route_service.compute_route. Returns a straight path through
    the waypoints; `hook` runs before returning (used to simulate overlapping requests).
    """
    def __init__(self, result_none: bool = False):
        self.calls = []
        self.result_none = result_none
        self.hook = None

    def __call__(self, client, pickup, points):
        self.calls.append((pickup, list(points)))
        hook, self.hook = self.hook, None
        if hook is not None:
            hook()
        if self.result_none:
            return None
        path = [pickup, *points]
        return RouteResult(distance_m=1000.0 * len(points), duration_s=60.0 * len(points), path=path)
