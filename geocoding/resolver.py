"""
Purpose: Turn whatever the courier pasted into a (lat, lon) pair.
What it does:

Tries a fixed list of strategies in priority order; the first one that returns a
match wins and the rest are skipped:

1. COORDINATES  "10.4806, -66.8983" (or "10 -66")
2. MAP_LINK     a link carrying the pair itself: @lat,lng / q=lat,lng / ll=lat,lng / center=lat,lng
3. SHORT_LINK   any other http(s) link: unwrapped through LinkUnwrapper, then the
                MAP_LINK patterns are run on the final URL and the page body, then a
                last-resort scan for percent-encoded / space-joined pairs in the body
4. PLACE_SEARCH everything else (addresses, plus codes, place names) goes to Nominatim

Every candidate pair is range-checked before it is accepted. When nothing works the
resolver raises ParseFailure carrying the original text, never a (0, 0) default.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable, List, Optional, Pattern, Tuple
from urllib.parse import unquote

from routing.geo import LatLon, is_valid_coordinate

from .link_unwrapper import LinkUnwrapError, LinkUnwrapper
from .nominatim_client import GeocodeFailure, NominatimClient

logger = logging.getLogger(__name__)


class ResolutionSource(str, Enum):
    COORDINATES = "coordinates"
    MAP_LINK = "map_link"
    SHORT_LINK = "short_link"
    PLACE_SEARCH = "place_search"


@dataclass(frozen=True)
class ResolvedLocation:
    coordinate: LatLon
    source: ResolutionSource
    label: Optional[str] = None


class ParseFailure(Exception):
    """
    No strategy could turn the text into a coordinate. `message` is meant for the
    courier; `raw_text` is kept so the input can be offered again for editing.
    """
    def __init__(self, message: str, raw_text: str):
        super().__init__(message)
        self.message = message
        self.raw_text = raw_text


# ---- Patterns ----

_DECIMAL = r"[-+]?\d{1,3}\.\d+"

# "10.4806, -66.8983" anywhere in plain text
DECIMAL_PAIR = re.compile(rf"(?<![\d.])({_DECIMAL})[,\s]+({_DECIMAL})")
# "10, -66": only when it is the whole input
INTEGER_PAIR = re.compile(r"\s*([-+]?\d{1,3}(?:\.\d+)?)\s*[,\s]\s*([-+]?\d{1,3}(?:\.\d+)?)\s*")

# Map-link conventions, in priority order
MAP_LINK_PATTERNS: List[Pattern] = [
    re.compile(r"@([-+]?\d+\.\d+),\s*([-+]?\d+\.\d+)"),
    re.compile(r"[?&]q=([-+]?\d+\.\d+)[\s,+]+([-+]?\d+\.\d+)"),
    re.compile(r"[?&]ll=([-+]?\d+\.\d+)[\s,+]+([-+]?\d+\.\d+)"),
    re.compile(r"center=([-+]?\d+\.\d+)[\s,+]+([-+]?\d+\.\d+)"),
]

# Last resort inside an unwrapped page body
EMBEDDED_PAIR_PATTERNS: List[Pattern] = [
    re.compile(rf"({_DECIMAL})%2C(?:\+|%20)*({_DECIMAL})", re.IGNORECASE),
    re.compile(r"([-+]?\d{1,3}\.\d{4,})(?:\+|\s|%20)+([-+]?\d{1,3}\.\d{4,})"),
]

URL_PATTERN = re.compile(r"(?:https?://|www\.)\S+", re.IGNORECASE)


def looks_like_url(text: str) -> bool:
    return URL_PATTERN.search(text) is not None


def _first_valid(patterns: Iterable[Pattern], text: str) -> Optional[LatLon]:
    """First match (in pattern priority order) that passes the range check."""
    for pattern in patterns:
        for match in pattern.finditer(text):
            lat, lon = float(match.group(1)), float(match.group(2))
            if is_valid_coordinate(lat, lon):
                return (lat, lon)
            logger.debug("Discarded out-of-range match %s", match.group(0))
    return None


def find_map_link_coordinates(text: str) -> Optional[LatLon]:
    """Look for @lat,lng / q= / ll= / center= in the (percent-decoded) text."""
    if not text:
        return None
    return _first_valid(MAP_LINK_PATTERNS, unquote(text))


class LocationResolver:
    """
    Resolution cascade. The link unwrapper and the place search are the only
    collaborators that touch the network; both are optional so the offline
    strategies can be used on their own.
    """

    def __init__(self,
                 link_unwrapper: Optional[LinkUnwrapper] = None,
                 place_search: Optional[NominatimClient] = None):
        self.link_unwrapper = link_unwrapper
        self.place_search = place_search

        self.strategies: List[Tuple[ResolutionSource, Callable[[str], Optional[ResolvedLocation]]]] = [
            (ResolutionSource.COORDINATES, self._from_coordinates),
            (ResolutionSource.MAP_LINK, self._from_map_link),
            (ResolutionSource.SHORT_LINK, self._from_short_link),
            (ResolutionSource.PLACE_SEARCH, self._from_place_search),
        ]

    def resolve(self, raw_text: str) -> ResolvedLocation:
        text = (raw_text or "").strip()
        if not text:
            raise ParseFailure("Enter coordinates, a map link or an address.", raw_text or "")

        for source, strategy in self.strategies:
            result = strategy(text)
            if result is not None:
                logger.info("Resolved %r via %s -> %s", text, source.value, result.coordinate)
                return result

        raise ParseFailure(
            'Format not recognized. Try "lat, lng" or a full Google Maps link.',
            raw_text,
        )

    # ---- Strategies ----

    def _from_coordinates(self, text: str) -> Optional[ResolvedLocation]:
        if looks_like_url(text):
            return None

        match = DECIMAL_PAIR.search(text) or INTEGER_PAIR.fullmatch(text)
        if match is None:
            return None

        lat, lon = float(match.group(1)), float(match.group(2))
        if not is_valid_coordinate(lat, lon):
            raise ParseFailure(
                f"Coordinates out of range ({lat}, {lon}): latitude must be within "
                f"-90..90 and longitude within -180..180.",
                text,
            )
        return ResolvedLocation((lat, lon), ResolutionSource.COORDINATES)

    def _from_map_link(self, text: str) -> Optional[ResolvedLocation]:
        coordinate = find_map_link_coordinates(text)
        if coordinate is None:
            return None
        return ResolvedLocation(coordinate, ResolutionSource.MAP_LINK)

    def _from_short_link(self, text: str) -> Optional[ResolvedLocation]:
        match = URL_PATTERN.search(text)
        if match is None:
            return None

        url = match.group(0)
        if not url.lower().startswith(("http://", "https://")):
            url = f"https://{url}"

        if self.link_unwrapper is None:
            raise ParseFailure("Short links cannot be opened here. Paste the full map link instead.", text)

        try:
            unwrapped = self.link_unwrapper.unwrap(url)
        except LinkUnwrapError as e:
            logger.warning("Short link unwrap failed: %s", e)
            raise ParseFailure("Could not open the link. Check your connection and try again.", text) from e

        coordinate = (
            find_map_link_coordinates(unwrapped.resolved_url)
            or find_map_link_coordinates(unwrapped.body)
            or _first_valid(EMBEDDED_PAIR_PATTERNS, unwrapped.body or "")
        )
        if coordinate is None:
            raise ParseFailure(
                "Could not extract coordinates from the link. Try the full Google Maps link.",
                text,
            )
        return ResolvedLocation(coordinate, ResolutionSource.SHORT_LINK, label=unwrapped.resolved_url or None)

    def _from_place_search(self, text: str) -> Optional[ResolvedLocation]:
        if self.place_search is None:
            return None

        try:
            place = self.place_search.search(text)
        except GeocodeFailure as e:
            logger.warning("Place search failed for %r: %s", text, e)
            raise ParseFailure("Place search is unavailable right now. Try coordinates instead.", text) from e

        if place is None:
            raise ParseFailure(f"No place found for {text!r}.", text)

        lat, lon = place.coordinate
        if not is_valid_coordinate(lat, lon):
            raise ParseFailure(f"Place search returned an invalid coordinate for {text!r}.", text)
        return ResolvedLocation(place.coordinate, ResolutionSource.PLACE_SEARCH, label=place.label)
