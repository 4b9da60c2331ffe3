"""
Purpose: Encoded polyline codec (Google's format, as returned by OSRM with geometries=polyline).

Each value is stored as the delta from the previous point, multiplied by 10**precision,
zigzag-folded so the sign lives in bit 0, then split into 5-bit groups written as
ASCII chars (offset 63) with 0x20 as the "more groups follow" bit.
"""

from __future__ import annotations

import math
from typing import Iterable, List

from .geo import LatLon


def _round_half_away(value: float) -> int:
    # Python's round() is banker's rounding; the format expects half away from zero
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def _encode_value(delta: int) -> str:
    delta = ~(delta << 1) if delta < 0 else (delta << 1)
    chunks = []
    while delta >= 0x20:
        chunks.append(chr((0x20 | (delta & 0x1F)) + 63))
        delta >>= 5
    chunks.append(chr(delta + 63))
    return "".join(chunks)


def encode(coordinates: Iterable[LatLon], precision: int = 5) -> str:
    """Encode a sequence of (lat, lon) points."""
    factor = 10 ** precision
    output = []
    prev_lat = 0
    prev_lon = 0

    for lat, lon in coordinates:
        lat_i = _round_half_away(lat * factor)
        lon_i = _round_half_away(lon * factor)
        output.append(_encode_value(lat_i - prev_lat))
        output.append(_encode_value(lon_i - prev_lon))
        prev_lat, prev_lon = lat_i, lon_i

    return "".join(output)


def _read_value(encoded: str, index: int):
    result = 0
    shift = 0
    while True:
        if index >= len(encoded):
            raise ValueError(f"Truncated polyline at position {index}")
        byte = ord(encoded[index]) - 63
        index += 1
        if byte < 0 or byte > 0x3F:
            raise ValueError(f"Invalid polyline character {encoded[index - 1]!r}")
        result |= (byte & 0x1F) << shift
        shift += 5
        if byte < 0x20:
            break

    delta = ~(result >> 1) if result & 1 else (result >> 1)
    return delta, index


def decode(encoded: str, precision: int = 5) -> List[LatLon]:
    """
    Decode an encoded polyline into a list of (lat, lon) points.

    Raises ValueError on malformed input (bad characters or a value cut short).
    """
    factor = 10 ** precision
    coordinates: List[LatLon] = []
    index = 0
    lat = 0
    lon = 0

    while index < len(encoded):
        lat_change, index = _read_value(encoded, index)
        lon_change, index = _read_value(encoded, index)
        lat += lat_change
        lon += lon_change
        coordinates.append((lat / factor, lon / factor))

    return coordinates
