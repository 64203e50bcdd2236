"""
backend/geo.py

Distance helpers for listing coordinates.

Listings imported without coordinates carry 0/NULL latitude and longitude, so
any zero coordinate is treated as "unknown" rather than a real point.
"""

from __future__ import annotations

import math
import re
from typing import Any, Optional

EARTH_RADIUS_KM = 6371.0
EARTH_RADIUS_M = 6371e3

_DISTANCE_TEXT = re.compile(r"^\s*([\d.,]+)\s*(km|m)\b", re.IGNORECASE)


def _as_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def has_coordinates(lat: Any, lng: Any) -> bool:
    """True when both values are numeric, finite and non-zero."""
    lat_f = _as_float(lat)
    lng_f = _as_float(lng)
    if lat_f is None or lng_f is None:
        return False
    if math.isnan(lat_f) or math.isnan(lng_f):
        return False
    return lat_f != 0 and lng_f != 0


def haversine_km(lat1: Any, lon1: Any, lat2: Any, lon2: Any) -> float:
    """
    Great-circle distance in kilometers.

    Returns inf for missing, zero, NaN or out-of-range coordinates so an
    invalid point can never fall inside a radius.
    """
    if not has_coordinates(lat1, lon1) or not has_coordinates(lat2, lon2):
        return math.inf

    lat1, lon1, lat2, lon2 = float(lat1), float(lon1), float(lat2), float(lon2)

    if lat1 == lat2 and lon1 == lon2:
        return 0.0

    if abs(lat1) > 90 or abs(lat2) > 90 or abs(lon1) > 180 or abs(lon2) > 180:
        print(f"[GEO] Invalid coordinate range: ({lat1},{lon1}) - ({lat2},{lon2})")
        return math.inf

    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    distance = EARTH_RADIUS_KM * c

    if math.isnan(distance) or math.isinf(distance) or distance < 0:
        print(f"[GEO] Invalid distance result for ({lat1},{lon1}) - ({lat2},{lon2}): {distance}")
        return math.inf
    return distance


def haversine_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in meters (no validation)."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)
    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_M * c


def parse_distance_m(text: Optional[str]) -> float:
    """Parse a Distance Matrix text such as '850 m' or '2.4 km' into meters."""
    if not text:
        return math.inf
    match = _DISTANCE_TEXT.match(text)
    if not match:
        return math.inf
    try:
        value = float(match.group(1).replace(",", ""))
    except ValueError:
        return math.inf
    if match.group(2).lower() == "km":
        return value * 1000
    return value
