"""
backend/google_maps.py

Thin Google Maps Platform client (Geocoding, Places, Distance Matrix).

All network and decoding failures surface as MapsError so callers can decide
on their own fallbacks. API keys are never logged.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

import requests

GEOCODE_URL = "https://maps.googleapis.com/maps/api/geocode/json"
NEARBY_SEARCH_URL = "https://maps.googleapis.com/maps/api/place/nearbysearch/json"
TEXT_SEARCH_URL = "https://maps.googleapis.com/maps/api/place/textsearch/json"
DISTANCE_MATRIX_URL = "https://maps.googleapis.com/maps/api/distancematrix/json"
PLACE_PHOTO_URL = "https://maps.googleapis.com/maps/api/place/photo"

# Address component types that name an area a buyer would search for
AREA_COMPONENT_TYPES = (
    "neighborhood",
    "sublocality",
    "sublocality_level_1",
    "sublocality_level_2",
    "sublocality_level_3",
    "locality",
)


class MapsError(Exception):
    """Raised when a Maps API call fails (network, HTTP, or payload)."""


class GoogleMapsClient:
    def __init__(self, api_key: str, session: Optional[requests.Session] = None, timeout: int = 10) -> None:
        if not api_key:
            raise ValueError("Google Maps API key is required")
        self.api_key = api_key
        self.session = session or requests.Session()
        self.timeout = timeout

    def _get(self, url: str, params: Dict[str, Any]) -> Dict[str, Any]:
        query = {k: v for k, v in params.items() if v is not None}
        query["key"] = self.api_key
        try:
            resp = self.session.get(url, params=query, timeout=self.timeout)
            resp.raise_for_status()
            return resp.json()
        except requests.exceptions.RequestException as e:
            # Strip the URL (it carries the key) from the message
            raise MapsError(f"{type(e).__name__} calling {url.rsplit('/', 2)[-2]}") from e
        except ValueError as e:
            raise MapsError("Invalid JSON from Maps API") from e

    # ---------------------------------------------------------
    # Geocoding
    # ---------------------------------------------------------
    def geocode(self, address: str) -> Optional[Tuple[float, float]]:
        """Return (lat, lng) for an address, or None if nothing matched."""
        data = self._get(GEOCODE_URL, {"address": address})
        status = data.get("status")
        if status == "OVER_QUERY_LIMIT":
            print(f"[MAPS] Quota exceeded: {data.get('error_message') or 'no details'}")
            return None
        results = data.get("results") or []
        if not results:
            print(f"[MAPS] No geocoding results for {address!r}")
            return None
        location = results[0].get("geometry", {}).get("location", {})
        if "lat" not in location or "lng" not in location:
            return None
        return float(location["lat"]), float(location["lng"])

    def reverse_geocode_areas(self, lat: float, lng: float) -> List[str]:
        """Unique neighborhood/sublocality/locality names around a coordinate."""
        data = self._get(GEOCODE_URL, {"latlng": f"{lat},{lng}"})
        areas: List[str] = []
        for result in data.get("results") or []:
            for component in result.get("address_components") or []:
                types = component.get("types") or []
                name = component.get("long_name")
                if name and any(t in AREA_COMPONENT_TYPES for t in types) and name not in areas:
                    areas.append(name)
        return areas

    # ---------------------------------------------------------
    # Places
    # ---------------------------------------------------------
    def nearby_search(
        self,
        lat: float,
        lng: float,
        radius: int,
        place_type: Optional[str] = None,
        keyword: Optional[str] = None,
    ) -> Tuple[str, List[Dict[str, Any]]]:
        """Nearby Search ranked by prominence. Returns (status, results)."""
        data = self._get(
            NEARBY_SEARCH_URL,
            {
                "location": f"{lat},{lng}",
                "radius": radius,
                "type": place_type,
                "keyword": keyword,
                "rankby": "prominence",
            },
        )
        return data.get("status", "UNKNOWN"), data.get("results") or []

    def place_photo_urls(self, query: str, limit: int = 5, max_width: int = 800) -> List[str]:
        """Photo URLs for the best Text Search match of a query."""
        data = self._get(TEXT_SEARCH_URL, {"query": query})
        urls: List[str] = []
        for result in data.get("results") or []:
            for photo in result.get("photos") or []:
                ref = photo.get("photo_reference")
                if not ref:
                    continue
                urls.append(
                    f"{PLACE_PHOTO_URL}?maxwidth={max_width}&photo_reference={ref}&key={self.api_key}"
                )
                if len(urls) >= limit:
                    return urls
        return urls

    # ---------------------------------------------------------
    # Distance Matrix
    # ---------------------------------------------------------
    def driving_distance(self, origin: str, destination: str) -> Optional[Tuple[str, str]]:
        """Driving (distance_text, duration_text), or None if the element is not OK."""
        data = self._get(
            DISTANCE_MATRIX_URL,
            {"origins": origin, "destinations": destination, "mode": "driving"},
        )
        rows = data.get("rows") or []
        if not rows:
            return None
        elements = rows[0].get("elements") or []
        if not elements or elements[0].get("status") != "OK":
            return None
        distance = (elements[0].get("distance") or {}).get("text")
        duration = (elements[0].get("duration") or {}).get("text")
        if not distance or not duration:
            return None
        return distance, duration
