"""
backend/nearby_places.py

Nearby amenities and transit for a listing, backed by Google Places and the
Distance Matrix, with a permanent flat-file cache.

Cache file layout:
    {"17.4401,78.3489": {"timestamp": 1700000000000, "data": {...}}}

Entries never expire; pass refresh=True to force a new lookup.
"""

from __future__ import annotations

import json
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path as FsPath
from typing import Any, Dict, List, Optional, Tuple

try:
    from backend.config import DEFAULT_CITY, IS_DEV
    from backend.geo import haversine_m, parse_distance_m
    from backend.google_maps import GoogleMapsClient, MapsError
    from backend.schemas_properties import NearbyPlacesResult, PlaceCategory, PlaceDetail, TransitInfo
except ModuleNotFoundError:
    from config import DEFAULT_CITY, IS_DEV
    from geo import haversine_m, parse_distance_m
    from google_maps import GoogleMapsClient, MapsError
    from schemas_properties import NearbyPlacesResult, PlaceCategory, PlaceDetail, TransitInfo


# Estimated Places + Distance Matrix cost avoided per cache hit (USD)
COST_PER_LOOKUP = 0.02


@dataclass(frozen=True)
class AmenitySearch:
    label: str
    place_type: str
    min_rating: float
    min_reviews: int
    radius: int = 5000
    keyword: Optional[str] = None


@dataclass(frozen=True)
class TransitSearch:
    transit_type: str
    place_type: str
    keyword: str
    radius: int


AMENITY_SEARCHES: Tuple[AmenitySearch, ...] = (
    AmenitySearch("Hospitals", "hospital", 4.0, 10),
    AmenitySearch("Shopping Malls", "shopping_mall", 4.0, 25, keyword="premium shopping mall multiplex"),
    AmenitySearch("Schools", "school", 4.0, 15),
    AmenitySearch("Restaurants", "restaurant|cafe", 4.0, 30),
    AmenitySearch("Supermarkets", "supermarket", 4.2, 50),
    AmenitySearch("IT Companies", "electronics_store", 4.0, 10, keyword="tcs infosys tech company"),
)


def transit_searches(city: str = DEFAULT_CITY) -> Tuple[TransitSearch, ...]:
    return (
        TransitSearch("metro", "transit_station", f"metro station {city}", 10000),
        TransitSearch("train", "train_station", f"railway station {city}", 15000),
        TransitSearch("highway", "point_of_interest", f"ORR entry toll gate {city}", 25000),
    )


def cache_key(lat: float, lng: float) -> str:
    """Coordinates rounded to 4 decimals (about 11 m)."""
    return f"{round(float(lat), 4)},{round(float(lng), 4)}"


# ---------------------------------------------------------
# Flat-file cache
# ---------------------------------------------------------
class NearbyPlacesCache:
    """JSON file cache. I/O problems are logged and never raised."""

    def __init__(self, path: str) -> None:
        self.path = str(path)
        self.entries: Dict[str, Dict[str, Any]] = {}
        self._lock = threading.Lock()
        self.load()

    def load(self) -> None:
        file_path = FsPath(self.path)
        if not file_path.exists():
            return
        try:
            with open(file_path, "r", encoding="utf-8") as f:
                loaded = json.load(f)
            if isinstance(loaded, dict):
                self.entries = loaded
            print(f"[NEARBY] Loaded {len(self.entries)} cached locations from {self.path}")
        except (OSError, ValueError) as e:
            print(f"[NEARBY] Could not read cache file {self.path}: {e}")
            self.entries = {}

    def save(self) -> None:
        try:
            with open(self.path, "w", encoding="utf-8") as f:
                json.dump(self.entries, f, indent=2)
        except (OSError, TypeError) as e:
            print(f"[NEARBY] Could not write cache file {self.path}: {e}")

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        entry = self.entries.get(key)
        if not entry:
            return None
        return entry.get("data")

    def put(self, key: str, data: Dict[str, Any]) -> None:
        with self._lock:
            self.entries[key] = {"timestamp": int(time.time() * 1000), "data": data}
            self.save()

    def __len__(self) -> int:
        return len(self.entries)


# ---------------------------------------------------------
# Service
# ---------------------------------------------------------
class NearbyPlacesService:
    def __init__(self, client: Optional[GoogleMapsClient], cache: NearbyPlacesCache, city: str = DEFAULT_CITY) -> None:
        self.client = client
        self.cache = cache
        self.city = city
        self.api_calls = 0
        self.cache_hits = 0
        self.total_requests = 0
        self._stats_lock = threading.Lock()

    def lookup(self, lat: float, lng: float, refresh: bool = False) -> Tuple[NearbyPlacesResult, bool]:
        """Return (result, cached)."""
        key = cache_key(lat, lng)
        with self._stats_lock:
            self.total_requests += 1

        if not refresh:
            data = self.cache.get(key)
            if data is not None:
                with self._stats_lock:
                    self.cache_hits += 1
                print(f"[NEARBY] Cache hit for {key}")
                return NearbyPlacesResult.model_validate(data), True

        with self._stats_lock:
            self.api_calls += 1
        print(f"[NEARBY] Fetching nearby places for {key}{' (refresh)' if refresh else ''}")

        with ThreadPoolExecutor(max_workers=2) as pool:
            amenities_future = pool.submit(self.fetch_amenities, lat, lng)
            transit_future = pool.submit(self.fetch_transit, lat, lng)
            result = NearbyPlacesResult(
                amenities=amenities_future.result(),
                transit_points=transit_future.result(),
            )

        self.cache.put(key, result.model_dump())
        return result, False

    def _distance(self, lat: float, lng: float, place: Dict[str, Any]) -> Optional[Tuple[str, str]]:
        location = (place.get("geometry") or {}).get("location") or {}
        if "lat" not in location or "lng" not in location:
            return None
        try:
            return self.client.driving_distance(f"{lat},{lng}", f"{location['lat']},{location['lng']}")
        except MapsError as e:
            if IS_DEV:
                print(f"[NEARBY] Distance lookup failed for {place.get('name')}: {e}")
            return None

    def _amenity_category(self, lat: float, lng: float, search: AmenitySearch) -> PlaceCategory:
        status, results = self.client.nearby_search(
            lat, lng, search.radius, place_type=search.place_type, keyword=search.keyword
        )
        if status == "ZERO_RESULTS" or not results:
            return PlaceCategory(type=search.label, count=0, places=[])

        places: List[PlaceDetail] = []
        for place in results:
            location = (place.get("geometry") or {}).get("location") or {}
            if "lat" not in location or "lng" not in location:
                continue
            straight_m = haversine_m(lat, lng, float(location["lat"]), float(location["lng"]))
            if straight_m > search.radius:
                continue
            rating = place.get("rating") or 0
            reviews = place.get("user_ratings_total") or 0
            if rating < search.min_rating or reviews < search.min_reviews:
                continue

            driving = self._distance(lat, lng, place)
            if driving:
                distance, duration = driving
            else:
                distance, duration = f"{straight_m / 1000:.1f} km", "Unknown"
            places.append(
                PlaceDetail(name=place.get("name") or "Unnamed", distance=distance, duration=duration, rating=rating)
            )

        places.sort(key=lambda p: parse_distance_m(p.distance))
        return PlaceCategory(type=search.label, count=len(places), places=places)

    def fetch_amenities(self, lat: float, lng: float) -> List[PlaceCategory]:
        try:
            categories = [self._amenity_category(lat, lng, search) for search in AMENITY_SEARCHES]
        except Exception as e:
            print(f"[NEARBY] Amenity lookup failed: {e}")
            return [PlaceCategory(type=search.label, count=0, places=[]) for search in AMENITY_SEARCHES]
        if IS_DEV:
            print(f"[NEARBY] Amenities: {', '.join(f'{c.type}={c.count}' for c in categories)}")
        return categories

    def fetch_transit(self, lat: float, lng: float) -> List[TransitInfo]:
        points: List[TransitInfo] = []
        try:
            for search in transit_searches(self.city):
                status, results = self.client.nearby_search(
                    lat, lng, search.radius, place_type=search.place_type, keyword=search.keyword
                )
                if status == "ZERO_RESULTS":
                    continue
                for place in results:
                    driving = self._distance(lat, lng, place)
                    if not driving:
                        continue
                    distance, duration = driving
                    points.append(
                        TransitInfo(
                            name=place.get("name") or "Unnamed",
                            distance=distance,
                            duration=duration,
                            type=search.transit_type,
                        )
                    )
        except Exception as e:
            print(f"[NEARBY] Transit lookup failed: {e}")
            return []
        points.sort(key=lambda p: parse_distance_m(p.distance))
        return points

    def stats(self) -> Dict[str, Any]:
        with self._stats_lock:
            api_calls, hits, total = self.api_calls, self.cache_hits, self.total_requests
        served = hits + api_calls
        savings = round(hits / served * 100) if served else 0
        return {
            "cache": {
                "entries_in_cache": len(self.cache),
                "expired_entries": 0,
                "cache_file_path": self.cache.path,
            },
            "usage": {"api_calls": api_calls, "cache_hits": hits, "total_requests": total},
            "savings": {
                "api_savings_percent": savings,
                "estimated_cost_savings": "$" + format(hits * COST_PER_LOOKUP, ".2f"),
            },
        }
