"""
backend/test_nearby_places.py

Tests for the nearby places service and its flat-file cache.

Tests cover:
- Cache keys, persistence and unreadable cache files
- Cache hits, refresh and usage statistics
- Amenity filtering (radius, rating, reviews) and distance sorting
- Transit collection and failure fallbacks

Run: pytest backend/test_nearby_places.py -v
"""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional, Tuple

import pytest

from backend.google_maps import MapsError
from backend.nearby_places import (
    AMENITY_SEARCHES,
    NearbyPlacesCache,
    NearbyPlacesService,
    cache_key,
)

ORIGIN = (17.4401, 78.3489)


def place(name: str, lat: float, lng: float, rating: float = 4.5, reviews: int = 100) -> Dict[str, Any]:
    return {
        "name": name,
        "rating": rating,
        "user_ratings_total": reviews,
        "geometry": {"location": {"lat": lat, "lng": lng}},
    }


class FakeMapsClient:
    """Canned Places / Distance Matrix responses keyed by place type."""

    def __init__(self, results_by_type=None, distances=None, fail_types=()):
        self.results_by_type: Dict[str, List[Dict[str, Any]]] = results_by_type or {}
        self.distances: Dict[str, Tuple[str, str]] = distances or {}
        self.fail_types = set(fail_types)
        self.search_calls: List[str] = []

    def nearby_search(self, lat, lng, radius, place_type=None, keyword=None):
        self.search_calls.append(place_type)
        if place_type in self.fail_types:
            raise MapsError("Timeout calling nearbysearch")
        results = self.results_by_type.get(place_type, [])
        return ("OK" if results else "ZERO_RESULTS"), results

    def driving_distance(self, origin: str, destination: str) -> Optional[Tuple[str, str]]:
        return self.distances.get(destination)


@pytest.fixture
def cache(tmp_path):
    return NearbyPlacesCache(str(tmp_path / "nearby-places-cache.json"))


class TestCacheKey:
    def test_rounds_to_four_decimals(self):
        assert cache_key(17.440149, 78.348951) == "17.4401,78.349"
        assert cache_key("17.44", "78.35") == "17.44,78.35"

    def test_nearby_points_share_a_key(self):
        assert cache_key(17.44011, 78.34891) == cache_key(17.44012, 78.34889)


class TestNearbyPlacesCache:
    def test_put_persists_to_disk(self, cache):
        cache.put("17.4401,78.3489", {"amenities": [], "transit_points": []})
        with open(cache.path, encoding="utf-8") as f:
            stored = json.load(f)
        assert stored["17.4401,78.3489"]["data"] == {"amenities": [], "transit_points": []}
        assert isinstance(stored["17.4401,78.3489"]["timestamp"], int)

    def test_reload_from_disk(self, cache):
        cache.put("k", {"amenities": [], "transit_points": []})
        reloaded = NearbyPlacesCache(cache.path)
        assert len(reloaded) == 1
        assert reloaded.get("k") == {"amenities": [], "transit_points": []}

    def test_unreadable_file_starts_empty(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")
        assert len(NearbyPlacesCache(str(path))) == 0

    def test_write_failure_is_not_raised(self, tmp_path):
        cache = NearbyPlacesCache(str(tmp_path / "missing-dir" / "cache.json"))
        cache.put("k", {"amenities": []})
        assert cache.get("k") == {"amenities": []}


class TestAmenities:
    def test_filters_and_sorts_places(self, cache):
        client = FakeMapsClient(
            results_by_type={
                "hospital": [
                    place("Far Hospital", 17.4500, 78.3600),
                    place("Near Hospital", 17.4410, 78.3495),
                    place("Low Rated", 17.4410, 78.3490, rating=3.5),
                    place("Few Reviews", 17.4410, 78.3490, reviews=3),
                    place("Outside Radius", 17.6000, 78.5000),
                ]
            },
            distances={
                "17.45,78.36": ("1.8 km", "6 mins"),
                "17.441,78.3495": ("850 m", "3 mins"),
            },
        )
        service = NearbyPlacesService(client, cache)
        categories = service.fetch_amenities(*ORIGIN)

        assert [c.type for c in categories] == [s.label for s in AMENITY_SEARCHES]
        hospitals = categories[0]
        assert hospitals.count == 2
        assert [p.name for p in hospitals.places] == ["Near Hospital", "Far Hospital"]
        assert hospitals.places[0].distance == "850 m"
        assert hospitals.places[0].rating == 4.5

    def test_straight_line_fallback_when_no_route(self, cache):
        client = FakeMapsClient(results_by_type={"school": [place("Oakridge", 17.4500, 78.3489)]})
        categories = NearbyPlacesService(client, cache).fetch_amenities(*ORIGIN)
        school = next(c for c in categories if c.type == "Schools")
        assert school.places[0].distance == "1.1 km"
        assert school.places[0].duration == "Unknown"

    def test_zero_results_gives_empty_categories(self, cache):
        categories = NearbyPlacesService(FakeMapsClient(), cache).fetch_amenities(*ORIGIN)
        assert len(categories) == len(AMENITY_SEARCHES)
        assert all(c.count == 0 and c.places == [] for c in categories)

    def test_failure_gives_every_category_empty(self, cache):
        client = FakeMapsClient(
            results_by_type={"hospital": [place("Near Hospital", 17.4410, 78.3495)]},
            fail_types={"school"},
        )
        categories = NearbyPlacesService(client, cache).fetch_amenities(*ORIGIN)
        assert len(categories) == len(AMENITY_SEARCHES)
        assert all(c.count == 0 for c in categories)


class TestTransit:
    def test_collects_and_sorts_by_distance(self, cache):
        client = FakeMapsClient(
            results_by_type={
                "transit_station": [place("Raidurg Metro", 17.4300, 78.3800)],
                "train_station": [place("Lingampally", 17.4900, 78.3200), place("No Route", 17.5000, 78.3000)],
                "point_of_interest": [place("ORR Exit 2", 17.4600, 78.3000)],
            },
            distances={
                "17.43,78.38": ("4.2 km", "12 mins"),
                "17.49,78.32": ("11 km", "25 mins"),
                "17.46,78.3": ("900 m", "4 mins"),
            },
        )
        points = NearbyPlacesService(client, cache).fetch_transit(*ORIGIN)
        assert [(p.name, p.type) for p in points] == [
            ("ORR Exit 2", "highway"),
            ("Raidurg Metro", "metro"),
            ("Lingampally", "train"),
        ]

    def test_failure_gives_empty_list(self, cache):
        client = FakeMapsClient(fail_types={"train_station"})
        assert NearbyPlacesService(client, cache).fetch_transit(*ORIGIN) == []


class TestLookup:
    def test_second_lookup_is_cached(self, cache):
        client = FakeMapsClient(results_by_type={"hospital": [place("Near Hospital", 17.4410, 78.3495)]})
        service = NearbyPlacesService(client, cache)

        first, cached_first = service.lookup(*ORIGIN)
        calls_after_first = len(client.search_calls)
        second, cached_second = service.lookup(17.44012, 78.34889)

        assert cached_first is False
        assert cached_second is True
        assert len(client.search_calls) == calls_after_first
        assert second == first
        assert cache_key(*ORIGIN) in cache.entries

    def test_refresh_bypasses_cache(self, cache):
        client = FakeMapsClient()
        service = NearbyPlacesService(client, cache)
        service.lookup(*ORIGIN)
        _, cached = service.lookup(*ORIGIN, refresh=True)
        assert cached is False
        assert service.api_calls == 2

    def test_stats(self, cache):
        service = NearbyPlacesService(FakeMapsClient(), cache)
        service.lookup(*ORIGIN)
        service.lookup(*ORIGIN)
        service.lookup(*ORIGIN)
        stats = service.stats()
        assert stats["cache"] == {"entries_in_cache": 1, "expired_entries": 0, "cache_file_path": cache.path}
        assert stats["usage"] == {"api_calls": 1, "cache_hits": 2, "total_requests": 3}
        assert stats["savings"] == {"api_savings_percent": 67, "estimated_cost_savings": "$0.04"}

    def test_stats_without_traffic(self, cache):
        stats = NearbyPlacesService(FakeMapsClient(), cache).stats()
        assert stats["savings"] == {"api_savings_percent": 0, "estimated_cost_savings": "$0.00"}
