"""
backend/test_location_filter.py

Tests for location + radius matching.

Tests cover:
- Text matches on the listing location
- Area matches through reverse-geocoded area names (cached)
- Radius expansion around matched listings
- Ordering, de-duplication and lookup failure handling

Run: pytest backend/test_location_filter.py -v
"""

from __future__ import annotations

from typing import List
from unittest.mock import patch

import pytest

from backend.google_maps import MapsError
from backend.property_filters import LocationMatcher


def listing(id_: str, location: str, lat: float = 0, lng: float = 0) -> dict:
    return {"id": id_, "project_name": f"Project {id_}", "location": location, "latitude": lat, "longitude": lng}


class FakeAreaLookup:
    """Returns canned area names per coordinate and records calls."""

    def __init__(self, areas_by_coord=None, fail_for=()):
        self.areas_by_coord = areas_by_coord or {}
        self.fail_for = set(fail_for)
        self.calls: List[tuple] = []

    def __call__(self, lat: float, lng: float) -> List[str]:
        self.calls.append((lat, lng))
        if (lat, lng) in self.fail_for:
            raise MapsError("ConnectionError calling geocode")
        return self.areas_by_coord.get((lat, lng), [])


@pytest.fixture
def no_sleep():
    with patch("backend.property_filters.time.sleep") as sleep:
        yield sleep


class TestTextMatch:
    def test_substring_case_insensitive(self, no_sleep):
        props = [listing("1", "Kondapur"), listing("2", "Gachibowli"), listing("3", "Kondapur Main Road")]
        result = LocationMatcher().match(props, "KONDAPUR")
        assert [p["id"] for p in result] == ["1", "3"]

    def test_multiple_terms_keep_term_order(self, no_sleep):
        props = [listing("1", "Kondapur"), listing("2", "Gachibowli"), listing("3", "Kokapet")]
        result = LocationMatcher().match(props, "gachibowli, kondapur")
        assert [p["id"] for p in result] == ["2", "1"]

    def test_no_duplicates_across_terms(self, no_sleep):
        props = [listing("1", "Kondapur, Gachibowli")]
        result = LocationMatcher().match(props, "kondapur,gachibowli")
        assert [p["id"] for p in result] == ["1"]


class TestAreaMatch:
    def test_matches_through_reverse_geocoded_areas(self, no_sleep):
        lookup = FakeAreaLookup({(17.45, 78.36): ["Kondapur", "Serilingampally"]})
        props = [listing("1", "Hyderabad", 17.45, 78.36), listing("2", "Hyderabad", 17.30, 78.50)]
        result = LocationMatcher(area_lookup=lookup).match(props, "kondapur")
        assert [p["id"] for p in result] == ["1"]

    def test_listings_without_coordinates_are_not_looked_up(self, no_sleep):
        lookup = FakeAreaLookup()
        LocationMatcher(area_lookup=lookup).match([listing("1", "Hyderabad")], "kondapur")
        assert lookup.calls == []

    def test_area_cache_reused(self, no_sleep):
        lookup = FakeAreaLookup({(17.45, 78.36): ["Kondapur"]})
        matcher = LocationMatcher(area_lookup=lookup)
        props = [listing("1", "Hyderabad", 17.45, 78.36)]
        matcher.match(props, "kondapur")
        matcher.match(props, "kondapur")
        assert lookup.calls == [(17.45, 78.36)]
        assert matcher.area_cache["17.45,78.36"] == ["Kondapur"]

    def test_lookup_failure_caches_empty(self, no_sleep):
        lookup = FakeAreaLookup(fail_for=[(17.45, 78.36)])
        matcher = LocationMatcher(area_lookup=lookup)
        result = matcher.match([listing("1", "Hyderabad", 17.45, 78.36)], "kondapur")
        assert result == []
        assert matcher.area_cache["17.45,78.36"] == []

    def test_malformed_lookup_result_caches_empty(self, no_sleep):
        def broken(lat: float, lng: float) -> List[str]:
            return [None.get("long_name")]  # type: ignore[attr-defined]

        matcher = LocationMatcher(area_lookup=broken)
        props = [listing("1", "Hyderabad", 17.45, 78.36), listing("2", "Kondapur")]
        result = matcher.match(props, "kondapur")
        assert [p["id"] for p in result] == ["2"]
        assert matcher.area_cache["17.45,78.36"] == []

    def test_batches_pause_between_lookups(self, no_sleep):
        lookup = FakeAreaLookup()
        props = [listing(str(i), "Hyderabad", 17.0 + i / 100, 78.0 + i / 100) for i in range(1, 12)]
        LocationMatcher(area_lookup=lookup, batch_size=5, batch_delay=0.1).match(props, "kondapur")
        # 11 candidates -> 3 batches -> 2 pauses
        assert no_sleep.call_count == 2
        no_sleep.assert_called_with(0.1)

    def test_cached_batches_do_not_pause(self, no_sleep):
        lookup = FakeAreaLookup()
        matcher = LocationMatcher(area_lookup=lookup, batch_size=2)
        props = [listing(str(i), "Hyderabad", 17.0 + i / 100, 78.0) for i in range(1, 6)]
        matcher.match(props, "kondapur")
        no_sleep.reset_mock()
        matcher.match(props, "kondapur")
        assert no_sleep.call_count == 0


class TestRadius:
    def test_radius_adds_nearby_listings(self, no_sleep):
        props = [
            listing("1", "Kondapur", 17.4600, 78.3548),
            listing("2", "Gachibowli", 17.4401, 78.3489),  # ~2.3 km away
            listing("3", "Shamshabad", 17.2403, 78.4294),  # ~26 km away
        ]
        result = LocationMatcher().match(props, "kondapur", radius_km=5)
        assert [p["id"] for p in result] == ["1", "2"]

    def test_zero_radius_adds_nothing(self, no_sleep):
        props = [listing("1", "Kondapur", 17.4600, 78.3548), listing("2", "Gachibowli", 17.4401, 78.3489)]
        result = LocationMatcher().match(props, "kondapur", radius_km=0)
        assert [p["id"] for p in result] == ["1"]

    def test_radius_needs_reference_coordinates(self, no_sleep):
        """A text match without coordinates is not a radius reference."""
        props = [listing("1", "Kondapur"), listing("2", "Gachibowli", 17.4401, 78.3489)]
        result = LocationMatcher().match(props, "kondapur", radius_km=50)
        assert [p["id"] for p in result] == ["1"]

    def test_listings_without_coordinates_never_in_radius(self, no_sleep):
        props = [listing("1", "Kondapur", 17.4600, 78.3548), listing("2", "Unknown Location")]
        result = LocationMatcher().match(props, "kondapur", radius_km=500)
        assert [p["id"] for p in result] == ["1"]

    def test_area_match_is_a_reference(self, no_sleep):
        lookup = FakeAreaLookup({(17.4600, 78.3548): ["Kondapur"]})
        props = [listing("1", "Hyderabad", 17.4600, 78.3548), listing("2", "Gachibowli", 17.4401, 78.3489)]
        result = LocationMatcher(area_lookup=lookup).match(props, "kondapur", radius_km=3)
        assert [p["id"] for p in result] == ["1", "2"]
