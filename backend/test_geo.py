"""
Tests for distance helpers.
Run: pytest backend/test_geo.py -v
"""

import math

import pytest

from backend.geo import has_coordinates, haversine_km, haversine_m, parse_distance_m


# Gachibowli and Kondapur, Hyderabad
GACHIBOWLI = (17.4401, 78.3489)
KONDAPUR = (17.4600, 78.3548)


class TestHaversineKm:
    def test_known_distance(self):
        distance = haversine_km(*GACHIBOWLI, *KONDAPUR)
        assert 2.0 < distance < 2.6

    def test_symmetric(self):
        assert haversine_km(*GACHIBOWLI, *KONDAPUR) == pytest.approx(haversine_km(*KONDAPUR, *GACHIBOWLI))

    def test_identical_points_are_zero(self):
        assert haversine_km(*GACHIBOWLI, *GACHIBOWLI) == 0.0

    @pytest.mark.parametrize(
        "coords",
        [
            (None, 78.3, 17.4, 78.3),
            (0, 78.3, 17.4, 78.3),
            (17.4, 0, 17.4, 78.3),
            (float("nan"), 78.3, 17.4, 78.3),
            ("abc", 78.3, 17.4, 78.3),
        ],
    )
    def test_missing_or_zero_coordinates_are_infinite(self, coords):
        """Unknown coordinates can never fall inside a radius."""
        assert haversine_km(*coords) == math.inf

    def test_out_of_range_is_infinite(self):
        assert haversine_km(95.0, 78.3, 17.4, 78.3) == math.inf
        assert haversine_km(17.4, 190.0, 17.4, 78.3) == math.inf

    def test_numeric_strings_accepted(self):
        assert haversine_km("17.4401", "78.3489", "17.4600", "78.3548") == pytest.approx(
            haversine_km(*GACHIBOWLI, *KONDAPUR)
        )


class TestHaversineM:
    def test_meters_match_kilometers(self):
        assert haversine_m(*GACHIBOWLI, *KONDAPUR) == pytest.approx(haversine_km(*GACHIBOWLI, *KONDAPUR) * 1000)


class TestHasCoordinates:
    def test_valid(self):
        assert has_coordinates(17.44, 78.34)

    def test_zero_and_missing(self):
        assert not has_coordinates(0, 78.34)
        assert not has_coordinates(17.44, None)
        assert not has_coordinates(True, 78.34)


class TestParseDistance:
    @pytest.mark.parametrize(
        "text,expected",
        [
            ("850 m", 850),
            ("2.4 km", 2400),
            ("1,203 km", 1_203_000),
            ("12 KM", 12000),
        ],
    )
    def test_parses_distance_matrix_text(self, text, expected):
        assert parse_distance_m(text) == pytest.approx(expected)

    def test_kilometers_sort_after_meters(self):
        """'1.2 km' is farther than '900 m' even though '1.2' < '900'."""
        assert parse_distance_m("1.2 km") > parse_distance_m("900 m")

    @pytest.mark.parametrize("text", [None, "", "Unknown", "about 5 miles"])
    def test_unparseable_is_infinite(self, text):
        assert parse_distance_m(text) == math.inf
