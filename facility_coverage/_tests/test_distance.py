"""
Tests for the planar and great-circle distance functions.
"""

import math

import numpy as np
import pytest

from facility_coverage.distance import (
    EARTH_RADIUS_METERS,
    get_distance_function,
    get_distance_model,
    haversine_distance_array,
    haversine_distance_m,
    planar_distance_array,
    planar_distance_m,
)


class TestPlanarDistance:
    def test_one_degree_latitude(self):
        assert planar_distance_m(40.0, -74.0, 41.0, -74.0) == pytest.approx(111000.0)

    def test_one_degree_longitude(self):
        assert planar_distance_m(40.0, -74.0, 40.0, -73.0) == pytest.approx(85000.0)

    def test_custom_longitude_scale(self):
        d = planar_distance_m(0.0, 0.0, 0.0, 1.0, meters_per_degree_lng=111000.0)
        assert d == pytest.approx(111000.0)

    def test_pythagorean(self):
        d = planar_distance_m(40.0, -74.0, 40.003, -73.996)
        expected = math.hypot(0.003 * 111000.0, 0.004 * 85000.0)
        assert d == pytest.approx(expected)

    def test_symmetric(self):
        a = planar_distance_m(40.7, -74.0, 40.8, -73.9)
        b = planar_distance_m(40.8, -73.9, 40.7, -74.0)
        assert a == pytest.approx(b)


class TestHaversineDistance:
    def test_zero_distance(self):
        assert haversine_distance_m(40.7, -74.0, 40.7, -74.0) == 0.0

    def test_quarter_meridian(self):
        d = haversine_distance_m(0.0, 0.0, 90.0, 0.0)
        assert d == pytest.approx(math.pi / 2 * EARTH_RADIUS_METERS)

    def test_antipodal_not_nan(self):
        d = haversine_distance_m(0.0, 0.0, 0.0, 180.0)
        assert not math.isnan(d)
        assert d == pytest.approx(math.pi * EARTH_RADIUS_METERS)

    def test_close_to_planar_at_metro_scale(self):
        """Over ~1 km at 40.7N the two models agree within a few percent."""
        planar = planar_distance_m(40.75, -73.98, 40.758, -73.975)
        great_circle = haversine_distance_m(40.75, -73.98, 40.758, -73.975)
        assert great_circle == pytest.approx(planar, rel=0.03)


class TestVectorizedForms:
    @pytest.fixture
    def targets(self):
        lats = np.array([40.70, 40.75, 40.80, 40.7001])
        lngs = np.array([-74.00, -73.95, -73.90, -74.0002])
        return lats, lngs

    def test_planar_matches_scalar(self, targets):
        lats, lngs = targets
        result = planar_distance_array(40.72, -73.97, lats, lngs)
        expected = [planar_distance_m(40.72, -73.97, a, b) for a, b in zip(lats, lngs)]
        np.testing.assert_allclose(result, expected)

    def test_haversine_matches_scalar(self, targets):
        lats, lngs = targets
        result = haversine_distance_array(40.72, -73.97, lats, lngs)
        expected = [haversine_distance_m(40.72, -73.97, a, b) for a, b in zip(lats, lngs)]
        np.testing.assert_allclose(result, expected)

    def test_broadcasts_origins_against_targets(self, targets):
        lats, lngs = targets
        origins_lat = np.array([40.71, 40.79])[:, np.newaxis]
        origins_lng = np.array([-73.99, -73.91])[:, np.newaxis]
        matrix = planar_distance_array(origins_lat, origins_lng, lats[np.newaxis, :], lngs[np.newaxis, :])
        assert matrix.shape == (2, 4)
        assert matrix[1, 2] == pytest.approx(planar_distance_m(40.79, -73.91, 40.80, -73.90))


class TestRegistry:
    def test_lookup(self):
        assert get_distance_function("planar") is planar_distance_m
        assert get_distance_function("haversine") is haversine_distance_m
        assert get_distance_model("haversine").array is haversine_distance_array

    def test_unknown_name(self):
        with pytest.raises(ValueError, match="Unknown distance function"):
            get_distance_function("manhattan")
