"""
Unit tests for haversine distance helpers

Run with: pytest tests/test_geodesic.py
"""

import math

import numpy as np
import pytest

from busflow.analysis.geodesic import EARTH_RADIUS_KM, haversine_distance_matrix, haversine_km


class TestHaversineKm:
    """Tests for the scalar haversine distance"""

    def test_same_point_is_zero(self):
        """Distance from a point to itself is exactly zero"""
        assert haversine_km(12.9716, 77.5946, 12.9716, 77.5946) == 0.0

    def test_symmetry(self):
        """distance(A, B) == distance(B, A)"""
        pairs = [
            ((12.9716, 77.5946), (13.0358, 77.5970)),
            ((-33.8688, 151.2093), (51.5074, -0.1278)),
            ((0.0, 179.9), (0.0, -179.9)),
        ]
        for (lat1, lng1), (lat2, lng2) in pairs:
            assert haversine_km(lat1, lng1, lat2, lng2) == haversine_km(lat2, lng2, lat1, lng1)

    def test_half_degree_of_latitude(self):
        """0.5 degrees along a meridian is about 55.6 km"""
        expected = EARTH_RADIUS_KM * math.radians(0.5)
        assert haversine_km(12.5, 77.5, 13.0, 77.5) == pytest.approx(expected, rel=1e-12)
        assert haversine_km(12.5, 77.5, 13.0, 77.5) == pytest.approx(55.6, abs=0.1)

    def test_known_city_pair(self):
        """London to Paris is roughly 344 km"""
        assert haversine_km(51.5074, -0.1278, 48.8566, 2.3522) == pytest.approx(343.6, abs=1.0)

    def test_nan_propagates(self):
        """NaN coordinates give NaN, not an exception"""
        assert math.isnan(haversine_km(float("nan"), 77.5, 13.0, 77.5))


class TestHaversineDistanceMatrix:
    """Tests for the vectorized distance matrix"""

    def test_shape(self):
        """Matrix is len(set1) x len(set2)"""
        d = haversine_distance_matrix([12.9, 13.0, 13.1], [77.5, 77.6, 77.7], [12.9, 13.0], [77.5, 77.6])
        assert d.shape == (3, 2)

    def test_matches_scalar(self):
        """Each element equals the scalar distance"""
        lats = np.array([12.90, 12.95, 13.05])
        lngs = np.array([77.50, 77.62, 77.41])
        d = haversine_distance_matrix(lats, lngs, lats, lngs)
        for i in range(3):
            for j in range(3):
                assert d[i, j] == pytest.approx(haversine_km(lats[i], lngs[i], lats[j], lngs[j]), abs=1e-9)

    def test_diagonal_is_zero(self):
        """Self distances are zero"""
        lats = [12.9, 13.0]
        lngs = [77.5, 77.6]
        assert np.all(np.diag(haversine_distance_matrix(lats, lngs, lats, lngs)) == 0.0)
