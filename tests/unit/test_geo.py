"""
Unit tests for spherical geodesy helpers
"""

import pytest
import os
import sys

# Add project root to path
project_root = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
sys.path.append(project_root)

from common.geo import (
    EARTH_RADIUS_M,
    angular_difference,
    bearing,
    destination,
    elevation_angle_deg,
    great_circle_distance,
    look_angle_deg,
    normalize_bearing,
)
from common.types import Coordinate


SF = Coordinate(37.7749, -122.4194)


class TestNormalizeBearing:
    """Bearings always land in [0, 360)"""

    @pytest.mark.parametrize("raw,expected", [(0, 0), (360, 0), (-90, 270), (450, 90), (-720, 0), (359.5, 359.5)])
    def test_normalize(self, raw, expected):
        assert normalize_bearing(raw) == pytest.approx(expected)
        assert 0.0 <= normalize_bearing(raw) < 360.0


class TestAngularDifference:
    """Shortest angular separation"""

    def test_wraps_through_north(self):
        assert angular_difference(350, 10) == pytest.approx(20)

    def test_symmetric_and_bounded(self):
        for a in range(0, 360, 17):
            for b in range(0, 360, 23):
                d = angular_difference(a, b)
                assert d == angular_difference(b, a)
                assert 0.0 <= d <= 180.0

    def test_opposite(self):
        assert angular_difference(90, 270) == pytest.approx(180)


class TestDestination:
    """Forward geodesic and its inverse"""

    def test_earth_radius(self):
        assert EARTH_RADIUS_M == 6371000.0

    def test_due_north_one_degree(self):
        d = 2 * 3.141592653589793 * EARTH_RADIUS_M / 360.0
        out = destination(Coordinate(0.0, 0.0), 0.0, d)
        assert out.lat == pytest.approx(1.0, abs=1e-9)
        assert out.lon == pytest.approx(0.0, abs=1e-9)

    @pytest.mark.parametrize("lat", [-60.0, -10.0, 0.0, 37.7749, 70.0])
    @pytest.mark.parametrize("brg", [0.0, 45.0, 90.0, 181.0, 300.0])
    @pytest.mark.parametrize("dist", [10.0, 150.0, 5000.0, 120000.0])
    def test_round_trip(self, lat, brg, dist):
        origin = Coordinate(lat, 12.5)
        target = destination(origin, brg, dist)
        assert great_circle_distance(origin, target) == pytest.approx(dist, rel=1e-6)
        assert angular_difference(bearing(origin, target), brg) < 1e-6

    def test_longitude_stays_in_range(self):
        out = destination(Coordinate(0.0, 179.9999), 90.0, 10000.0)
        assert -180.0 <= out.lon <= 180.0
        assert out.lon < 0


class TestBearing:
    """Forward azimuth"""

    def test_cardinals(self):
        assert bearing(SF, Coordinate(38.0, -122.4194)) == pytest.approx(0.0, abs=1e-9)
        assert bearing(SF, Coordinate(37.0, -122.4194)) == pytest.approx(180.0, abs=1e-9)
        assert bearing(Coordinate(0, 0), Coordinate(0, 1)) == pytest.approx(90.0)
        assert bearing(Coordinate(0, 0), Coordinate(0, -1)) == pytest.approx(270.0)

    def test_range(self):
        b = bearing(SF, Coordinate(37.70, -122.50))
        assert 0.0 <= b < 360.0


class TestAngles:
    """Look / elevation angles"""

    def test_elevation(self):
        assert elevation_angle_deg(1000.0, 1000.0) == pytest.approx(45.0)
        assert elevation_angle_deg(1000.0, -1000.0) == pytest.approx(-45.0)

    def test_look_angle(self):
        assert look_angle_deg(100.0, 100.0) == pytest.approx(45.0)
        assert look_angle_deg(10.0, 0.0) == 90.0
