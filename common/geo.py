from __future__ import annotations

import math

from common.types import Coordinate


# Spherical Earth used for every bearing/distance computation in the engine.
EARTH_RADIUS_M = 6371000.0


# -------------------------
# Angles
# -------------------------
def normalize_bearing(deg: float) -> float:
    """Wrap any angle in degrees into [0, 360)."""
    b = (deg + 360.0) % 360.0
    # -1e-15 + 360 rounds to 360.0 before the modulo
    return 0.0 if b >= 360.0 else b


def angular_difference(a: float, b: float) -> float:
    """Smallest absolute difference between two bearings, in [0, 180]."""
    d = abs(a - b) % 360.0
    return min(d, 360.0 - d)


# -------------------------
# Great-circle & bearings
# -------------------------
def great_circle_distance(a: Coordinate, b: Coordinate) -> float:
    """Haversine great-circle distance in meters."""
    p1 = math.radians(a.lat)
    p2 = math.radians(b.lat)
    dphi = p2 - p1
    dl = math.radians(b.lon - a.lon)
    h = math.sin(dphi / 2.0) ** 2 + math.cos(p1) * math.cos(p2) * math.sin(dl / 2.0) ** 2
    return 2 * EARTH_RADIUS_M * math.asin(min(1.0, math.sqrt(h)))


def bearing(origin: Coordinate, target: Coordinate) -> float:
    """Initial great-circle bearing from origin to target (degrees, 0..360)."""
    phi1, phi2 = math.radians(origin.lat), math.radians(target.lat)
    dl = math.radians(target.lon - origin.lon)
    y = math.sin(dl) * math.cos(phi2)
    x = math.cos(phi1) * math.sin(phi2) - math.sin(phi1) * math.cos(phi2) * math.cos(dl)
    return normalize_bearing(math.degrees(math.atan2(y, x)))


def destination(origin: Coordinate, bearing_deg: float, distance_m: float) -> Coordinate:
    """
    Forward geodesic on a sphere: the point reached by travelling `distance_m`
    from `origin` along the initial bearing `bearing_deg`.
    """
    theta = math.radians(bearing_deg)
    delta = distance_m / EARTH_RADIUS_M
    lat1 = math.radians(origin.lat)
    lon1 = math.radians(origin.lon)

    lat2 = math.asin(
        math.sin(lat1) * math.cos(delta) + math.cos(lat1) * math.sin(delta) * math.cos(theta)
    )
    lon2 = lon1 + math.atan2(
        math.sin(theta) * math.sin(delta) * math.cos(lat1),
        math.cos(delta) - math.sin(lat1) * math.sin(lat2),
    )
    lon_deg = (math.degrees(lon2) + 540.0) % 360.0 - 180.0
    return Coordinate(lat=math.degrees(lat2), lon=lon_deg)


def elevation_angle_deg(horizontal_m: float, vertical_m: float) -> float:
    """Vertical look-angle from horizontal, degrees (positive = up)."""
    return math.degrees(math.atan2(vertical_m, horizontal_m))


def look_angle_deg(height_m: float, distance_m: float) -> float:
    """Angle subtended from the ground by an object of `height_m` at `distance_m`."""
    if distance_m <= 0:
        return 90.0
    return math.degrees(math.atan(height_m / distance_m))
