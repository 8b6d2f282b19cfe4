from __future__ import annotations

"""
Geometric pruning of fused candidates.

Both filters are approximations: buildings are point obstacles, terrain is
ignored, and aircraft altitude is compared against the camera's altitude
above sea level.
"""

from typing import List, Sequence, TypeVar

from common.geo import angular_difference, bearing, elevation_angle_deg, great_circle_distance, look_angle_deg
from common.logging_setup import get_logger
from common.types import Aircraft, Candidate, Coordinate


log = get_logger("fusion.visibility")

C = TypeVar("C", bound=Candidate)


def _distance(c: Candidate, origin: Coordinate) -> float:
    return c.distance_m if c.distance_m is not None else great_circle_distance(origin, c.coordinate)


def filter_line_of_sight(
    candidates: Sequence[C],
    origin: Coordinate,
    bearing_window_deg: float = 2.0,
) -> List[C]:
    """
    Suppress stationary candidates hidden behind a closer, taller one.

    Candidates are walked in ascending distance. A candidate is occluded when
    some already-kept, strictly-closer candidate with a known height sits
    less than `bearing_window_deg` away in bearing and subtends a look-angle
    at least as large. Kept candidates without a height never occlude.
    """
    ordered = sorted(candidates, key=lambda c: _distance(c, origin))
    kept: List[C] = []
    for c in ordered:
        d = _distance(c, origin)
        b = bearing(origin, c.coordinate)
        angle = look_angle_deg(c.height_m or 0.0, d)
        blocker = None
        for k in kept:
            kd = _distance(k, origin)
            if not kd < d or not (k.height_m or 0.0) > 0:
                continue
            if angular_difference(b, bearing(origin, k.coordinate)) >= bearing_window_deg:
                continue
            if look_angle_deg(k.height_m, kd) >= angle:
                blocker = k
                break
        if blocker is not None:
            log.debug("occluded", extra={"extra": {"id": c.id, "by": blocker.id}})
            continue
        kept.append(c)
    return kept


def filter_elevation(
    candidates: Sequence[C],
    origin: Coordinate,
    camera_altitude_m: float,
    pitch_deg: float,
    min_pitch_deg: float = 5.0,
    tolerance_deg: float = 15.0,
) -> List[C]:
    """
    Keep aerial candidates whose elevation angle matches the camera pitch.

    Skipped entirely (input returned as-is) when |pitch| <= `min_pitch_deg`.
    Candidates without an altitude are treated as being at ground level.
    """
    if abs(pitch_deg) <= min_pitch_deg:
        return list(candidates)
    out: List[C] = []
    for c in candidates:
        altitude = c.altitude_m if isinstance(c, Aircraft) else (c.height_m or 0.0)
        ground = great_circle_distance(origin, c.coordinate)
        elevation = elevation_angle_deg(ground, altitude - camera_altitude_m)
        if abs(pitch_deg - elevation) <= tolerance_deg:
            out.append(c)
    log.debug(
        "elevation filter",
        extra={"extra": {"pitch": pitch_deg, "in": len(candidates), "out": len(out)}},
    )
    return out
