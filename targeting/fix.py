from __future__ import annotations

import math

from common.geo import destination, normalize_bearing
from common.logging_setup import get_logger
from common.types import CaptureMetadata, FixInputs, TargetFix
from targeting.confidence import fix_confidence


log = get_logger("targeting")


def compute_target_fix(metadata: CaptureMetadata, bearing_deg: float, distance_m: float) -> TargetFix:
    """
    Project the capture position along `bearing_deg` for `distance_m` and score it.

    Raises:
        ValueError: non-finite bearing or non-positive distance.
    """
    if not math.isfinite(bearing_deg):
        raise ValueError(f"bearing must be finite, got {bearing_deg!r}")
    if not (math.isfinite(distance_m) and distance_m > 0):
        raise ValueError(f"distance must be > 0, got {distance_m!r}")

    bearing_deg = normalize_bearing(bearing_deg)
    target = destination(metadata.position, bearing_deg, distance_m)
    conf = fix_confidence(
        distance_m=distance_m,
        zoom=metadata.zoom_factor,
        altitude_m=metadata.altitude_m,
        fov_deg=metadata.field_of_view_deg,
    )
    fix = TargetFix(
        coordinate=target,
        confidence=conf,
        inputs=FixInputs(
            origin=metadata.position,
            bearing_deg=bearing_deg,
            distance_m=distance_m,
            zoom_factor=metadata.zoom_factor,
            field_of_view_deg=metadata.field_of_view_deg,
            altitude_m=metadata.altitude_m,
            orientation=metadata.orientation,
        ),
    )
    log.info(
        "target fix",
        extra={"extra": {"lat": target.lat, "lon": target.lon, "bearing": bearing_deg,
                         "distance_m": distance_m, "conf": round(conf, 3)}},
    )
    return fix
