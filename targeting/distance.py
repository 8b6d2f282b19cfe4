from __future__ import annotations

"""
Heuristic ground-distance estimation from optical cues.

No depth sensor is assumed. Instead of inverting angular size (the real
object size is unknown) the model asks "how far does this zoom/FOV
combination plausibly resolve an object of typical size", then scales by how
much of the frame the object fills relative to a 50 % reference.

    distance = base * zoom_mult(zoom) * fov_mult(fov) * coverage_mult(coverage)

The constants are an empirical placeholder, not physics; they live in
`DistancePolicy` so they can be recalibrated (e.g. from config) without
touching the shape of the curve.
"""

import math
from dataclasses import dataclass, fields
from typing import Any, Dict, Mapping, Optional

from common.logging_setup import get_logger


log = get_logger("targeting")


@dataclass(frozen=True, slots=True)
class DistancePolicy:
    base_distance_m: float = 100.0
    # zoom curve: low < medium_start <= medium < high_start <= high < very_high_start
    low_zoom_slope: float = 1.5
    medium_zoom_start: float = 2.0
    medium_zoom_coeff: float = 2.0
    medium_zoom_exponent: float = 1.6
    high_zoom_start: float = 5.0
    high_zoom_slope: float = 2.4
    very_high_zoom_start: float = 10.0
    very_high_zoom_slope: float = 5.0
    # FOV term: sqrt(reference / fov), floored
    reference_fov_deg: float = 68.0
    min_fov_deg: float = 5.0
    min_fov_multiplier: float = 0.8
    # coverage term: reference / max(coverage, floor)
    reference_coverage_pct: float = 50.0
    min_coverage_pct: float = 5.0
    # height-based variant: assumed fraction of frame height an object fills
    assumed_fill_fraction: float = 0.1

    @classmethod
    def from_mapping(cls, raw: Optional[Mapping[str, Any]]) -> "DistancePolicy":
        """Overlay known keys from a config mapping onto the defaults."""
        names = {f.name for f in fields(cls)}
        return cls(**{k: float(v) for k, v in (raw or {}).items() if k in names})

    # --- zoom curve; each regime starts where the previous one ends ---
    def _low(self, z: float) -> float:
        return max(1.0, z * self.low_zoom_slope)

    def _medium(self, z: float) -> float:
        start = self._low(self.medium_zoom_start)
        return start + self.medium_zoom_coeff * (z - self.medium_zoom_start) ** self.medium_zoom_exponent

    def _high(self, z: float) -> float:
        return self._medium(self.high_zoom_start) + (z - self.high_zoom_start) * self.high_zoom_slope

    def _very_high(self, z: float) -> float:
        return self._high(self.very_high_zoom_start) + (z - self.very_high_zoom_start) * self.very_high_zoom_slope

    def zoom_multiplier(self, zoom: float) -> float:
        if zoom >= self.very_high_zoom_start:
            return self._very_high(zoom)
        if zoom >= self.high_zoom_start:
            return self._high(zoom)
        if zoom >= self.medium_zoom_start:
            return self._medium(zoom)
        return self._low(zoom)

    def fov_multiplier(self, fov_deg: float) -> float:
        effective = max(fov_deg, self.min_fov_deg)
        return max(self.min_fov_multiplier, math.sqrt(self.reference_fov_deg / effective))

    def coverage_multiplier(self, coverage_pct: float) -> float:
        return self.reference_coverage_pct / max(coverage_pct, self.min_coverage_pct)


DEFAULT_POLICY = DistancePolicy()


def _check_optics(zoom: float, fov_deg: float) -> None:
    if not (math.isfinite(zoom) and zoom > 0):
        raise ValueError(f"zoom must be a positive number, got {zoom!r}")
    if not (math.isfinite(fov_deg) and fov_deg > 0):
        raise ValueError(f"field of view must be a positive number, got {fov_deg!r}")


def estimate_distance(
    zoom: float,
    fov_deg: float,
    coverage_pct: float = 50.0,
    policy: DistancePolicy = DEFAULT_POLICY,
) -> float:
    """
    Estimated ground distance (m, always > 0) to the targeted object.

    Args:
        zoom: camera zoom factor.
        fov_deg: effective horizontal field of view at that zoom.
        coverage_pct: share of the frame (0..100) the object fills.
    """
    _check_optics(zoom, fov_deg)
    if not math.isfinite(coverage_pct):
        raise ValueError(f"coverage must be finite, got {coverage_pct!r}")

    breakdown = estimate_breakdown(zoom, fov_deg, coverage_pct, policy)
    log.debug("distance estimate", extra={"extra": breakdown})
    return breakdown["distance_m"]


def estimate_breakdown(
    zoom: float,
    fov_deg: float,
    coverage_pct: float,
    policy: DistancePolicy = DEFAULT_POLICY,
) -> Dict[str, float]:
    zm = policy.zoom_multiplier(zoom)
    fm = policy.fov_multiplier(fov_deg)
    cm = policy.coverage_multiplier(coverage_pct)
    return {
        "base_m": policy.base_distance_m,
        "zoom_mult": zm,
        "fov_mult": fm,
        "coverage_mult": cm,
        "distance_m": policy.base_distance_m * zm * fm * cm,
    }


def estimate_distance_from_height(
    height_m: Optional[float],
    fov_deg: float,
    fill_fraction: Optional[float] = None,
    policy: DistancePolicy = DEFAULT_POLICY,
) -> Optional[float]:
    """
    Angular-size distance for an object of known height:
        d = height / tan(fill_fraction * fov)
    Returns None when the height is unknown or non-positive.
    """
    if height_m is None or not height_m > 0:
        return None
    fill = policy.assumed_fill_fraction if fill_fraction is None else fill_fraction
    angular = math.radians(fill * fov_deg)
    if not 0.0 < angular < math.pi / 2:
        return None
    return height_m / math.tan(angular)
