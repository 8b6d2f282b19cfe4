"""
Targeting — bearing, distance and target fix from a capture

This package provides:
- Tap-to-bearing projection (frame x offset * FOV + heading)
- A heuristic distance estimator driven by zoom, FOV and frame coverage
- The target-fix geodesic projection and its confidence score

All functions are pure and synchronous.
"""
from .confidence import fix_confidence
from .distance import DistancePolicy, estimate_distance, estimate_distance_from_height
from .fix import compute_target_fix
from .projector import compute_target_bearing

__all__ = [
    "DistancePolicy",
    "compute_target_bearing",
    "compute_target_fix",
    "estimate_distance",
    "estimate_distance_from_height",
    "fix_confidence",
]
