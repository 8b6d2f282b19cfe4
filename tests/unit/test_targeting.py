"""
Unit tests for targeting: tap->bearing, distance heuristic, fix + confidence
"""

import math
import pytest
import os
import sys

# Add project root to path
project_root = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
sys.path.append(project_root)

from common.geo import angular_difference, bearing, great_circle_distance
from common.types import CaptureMetadata, Coordinate, FrameSize
from targeting import (
    DistancePolicy,
    compute_target_bearing,
    compute_target_fix,
    estimate_distance,
    estimate_distance_from_height,
    fix_confidence,
)
from targeting.distance import estimate_breakdown


SF = Coordinate(37.7749, -122.4194)


def _meta(**kw):
    base = dict(position=SF, altitude_m=10.0, heading_deg=90.0, field_of_view_deg=68.0, zoom_factor=1.0)
    base.update(kw)
    return CaptureMetadata(**base)


class TestCaptureMetadata:
    """Snapshot validation and copies"""

    def test_heading_normalized(self):
        assert _meta(heading_deg=-90.0).heading_deg == pytest.approx(270.0)
        assert _meta(heading_deg=720.0).heading_deg == 0.0

    def test_rejects_bad_optics(self):
        with pytest.raises(ValueError):
            _meta(field_of_view_deg=0.0)
        with pytest.raises(ValueError):
            _meta(zoom_factor=-1.0)
        with pytest.raises(ValueError):
            _meta(altitude_m=float("nan"))

    def test_rejects_bad_coordinate(self):
        with pytest.raises(ValueError):
            Coordinate(91.0, 0.0)
        with pytest.raises(ValueError):
            Coordinate(float("inf"), 0.0)

    def test_with_heading_is_a_copy(self):
        md = _meta()
        turned = md.with_heading(45.0)
        assert md.heading_deg == 90.0
        assert turned.heading_deg == 45.0
        assert turned.position == md.position


class TestTapBearing:
    """Tap-to-bearing projection"""

    def test_center_tap_is_heading(self):
        md = _meta(heading_deg=123.4)
        assert compute_target_bearing((2016, 1512), FrameSize(4032, 3024), md) == pytest.approx(123.4)

    def test_no_tap_is_heading(self):
        md = _meta(heading_deg=123.4)
        assert compute_target_bearing(None, FrameSize(4032, 3024), md) == md.heading_deg

    def test_edges_span_full_fov(self):
        md = _meta(heading_deg=90.0, field_of_view_deg=60.0)
        frame = FrameSize(1000, 800)
        left = compute_target_bearing((0, 400), frame, md)
        right = compute_target_bearing((1000, 400), frame, md)
        assert left == pytest.approx(60.0)
        assert right == pytest.approx(120.0)
        assert angular_difference(left, right) == pytest.approx(60.0)

    def test_wraps_through_north(self):
        md = _meta(heading_deg=10.0, field_of_view_deg=60.0)
        out = compute_target_bearing((0, 0), FrameSize(1000, 800), md)
        assert out == pytest.approx(340.0)

    @pytest.mark.parametrize("frame", [FrameSize(0, 100), FrameSize(100, 0), FrameSize(-1, 100)])
    def test_degenerate_frame_rejected(self, frame):
        with pytest.raises(ValueError):
            compute_target_bearing((0, 0), frame, _meta())

    @pytest.mark.parametrize("x", [float("nan"), float("inf"), float("-inf")])
    def test_non_finite_tap_rejected(self, x):
        with pytest.raises(ValueError):
            compute_target_bearing((x, 0), FrameSize(100, 100), _meta(heading_deg=90.0, field_of_view_deg=68.0))

    @pytest.mark.parametrize("x", [-1, 101, 5000])
    def test_tap_outside_frame_rejected(self, x):
        with pytest.raises(ValueError):
            compute_target_bearing((x, 0), FrameSize(100, 100), _meta(heading_deg=90.0, field_of_view_deg=68.0))


class TestDistanceEstimate:
    """Zoom/FOV/coverage heuristic"""

    def test_reference_capture(self):
        # 1x zoom, 68 deg FOV, 50 % coverage
        assert estimate_distance(1.0, 68.0, 50.0) == pytest.approx(150.0)
        assert estimate_distance(1.0, 68.0, 50.0) == estimate_distance(1.0, 68.0, 50.0)

    def test_zoom_curve_monotonic_and_continuous(self):
        policy = DistancePolicy()
        zooms = [0.5 + 0.05 * i for i in range(300)]
        values = [policy.zoom_multiplier(z) for z in zooms]
        assert all(b >= a for a, b in zip(values, values[1:]))
        for edge in (policy.medium_zoom_start, policy.high_zoom_start, policy.very_high_zoom_start):
            assert policy.zoom_multiplier(edge) == pytest.approx(policy.zoom_multiplier(edge - 1e-9), abs=1e-6)

    def test_zoom_grows_faster_than_linear_above_two(self):
        policy = DistancePolicy()
        assert policy.zoom_multiplier(4.0) / policy.zoom_multiplier(2.0) > 2.0

    def test_fov_multiplier_floor(self):
        policy = DistancePolicy()
        assert policy.fov_multiplier(68.0) == pytest.approx(1.0)
        assert policy.fov_multiplier(17.0) == pytest.approx(2.0)
        assert policy.fov_multiplier(170.0) == pytest.approx(0.8)

    def test_coverage_inverse(self):
        assert estimate_distance(1.0, 68.0, 25.0) == pytest.approx(2 * estimate_distance(1.0, 68.0, 50.0))
        # floor at 5 %
        assert estimate_distance(1.0, 68.0, 0.0) == pytest.approx(estimate_distance(1.0, 68.0, 5.0))

    def test_always_positive(self):
        for zoom in (0.5, 1, 3, 8, 15):
            for fov in (1, 20, 68, 120):
                for cov in (0, 10, 100):
                    assert estimate_distance(zoom, fov, cov) > 0

    @pytest.mark.parametrize("zoom,fov,cov", [(0, 68, 50), (1, 0, 50), (1, 68, float("nan")), (float("inf"), 68, 50)])
    def test_invalid_inputs(self, zoom, fov, cov):
        with pytest.raises(ValueError):
            estimate_distance(zoom, fov, cov)

    def test_policy_from_mapping(self):
        policy = DistancePolicy.from_mapping({"base_distance_m": 200, "unknown": 1})
        assert policy.base_distance_m == 200.0
        assert estimate_distance(1.0, 68.0, 50.0, policy=policy) == pytest.approx(300.0)

    def test_breakdown(self):
        b = estimate_breakdown(1.0, 68.0, 50.0)
        assert b["zoom_mult"] == pytest.approx(1.5)
        assert b["distance_m"] == pytest.approx(150.0)

    def test_height_based(self):
        d = estimate_distance_from_height(100.0, 68.0)
        assert d == pytest.approx(100.0 / math.tan(math.radians(6.8)))
        assert estimate_distance_from_height(None, 68.0) is None
        assert estimate_distance_from_height(0.0, 68.0) is None


class TestConfidence:
    """Multiplicative confidence model"""

    def test_neutral(self):
        assert fix_confidence(50, 1.0, 0.0, 45.0) == 1.0

    def test_never_exceeds_one(self):
        for dist in (10, 200, 700, 5000):
            for zoom in (1, 2.5, 5):
                for alt in (0, 500):
                    for fov in (10, 45, 90):
                        assert fix_confidence(dist, zoom, alt, fov) <= 1.0

    def test_strictly_decreasing_across_bands(self):
        scores = [fix_confidence(d, 1.0, 0.0, 45.0) for d in (100, 101, 501, 1001)]
        assert scores == pytest.approx([1.0, 0.95, 0.85, 0.7])
        assert all(b < a for a, b in zip(scores, scores[1:]))

    def test_no_floor(self):
        assert fix_confidence(5000, 1.0, 500.0, 90.0) == pytest.approx(0.7 * 0.9 * 0.9)


class TestTargetFix:
    """Geodesic fix"""

    def test_fix_lands_on_bearing_and_distance(self):
        md = _meta()
        fix = compute_target_fix(md, 90.0, 150.0)
        assert great_circle_distance(SF, fix.coordinate) == pytest.approx(150.0, rel=1e-6)
        assert bearing(SF, fix.coordinate) == pytest.approx(90.0, abs=1e-6)
        assert 0.0 <= fix.confidence <= 1.0
        assert fix.inputs.distance_m == 150.0
        assert fix.method == "bearing_distance"

    def test_bearing_normalized(self):
        fix = compute_target_fix(_meta(), -90.0, 100.0)
        assert fix.inputs.bearing_deg == pytest.approx(270.0)

    def test_invalid(self):
        with pytest.raises(ValueError):
            compute_target_fix(_meta(), 90.0, 0.0)
        with pytest.raises(ValueError):
            compute_target_fix(_meta(), float("nan"), 10.0)

    def test_to_dict(self):
        d = compute_target_fix(_meta(), 90.0, 150.0).to_dict()
        assert set(["lat", "lon", "confidence", "bearing_deg", "distance_m"]).issubset(d)
