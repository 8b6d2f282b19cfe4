"""
Unit tests for de-duplication, line-of-sight / elevation filters and landmark categories
"""

import math
import pytest
import os
import sys

# Add project root to path
project_root = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
sys.path.append(project_root)

from common.geo import destination
from common.types import Aircraft, BuildingType, Coordinate, Landmark, LandmarkCategory, SourceKind
from fusion.dedup import dedupe, dedupe_flights, levenshtein, name_similarity
from fusion.landmarks import annotate_landmark, categorize_landmark
from fusion.visibility import filter_elevation, filter_line_of_sight


ORIGIN = Coordinate(37.7749, -122.4194)


def _lm(name, brg, dist, height=None, source=SourceKind.CATALOG, **kw):
    return Landmark(
        id=name, name=name, coordinate=destination(ORIGIN, brg, dist), source=source,
        height_m=height, distance_m=dist, **kw,
    )


def _plane(name, brg, ground_m, altitude_m, source=SourceKind.REGISTRY):
    return Aircraft(
        id=name, name=name, coordinate=destination(ORIGIN, brg, ground_m), source=source,
        altitude_m=altitude_m, distance_m=ground_m,
    )


class TestLevenshtein:
    """Edit distance and similarity"""

    @pytest.mark.parametrize("a,b,d", [("", "", 0), ("abc", "", 3), ("kitten", "sitting", 3), ("flaw", "lawn", 2)])
    def test_distance(self, a, b, d):
        assert levenshtein(a, b) == d
        assert levenshtein(b, a) == d

    def test_similarity_normalizes_names(self):
        assert name_similarity("Golden Gate Bridge", "golden gate bridge ") == 1.0
        assert name_similarity("Golden  Gate Bridge", "GOLDEN GATE BRIDGE") == 1.0

    def test_similarity_formula(self):
        # 1 edit over 10 chars
        assert name_similarity("coit tower", "coit towee") == pytest.approx(0.9)
        assert name_similarity("", "") == 1.0
        assert name_similarity("abc", "xyz") == 0.0


class TestDedupe:
    """First occurrence wins"""

    def test_case_and_whitespace_duplicates_collapse(self):
        vision = _lm("Golden Gate Bridge", 0, 100, source=SourceKind.VISION)
        catalog = _lm("golden gate bridge ", 0, 100, source=SourceKind.CATALOG)
        out = dedupe([vision, catalog])
        assert out == [vision]

    def test_threshold_is_strict(self):
        # similarity exactly 0.8 is kept
        a = _lm("abcde", 0, 100)
        b = _lm("abcdx", 0, 100)
        assert name_similarity(a.name, b.name) == pytest.approx(0.8)
        assert len(dedupe([a, b])) == 2

    def test_distinct_names_survive(self):
        items = [_lm("Coit Tower", 0, 100), _lm("Salesforce Tower", 0, 100), _lm("coit towers", 0, 100)]
        assert [c.name for c in dedupe(items)] == ["Coit Tower", "Salesforce Tower"]

    def test_flights_match_on_identity_not_name(self):
        a, b = _plane("UAL1234", 0, 5000, 3000), _plane("UAL1235", 0, 9000, 3000)
        assert name_similarity(a.name, b.name) > 0.8
        assert dedupe_flights([a, b]) == [a, b]
        assert dedupe_flights([a, _plane("UAL1234", 0, 5200, 3000)]) == [a]


class TestLineOfSight:
    """Closer, taller candidates hide farther ones on the same bearing"""

    def test_tall_close_candidate_blocks(self):
        blocker = _lm("Tall", 10.0, 200.0, height=300.0)
        hidden = _lm("Small", 11.0, 800.0, height=50.0)
        assert filter_line_of_sight([hidden, blocker], ORIGIN) == [blocker]

    def test_bearing_gap_too_large(self):
        blocker = _lm("Tall", 10.0, 200.0, height=300.0)
        aside = _lm("Small", 40.0, 800.0, height=50.0)
        assert filter_line_of_sight([blocker, aside], ORIGIN) == [blocker, aside]

    def test_farther_but_taller_is_visible(self):
        near = _lm("Short", 10.0, 200.0, height=20.0)
        far = _lm("Skyscraper", 10.5, 800.0, height=400.0)
        assert filter_line_of_sight([near, far], ORIGIN) == [near, far]

    def test_heightless_candidates_never_block(self):
        near = _lm("Unknown", 10.0, 200.0)
        far = _lm("Small", 10.5, 800.0, height=50.0)
        assert len(filter_line_of_sight([near, far], ORIGIN)) == 2

    def test_bearing_window_wraps_north(self):
        blocker = _lm("Tall", 359.5, 200.0, height=300.0)
        hidden = _lm("Small", 0.5, 800.0, height=50.0)
        assert filter_line_of_sight([blocker, hidden], ORIGIN) == [blocker]


class TestElevation:
    """Camera pitch vs aircraft elevation angle"""

    def _at_elevation(self, name, deg, cam_alt=0.0):
        return _plane(name, 0.0, 1000.0, cam_alt + 1000.0 * math.tan(math.radians(deg)))

    def test_matching_pitch_kept(self):
        up = self._at_elevation("Up", 32.0)
        low = self._at_elevation("Low", 5.0)
        assert filter_elevation([up, low], ORIGIN, 0.0, pitch_deg=30.0) == [up]

    def test_camera_altitude_is_subtracted(self):
        up = self._at_elevation("Up", 32.0, cam_alt=500.0)
        assert filter_elevation([up], ORIGIN, 500.0, pitch_deg=30.0) == [up]
        assert filter_elevation([up], ORIGIN, 0.0, pitch_deg=30.0) == []

    def test_skipped_near_horizontal(self):
        low = self._at_elevation("Low", 60.0)
        assert filter_elevation([low], ORIGIN, 0.0, pitch_deg=5.0) == [low]
        assert filter_elevation([low], ORIGIN, 0.0, pitch_deg=-4.0) == [low]

    def test_negative_pitch(self):
        below = self._at_elevation("Below", -20.0, cam_alt=1000.0)
        assert filter_elevation([below], ORIGIN, 1000.0, pitch_deg=-25.0) == [below]


class TestLandmarkCategories:
    """Keyword / type / year rules"""

    @pytest.mark.parametrize(
        "name,kw,category",
        [
            ("Grace Cathedral", {}, LandmarkCategory.RELIGIOUS_BUILDING),
            ("San Francisco City Hall", {}, LandmarkCategory.GOVERNMENT),
            ("Some Agency", {"building_type": BuildingType.GOVERNMENT}, LandmarkCategory.GOVERNMENT),
            ("Washington Monument", {}, LandmarkCategory.MONUMENT),
            ("Space Needle Observation Tower", {}, LandmarkCategory.TOWER),
            ("Golden Gate Bridge", {"height": 227.0}, LandmarkCategory.BRIDGE),
            ("Footpath Bridge", {}, LandmarkCategory.BRIDGE),
            ("De Young Museum", {}, LandmarkCategory.MUSEUM),
            ("Empire State Building", {}, LandmarkCategory.ARCHITECTURE),
            ("Old Mill", {"construction_year": 1850}, LandmarkCategory.HISTORICAL_SITE),
            ("Coit Tower", {"building_type": BuildingType.LANDMARK, "wikipedia_url": "https://w/x"},
             LandmarkCategory.TOURIST_ATTRACTION),
            ("War Memorial Opera House", {}, LandmarkCategory.MONUMENT),
            ("Orpheum Theater", {}, LandmarkCategory.CULTURAL_SITE),
            ("Lookout", {"building_type": BuildingType.LANDMARK}, LandmarkCategory.TOURIST_ATTRACTION),
        ],
    )
    def test_rules(self, name, kw, category):
        assert categorize_landmark(_lm(name, 0, 100, **kw)) == (True, category)

    def test_plain_office(self):
        lm = _lm("Acme Offices", 0, 100, building_type=BuildingType.OFFICE, construction_year=1999)
        assert categorize_landmark(lm) == (False, None)

    def test_annotate_returns_copy(self):
        lm = _lm("Washington Monument", 0, 100)
        out = annotate_landmark(lm)
        assert out.is_landmark and out.landmark_category is LandmarkCategory.MONUMENT
        assert lm.is_landmark is False
