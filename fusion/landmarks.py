from __future__ import annotations

from typing import Optional, Tuple

from common.types import BuildingType, Landmark, LandmarkCategory


_RELIGIOUS = ("church", "cathedral", "chapel", "mosque", "synagogue", "temple", "basilica", "abbey", "monastery")
_GOVERNMENT = ("capitol", "city hall", "courthouse", "white house", "parliament", "congress", "federal")
_MONUMENT = ("monument", "memorial", "statue", "obelisk", "arch")
_OBSERVATION_TOWER = ("observation", "space", "cn", "eiffel", "liberty")
_FAMOUS_BRIDGE = ("golden gate", "brooklyn", "london", "tower bridge")
_MUSEUM = ("museum", "gallery", "art", "history", "science")
_CULTURAL = ("opera", "theater", "concert", "cultural", "arts")

FAMOUS_LANDMARKS = (
    "empire state", "chrysler building", "one world trade", "freedom tower",
    "transamerica pyramid", "salesforce tower", "space needle", "willis tower",
    "sears tower", "burj", "taipei 101", "petronas", "cn tower", "big ben",
    "eiffel tower", "statue of liberty", "hollywood sign", "golden gate bridge",
)

HISTORICAL_BEFORE_YEAR = 1900
SMALL_BRIDGE_HEIGHT_M = 50.0


def _has(name: str, words) -> bool:
    return any(w in name for w in words)


def categorize_landmark(landmark: Landmark) -> Tuple[bool, Optional[LandmarkCategory]]:
    """
    Keyword/type/year rules, first match wins:
      religious > government > monument > observation tower > bridge >
      museum > famous architecture > pre-1900 historical >
      wikipedia'd landmark > cultural > any landmark-typed building.
    Unknown heights count as 0 for the bridge rule.
    """
    name = landmark.name.lower()
    btype = landmark.building_type

    if _has(name, _RELIGIOUS):
        return True, LandmarkCategory.RELIGIOUS_BUILDING
    if _has(name, _GOVERNMENT) or btype is BuildingType.GOVERNMENT:
        return True, LandmarkCategory.GOVERNMENT
    if _has(name, _MONUMENT):
        return True, LandmarkCategory.MONUMENT
    if "tower" in name and _has(name, _OBSERVATION_TOWER):
        return True, LandmarkCategory.TOWER
    if "bridge" in name and (_has(name, _FAMOUS_BRIDGE) or (landmark.height_m or 0.0) < SMALL_BRIDGE_HEIGHT_M):
        return True, LandmarkCategory.BRIDGE
    if _has(name, _MUSEUM):
        return True, LandmarkCategory.MUSEUM
    if _has(name, FAMOUS_LANDMARKS):
        return True, LandmarkCategory.ARCHITECTURE
    if landmark.construction_year is not None and landmark.construction_year < HISTORICAL_BEFORE_YEAR:
        return True, LandmarkCategory.HISTORICAL_SITE
    if landmark.wikipedia_url and btype is BuildingType.LANDMARK:
        return True, LandmarkCategory.TOURIST_ATTRACTION
    if _has(name, _CULTURAL):
        return True, LandmarkCategory.CULTURAL_SITE
    if btype is BuildingType.LANDMARK:
        return True, LandmarkCategory.TOURIST_ATTRACTION
    return False, None


def annotate_landmark(landmark: Landmark) -> Landmark:
    is_landmark, category = categorize_landmark(landmark)
    return landmark.with_landmark(is_landmark, category)
