from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from common.geo import great_circle_distance
from common.logging_setup import get_logger
from common.types import Aircraft, Coordinate, Landmark, SourceKind
from common.utils import feet_to_m
from sources.base import CandidateSource, SourceQuery, aircraft_from_raw, landmark_from_raw


log = get_logger("sources.catalog")

DEFAULT_CATALOG = Path(__file__).parent / "data" / "catalog.yaml"


class LocalCatalog:
    """
    Offline fallback catalog of well-known buildings and sample aircraft.

    Loaded once from YAML (`buildings:` / `aircraft:` lists); queries only
    filter by radius. Bearing matching is the fusion engine's job.
    """

    def __init__(self, buildings: List[Landmark], aircraft: List[Aircraft]):
        self.buildings = list(buildings)
        self.aircraft = list(aircraft)

    @classmethod
    def from_yaml(cls, path: Optional[str] = None) -> "LocalCatalog":
        p = Path(path) if path else DEFAULT_CATALOG
        with p.open("r") as f:
            raw: Dict[str, Any] = yaml.safe_load(f) or {}
        buildings = [landmark_from_raw(b, SourceKind.CATALOG) for b in raw.get("buildings") or []]
        aircraft = []
        for a in raw.get("aircraft") or []:
            a = dict(a)
            if "altitude_ft" in a:
                a["altitude_m"] = feet_to_m(a.pop("altitude_ft"))
            aircraft.append(aircraft_from_raw(a, SourceKind.CATALOG))
        log.info("catalog loaded", extra={"extra": {"path": str(p), "buildings": len(buildings), "aircraft": len(aircraft)}})
        return cls(buildings, aircraft)

    def buildings_near(self, position: Coordinate, radius_m: float) -> List[Landmark]:
        return [b for b in self.buildings if great_circle_distance(position, b.coordinate) <= radius_m]

    def aircraft_near(self, position: Coordinate, radius_m: float) -> List[Aircraft]:
        return [a for a in self.aircraft if great_circle_distance(position, a.coordinate) <= radius_m]

    # ----------------------------
    # Source adapters
    # ----------------------------
    def building_source(self, min_tolerance_deg: float = 0.0, radius_m: Optional[float] = None) -> CandidateSource:
        async def fetch(query: SourceQuery) -> List[Landmark]:
            return self.buildings_near(query.position, query.radius_m)

        return CandidateSource(
            name="catalog.buildings", kind=SourceKind.CATALOG, fetch=fetch,
            min_tolerance_deg=min_tolerance_deg, radius_m=radius_m,
        )

    def aircraft_source(self) -> CandidateSource:
        async def fetch(query: SourceQuery) -> List[Aircraft]:
            return self.aircraft_near(query.position, query.radius_m)

        return CandidateSource(name="catalog.aircraft", kind=SourceKind.CATALOG, fetch=fetch)
