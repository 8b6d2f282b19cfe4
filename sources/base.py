from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, List, Mapping, Optional, Sequence

from common.types import Aircraft, BuildingType, Candidate, Coordinate, Landmark, SourceKind
from common.utils import as_float
from sources.errors import ResponseParsingFailed


@dataclass(frozen=True, slots=True)
class SourceQuery:
    """Search window handed to every source."""
    position: Coordinate
    bearing_deg: float
    tolerance_deg: float
    radius_m: float


FetchFn = Callable[[SourceQuery], Awaitable[List[Candidate]]]


@dataclass(frozen=True, slots=True)
class CandidateSource:
    """
    An injected, independently queried candidate provider.

    Attributes:
        name: label used in logs.
        kind: provenance / fusion priority.
        fetch: async query function; may raise anything on failure.
        min_tolerance_deg: bearing window floor for this source's results.
        radius_m: search radius cap; narrows the request radius, never widens it.
        timeout_s: per-source timeout override.
    """
    name: str
    kind: SourceKind
    fetch: FetchFn
    min_tolerance_deg: float = 0.0
    radius_m: Optional[float] = None
    timeout_s: Optional[float] = None


def blocking_source(
    name: str,
    kind: SourceKind,
    search: Callable[[SourceQuery], List[Candidate]],
    **options: Any,
) -> CandidateSource:
    """Wrap a blocking (requests-based) search into an async source running off-loop."""

    async def fetch(query: SourceQuery) -> List[Candidate]:
        return await asyncio.to_thread(search, query)

    return CandidateSource(name=name, kind=kind, fetch=fetch, **options)


def static_source(
    name: str,
    kind: SourceKind,
    candidates: Sequence[Candidate],
    **options: Any,
) -> CandidateSource:
    """A source that always returns the same precomputed candidates."""
    frozen = list(candidates)

    async def fetch(query: SourceQuery) -> List[Candidate]:
        return list(frozen)

    return CandidateSource(name=name, kind=kind, fetch=fetch, **options)


# -------------------------
# Raw payload -> Candidate
# -------------------------
def _coordinate(raw: Mapping[str, Any]) -> Coordinate:
    lat = as_float(raw.get("lat", raw.get("latitude")))
    lon = as_float(raw.get("lon", raw.get("lng", raw.get("longitude"))))
    if lat is None or lon is None:
        raise ResponseParsingFailed(f"candidate {raw.get('id')!r} has no usable coordinate")
    try:
        return Coordinate(lat=lat, lon=lon)
    except ValueError as e:
        raise ResponseParsingFailed(str(e)) from e


def _building_type(value: Any) -> BuildingType:
    try:
        return BuildingType(str(value).lower())
    except ValueError:
        return BuildingType.OTHER


def landmark_from_raw(raw: Mapping[str, Any], source: SourceKind) -> Landmark:
    """
    Build a Landmark from the raw shape shared by sources:
      {id, name, lat, lon, height_m?, category?, type?, construction_year?, ...}
    """
    if not raw.get("name"):
        raise ResponseParsingFailed("candidate without a name")
    year = raw.get("construction_year")
    return Landmark(
        id=str(raw.get("id") or raw["name"]),
        name=str(raw["name"]),
        coordinate=_coordinate(raw),
        source=source,
        height_m=as_float(raw.get("height_m", raw.get("height"))),
        category=raw.get("category"),
        score=as_float(raw.get("score")),
        building_type=_building_type(raw.get("type", "other")),
        construction_year=int(year) if year is not None else None,
        description=str(raw.get("description") or ""),
        wikipedia_url=raw.get("wikipedia_url"),
    )


def aircraft_from_raw(raw: Mapping[str, Any], source: SourceKind) -> Aircraft:
    """
    Build an Aircraft from {id, flight_number?, aircraft_type, lat, lon,
    altitude_m, heading_deg, ground_speed_kts, ...}.
    """
    flight = raw.get("flight_number")
    atype = str(raw.get("aircraft_type") or "Unknown")
    name = raw.get("name") or flight or atype
    return Aircraft(
        id=str(raw.get("id") or name),
        name=str(name),
        coordinate=_coordinate(raw),
        source=source,
        category=raw.get("category", "aircraft"),
        score=as_float(raw.get("score")),
        flight_number=flight,
        aircraft_type=atype,
        airline=raw.get("airline"),
        altitude_m=as_float(raw.get("altitude_m"), 0.0),
        heading_deg=as_float(raw.get("heading_deg"), 0.0),
        ground_speed_kts=as_float(raw.get("ground_speed_kts"), 0.0),
        origin=raw.get("origin"),
        destination=raw.get("destination"),
    )
