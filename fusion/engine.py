from __future__ import annotations

import asyncio
import math
from dataclasses import replace
from typing import Awaitable, Callable, List, Optional, Sequence

from common.config import IdentificationSettings
from common.geo import angular_difference, bearing, great_circle_distance, normalize_bearing
from common.logging_setup import get_logger
from common.types import Candidate, Coordinate, Landmark, SourceKind
from common.utils import Stopwatch
from fusion.dedup import DEFAULT_SIMILARITY_THRESHOLD, dedupe, dedupe_flights
from fusion.landmarks import annotate_landmark
from fusion.visibility import filter_elevation, filter_line_of_sight
from sources.base import CandidateSource, SourceQuery
from targeting.distance import DEFAULT_POLICY, DistancePolicy, estimate_distance_from_height


log = get_logger("fusion.engine")

AddressLookup = Callable[[Coordinate], Awaitable[Optional[str]]]


def _check_window(bearing_deg: float, tolerance_deg: float, radius_m: float, max_results: int) -> None:
    if not math.isfinite(bearing_deg):
        raise ValueError("bearing_deg must be finite")
    if not (math.isfinite(tolerance_deg) and tolerance_deg >= 0):
        raise ValueError("tolerance_deg must be >= 0")
    if not (math.isfinite(radius_m) and radius_m > 0):
        raise ValueError("radius_m must be > 0")
    if max_results < 0:
        raise ValueError("max_results must be >= 0")


class FusionEngine:
    """
    Multi-source candidate fusion.

    One engine per process (or per test); callers construct it and pass it
    around. It holds configuration only, so concurrent requests share it
    safely.

    Pipeline (both target kinds):
      1) fan out one query per source, each bounded by its own timeout;
         a failing or slow source contributes nothing
      2) keep results within the source's bearing window
      3) concatenate by source priority (vision > registry > catalog)
      4) attach distances, de-duplicate by fuzzy name
      5) stationary: categorise + line-of-sight; mobile: elevation filter
      6) sort ascending by distance, truncate, optionally attach addresses
    """

    def __init__(
        self,
        settings: Optional[IdentificationSettings] = None,
        policy: DistancePolicy = DEFAULT_POLICY,
        address_lookup: Optional[AddressLookup] = None,
        similarity_threshold: float = DEFAULT_SIMILARITY_THRESHOLD,
    ):
        self.settings = settings or IdentificationSettings()
        self.policy = policy
        self.address_lookup = address_lookup
        self.similarity_threshold = similarity_threshold

    # ----------------------------
    # Fan-out
    # ----------------------------
    async def _query_source(
        self, source: CandidateSource, query: SourceQuery, timeout_s: float, floors: bool = True
    ) -> List[Candidate]:
        # a source may narrow the caller's radius, never widen it
        radius = query.radius_m if not source.radius_m else min(source.radius_m, query.radius_m)
        tolerance = max(query.tolerance_deg, source.min_tolerance_deg) if floors else query.tolerance_deg
        q = replace(query, tolerance_deg=tolerance, radius_m=radius)
        limit = source.timeout_s or timeout_s
        sw = Stopwatch()
        try:
            results = await asyncio.wait_for(source.fetch(q), timeout=limit)
        except asyncio.TimeoutError:
            log.warning("source timed out", extra={"extra": {"source": source.name, "timeout_s": limit}})
            return []
        except Exception as e:
            log.warning(
                "source failed",
                extra={"extra": {"source": source.name, "error": type(e).__name__, "detail": str(e)}},
            )
            return []

        matched = [
            c for c in results
            if angular_difference(bearing(q.position, c.coordinate), q.bearing_deg) <= q.tolerance_deg
        ]
        log.info(
            "source answered",
            extra={"extra": {"source": source.name, "kind": source.kind.label, "raw": len(results),
                             "in_window": len(matched), "ms": sw.ms()}},
        )
        return matched

    async def gather(
        self,
        query: SourceQuery,
        sources: Sequence[CandidateSource],
        timeout_s: Optional[float] = None,
        floors: bool = True,
    ) -> List[Candidate]:
        """
        Query every source concurrently and concatenate the in-window results
        by source priority. Order within one priority follows `sources`.
        With `floors=False` each source sees exactly the query's bearing
        tolerance, ignoring its `min_tolerance_deg`.
        """
        limit = self.settings.source_timeout_s if timeout_s is None else timeout_s
        results = await asyncio.gather(*(self._query_source(s, query, limit, floors) for s in sources))
        ranked = sorted(zip(sources, results), key=lambda pair: pair[0].kind)
        return [c for _, found in ranked for c in found]

    # ----------------------------
    # Distances / addresses
    # ----------------------------
    def attach_distance(self, c: Candidate, position: Coordinate, field_of_view_deg: Optional[float]) -> Candidate:
        """
        Prefer the height-based estimate when 0 < estimate <= 2x GPS distance,
        else the GPS great-circle distance.
        """
        gps = great_circle_distance(position, c.coordinate)
        heuristic = None
        if field_of_view_deg:
            heuristic = estimate_distance_from_height(c.height_m, field_of_view_deg, policy=self.policy)
        if heuristic is not None and 0 < heuristic <= 2.0 * gps:
            return c.with_distance(heuristic)
        return c.with_distance(gps)

    async def _with_addresses(self, candidates: List[Candidate], timeout_s: float) -> List[Candidate]:
        lookup = self.address_lookup
        if lookup is None or not candidates:
            return candidates

        async def one(c: Candidate) -> Candidate:
            try:
                return c.with_address(await asyncio.wait_for(lookup(c.coordinate), timeout=timeout_s))
            except Exception as e:
                log.warning("address lookup failed", extra={"extra": {"id": c.id, "error": type(e).__name__}})
                return c

        return list(await asyncio.gather(*(one(c) for c in candidates)))

    @staticmethod
    def _ranked(candidates: Sequence[Candidate], max_results: int) -> List[Candidate]:
        return sorted(candidates, key=lambda c: c.distance_m)[:max_results]

    # ----------------------------
    # Stationary (buildings / landmarks)
    # ----------------------------
    async def identify_stationary(
        self,
        position: Coordinate,
        bearing_deg: float,
        tolerance_deg: float,
        radius_m: float,
        sources: Sequence[CandidateSource],
        *,
        max_results: Optional[int] = None,
        field_of_view_deg: Optional[float] = None,
        timeout_s: Optional[float] = None,
    ) -> List[Candidate]:
        S = self.settings
        max_results = S.max_building_results if max_results is None else max_results
        _check_window(bearing_deg, tolerance_deg, radius_m, max_results)
        limit = S.source_timeout_s if timeout_s is None else timeout_s

        query = SourceQuery(position=position, bearing_deg=normalize_bearing(bearing_deg),
                            tolerance_deg=tolerance_deg, radius_m=radius_m)
        merged = await self.gather(query, sources, limit)
        placed = [self.attach_distance(c, position, field_of_view_deg) for c in merged]
        unique = dedupe(placed, self.similarity_threshold)
        annotated = [annotate_landmark(c) if isinstance(c, Landmark) else c for c in unique]
        visible = filter_line_of_sight(annotated, position, S.occlusion_bearing_deg)
        out = await self._with_addresses(self._ranked(visible, max_results), limit)

        log.info(
            "stationary identified",
            extra={"extra": {"bearing": query.bearing_deg, "merged": len(merged), "unique": len(unique),
                             "visible": len(visible), "returned": len(out)}},
        )
        return out

    # ----------------------------
    # Mobile (aircraft)
    # ----------------------------
    async def identify_mobile(
        self,
        position: Coordinate,
        bearing_deg: float,
        tolerance_deg: float,
        radius_m: float,
        pitch_deg: float,
        altitude_m: float,
        sources: Sequence[CandidateSource],
        *,
        automatic: bool = False,
        field_of_view_deg: Optional[float] = None,
        max_results: Optional[int] = None,
        timeout_s: Optional[float] = None,
    ) -> List[Candidate]:
        """
        Aircraft identification. With `automatic=True` (no user tap) the
        bearing window narrows to min(fov/2, tolerance) and per-source
        tolerance floors are ignored. Duplicates are matched on flight
        identity, not name similarity. Whenever a live registry aircraft
        survives filtering, catalog aircraft are dropped.
        """
        S = self.settings
        max_results = S.max_aircraft_results if max_results is None else max_results
        _check_window(bearing_deg, tolerance_deg, radius_m, max_results)
        if not (math.isfinite(pitch_deg) and math.isfinite(altitude_m)):
            raise ValueError("pitch_deg and altitude_m must be finite")
        if automatic:
            if not field_of_view_deg or field_of_view_deg <= 0:
                raise ValueError("automatic detection needs field_of_view_deg > 0")
            tolerance_deg = min(field_of_view_deg / 2.0, tolerance_deg)
        limit = S.source_timeout_s if timeout_s is None else timeout_s

        query = SourceQuery(position=position, bearing_deg=normalize_bearing(bearing_deg),
                            tolerance_deg=tolerance_deg, radius_m=radius_m)
        merged = await self.gather(query, sources, limit, floors=not automatic)
        placed = [self.attach_distance(c, position, None) for c in merged]
        unique = dedupe_flights(placed)
        matched = filter_elevation(
            unique, position, altitude_m, pitch_deg,
            min_pitch_deg=S.min_pitch_for_elevation_deg, tolerance_deg=S.elevation_tolerance_deg,
        )
        if any(c.source is SourceKind.REGISTRY for c in matched):
            matched = [c for c in matched if c.source is not SourceKind.CATALOG]
        out = self._ranked(matched, max_results)

        log.info(
            "mobile identified",
            extra={"extra": {"bearing": query.bearing_deg, "tolerance": tolerance_deg, "automatic": automatic,
                             "merged": len(merged), "matched": len(matched), "returned": len(out)}},
        )
        return out
