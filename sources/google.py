from __future__ import annotations

"""
Google Maps Platform adapters: Places Nearby Search (remote place registry)
and reverse Geocoding (address annotation).

Usage:
    places = PlacesService()  # requires GOOGLE_MAPS_API_KEY in env or api_key=...
    landmarks = places.nearby(Coordinate(37.7749, -122.4194), radius_m=2000)

    geo = GeocodingService()
    geo.reverse_geocode(Coordinate(37.7952, -122.4028))  # -> "600 Montgomery St, ..." or None

Both raise `SourceError` subclasses on failure; the fusion engine turns those
into an empty contribution.
"""

import asyncio
import os
from typing import Any, Dict, List, Optional

import requests

from common.logging_setup import get_logger
from common.types import BuildingType, Coordinate, Landmark, SourceKind
from common.utils import as_float, clamp
from sources.base import CandidateSource, SourceQuery, blocking_source
from sources.errors import ApiError, MissingApiKey, QuotaExceeded, RateLimited, ResponseParsingFailed, Unauthorized


log = get_logger("sources.google")

PLACES_URL = "https://maps.googleapis.com/maps/api/place/nearbysearch/json"
GEOCODE_URL = "https://maps.googleapis.com/maps/api/geocode/json"

# Places `types` -> BuildingType, first match wins
_TYPE_TABLE: Dict[str, BuildingType] = {
    "tourist_attraction": BuildingType.LANDMARK,
    "museum": BuildingType.LANDMARK,
    "church": BuildingType.LANDMARK,
    "synagogue": BuildingType.LANDMARK,
    "mosque": BuildingType.LANDMARK,
    "school": BuildingType.EDUCATIONAL,
    "university": BuildingType.EDUCATIONAL,
    "hospital": BuildingType.COMMERCIAL,
    "doctor": BuildingType.COMMERCIAL,
    "pharmacy": BuildingType.COMMERCIAL,
    "bank": BuildingType.OFFICE,
    "atm": BuildingType.OFFICE,
    "finance": BuildingType.OFFICE,
    "restaurant": BuildingType.COMMERCIAL,
    "food": BuildingType.COMMERCIAL,
    "meal_takeaway": BuildingType.COMMERCIAL,
    "cafe": BuildingType.COMMERCIAL,
    "lodging": BuildingType.COMMERCIAL,
    "government": BuildingType.GOVERNMENT,
}


def building_type_from_places(types: List[str]) -> BuildingType:
    for t in types:
        if t in _TYPE_TABLE:
            return _TYPE_TABLE[t]
    return BuildingType.OTHER


class _GoogleClient:
    name = "google"

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str] = None,
        session: Optional[requests.Session] = None,
        timeout: float = 10.0,
    ):
        """
        Params:
            api_key: Google Maps API key (falls back to env GOOGLE_MAPS_API_KEY)
            session: optional requests.Session for connection reuse
            timeout: per-request timeout (s)
        """
        self.api_key = api_key or os.getenv("GOOGLE_MAPS_API_KEY")
        if not self.api_key:
            raise MissingApiKey(
                "Google Maps API key is required. "
                "Set GOOGLE_MAPS_API_KEY environment variable or pass api_key=..."
            )
        self.base_url = base_url
        self.session = session or requests.Session()
        self.timeout = timeout

    def _get_json(self, params: Dict[str, Any]) -> Dict[str, Any]:
        try:
            r = self.session.get(self.base_url, params={**params, "key": self.api_key}, timeout=self.timeout)
        except requests.RequestException as e:
            raise ApiError(0, f"network error: {e}", source=self.name) from e
        if r.status_code != 200:
            raise ApiError(r.status_code, r.text or "", source=self.name)
        try:
            payload = r.json()
        except ValueError as e:
            raise ResponseParsingFailed(f"{self.name}: body is not JSON", source=self.name) from e
        if not isinstance(payload, dict):
            raise ResponseParsingFailed(f"{self.name}: unexpected payload", source=self.name)
        self._check_status(payload)
        return payload

    def _check_status(self, payload: Dict[str, Any]) -> None:
        status = payload.get("status", "OK")
        if status in ("OK", "ZERO_RESULTS"):
            return
        detail = str(payload.get("error_message", status))
        if status == "OVER_DAILY_LIMIT":
            raise QuotaExceeded(f"{self.name}: {detail}", source=self.name)
        if status == "OVER_QUERY_LIMIT":
            raise RateLimited(f"{self.name}: {detail}", source=self.name)
        if status == "REQUEST_DENIED":
            raise Unauthorized(f"{self.name}: {detail}", source=self.name)
        raise ApiError(200, detail, source=self.name)


class PlacesService(_GoogleClient):
    """Remote place registry backed by Places Nearby Search."""

    name = "places"

    def __init__(self, api_key: Optional[str] = None, session: Optional[requests.Session] = None,
                 timeout: float = 10.0, base_url: Optional[str] = None):
        super().__init__(base_url or PLACES_URL, api_key=api_key, session=session, timeout=timeout)

    def nearby(self, position: Coordinate, radius_m: float) -> List[Landmark]:
        """Establishments within `radius_m` of `position` (Places caps radius at 50 km)."""
        payload = self._get_json(
            {
                "location": f"{position.lat},{position.lon}",
                "radius": int(clamp(radius_m, 1.0, 50000.0)),
                "type": "establishment",
            }
        )
        results = payload.get("results")
        if not isinstance(results, list):
            raise ResponseParsingFailed("places: missing results list", source=self.name)

        out: List[Landmark] = []
        for item in results:
            lm = self._parse_place(item)
            if lm is not None:
                out.append(lm)
        log.info("places lookup", extra={"extra": {"results": len(results), "parsed": len(out)}})
        return out

    @staticmethod
    def _parse_place(item: Dict[str, Any]) -> Optional[Landmark]:
        name = item.get("name")
        loc = (item.get("geometry") or {}).get("location") or {}
        lat, lon = as_float(loc.get("lat")), as_float(loc.get("lng"))
        if not name or lat is None or lon is None:
            return None
        try:
            coordinate = Coordinate(lat=lat, lon=lon)
        except ValueError:
            return None
        types = [str(t) for t in item.get("types") or []]
        return Landmark(
            id=f"places_{item.get('place_id') or name}",
            name=str(name),
            coordinate=coordinate,
            source=SourceKind.REGISTRY,
            category=types[0] if types else None,
            building_type=building_type_from_places(types),
            description=str(item.get("vicinity") or ""),
        )

    def as_source(self, radius_m: Optional[float] = None, min_tolerance_deg: float = 0.0,
                  timeout_s: Optional[float] = None) -> CandidateSource:
        def search(query: SourceQuery) -> List[Landmark]:
            return self.nearby(query.position, query.radius_m)

        return blocking_source(
            self.name, SourceKind.REGISTRY, search,
            radius_m=radius_m, min_tolerance_deg=min_tolerance_deg, timeout_s=timeout_s,
        )


class GeocodingService(_GoogleClient):
    """Reverse geocoder used to annotate stationary candidates with an address."""

    name = "geocoding"

    def __init__(self, api_key: Optional[str] = None, session: Optional[requests.Session] = None,
                 timeout: float = 10.0, base_url: Optional[str] = None):
        super().__init__(base_url or GEOCODE_URL, api_key=api_key, session=session, timeout=timeout)

    def reverse_geocode(self, coordinate: Coordinate) -> Optional[str]:
        payload = self._get_json({"latlng": f"{coordinate.lat},{coordinate.lon}"})
        results = payload.get("results") or []
        if not results:
            return None
        address = results[0].get("formatted_address")
        return str(address) if address else None

    async def lookup(self, coordinate: Coordinate) -> Optional[str]:
        return await asyncio.to_thread(self.reverse_geocode, coordinate)
