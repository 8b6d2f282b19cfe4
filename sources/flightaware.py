from __future__ import annotations

"""
FlightAware AeroAPI adapter: live aircraft positions around the camera.

Usage:
    fa = FlightAwareService()  # requires FLIGHTAWARE_API_KEY in env or api_key=...
    aircraft = fa.search_area(Coordinate(37.7749, -122.4194), radius_km=100)

Quota and rate budgets are the caller's business; this client only maps the
API's own refusals (401/402/429) onto SourceError subclasses.
"""

import os
from typing import Any, Dict, List, Optional

import requests

from common.logging_setup import get_logger
from common.types import Aircraft, Coordinate, SourceKind
from common.utils import as_float, feet_to_m, radius_km_to_deg
from sources.base import CandidateSource, SourceQuery, blocking_source
from sources.errors import ApiError, MissingApiKey, QuotaExceeded, RateLimited, ResponseParsingFailed, Unauthorized


log = get_logger("sources.flightaware")

AEROAPI_BASE = "https://aeroapi.flightaware.com/aeroapi"


class FlightAwareService:
    name = "flightaware"

    def __init__(
        self,
        api_key: Optional[str] = None,
        session: Optional[requests.Session] = None,
        timeout: float = 15.0,
        base_url: Optional[str] = None,
        max_results: int = 50,
    ):
        self.api_key = api_key or os.getenv("FLIGHTAWARE_API_KEY")
        if not self.api_key:
            raise MissingApiKey(
                "FlightAware API key is required. "
                "Set FLIGHTAWARE_API_KEY environment variable or pass api_key=..."
            )
        self.base_url = (base_url or AEROAPI_BASE).rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout
        self.max_results = max_results

    @staticmethod
    def area_query(center: Coordinate, radius_km: float) -> str:
        """AeroAPI advanced-search bounding box around `center`."""
        r = radius_km_to_deg(radius_km)
        return (
            f"{{range lat {center.lat - r} {center.lat + r}}} "
            f"{{range lon {center.lon - r} {center.lon + r}}}"
        )

    def search_area(self, center: Coordinate, radius_km: float) -> List[Aircraft]:
        params = {
            "query": self.area_query(center, radius_km),
            "max_pages": 1,
            "per_page": self.max_results,
        }
        headers = {"Accept": "application/json", "x-apikey": self.api_key}
        try:
            r = self.session.get(
                f"{self.base_url}/flights/search/advanced", params=params, headers=headers, timeout=self.timeout
            )
        except requests.RequestException as e:
            raise ApiError(0, f"network error: {e}", source=self.name) from e

        if r.status_code == 401:
            raise Unauthorized("FlightAware API key unauthorized", source=self.name)
        if r.status_code == 402:
            raise QuotaExceeded("FlightAware account quota exhausted", source=self.name)
        if r.status_code == 429:
            raise RateLimited("FlightAware API rate limit exceeded", source=self.name)
        if r.status_code != 200:
            raise ApiError(r.status_code, r.text or "", source=self.name)

        try:
            payload = r.json()
        except ValueError as e:
            raise ResponseParsingFailed("Failed to parse FlightAware response", source=self.name) from e
        flights = payload.get("flights") if isinstance(payload, dict) else None
        if not isinstance(flights, list):
            raise ResponseParsingFailed("FlightAware response has no flights list", source=self.name)

        out = [a for a in (self.parse_flight(f) for f in flights) if a is not None]
        log.info("flightaware search", extra={"extra": {"flights": len(flights), "parsed": len(out)}})
        return out

    @staticmethod
    def parse_flight(flight: Dict[str, Any]) -> Optional[Aircraft]:
        """
        One AeroAPI flight -> Aircraft. Flights without an ident or a last
        position are skipped. AeroAPI altitude is in hundreds of feet.
        """
        ident = flight.get("ident")
        pos = flight.get("last_position")
        if not ident or not isinstance(pos, dict):
            return None
        lat, lon = as_float(pos.get("latitude")), as_float(pos.get("longitude"))
        if lat is None or lon is None:
            return None
        try:
            coordinate = Coordinate(lat=lat, lon=lon)
        except ValueError:
            return None

        def _code(airport: Any) -> Optional[str]:
            if not isinstance(airport, dict):
                return None
            return airport.get("code_iata") or airport.get("code_icao")

        heading = as_float(pos.get("heading"), None)
        if heading is None:
            heading = as_float(pos.get("track"), 0.0)
        return Aircraft(
            id=f"fa_{ident}",
            name=str(ident),
            coordinate=coordinate,
            source=SourceKind.REGISTRY,
            category="aircraft",
            flight_number=str(ident),
            aircraft_type=str(flight.get("aircraft_type") or "Unknown"),
            airline=flight.get("operator"),
            altitude_m=feet_to_m(as_float(pos.get("altitude"), 0.0) * 100.0),
            heading_deg=heading,
            ground_speed_kts=as_float(pos.get("groundspeed"), 0.0),
            origin=_code(flight.get("origin")),
            destination=_code(flight.get("destination")),
        )

    def as_source(self, timeout_s: Optional[float] = None) -> CandidateSource:
        def search(query: SourceQuery) -> List[Aircraft]:
            return self.search_area(query.position, query.radius_m / 1000.0)

        return blocking_source(self.name, SourceKind.REGISTRY, search, timeout_s=timeout_s)
