from __future__ import annotations

from typing import Any, Dict, List, Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from common.config import Settings, load_settings
from common.logging_setup import get_logger, setup_logging
from common.types import CaptureMetadata, Coordinate, FrameSize
from fusion.engine import AddressLookup, FusionEngine
from sources.base import CandidateSource
from sources.catalog import LocalCatalog
from sources.errors import MissingApiKey
from sources.flightaware import FlightAwareService
from sources.google import GeocodingService, PlacesService
from sources.recognizer import recognizer_results
from targeting.distance import DistancePolicy, estimate_breakdown, estimate_distance
from targeting.fix import compute_target_fix
from targeting.projector import compute_target_bearing


log = get_logger("api")


# -------------------------
# Request models
# -------------------------
class CaptureIn(BaseModel):
    lat: float
    lon: float
    altitude_m: float = 0.0
    heading_deg: float
    field_of_view_deg: float = 68.0
    zoom_factor: float = 1.0
    pitch_deg: float = 0.0
    roll_deg: float = 0.0
    accuracy_m: float = 0.0
    frame_width: float = 4032
    frame_height: float = 3024
    orientation: str = "portrait"

    def to_metadata(self) -> CaptureMetadata:
        return CaptureMetadata(
            position=Coordinate(lat=self.lat, lon=self.lon),
            altitude_m=self.altitude_m,
            heading_deg=self.heading_deg,
            field_of_view_deg=self.field_of_view_deg,
            zoom_factor=self.zoom_factor,
            pitch_deg=self.pitch_deg,
            roll_deg=self.roll_deg,
            accuracy_m=self.accuracy_m,
            frame=FrameSize(self.frame_width, self.frame_height),
            orientation=self.orientation,
        )


class BearingIn(BaseModel):
    capture: CaptureIn
    tap_x: Optional[float] = None
    tap_y: Optional[float] = None

    def tap(self):
        return None if self.tap_x is None else (self.tap_x, self.tap_y or 0.0)


class DistanceIn(BaseModel):
    zoom_factor: float = 1.0
    field_of_view_deg: float = 68.0
    coverage_pct: float = 50.0


class FixIn(BearingIn):
    bearing_deg: Optional[float] = None
    distance_m: Optional[float] = None
    coverage_pct: float = 50.0


class StationaryIn(BaseModel):
    lat: float
    lon: float
    bearing_deg: float
    tolerance_deg: Optional[float] = None
    radius_m: Optional[float] = None
    max_results: Optional[int] = None
    field_of_view_deg: Optional[float] = None
    # opaque, already-scored vision recognizer output
    recognized: List[Dict[str, Any]] = Field(default_factory=list)


class MobileIn(BaseModel):
    lat: float
    lon: float
    bearing_deg: float
    pitch_deg: float = 0.0
    altitude_m: float = 0.0
    tolerance_deg: Optional[float] = None
    radius_m: Optional[float] = None
    max_results: Optional[int] = None
    automatic: bool = False
    field_of_view_deg: Optional[float] = None


# -------------------------
# Wiring
# -------------------------
def build_sources(settings: Settings, catalog: LocalCatalog) -> Dict[str, Any]:
    """
    Instantiate the configured remote providers next to the offline catalog.
    A provider whose construction fails (e.g. missing key) is reported in
    `init_errors` and left out.
    """
    ident = settings.identification
    stationary: List[CandidateSource] = [
        catalog.building_source(min_tolerance_deg=ident.catalog_bearing_tolerance),
    ]
    mobile: List[CandidateSource] = [catalog.aircraft_source()]
    address_lookup: Optional[AddressLookup] = None
    errors: Dict[str, str] = {}

    if settings.places.enabled:
        try:
            places = PlacesService(api_key=settings.places.api_key, timeout=settings.places.timeout_s,
                                   base_url=settings.places.base_url)
            stationary.append(places.as_source(
                radius_m=ident.places_search_radius_m,
                min_tolerance_deg=ident.places_bearing_tolerance,
            ))
        except MissingApiKey as e:
            errors["places"] = str(e)
    if settings.flightaware.enabled:
        try:
            fa = FlightAwareService(api_key=settings.flightaware.api_key, timeout=settings.flightaware.timeout_s,
                                    base_url=settings.flightaware.base_url)
            mobile.append(fa.as_source())
        except MissingApiKey as e:
            errors["flightaware"] = str(e)
    if settings.geocoding.enabled:
        try:
            address_lookup = GeocodingService(api_key=settings.geocoding.api_key,
                                              timeout=settings.geocoding.timeout_s,
                                              base_url=settings.geocoding.base_url).lookup
        except MissingApiKey as e:
            errors["geocoding"] = str(e)

    for name, err in errors.items():
        log.warning("provider disabled", extra={"extra": {"provider": name, "error": err}})
    return {"stationary": stationary, "mobile": mobile, "address_lookup": address_lookup, "init_errors": errors}


def build_app(
    settings: Optional[Settings] = None,
    stationary_sources: Optional[List[CandidateSource]] = None,
    mobile_sources: Optional[List[CandidateSource]] = None,
    address_lookup: Optional[AddressLookup] = None,
) -> FastAPI:
    """
    Create the HTTP surface. Sources not passed in are built from `settings`
    (offline catalog always on, remote providers per config).
    """
    S = settings or load_settings()
    ident = S.identification
    policy = DistancePolicy.from_mapping(S.distance)

    built: Dict[str, Any] = {"stationary": [], "mobile": [], "address_lookup": None, "init_errors": {}}
    if stationary_sources is None or mobile_sources is None:
        built = build_sources(S, LocalCatalog.from_yaml(S.catalog_path))
    stationary = built["stationary"] if stationary_sources is None else list(stationary_sources)
    mobile = built["mobile"] if mobile_sources is None else list(mobile_sources)

    engine = FusionEngine(ident, policy=policy, address_lookup=address_lookup or built["address_lookup"])

    app = FastAPI(title="Sightline Targeting API", version="1.0.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # tighten as needed
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(ValueError)
    async def _bad_input(request: Request, exc: ValueError):
        return JSONResponse({"error": "invalid_input", "detail": str(exc)}, status_code=422)

    @app.get("/health")
    def health():
        return {
            "status": "ok",
            "sources": {
                "stationary": [s.name for s in stationary],
                "mobile": [s.name for s in mobile],
            },
            "geocoding": engine.address_lookup is not None,
            "init_errors": built["init_errors"],
        }

    @app.post("/bearing")
    def bearing_endpoint(body: BearingIn):
        md = body.capture.to_metadata()
        return {"bearing_deg": compute_target_bearing(body.tap(), md.frame, md)}

    @app.post("/distance")
    def distance_endpoint(body: DistanceIn):
        d = estimate_distance(body.zoom_factor, body.field_of_view_deg, body.coverage_pct, policy=policy)
        return {**estimate_breakdown(body.zoom_factor, body.field_of_view_deg, body.coverage_pct, policy), "distance_m": d}

    @app.post("/fix")
    def fix_endpoint(body: FixIn):
        """
        Target fix from a capture. Missing bearing => projected from the tap
        (or the heading); missing distance => optical estimate.
        """
        md = body.capture.to_metadata()
        b = body.bearing_deg if body.bearing_deg is not None else compute_target_bearing(body.tap(), md.frame, md)
        d = body.distance_m
        if d is None:
            d = estimate_distance(md.zoom_factor, md.field_of_view_deg, body.coverage_pct, policy=policy)
        return compute_target_fix(md, b, d).to_dict()

    @app.post("/identify/stationary")
    async def identify_stationary(body: StationaryIn):
        sources = list(stationary)
        if body.recognized:
            sources.insert(0, recognizer_results(body.recognized))
        found = await engine.identify_stationary(
            Coordinate(lat=body.lat, lon=body.lon),
            body.bearing_deg,
            ident.building_bearing_tolerance if body.tolerance_deg is None else body.tolerance_deg,
            ident.building_search_radius_m if body.radius_m is None else body.radius_m,
            sources,
            max_results=body.max_results,
            field_of_view_deg=body.field_of_view_deg,
        )
        return {"candidates": [c.to_dict() for c in found]}

    @app.post("/identify/mobile")
    async def identify_mobile(body: MobileIn):
        found = await engine.identify_mobile(
            Coordinate(lat=body.lat, lon=body.lon),
            body.bearing_deg,
            ident.aircraft_bearing_tolerance if body.tolerance_deg is None else body.tolerance_deg,
            ident.aircraft_search_radius_m if body.radius_m is None else body.radius_m,
            body.pitch_deg,
            body.altitude_m,
            mobile,
            automatic=body.automatic,
            field_of_view_deg=body.field_of_view_deg,
            max_results=body.max_results,
        )
        return {"candidates": [c.to_dict() for c in found]}

    return app


def create_default_app() -> FastAPI:
    S = load_settings()
    setup_logging(S.log_level)
    return build_app(S)


# -------- local dev entrypoint --------
if __name__ == "__main__":
    uvicorn.run(create_default_app(), host="0.0.0.0", port=8000)
