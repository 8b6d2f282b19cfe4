from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum, IntEnum
from typing import Any, Dict, Optional


IsoTime = str


def now_iso() -> IsoTime:
    """UTC timestamp in RFC3339/ISO-8601 with 'Z' suffix."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _require_finite(name: str, value: float) -> None:
    if not math.isfinite(value):
        raise ValueError(f"{name} must be finite, got {value!r}")


@dataclass(frozen=True, slots=True)
class Coordinate:
    """WGS84 latitude/longitude in decimal degrees."""
    lat: float
    lon: float

    def __post_init__(self) -> None:
        _require_finite("lat", self.lat)
        _require_finite("lon", self.lon)
        if not (-90.0 <= self.lat <= 90.0) or not (-180.0 <= self.lon <= 180.0):
            raise ValueError("lat/lon out of range")

    def to_dict(self) -> Dict[str, float]:
        return {"lat": self.lat, "lon": self.lon}


@dataclass(frozen=True, slots=True)
class FrameSize:
    """Captured frame dimensions in pixels."""
    width: float
    height: float

    @property
    def is_degenerate(self) -> bool:
        return not (self.width > 0 and self.height > 0)


@dataclass(frozen=True, slots=True)
class CaptureMetadata:
    """
    Immutable sensor snapshot taken at the moment of capture.

    Attributes:
        position: camera location.
        altitude_m: meters above sea level.
        heading_deg: compass heading, normalised to [0, 360).
        pitch_deg: tilt above (+) / below (-) horizontal.
        roll_deg: rotation about the optical axis.
        field_of_view_deg: horizontal FOV at the current zoom.
        zoom_factor: optical/digital zoom (>= device minimum).
        accuracy_m: horizontal position accuracy.
        frame: capture resolution.
        focal_length_mm: lens focal length reported by the device.
        orientation: "portrait" / "landscape" / device string.
        timestamp: ISO-8601 (UTC).
    """
    position: Coordinate
    altitude_m: float
    heading_deg: float
    field_of_view_deg: float
    zoom_factor: float = 1.0
    pitch_deg: float = 0.0
    roll_deg: float = 0.0
    accuracy_m: float = 0.0
    frame: FrameSize = field(default_factory=lambda: FrameSize(4032, 3024))
    focal_length_mm: Optional[float] = None
    orientation: str = "portrait"
    timestamp: IsoTime = field(default_factory=now_iso)

    def __post_init__(self) -> None:
        for name in ("altitude_m", "heading_deg", "field_of_view_deg", "zoom_factor", "pitch_deg", "roll_deg"):
            _require_finite(name, getattr(self, name))
        if self.field_of_view_deg <= 0:
            raise ValueError("field_of_view_deg must be > 0")
        if self.zoom_factor <= 0:
            raise ValueError("zoom_factor must be > 0")
        if self.accuracy_m < 0:
            raise ValueError("accuracy_m must be >= 0")
        heading = self.heading_deg % 360.0
        # frozen: normalise through object.__setattr__
        object.__setattr__(self, "heading_deg", 0.0 if heading >= 360.0 else heading)

    def with_heading(self, heading_deg: float) -> "CaptureMetadata":
        return replace(self, heading_deg=heading_deg)

    def to_meta(self) -> Dict[str, Any]:
        """Flat mapping safe to log/serialize."""
        return {
            "ts": self.timestamp,
            "lat": self.position.lat,
            "lon": self.position.lon,
            "alt_m": self.altitude_m,
            "heading": self.heading_deg,
            "pitch": self.pitch_deg,
            "roll": self.roll_deg,
            "fov": self.field_of_view_deg,
            "zoom": self.zoom_factor,
            "accuracy_m": self.accuracy_m,
            "width": self.frame.width,
            "height": self.frame.height,
        }


# -------------------------
# Candidates
# -------------------------
class SourceKind(IntEnum):
    """Candidate provenance; lower value = higher fusion priority."""
    VISION = 0
    REGISTRY = 1
    CATALOG = 2

    @property
    def label(self) -> str:
        return self.name.lower()


class BuildingType(str, Enum):
    LANDMARK = "landmark"
    OFFICE = "office"
    RESIDENTIAL = "residential"
    COMMERCIAL = "commercial"
    GOVERNMENT = "government"
    RELIGIOUS = "religious"
    EDUCATIONAL = "educational"
    INDUSTRIAL = "industrial"
    OTHER = "other"


class LandmarkCategory(str, Enum):
    HISTORICAL_SITE = "Historical Site"
    RELIGIOUS_BUILDING = "Religious Building"
    GOVERNMENT = "Government Building"
    MONUMENT = "Monument"
    CULTURAL_SITE = "Cultural Site"
    TOURIST_ATTRACTION = "Tourist Attraction"
    ARCHITECTURE = "Architectural Landmark"
    BRIDGE = "Bridge"
    TOWER = "Tower"
    MUSEUM = "Museum"


def similarity_key(name: str) -> str:
    """Normalised name used for fuzzy de-duplication."""
    return " ".join(name.lower().split())


@dataclass(frozen=True, slots=True)
class Candidate:
    """
    A named real-world entity produced by a source.

    Candidates are values: every annotation (distance, address, ...) is made
    on a copy via `evolve()` / `with_*()`, never in place.
    """
    id: str
    name: str
    coordinate: Coordinate
    source: SourceKind
    height_m: Optional[float] = None
    category: Optional[str] = None
    score: Optional[float] = None
    distance_m: Optional[float] = None
    address: Optional[str] = None

    def __post_init__(self) -> None:
        if self.height_m is not None:
            _require_finite("height_m", self.height_m)
        if self.distance_m is not None and not self.distance_m >= 0:
            raise ValueError("distance_m must be >= 0")

    @property
    def kind(self) -> str:
        return "candidate"

    @property
    def similarity_key(self) -> str:
        return similarity_key(self.name)

    def evolve(self, **changes: Any) -> "Candidate":
        return replace(self, **changes)

    def with_distance(self, distance_m: float) -> "Candidate":
        return replace(self, distance_m=distance_m)

    def with_address(self, address: Optional[str]) -> "Candidate":
        return replace(self, address=address)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "kind": self.kind,
            "name": self.name,
            "lat": self.coordinate.lat,
            "lon": self.coordinate.lon,
            "source": self.source.label,
            "height_m": self.height_m,
            "category": self.category,
            "score": self.score,
            "distance_m": self.distance_m,
            "address": self.address,
        }


@dataclass(frozen=True, slots=True)
class Landmark(Candidate):
    """Stationary candidate: building, bridge, monument..."""
    building_type: BuildingType = BuildingType.OTHER
    construction_year: Optional[int] = None
    description: str = ""
    wikipedia_url: Optional[str] = None
    is_landmark: bool = False
    landmark_category: Optional[LandmarkCategory] = None

    @property
    def kind(self) -> str:
        return "stationary"

    def with_landmark(self, is_landmark: bool, category: Optional[LandmarkCategory]) -> "Landmark":
        return replace(self, is_landmark=is_landmark, landmark_category=category)

    def to_dict(self) -> Dict[str, Any]:
        d = Candidate.to_dict(self)
        d.update(
            {
                "building_type": self.building_type.value,
                "construction_year": self.construction_year,
                "description": self.description,
                "wikipedia_url": self.wikipedia_url,
                "is_landmark": self.is_landmark,
                "landmark_category": None if self.landmark_category is None else self.landmark_category.value,
            }
        )
        return d


@dataclass(frozen=True, slots=True)
class Aircraft(Candidate):
    """Mobile candidate. `altitude_m` is above sea level."""
    flight_number: Optional[str] = None
    aircraft_type: str = "Unknown"
    airline: Optional[str] = None
    altitude_m: float = 0.0
    heading_deg: float = 0.0
    ground_speed_kts: float = 0.0
    origin: Optional[str] = None
    destination: Optional[str] = None

    @property
    def kind(self) -> str:
        return "mobile"

    def to_dict(self) -> Dict[str, Any]:
        d = Candidate.to_dict(self)
        d.update(
            {
                "flight_number": self.flight_number,
                "aircraft_type": self.aircraft_type,
                "airline": self.airline,
                "altitude_m": self.altitude_m,
                "heading_deg": self.heading_deg,
                "ground_speed_kts": self.ground_speed_kts,
                "origin": self.origin,
                "destination": self.destination,
            }
        )
        return d


# -------------------------
# Target fix
# -------------------------
@dataclass(frozen=True, slots=True)
class FixInputs:
    """Inputs that produced a TargetFix."""
    origin: Coordinate
    bearing_deg: float
    distance_m: float
    zoom_factor: float
    field_of_view_deg: float
    altitude_m: float
    orientation: str


@dataclass(frozen=True, slots=True)
class TargetFix:
    """
    Geodesic destination computed from a capture's bearing + estimated distance.

    Attributes:
        coordinate: estimated target location.
        confidence: [0..1] score from the confidence model.
        inputs: the capture values used.
        method: algorithm tag.
        ts: ISO-8601 (UTC) computation time.
    """
    coordinate: Coordinate
    confidence: float
    inputs: FixInputs
    method: str = "bearing_distance"
    ts: IsoTime = field(default_factory=now_iso)

    def __post_init__(self) -> None:
        _require_finite("confidence", self.confidence)
        object.__setattr__(self, "confidence", float(min(1.0, max(0.0, self.confidence))))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ts": self.ts,
            "lat": self.coordinate.lat,
            "lon": self.coordinate.lon,
            "confidence": self.confidence,
            "method": self.method,
            "bearing_deg": self.inputs.bearing_deg,
            "distance_m": self.inputs.distance_m,
            "zoom_factor": self.inputs.zoom_factor,
            "field_of_view_deg": self.inputs.field_of_view_deg,
            "altitude_m": self.inputs.altitude_m,
        }
