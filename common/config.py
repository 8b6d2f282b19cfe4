from __future__ import annotations

import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional

import yaml


DEFAULT_CONFIG_PATH = "config/params.yaml"


@dataclass(slots=True)
class IdentificationSettings:
    """Search windows, tolerances, caps and timeouts for identification requests."""
    max_building_results: int = 5
    max_aircraft_results: int = 8
    building_search_radius_m: float = 50000.0
    places_search_radius_m: float = 2000.0
    aircraft_search_radius_m: float = 100000.0
    # bearing tolerances (deg); remote/fallback sources are matched wider than vision
    building_bearing_tolerance: float = 8.0
    catalog_bearing_tolerance: float = 12.0
    places_bearing_tolerance: float = 15.0
    aircraft_bearing_tolerance: float = 15.0
    # pitch gate for the aerial elevation filter
    min_pitch_for_elevation_deg: float = 5.0
    elevation_tolerance_deg: float = 15.0
    # line-of-sight bearing window
    occlusion_bearing_deg: float = 2.0
    source_timeout_s: float = 15.0


@dataclass(slots=True)
class ProviderSettings:
    enabled: bool = False
    api_key: Optional[str] = None
    base_url: Optional[str] = None
    timeout_s: float = 10.0


@dataclass(slots=True)
class Settings:
    log_level: str = "INFO"
    identification: IdentificationSettings = field(default_factory=IdentificationSettings)
    distance: Dict[str, Any] = field(default_factory=dict)
    places: ProviderSettings = field(default_factory=ProviderSettings)
    flightaware: ProviderSettings = field(default_factory=lambda: ProviderSettings(timeout_s=15.0))
    geocoding: ProviderSettings = field(default_factory=ProviderSettings)
    catalog_path: Optional[str] = None


def _pick(cls, raw: Optional[Dict[str, Any]]):
    """Build dataclass `cls` from a mapping, ignoring unknown keys."""
    raw = raw or {}
    names = {f.name for f in fields(cls)}
    return cls(**{k: v for k, v in raw.items() if k in names})


def settings_from_dict(P: Dict[str, Any]) -> Settings:
    providers = P.get("providers", {}) or {}
    places = _pick(ProviderSettings, providers.get("places"))
    flightaware = _pick(ProviderSettings, {"timeout_s": 15.0, **(providers.get("flightaware") or {})})
    geocoding = _pick(ProviderSettings, providers.get("geocoding"))

    # keys fall back to env, like the other Google/FlightAware clients
    places.api_key = places.api_key or os.getenv("GOOGLE_MAPS_API_KEY")
    geocoding.api_key = geocoding.api_key or os.getenv("GOOGLE_MAPS_API_KEY")
    flightaware.api_key = flightaware.api_key or os.getenv("FLIGHTAWARE_API_KEY")

    return Settings(
        log_level=str(P.get("logging", {}).get("level", "INFO")),
        identification=_pick(IdentificationSettings, P.get("identification")),
        distance=dict(P.get("distance", {}) or {}),
        places=places,
        flightaware=flightaware,
        geocoding=geocoding,
        catalog_path=(P.get("catalog", {}) or {}).get("path"),
    )


def load_settings(path: Optional[str] = None) -> Settings:
    """
    Load settings from YAML.

    Path precedence: explicit `path`, env SIGHTLINE_CONFIG, config/params.yaml.
    A missing file yields the built-in defaults (all remote providers off).
    """
    path = path or os.environ.get("SIGHTLINE_CONFIG") or DEFAULT_CONFIG_PATH
    if not Path(path).exists():
        return settings_from_dict({})
    with open(path, "r") as f:
        return settings_from_dict(yaml.safe_load(f) or {})
