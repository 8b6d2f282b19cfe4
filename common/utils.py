from __future__ import annotations

import math
import time
from typing import Any, Optional


FT_TO_M = 0.3048
KM_PER_DEG = 111.0  # rough; fine for search bounding boxes


def clamp(v: float, lo: float, hi: float) -> float:
    return float(min(hi, max(lo, v)))


def feet_to_m(ft: float) -> float:
    return float(ft) * FT_TO_M


def radius_km_to_deg(radius_km: float) -> float:
    """Convert a search radius to a lat/lon half-width (degrees)."""
    return radius_km / KM_PER_DEG


def as_float(x: Any, default: Optional[float] = None) -> Optional[float]:
    """Lenient float conversion for JSON payloads; non-finite values become `default`."""
    try:
        f = float(x)
    except (TypeError, ValueError):
        return default
    return f if math.isfinite(f) else default


class Stopwatch:
    """
    Elapsed-time helper for latency logging.

    Usage:
        sw = Stopwatch()
        ...
        log.info("done", extra={"extra": {"latency_ms": sw.ms()}})
    """

    def __init__(self) -> None:
        self._t0 = time.perf_counter()

    def ms(self) -> int:
        return int(1000.0 * (time.perf_counter() - self._t0))
