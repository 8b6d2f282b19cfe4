"""
Fusion — multi-source candidate identification

This package provides:
- Concurrent fan-out over injected candidate sources with per-source
  timeouts (a failing source contributes nothing)
- Priority-ordered, additive merging (vision > registry > catalog)
- Fuzzy-name de-duplication (Levenshtein similarity)
- Line-of-sight pruning for buildings, elevation matching for aircraft
- Landmark categorisation of stationary results

Entry point:
    engine = FusionEngine(settings.identification)
    await engine.identify_stationary(position, bearing, tolerance, radius, sources)
"""
from .engine import FusionEngine

__all__ = ["FusionEngine"]
