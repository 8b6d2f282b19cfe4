"""
Sources — candidate providers queried by the fusion engine

- recognizer: opaque vision-recognition results (highest priority)
- google: Places Nearby Search (remote registry) + reverse Geocoding (addresses)
- flightaware: AeroAPI live aircraft (remote registry, mobile targets)
- catalog: bundled offline buildings/aircraft (lowest priority fallback)

Every source is a `CandidateSource`: a name, a `SourceKind` priority and an
async `fetch(SourceQuery) -> list[Candidate]` that may raise on failure.
"""
from .base import CandidateSource, SourceQuery, blocking_source, static_source
from .errors import SourceError

__all__ = ["CandidateSource", "SourceQuery", "SourceError", "blocking_source", "static_source"]
