from __future__ import annotations

from typing import Any, Awaitable, Callable, List, Mapping, Sequence, Union

from common.types import Candidate, SourceKind
from sources.base import CandidateSource, SourceQuery, landmark_from_raw


RecognizerResult = Union[Candidate, Mapping[str, Any]]


def _as_vision(item: RecognizerResult) -> Candidate:
    if isinstance(item, Candidate):
        return item if item.source is SourceKind.VISION else item.evolve(source=SourceKind.VISION)
    return landmark_from_raw(item, SourceKind.VISION)


def recognizer_results(results: Sequence[RecognizerResult]) -> CandidateSource:
    """
    Wrap an opaque, already-scored vision recognizer result list as the
    highest-priority source. Items may be Candidates or raw mappings
    ({id, name, lat, lon, height_m?, category?, score?}). Malformed items
    fail the source at query time, like any other source error.
    """
    items = list(results)

    async def fetch(query: SourceQuery) -> List[Candidate]:
        return [_as_vision(r) for r in items]

    return CandidateSource(name="vision", kind=SourceKind.VISION, fetch=fetch)


def recognizer_callable(recognize: Callable[[SourceQuery], Awaitable[Sequence[RecognizerResult]]]) -> CandidateSource:
    """Adapt an async recognizer call (image analysis lives elsewhere) into a source."""

    async def fetch(query: SourceQuery) -> List[Candidate]:
        return [_as_vision(r) for r in await recognize(query)]

    return CandidateSource(name="vision", kind=SourceKind.VISION, fetch=fetch)
