from __future__ import annotations

from typing import List, Sequence, TypeVar

import numpy as np

from common.types import Candidate, similarity_key


C = TypeVar("C", bound=Candidate)

DEFAULT_SIMILARITY_THRESHOLD = 0.8


def levenshtein(a: str, b: str) -> int:
    """Classic edit distance (insert/delete/substitute, unit costs)."""
    if a == b:
        return 0
    if not a or not b:
        return max(len(a), len(b))
    D = np.zeros((len(a) + 1, len(b) + 1), dtype=np.int32)
    D[:, 0] = np.arange(len(a) + 1)
    D[0, :] = np.arange(len(b) + 1)
    for i in range(1, len(a) + 1):
        for j in range(1, len(b) + 1):
            cost = 0 if a[i - 1] == b[j - 1] else 1
            D[i, j] = min(D[i - 1, j] + 1, D[i, j - 1] + 1, D[i - 1, j - 1] + cost)
    return int(D[len(a), len(b)])


def name_similarity(a: str, b: str) -> float:
    """
    (max_len - edit_distance) / max_len over normalised names, in [0, 1].
    Two empty names are identical.
    """
    ka, kb = similarity_key(a), similarity_key(b)
    longest = max(len(ka), len(kb))
    if longest == 0:
        return 1.0
    return (longest - levenshtein(ka, kb)) / longest


def dedupe(candidates: Sequence[C], threshold: float = DEFAULT_SIMILARITY_THRESHOLD) -> List[C]:
    """
    Drop candidates whose name is more than `threshold` similar to an
    already-kept one. Input order decides: the first occurrence survives.
    """
    kept: List[C] = []
    for c in candidates:
        if any(name_similarity(c.name, k.name) > threshold for k in kept):
            continue
        kept.append(c)
    return kept


def dedupe_flights(candidates: Sequence[C]) -> List[C]:
    """
    Exact-identity dedup for aircraft: flight number when present, else id.
    Similar callsigns (UAL1234 / UAL1235) are distinct flights and both stay.
    """
    seen = set()
    kept: List[C] = []
    for c in candidates:
        ident = getattr(c, "flight_number", None) or c.id
        key = similarity_key(ident)
        if key in seen:
            continue
        seen.add(key)
        kept.append(c)
    return kept
