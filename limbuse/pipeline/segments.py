from __future__ import annotations
import numpy as np
from ..math.filtering import is_missing

__all__ = [
    "find_segments",
    "count_segments",
    "has_missing_run",
    "duration_filter",
    "quality_filter",
]


def find_segments(binary: np.ndarray) -> list[tuple[int, int]]:
    """Maximal runs of 1s as inclusive (start, end) index pairs."""
    s = np.asarray(binary, dtype=bool).astype(np.int8)
    if s.size == 0:
        return []
    edges = np.diff(np.concatenate(([0], s, [0])))
    starts = np.flatnonzero(edges == 1)
    ends = np.flatnonzero(edges == -1) - 1
    return [(int(a), int(b)) for a, b in zip(starts, ends)]


def count_segments(binary: np.ndarray) -> int:
    return len(find_segments(binary))


def has_missing_run(pos: np.ndarray, max_allowed_gap: int) -> bool:
    """True if ``max_allowed_gap`` consecutive samples of ``pos`` are all missing."""
    k = int(max_allowed_gap)
    if k < 1:
        raise ValueError(f"max_allowed_gap must be >= 1, got {max_allowed_gap}")
    miss = is_missing(pos).astype(np.int64)
    if miss.size < k:
        return False
    # trailing-window sums over k samples
    csum = np.concatenate(([0], np.cumsum(miss)))
    return bool(np.any(csum[k:] - csum[:-k] >= k))


def duration_filter(binary: np.ndarray, too_fast: float, too_slow: float) -> np.ndarray:
    """Zero segments with length <= too_fast or >= too_slow. Returns uint8 copy."""
    out = np.asarray(binary, dtype=bool).astype(np.uint8)
    for s, e in find_segments(out):
        n = e - s + 1
        if n <= too_fast or n >= too_slow:
            out[s:e + 1] = 0
    return out


def quality_filter(binary: np.ndarray, pos: np.ndarray, max_allowed_gap: int,
                   too_fast: float, too_slow: float) -> np.ndarray:
    """Drop segments holding a long missing-value run or with invalid duration."""
    out = np.asarray(binary, dtype=bool).astype(np.uint8)
    p = np.asarray(pos, dtype=float)
    if p.shape != out.shape:
        raise ValueError(f"binary and pos must share a shape, got {out.shape} and {p.shape}")
    for s, e in find_segments(out):
        n = e - s + 1
        if has_missing_run(p[s:e + 1], max_allowed_gap):
            out[s:e + 1] = 0
            continue
        if n <= too_fast or n >= too_slow:
            out[s:e + 1] = 0
    return out
