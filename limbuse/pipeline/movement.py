"""
Movement detection from a filtered wrist distance trace.

Reversals of motion are taken from velocity zero-crossings. A crossing only
counts when the wrist travelled far enough since (or until) a neighbouring
crossing, where "far enough" scales with the current shoulder width. The
surviving crossings are folded left-to-right into a binary use signal, which
is then cleaned by the segment quality rules.
"""
from __future__ import annotations
import numpy as np
from dataclasses import dataclass
from typing import Iterator, Tuple
from .segments import quality_filter

__all__ = [
    "MovementResult",
    "velocity_zero_crossings",
    "filter_crossings",
    "segment_writes",
    "build_use_signal",
    "detect_movement",
]


@dataclass
class MovementResult:
    """Output of :func:`detect_movement` for one limb in one camera view.

    use_signal: Quality-filtered binary signal (uint8, same length as input).
    raw_signal: Binary signal before quality filtering.
    crossings: Indices of accepted zero-crossings, ascending.
    t_cross: Timestamps at the accepted crossings.
    pos_cross: Filtered positions at the accepted crossings.
    n_candidates: Number of velocity sign changes before amplitude filtering.
    """
    use_signal: np.ndarray
    raw_signal: np.ndarray
    crossings: np.ndarray
    t_cross: np.ndarray
    pos_cross: np.ndarray
    n_candidates: int


def velocity_zero_crossings(vel: np.ndarray) -> np.ndarray:
    """Indices i where vel[i] and vel[i+1] have strictly opposite signs."""
    v = np.asarray(vel, dtype=float)
    if v.size < 2:
        return np.zeros(0, dtype=int)
    with np.errstate(invalid="ignore"):
        prod = v[:-1] * v[1:]
    return np.flatnonzero(prod < 0)


def filter_crossings(candidates: np.ndarray, pos: np.ndarray, thr: np.ndarray,
                     shoulder_ratio: float) -> np.ndarray:
    """Keep candidates whose position differs from a neighbouring candidate by
    at least ``thr[i] * shoulder_ratio``.

    Either neighbour suffices; the first and last candidates only have one.
    A lone candidate has nothing to compare against and is dropped.
    """
    idx = np.asarray(candidates, dtype=int)
    if idx.size < 2:
        return np.zeros(0, dtype=int)
    p = np.asarray(pos, dtype=float)[idx]
    limit = np.asarray(thr, dtype=float)[idx] * float(shoulder_ratio)
    step = np.abs(np.diff(p))
    keep = np.zeros(idx.size, dtype=bool)
    with np.errstate(invalid="ignore"):
        keep[1:] |= step >= limit[1:]     # vs previous candidate
        keep[:-1] |= step >= limit[:-1]   # vs next candidate
    return idx[keep]


def segment_writes(crossings: np.ndarray, pos: np.ndarray, thr: np.ndarray,
                   shoulder_ratio: float, time: np.ndarray
                   ) -> Iterator[Tuple[int, int, int]]:
    """Yield ``(start, stop, value)`` half-open index writes in application order.

    For each pair of consecutive accepted crossings (cur, nxt):
    - the first pair always opens a movement over [cur, nxt);
    - a swing smaller than the local threshold is a settling wiggle: off over
      [cur, nxt) and, if a following crossing exists, on over [nxt, after);
    - otherwise the reversal is confirmed: off at cur, on until just before nxt.
    Later writes override earlier ones.
    """
    c = np.asarray(crossings, dtype=int)
    t = np.asarray(time, dtype=float)
    p = np.asarray(pos, dtype=float)
    th = np.asarray(thr, dtype=float)
    bounds = np.searchsorted(t, t[c], side="left")  # first sample at/after each crossing time
    for k in range(c.size - 1):
        cur, nxt = int(bounds[k]), int(bounds[k + 1])
        if k == 0:
            yield cur, nxt, 1
            continue
        swing = abs(p[c[k + 1]] - p[c[k]])
        limit = th[c[k]] * shoulder_ratio
        if swing < limit:
            yield cur, nxt, 0
            if k + 2 < c.size:
                yield nxt, int(bounds[k + 2]), 1
        else:
            yield cur, cur + 1, 0
            yield cur + 1, nxt, 1


def build_use_signal(crossings: np.ndarray, pos: np.ndarray, thr: np.ndarray,
                     shoulder_ratio: float, time: np.ndarray) -> np.ndarray:
    """Fold the accepted crossings into a binary use signal (uint8)."""
    n = int(np.asarray(time).shape[0])
    out = np.zeros(n, dtype=np.uint8)
    for start, stop, value in segment_writes(crossings, pos, thr, shoulder_ratio, time):
        if stop > start:
            out[start:stop] = value
    return out


def detect_movement(pos: np.ndarray, vel: np.ndarray, thr: np.ndarray, time: np.ndarray,
                    shoulder_ratio: float, max_allowed_gap: int,
                    too_fast: float, too_slow: float) -> MovementResult:
    """
    Detect movement segments for one limb.

    Args:
        pos: Filtered wrist distance (NaN marks gaps)
        vel: Backward-difference velocity of ``pos`` (vel[0] == 0)
        thr: Gap-free adaptive threshold trace (smoothed shoulder width)
        time: Sample timestamps, strictly increasing
        shoulder_ratio: Fraction of ``thr`` a reversal must span
        max_allowed_gap: Consecutive missing samples that invalidate a movement
        too_fast, too_slow: Exclusive duration bounds in samples

    Returns:
        MovementResult with the cleaned signal and the accepted crossings
    """
    p = np.asarray(pos, dtype=float)
    v = np.asarray(vel, dtype=float)
    th = np.asarray(thr, dtype=float)
    t = np.asarray(time, dtype=float)
    if p.ndim != 1 or not (p.shape == v.shape == th.shape == t.shape):
        raise ValueError(
            f"pos, vel, thr and time must be 1-D with equal length, got "
            f"{p.shape}, {v.shape}, {th.shape}, {t.shape}"
        )

    candidates = velocity_zero_crossings(v)
    crossings = filter_crossings(candidates, p, th, shoulder_ratio)
    raw = build_use_signal(crossings, p, th, shoulder_ratio, t)
    clean = quality_filter(raw, p, max_allowed_gap, too_fast, too_slow)
    return MovementResult(
        use_signal=clean,
        raw_signal=raw,
        crossings=crossings,
        t_cross=t[crossings],
        pos_cross=p[crossings],
        n_candidates=int(candidates.size),
    )
