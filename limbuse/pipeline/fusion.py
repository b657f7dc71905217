"""
Multi-camera fusion of per-view limb use signals.

One camera is picked as the base view (the one with most detected
movements). Samples where the base view lost the wrist are filled from the
other cameras, then the duration rule is applied again to the merged signal.
"""
from __future__ import annotations
import warnings
import numpy as np
from dataclasses import dataclass, field
from typing import List, Sequence
from ..math.filtering import DataQualityWarning, is_missing
from .segments import count_segments, duration_filter

__all__ = ["ViewResult", "FusedSignal", "select_base_view", "combine_use_signal"]


@dataclass
class ViewResult:
    """One camera's detection output for one limb.

    camera: Camera identifier (number parsed from the file name).
    limb: 'RH' or 'LH'.
    time: Sample timestamps (s, unix time in the camera tables).
    dist_raw / dist_filt: Raw and filtered wrist-to-origin distance.
    vel: Velocity of the filtered distance.
    use_signal: Quality-filtered binary use signal.
    t_cross / pos_cross: Accepted zero-crossings, for plotting.
    """
    camera: int
    limb: str
    time: np.ndarray
    dist_raw: np.ndarray
    dist_filt: np.ndarray
    vel: np.ndarray
    use_signal: np.ndarray
    t_cross: np.ndarray = field(default_factory=lambda: np.zeros(0))
    pos_cross: np.ndarray = field(default_factory=lambda: np.zeros(0))

    def __post_init__(self):
        n = np.asarray(self.time).shape
        for name in ("dist_raw", "dist_filt", "vel", "use_signal"):
            if np.asarray(getattr(self, name)).shape != n:
                raise ValueError(f"ViewResult.{name} does not match time shape {n}")

    @property
    def n_segments(self) -> int:
        return count_segments(self.use_signal)


@dataclass
class FusedSignal:
    """Authoritative use signal for one limb after fusing all camera views."""
    limb: str
    time: np.ndarray
    use_signal: np.ndarray
    base_camera: int
    dist_raw: np.ndarray
    dist_filt: np.ndarray
    n_views: int
    n_filled: int = 0

    @property
    def n_segments(self) -> int:
        return count_segments(self.use_signal)


def select_base_view(views: Sequence[ViewResult]) -> int:
    """Index of the view with the most movement segments; first one wins ties."""
    if not views:
        raise ValueError("select_base_view requires at least one view")
    counts = [v.n_segments for v in views]
    return int(np.argmax(counts))


def combine_use_signal(views: List[ViewResult], too_fast: float, too_slow: float) -> FusedSignal:
    """Fuse the use signals of several camera views of the same limb.

    - A single view passes through unchanged.
    - Otherwise the base view's signal is kept wherever its filtered distance
      is defined. Where it is missing, the first other view (input order) that
      shares the timestamp and has a defined filtered distance supplies the
      value. Filled samples are never overwritten by later views.
    - Segments with length <= too_fast or >= too_slow are removed afterwards.
    """
    if len(views) == 0:
        raise ValueError("combine_use_signal requires at least one view")
    limbs = {v.limb for v in views}
    if len(limbs) > 1:
        raise ValueError(f"Cannot fuse views of different limbs: {sorted(limbs)}")

    if all(is_missing(v.dist_filt).all() for v in views):
        warnings.warn(
            f"No camera has a defined {views[0].limb} distance; fused signal carries no movement",
            DataQualityWarning,
            stacklevel=2,
        )

    if len(views) == 1:
        v = views[0]
        return FusedSignal(
            limb=v.limb,
            time=np.asarray(v.time, dtype=float),
            use_signal=np.asarray(v.use_signal, dtype=bool).astype(np.uint8),
            base_camera=v.camera,
            dist_raw=np.asarray(v.dist_raw, dtype=float),
            dist_filt=np.asarray(v.dist_filt, dtype=float),
            n_views=1,
        )

    best = select_base_view(views)
    base = views[best]
    t_base = np.asarray(base.time, dtype=float)
    combined = np.asarray(base.use_signal, dtype=bool).astype(np.uint8)
    open_gap = is_missing(base.dist_filt)

    n_filled = 0
    for i, other in enumerate(views):
        if i == best:
            continue
        _, idx_base, idx_other = np.intersect1d(
            t_base, np.asarray(other.time, dtype=float), assume_unique=False, return_indices=True
        )
        other_valid = ~is_missing(np.asarray(other.dist_filt)[idx_other])
        fill = open_gap[idx_base] & other_valid
        if not fill.any():
            continue
        combined[idx_base[fill]] = np.asarray(other.use_signal, dtype=bool)[idx_other[fill]]
        open_gap[idx_base[fill]] = False
        n_filled += int(fill.sum())

    return FusedSignal(
        limb=base.limb,
        time=t_base,
        use_signal=duration_filter(combined, too_fast, too_slow),
        base_camera=base.camera,
        dist_raw=np.asarray(base.dist_raw, dtype=float),
        dist_filt=np.asarray(base.dist_filt, dtype=float),
        n_views=len(views),
        n_filled=n_filled,
    )
