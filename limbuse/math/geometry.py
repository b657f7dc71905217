from __future__ import annotations

import numpy as np
import pandas as pd

from ..config.constants import WRIST_MARKER, SHOULDER_MARKER, RIGHT, LEFT

__all__ = [
    "euclidean",
    "marker_xy",
    "shoulder_distance",
    "marker_distances",
    "backward_velocity",
]


def euclidean(x1, y1, x2=0.0, y2=0.0) -> np.ndarray:
    """Planar distance; NaN in any coordinate propagates to the result."""
    dx = np.asarray(x1, dtype=float) - np.asarray(x2, dtype=float)
    dy = np.asarray(y1, dtype=float) - np.asarray(y2, dtype=float)
    return np.sqrt(dx * dx + dy * dy)


def marker_xy(df: pd.DataFrame, marker_id: int) -> tuple[np.ndarray, np.ndarray]:
    x_col, y_col = f"{marker_id}_x", f"{marker_id}_y"
    missing = [c for c in (x_col, y_col) if c not in df.columns]
    if missing:
        raise KeyError(f"Missing marker columns {missing}")
    return df[x_col].to_numpy(dtype=float), df[y_col].to_numpy(dtype=float)


def shoulder_distance(df: pd.DataFrame) -> np.ndarray:
    xr, yr = marker_xy(df, SHOULDER_MARKER[RIGHT])
    xl, yl = marker_xy(df, SHOULDER_MARKER[LEFT])
    return euclidean(xr, yr, xl, yl)


def marker_distances(df: pd.DataFrame, limb: str) -> tuple[np.ndarray, np.ndarray]:
    """Return (wrist_to_origin, wrist_to_shoulder) raw distances for one limb."""
    if limb not in WRIST_MARKER:
        raise ValueError(f"Unknown limb '{limb}'. Expected one of {sorted(WRIST_MARKER)}")
    xw, yw = marker_xy(df, WRIST_MARKER[limb])
    xs, ys = marker_xy(df, SHOULDER_MARKER[limb])
    return euclidean(xw, yw), euclidean(xw, yw, xs, ys)


def backward_velocity(pos: np.ndarray, time: np.ndarray) -> np.ndarray:
    """Backward difference d(pos)/dt with the first sample defined as 0."""
    p = np.asarray(pos, dtype=float)
    t = np.asarray(time, dtype=float)
    if p.shape != t.shape:
        raise ValueError(f"pos and time must share a shape, got {p.shape} and {t.shape}")
    vel = np.zeros_like(p)
    if p.size > 1:
        vel[1:] = np.diff(p) / np.diff(t)
    return vel
