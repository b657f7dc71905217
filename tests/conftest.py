from __future__ import annotations
import matplotlib

matplotlib.use("Agg")

import numpy as np
import pandas as pd
import pytest

FS = 30.0
T0 = 1.7e9  # unix seconds


def camera_frame(duration_s: float = 20.0, rh_gap: tuple[int, int] | None = None) -> pd.DataFrame:
    """Synthetic camera table with raw camera export column names.

    Right wrist swings 120 px peak-to-peak at 0.5 Hz (a reversal every second),
    left wrist only jitters by ~1 px. Shoulders sit 100 px apart.
    """
    n = int(duration_s * FS)
    t = np.arange(n) / FS
    rx = 400.0 + 60.0 * np.sin(2 * np.pi * 0.5 * t)
    ry = np.full(n, 300.0)
    lx = 150.0 + 0.5 * np.sin(2 * np.pi * 3.0 * t)
    ly = np.full(n, 300.0)
    if rh_gap is not None:
        rx[rh_gap[0]:rh_gap[1]] = np.nan
        ry[rh_gap[0]:rh_gap[1]] = np.nan
    return pd.DataFrame({
        "Unix Time": T0 + t,
        "6_x": np.full(n, 200.0), "6_y": np.full(n, 200.0),
        "7_x": np.full(n, 300.0), "7_y": np.full(n, 200.0),
        "10_x": lx, "10_y": ly,
        "11_x": rx, "11_y": ry,
    })


def sanitized(df: pd.DataFrame) -> pd.DataFrame:
    from limbuse.pipeline.io_utils import sanitize_cols
    out = df.copy()
    out.columns = sanitize_cols(out.columns)
    return out


@pytest.fixture
def frame_factory():
    return camera_frame


@pytest.fixture
def time_base():
    return T0 + np.arange(90) / FS
