from __future__ import annotations

import warnings

import numpy as np
from scipy.interpolate import interp1d
from scipy.signal import butter, filtfilt

from ..config.constants import MIN_FILTER_SAMPLES

__all__ = [
    "DataQualityWarning",
    "is_missing",
    "lowpass_coeffs",
    "filter_with_mask",
    "fill_gaps_linear",
    "smooth_threshold",
]


class DataQualityWarning(UserWarning):
    """Recoverable data problem (gaps, unstable filtering); processing continues."""


def is_missing(x) -> np.ndarray:
    """Boolean mask of gap samples (NaN or +/-inf)."""
    return ~np.isfinite(np.asarray(x, dtype=float))


def lowpass_coeffs(order: int, cutoff_hz: float, fs_hz: float):
    """Butterworth low-pass (b, a) with cutoff normalized to Nyquist."""
    wn = float(cutoff_hz) / (0.5 * float(fs_hz))
    return butter(int(order), wn, btype="low")


def filter_with_mask(signal, b, a) -> np.ndarray:
    """Zero-phase filter the valid samples of ``signal``, keeping gaps in place.

    Valid samples are compacted and filtered as one block, ignoring the time
    gaps between them, then written back to their original indices. With fewer
    than ``MIN_FILTER_SAMPLES`` valid samples, or if filtering fails, the
    output is all-NaN.
    """
    x = np.asarray(signal, dtype=float)
    out = np.full(x.shape, np.nan, dtype=float)
    valid = ~is_missing(x)
    if int(valid.sum()) < MIN_FILTER_SAMPLES:
        return out
    b = np.atleast_1d(np.asarray(b, dtype=float))
    a = np.atleast_1d(np.asarray(a, dtype=float))
    padlen = 3 * (max(len(a), len(b)) - 1)
    try:
        y = filtfilt(b, a, x[valid], padlen=padlen)
    except (ValueError, np.linalg.LinAlgError) as exc:
        warnings.warn(
            f"Filtering failed for a segment, possibly due to insufficient or unstable data: {exc}",
            DataQualityWarning,
            stacklevel=2,
        )
        return out
    if not np.all(np.isfinite(y)):
        warnings.warn(
            "Filtering produced non-finite values; filter is unstable for this data",
            DataQualityWarning,
            stacklevel=2,
        )
        return out
    out[valid] = y
    return out


def fill_gaps_linear(signal) -> np.ndarray:
    """Linearly interpolate interior gaps and extrapolate at both ends.

    Returns a copy. A single valid sample fills the whole trace; with no valid
    samples the trace is returned unchanged and a warning is issued.
    """
    x = np.asarray(signal, dtype=float).copy()
    gaps = is_missing(x)
    if not gaps.any():
        return x
    idx = np.flatnonzero(~gaps)
    if idx.size == 0:
        warnings.warn(
            "Cannot fill gaps: trace has no valid samples",
            DataQualityWarning,
            stacklevel=2,
        )
        return x
    if idx.size == 1:
        x[:] = x[idx[0]]
        return x
    f = interp1d(idx, x[idx], kind="linear", fill_value="extrapolate")
    x[gaps] = f(np.flatnonzero(gaps))
    return x


def smooth_threshold(shoulder_dist, order: int, cutoff_hz: float, fs_hz: float) -> np.ndarray:
    """Adaptive threshold trace: low-pass shoulder distance, then close every gap."""
    b, a = lowpass_coeffs(order, cutoff_hz, fs_hz)
    return fill_gaps_linear(filter_with_mask(shoulder_dist, b, a))
