from __future__ import annotations

import numpy as np

from .constants import (
    FS_HZ,
    FILTER_ORDER,
    POS_CUTOFF_HZ,
    THRESHOLD_CUTOFF_HZ,
    SHOULDER_RATIO,
    MAX_GAP_S,
    TOO_FAST_S,
    TOO_SLOW_S,
)

__all__ = ["DetectionConfig"]


class DetectionConfig:
    """Configuration for movement detection and multi-camera fusion.

    Parameters
    - fs_hz: Nominal camera sampling frequency in Hz
    - order: Butterworth filter order for both low-pass designs
    - cutoff_hz: Low-pass cutoff for wrist distance smoothing (Hz)
    - threshold_cutoff_hz: Low-pass cutoff for the shoulder distance threshold (Hz)
    - shoulder_ratio: Fraction of shoulder width a reversal must span, in (0, 1]
    - max_gap_s: Longest tolerated run of missing samples inside a movement (s)
    - too_fast_s: Movements lasting this long or less are discarded (s)
    - too_slow_s: Movements lasting this long or more are discarded (s)

    Durations are converted to samples with ``fs_hz``: ``max_allowed_gap`` is an
    integer window, ``too_fast``/``too_slow`` stay fractional so that the
    ``<=``/``>=`` comparisons keep their exact meaning.
    """

    def __init__(
        self,
        fs_hz: float = FS_HZ,
        order: int = FILTER_ORDER,
        cutoff_hz: float = POS_CUTOFF_HZ,
        threshold_cutoff_hz: float = THRESHOLD_CUTOFF_HZ,
        shoulder_ratio: float = SHOULDER_RATIO,
        max_gap_s: float = MAX_GAP_S,
        too_fast_s: float = TOO_FAST_S,
        too_slow_s: float = TOO_SLOW_S,
    ):
        self.fs_hz = float(fs_hz)
        self.order = int(order)
        self.cutoff_hz = float(cutoff_hz)
        self.threshold_cutoff_hz = float(threshold_cutoff_hz)
        self.shoulder_ratio = float(shoulder_ratio)
        self.max_gap_s = float(max_gap_s)
        self.too_fast_s = float(too_fast_s)
        self.too_slow_s = float(too_slow_s)
        self._validate()

    def _validate(self) -> None:
        if not np.isfinite(self.fs_hz) or self.fs_hz <= 0:
            raise ValueError(f"fs_hz must be positive, got {self.fs_hz}")
        if self.order < 1:
            raise ValueError(f"order must be >= 1, got {self.order}")
        nyq = 0.5 * self.fs_hz
        for name in ("cutoff_hz", "threshold_cutoff_hz"):
            fc = getattr(self, name)
            if not (0.0 < fc < nyq):
                raise ValueError(f"{name} must lie in (0, {nyq:g}) Hz, got {fc:g}")
        if not (0.0 < self.shoulder_ratio <= 1.0):
            raise ValueError(f"shoulder_ratio must lie in (0, 1], got {self.shoulder_ratio}")
        if self.max_allowed_gap < 1:
            raise ValueError("max_gap_s must cover at least one sample")
        if self.too_slow <= self.too_fast:
            raise ValueError("too_slow_s must be larger than too_fast_s")

    @property
    def max_allowed_gap(self) -> int:
        return int(round(self.max_gap_s * self.fs_hz))

    @property
    def too_fast(self) -> float:
        return self.too_fast_s * self.fs_hz

    @property
    def too_slow(self) -> float:
        return self.too_slow_s * self.fs_hz

    @classmethod
    def from_options(cls, options: dict | None) -> "DetectionConfig":
        """Build from a loose options dict; unknown keys and None values are ignored."""
        if not isinstance(options, dict):
            return cls()
        keys = (
            "fs_hz", "order", "cutoff_hz", "threshold_cutoff_hz",
            "shoulder_ratio", "max_gap_s", "too_fast_s", "too_slow_s",
        )
        kwargs = {k: options[k] for k in keys if options.get(k) is not None}
        return cls(**kwargs)

    def as_dict(self) -> dict:
        return {
            "fs_hz": self.fs_hz,
            "order": self.order,
            "cutoff_hz": self.cutoff_hz,
            "threshold_cutoff_hz": self.threshold_cutoff_hz,
            "shoulder_ratio": self.shoulder_ratio,
            "max_allowed_gap": self.max_allowed_gap,
            "too_fast": self.too_fast,
            "too_slow": self.too_slow,
        }
