from __future__ import annotations
import numpy as np
import pandas as pd
from dataclasses import dataclass, field
from typing import Dict, List, Sequence, Tuple

from ..config.constants import LIMBS, RIGHT, LEFT
from ..config.detection import DetectionConfig
from ..math.filtering import lowpass_coeffs, filter_with_mask, smooth_threshold
from ..math.geometry import marker_distances, shoulder_distance, backward_velocity
from .movement import detect_movement
from .fusion import ViewResult, FusedSignal, combine_use_signal
from .io_utils import extract_time, viewer_asset_table, combined_use_table
from .report import movement_summary

__all__ = ["CameraResult", "SegmentResult", "process_camera", "run_segment"]


@dataclass
class CameraResult:
    """Per-camera artifacts for one recording segment.

    views: Map from limb ('RH'/'LH') to its ViewResult.
    threshold: Gap-free smoothed shoulder distance used as adaptive threshold.
    table: Viewer asset table (distances, velocities, use signals per limb).
    summaries: Map from limb to movement_summary() of its use signal.
    """
    camera: int
    time: np.ndarray
    views: Dict[str, ViewResult]
    threshold: np.ndarray
    table: pd.DataFrame
    summaries: Dict[str, dict] = field(default_factory=dict)


@dataclass
class SegmentResult:
    """Fused outcome for one recording segment across all cameras."""
    cameras: List[CameraResult]
    fused: Dict[str, FusedSignal]
    table: pd.DataFrame
    summaries: Dict[str, dict]


def process_camera(df: pd.DataFrame, camera: int, cfg: DetectionConfig | None = None) -> CameraResult:
    """Run detection on one camera table (sanitized columns) for both limbs."""
    cfg = cfg or DetectionConfig()
    time = extract_time(df)

    b, a = lowpass_coeffs(cfg.order, cfg.cutoff_hz, cfg.fs_hz)
    threshold = smooth_threshold(shoulder_distance(df), cfg.order, cfg.threshold_cutoff_hz, cfg.fs_hz)

    views: Dict[str, ViewResult] = {}
    columns: Dict[str, dict] = {}
    for limb in LIMBS:
        to_origin_raw, to_shoulder_raw = marker_distances(df, limb)
        to_origin = filter_with_mask(to_origin_raw, b, a)
        to_shoulder = filter_with_mask(to_shoulder_raw, b, a)
        vel = backward_velocity(to_origin, time)
        mov = detect_movement(
            to_origin, vel, threshold, time,
            cfg.shoulder_ratio, cfg.max_allowed_gap, cfg.too_fast, cfg.too_slow,
        )
        views[limb] = ViewResult(
            camera=int(camera),
            limb=limb,
            time=time,
            dist_raw=to_origin_raw,
            dist_filt=to_origin,
            vel=vel,
            use_signal=mov.use_signal,
            t_cross=mov.t_cross,
            pos_cross=mov.pos_cross,
        )
        columns[limb] = {
            "dist_raw": to_origin_raw,
            "dist_filt": to_origin,
            "should_raw": to_shoulder_raw,
            "should_filt": to_shoulder,
            "vel": vel,
            "use_signal": mov.use_signal,
        }

    return CameraResult(
        camera=int(camera),
        time=time,
        views=views,
        threshold=threshold,
        table=viewer_asset_table(time, columns),
        summaries={limb: movement_summary(time, v.use_signal) for limb, v in views.items()},
    )


def run_segment(cameras: Sequence[Tuple[int, pd.DataFrame]], cfg: DetectionConfig | None = None) -> SegmentResult:
    """Process every camera of a recording segment and fuse each limb across them."""
    if not cameras:
        raise ValueError("run_segment requires at least one camera table")
    cfg = cfg or DetectionConfig()
    results = [process_camera(df, cam, cfg) for cam, df in cameras]

    fused: Dict[str, FusedSignal] = {}
    for limb in LIMBS:
        views = [r.views[limb] for r in results]
        fused[limb] = combine_use_signal(views, cfg.too_fast, cfg.too_slow)

    return SegmentResult(
        cameras=results,
        fused=fused,
        table=combined_use_table(fused[RIGHT], fused[LEFT]),
        summaries={limb: movement_summary(f.time, f.use_signal) for limb, f in fused.items()},
    )
