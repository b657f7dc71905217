from __future__ import annotations
from pathlib import Path
from typing import Optional
import numpy as np
import pandas as pd
import matplotlib.pyplot as plt
from ..config.settings import settings
from .segments import count_segments

__all__ = ["movement_summary", "format_report", "local_time", "plot_view", "plot_fused"]


def movement_summary(time: np.ndarray, use_signal: np.ndarray) -> dict:
    """Movement count, session length in minutes and movements per minute."""
    t = np.asarray(time, dtype=float)
    count = count_segments(use_signal)
    minutes = float(t[-1] - t[0]) / 60.0 if t.size > 1 else 0.0
    rate = count / minutes if minutes > 0 else float("nan")
    return {"count": int(count), "duration_min": minutes, "rate_per_min": rate}


def format_report(label: str, summary: dict) -> str:
    return (
        f"{label} - Number of movements: {summary['count']} "
        f"in {summary['duration_min']:.3g} minutes ({summary['rate_per_min']:.3g} moves/min)"
    )


def local_time(time: np.ndarray, tz: Optional[str] = None) -> pd.DatetimeIndex:
    """Unix seconds -> naive local wall-clock timestamps for plotting."""
    idx = pd.to_datetime(np.asarray(time, dtype=float), unit="s", utc=True)
    return idx.tz_convert(tz or settings.report_tz).tz_localize(None)


def _finish(fig, out_path: Optional[Path], show: bool) -> None:
    if out_path is not None:
        out_path = Path(out_path)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        fig.savefig(out_path, dpi=150, bbox_inches="tight")
    if show:
        plt.show()
    plt.close(fig)


def _scaled(binary: np.ndarray, ref: np.ndarray) -> np.ndarray:
    """Lay a 0/1 signal over the range of ``ref`` so both share an axis."""
    r = np.asarray(ref, dtype=float)
    r = r[np.isfinite(r)]
    lo, hi = (float(r.min()), float(r.max())) if r.size else (0.0, 1.0)
    return np.asarray(binary, dtype=float) * (hi - lo) + lo


def plot_view(view, threshold: np.ndarray, out_path: Optional[Path] = None, show: bool = False):
    """Distance, use signal, accepted crossings and shoulder width for one camera/limb."""
    tod = local_time(view.time)
    fig, ax = plt.subplots(figsize=(15, 5))
    ax.plot(tod, view.dist_filt, "b", label="Distance to Origin")
    ax.plot(tod, _scaled(view.use_signal, view.dist_filt), "k", linewidth=0.5, label="Use Signal")
    if len(view.t_cross):
        ax.plot(local_time(view.t_cross), view.pos_cross, "ro", label="Start/End Movs.")
    ax.set_ylabel("Distance to Origin (pixels)")
    ax_r = ax.twinx()
    ax_r.plot(tod, threshold, color="tab:orange", linewidth=0.5, label="Shoulder Width")
    ax_r.set_ylabel("Shoulder Width (pixels)")
    ax.set_xlabel("Timestamp")
    ax.set_title(f"Camera {view.camera} - {view.limb}")
    ax.grid(True)
    h1, l1 = ax.get_legend_handles_labels()
    h2, l2 = ax_r.get_legend_handles_labels()
    ax.legend(h1 + h2, l1 + l2, loc="best")
    _finish(fig, out_path, show)
    return fig


def plot_fused(fused, out_path: Optional[Path] = None, show: bool = False):
    """Base camera raw distance with the fused use signal on top."""
    tod = local_time(fused.time)
    fig, ax = plt.subplots(figsize=(15, 5))
    ax.plot(tod, fused.dist_raw, "b", label="Distance to Origin")
    ax.plot(tod, _scaled(fused.use_signal, fused.dist_raw), "k--", linewidth=0.5, label="Use Signal")
    ax.set_ylabel("Distance to Origin (pixels)")
    ax.set_xlabel("Timestamp")
    ax.set_title(f"Combined (Base: Camera {fused.base_camera}) - {fused.limb}")
    ax.legend(loc="best")
    ax.grid(True)
    _finish(fig, out_path, show)
    return fig
