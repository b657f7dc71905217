from __future__ import annotations
import io, re
import shutil
from pathlib import Path
from typing import Iterable, List, Optional
import numpy as np
import pandas as pd
from ..config.constants import (
    TIME_CANDS, CAMERA_GLOB, LIMBS, RIGHT, LEFT,
    VIEWER_ASSETS_DIR, PLOTS_DIR, USE_SIGNAL_FILE,
    TIME_COL, USE_COL, DIST_RAW_COL, DIST_FILT_COL,
    SHOULDER_RAW_COL, SHOULDER_FILT_COL, VEL_COL,
)

__all__ = [
    "sanitize_cols",
    "read_camera_bytes",
    "read_camera_csv",
    "pick_col",
    "extract_time",
    "camera_number",
    "camera_sort_key",
    "find_sessions",
    "list_segments",
    "camera_files",
    "prepare_plot_folder",
    "viewer_asset_table",
    "save_viewer_asset_table",
    "combined_use_table",
    "save_combined_use_signal",
]


def sanitize_cols(cols):
    sc = []
    for c in cols:
        s = str(c).strip()
        s = re.sub(r"[^0-9A-Za-z]+", "_", s)
        s = re.sub(r"_+", "_", s)
        sc.append(s.strip("_").lower())
    return sc


def read_camera_bytes(b: bytes) -> pd.DataFrame:
    text = b.decode("utf-8", errors="ignore")
    if not text.strip():
        raise ValueError("Empty CSV payload")
    try:
        df = pd.read_csv(io.StringIO(text), low_memory=False)
    except (pd.errors.ParserError, UnicodeDecodeError):
        df = pd.read_csv(io.StringIO(text), engine="python", sep=None, on_bad_lines="skip")
    df.columns = sanitize_cols(df.columns)
    return df


def read_camera_csv(path: str | Path) -> pd.DataFrame:
    return read_camera_bytes(Path(path).read_bytes())


def pick_col(df: pd.DataFrame, candidates: list[str]) -> str:
    for c in candidates:
        if c in df.columns:
            return c
    raise KeyError(f"Missing any of {candidates}")


def extract_time(df: pd.DataFrame) -> np.ndarray:
    """Sample timestamps in seconds (unix time in camera exports)."""
    t = df[pick_col(df, TIME_CANDS)].to_numpy(dtype=float)
    if np.any(~np.isfinite(t)):
        raise ValueError("Camera timestamps must not contain gaps")
    if t.size > 1 and not np.all(np.diff(t) > 0):
        raise ValueError("Camera timestamps must be strictly increasing")
    return t


def camera_number(file_name: str) -> int:
    m = re.search(r"\d+", Path(str(file_name)).name)
    if not m:
        raise ValueError(f"No camera number in file name '{file_name}'")
    return int(m.group(0))


def find_sessions(patient_dir: str | Path, prefix: str) -> List[Path]:
    root = Path(patient_dir)
    if not root.is_dir():
        raise FileNotFoundError(f"Patient folder not found: {root}")
    return sorted(p for p in root.iterdir() if p.is_dir() and p.name.startswith(prefix))


def list_segments(session_dir: str | Path, selected: Optional[Iterable[str]] = None) -> List[str]:
    """Selected segment names, or every non-hidden subfolder when none are selected."""
    chosen = [s for s in (selected or []) if s]
    if chosen:
        return chosen
    root = Path(session_dir)
    return sorted(p.name for p in root.iterdir() if p.is_dir() and not p.name.startswith("."))


def camera_sort_key(file_name: str) -> tuple[int, str]:
    """Order camera tables by camera number, then by file name."""
    name = Path(str(file_name)).name
    return camera_number(name), name


def camera_files(segment_dir: str | Path) -> List[Path]:
    return sorted(Path(segment_dir).glob(CAMERA_GLOB), key=lambda p: camera_sort_key(p.name))


def prepare_plot_folder(segment_dir: str | Path) -> Path:
    """Create <segment>/Plots/MovementDetection, emptying it if it already exists."""
    folder = Path(segment_dir).joinpath(*PLOTS_DIR)
    if folder.exists():
        for item in folder.iterdir():
            if item.is_dir():
                shutil.rmtree(item)
            else:
                item.unlink()
    else:
        folder.mkdir(parents=True)
    return folder


def viewer_asset_table(time: np.ndarray, limbs: dict) -> pd.DataFrame:
    """Per-camera table of raw/filtered distances, velocity and use signal.

    ``limbs`` maps 'RH'/'LH' to dicts with keys dist_raw, dist_filt,
    should_raw, should_filt, vel, use_signal.
    """
    cols = {TIME_COL: np.asarray(time, dtype=float)}
    for limb in LIMBS:
        d = limbs[limb]
        cols[DIST_RAW_COL.format(limb=limb)] = d["dist_raw"]
        cols[DIST_FILT_COL.format(limb=limb)] = d["dist_filt"]
        cols[SHOULDER_RAW_COL.format(limb=limb)] = d["should_raw"]
        cols[SHOULDER_FILT_COL.format(limb=limb)] = d["should_filt"]
        cols[VEL_COL.format(limb=limb)] = d["vel"]
        cols[USE_COL.format(limb=limb)] = np.asarray(d["use_signal"], dtype=bool)
    return pd.DataFrame(cols)


def save_viewer_asset_table(table: pd.DataFrame, segment_dir: str | Path, file_name: str) -> Path:
    out = Path(segment_dir) / VIEWER_ASSETS_DIR / Path(file_name).name
    out.parent.mkdir(parents=True, exist_ok=True)
    table.to_csv(out, index=False)
    return out


def combined_use_table(fused_rh, fused_lh) -> pd.DataFrame:
    """Align both limbs' fused signals on the union of their time bases.

    Timestamps missing from one limb's base view are NaN for that limb.
    """
    all_time = np.union1d(np.asarray(fused_rh.time, float), np.asarray(fused_lh.time, float))
    out = {TIME_COL: all_time}
    for label, fused in ((RIGHT, fused_rh), (LEFT, fused_lh)):
        col = np.full(all_time.shape, np.nan)
        _, idx_all, idx_f = np.intersect1d(all_time, np.asarray(fused.time, float), return_indices=True)
        col[idx_all] = np.asarray(fused.use_signal, dtype=float)[idx_f]
        out[label] = col
    return pd.DataFrame(out)


def save_combined_use_signal(table: pd.DataFrame, segment_dir: str | Path) -> Path:
    out = Path(segment_dir) / USE_SIGNAL_FILE
    out.parent.mkdir(parents=True, exist_ok=True)
    table.to_csv(out, index=False)
    return out
