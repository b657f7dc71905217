from __future__ import annotations
from typing import Optional, List, Dict, Tuple, Any
import io
import zipfile
import warnings
from fastapi import FastAPI, File, UploadFile, Form, HTTPException, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from starlette.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
import numpy as np
import pandas as pd

from .config.detection import DetectionConfig
from .config.settings import settings
from .pipeline.io_utils import read_camera_bytes, camera_sort_key
from .pipeline.pipeline import run_segment

app = FastAPI(
    title=settings.app_name,
    docs_url=("/docs" if settings.docs_enabled else None),
    redoc_url=("/redoc" if settings.docs_enabled else None),
    openapi_url=("/openapi.json" if settings.openapi_enabled else None),
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.allowed_origins),
    allow_credentials=settings.allow_credentials,
    allow_methods=list(settings.allowed_methods),
    allow_headers=list(settings.allowed_headers),
)

# Compression for the long per-sample signal arrays
app.add_middleware(GZipMiddleware, minimum_size=settings.gzip_min_size)

# Restrict Host headers when ALLOWED_HOSTS is set to specific values
if settings.allowed_hosts and settings.allowed_hosts != ("*",):
    app.add_middleware(TrustedHostMiddleware, allowed_hosts=list(settings.allowed_hosts))


def to_json_safe(obj: Any):
    """numpy arrays/scalars -> lists/floats; NaN -> None."""
    if isinstance(obj, np.ndarray):
        return [to_json_safe(x) for x in obj.tolist()]
    if isinstance(obj, np.generic):
        return to_json_safe(obj.item())
    if isinstance(obj, float) and not np.isfinite(obj):
        return None
    if isinstance(obj, dict):
        return {k: to_json_safe(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [to_json_safe(x) for x in obj]
    return obj


def _tables_from_archive(data: bytes) -> List[Tuple[str, bytes]]:
    try:
        zf = zipfile.ZipFile(io.BytesIO(data))
    except zipfile.BadZipFile:
        raise HTTPException(status_code=400, detail="Invalid zip archive")
    out: List[Tuple[str, bytes]] = []
    for zi in zf.infolist():
        if zi.is_dir() or not zi.filename.lower().endswith(".csv"):
            continue
        with zf.open(zi, "r") as fh:
            out.append((zi.filename.replace("\\", "/").split("/")[-1], fh.read()))
    return out


def _parse_cameras(payloads: List[Tuple[str, bytes]]) -> List[Tuple[int, pd.DataFrame]]:
    """Camera tables in the same order as camera_files() gives the batch driver."""
    keyed = []
    for name, data in payloads:
        try:
            keyed.append((camera_sort_key(name), name, data))
        except ValueError:
            raise HTTPException(status_code=400, detail=f"File '{name}' has no camera number in its name")

    cameras: List[Tuple[int, pd.DataFrame]] = []
    seen: set[int] = set()
    for (cam, _), name, data in sorted(keyed, key=lambda x: x[0]):
        if cam in seen:
            raise HTTPException(status_code=400, detail=f"Camera {cam} uploaded more than once")
        try:
            df = read_camera_bytes(data)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=f"Could not read '{name}': {exc}")
        seen.add(cam)
        cameras.append((cam, df))
    return cameras


@app.post("/api/detect/")
async def detect(
    files: Optional[List[UploadFile]] = File(None),
    archive: Optional[UploadFile] = File(None),
    fs_hz: Optional[float] = Form(None),
    order: Optional[int] = Form(None),
    shoulder_ratio: Optional[float] = Form(None),
    cutoff_hz: Optional[float] = Form(None),
    threshold_cutoff_hz: Optional[float] = Form(None),
    max_gap_s: Optional[float] = Form(None),
    too_fast_s: Optional[float] = Form(None),
    too_slow_s: Optional[float] = Form(None),
    include_signals: bool = Form(True),
):
    """Detect limb use in uploaded camera tables of one recording segment."""
    max_bytes = int(settings.max_upload_mb) * 1024 * 1024
    payloads: List[Tuple[str, bytes]] = []

    if archive is not None and getattr(archive, "filename", ""):
        if not archive.filename.lower().endswith(".zip"):
            raise HTTPException(status_code=400, detail="Archive must be a .zip file")
        data = await archive.read()
        if len(data) > max_bytes:
            raise HTTPException(status_code=413, detail=f"Archive exceeds limit of {settings.max_upload_mb} MB")
        payloads.extend(_tables_from_archive(data))

    for f in files or []:
        if f is None or not getattr(f, "filename", ""):
            continue
        data = await f.read()
        if len(data) > max_bytes:
            raise HTTPException(status_code=413, detail=f"File exceeds limit of {settings.max_upload_mb} MB")
        payloads.append((f.filename.replace("\\", "/").split("/")[-1], data))

    if not payloads:
        raise HTTPException(status_code=400, detail="Provide camera CSVs in 'files' or a .zip in 'archive'.")

    try:
        cfg = DetectionConfig.from_options(settings.detection_options(
            fs_hz=fs_hz,
            order=order,
            shoulder_ratio=shoulder_ratio,
            cutoff_hz=cutoff_hz,
            threshold_cutoff_hz=threshold_cutoff_hz,
            max_gap_s=max_gap_s,
            too_fast_s=too_fast_s,
            too_slow_s=too_slow_s,
        ))
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))

    cameras = _parse_cameras(payloads)
    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always")
        try:
            seg = run_segment(cameras, cfg)
        except (KeyError, ValueError) as exc:
            raise HTTPException(status_code=400, detail=str(exc))

    per_camera: List[Dict[str, Any]] = []
    for cam in seg.cameras:
        per_camera.append({
            "camera": cam.camera,
            "samples": int(cam.time.size),
            "limbs": {
                limb: {
                    "crossings": int(len(view.t_cross)),
                    **cam.summaries[limb],
                }
                for limb, view in cam.views.items()
            },
        })

    fused: Dict[str, Any] = {}
    for limb, f in seg.fused.items():
        entry: Dict[str, Any] = {
            "base_camera": f.base_camera,
            "n_views": f.n_views,
            "n_filled": f.n_filled,
            **seg.summaries[limb],
        }
        if include_signals:
            entry["time"] = f.time
            entry["use_signal"] = f.use_signal
        fused[limb] = entry

    result = {
        "config": cfg.as_dict(),
        "cameras": per_camera,
        "fused": fused,
        "warnings": [str(w.message) for w in caught],
    }
    return JSONResponse(content=to_json_safe(result))


@app.get("/")
async def read_index():
    return JSONResponse({"status": "ok", "app": settings.app_name})


# Quiet Chrome/Edge DevTools probes (prevent 404 spam in logs)
@app.get("/.well-known/appspecific/com.chrome.devtools.json")
async def chrome_devtools_probe():
    return Response(status_code=204)


@app.get("/health")
async def health():
    return JSONResponse({"status": "ok"})
