from __future__ import annotations
import os
from dataclasses import dataclass
from typing import List, Optional


def _get_bool(env: str, default: bool) -> bool:
    val = os.getenv(env, "").strip().lower()
    if val in {"1", "true", "yes", "y", "on"}:
        return True
    if val in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _get_list(env: str, default: List[str]) -> tuple:
    raw = os.getenv(env)
    if not raw:
        return tuple(default)
    return tuple(p.strip() for p in raw.split(",") if p.strip())


def _get_float(env: str) -> Optional[float]:
    raw = os.getenv(env, "").strip()
    if not raw:
        return None
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{env} must be a number, got '{raw}'")


@dataclass(frozen=True)
class Settings:
    """Process-wide settings read once from the environment.

    Detection overrides (LIMBUSE_*) left unset fall back to the defaults in
    ``constants``; they are merged into DetectionConfig by ``detection_options``.
    """
    # Service
    app_name: str = os.getenv("APP_NAME", "Limb Use Detection API")
    host: str = os.getenv("HOST", "0.0.0.0")
    port: int = int(os.getenv("PORT", "8000"))
    workers: int = int(os.getenv("WORKERS", "1"))
    log_level: str = os.getenv("LOG_LEVEL", "info").lower()

    # CORS / hosts
    allowed_origins: tuple = _get_list("ALLOWED_ORIGINS", ["*"])
    allow_credentials: bool = _get_bool("ALLOW_CREDENTIALS", True)
    allowed_methods: tuple = _get_list("ALLOWED_METHODS", ["GET", "POST", "OPTIONS"])
    allowed_headers: tuple = _get_list("ALLOWED_HEADERS", ["*"])
    allowed_hosts: tuple = _get_list("ALLOWED_HOSTS", ["*"])

    # Uploads / responses
    gzip_min_size: int = int(os.getenv("GZIP_MIN_SIZE", "1024"))  # bytes
    max_upload_mb: int = int(os.getenv("MAX_UPLOAD_MB", "100"))
    openapi_enabled: bool = _get_bool("OPENAPI_ENABLED", False)
    docs_enabled: bool = _get_bool("DOCS_ENABLED", False)

    # Batch runs and plots
    data_root: str = os.getenv("DATA_ROOT", "data")
    report_tz: str = os.getenv("REPORT_TZ", "Australia/Brisbane")

    # Detection overrides
    fs_hz: Optional[float] = _get_float("LIMBUSE_FS_HZ")
    order: Optional[float] = _get_float("LIMBUSE_ORDER")
    cutoff_hz: Optional[float] = _get_float("LIMBUSE_CUTOFF_HZ")
    threshold_cutoff_hz: Optional[float] = _get_float("LIMBUSE_THRESHOLD_CUTOFF_HZ")
    shoulder_ratio: Optional[float] = _get_float("LIMBUSE_SHOULDER_RATIO")
    max_gap_s: Optional[float] = _get_float("LIMBUSE_MAX_GAP_S")
    too_fast_s: Optional[float] = _get_float("LIMBUSE_TOO_FAST_S")
    too_slow_s: Optional[float] = _get_float("LIMBUSE_TOO_SLOW_S")

    def detection_options(self, **overrides) -> dict:
        """Environment detection overrides, updated with non-None ``overrides``."""
        opts = {
            "fs_hz": self.fs_hz,
            "order": self.order,
            "cutoff_hz": self.cutoff_hz,
            "threshold_cutoff_hz": self.threshold_cutoff_hz,
            "shoulder_ratio": self.shoulder_ratio,
            "max_gap_s": self.max_gap_s,
            "too_fast_s": self.too_fast_s,
            "too_slow_s": self.too_slow_s,
        }
        opts.update({k: v for k, v in overrides.items() if v is not None})
        return opts


settings = Settings()
