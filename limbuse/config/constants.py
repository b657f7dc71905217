"""Centralized defaults, marker layout, and column names for limb-use detection."""
from __future__ import annotations

# Sampling / filtering
FS_HZ = 30.0
FILTER_ORDER = 2
POS_CUTOFF_HZ = 5.0           # wrist distance smoothing
THRESHOLD_CUTOFF_HZ = 0.05    # shoulder distance (adaptive threshold) smoothing
MIN_FILTER_SAMPLES = 7        # filtfilt needs a few valid points

# Movement detection
SHOULDER_RATIO = 0.2          # fraction of shoulder width a reversal must span
MAX_GAP_S = 0.2               # max consecutive missing samples inside a movement
TOO_FAST_S = 0.1              # movements this short (or shorter) are dropped
TOO_SLOW_S = 3.0              # movements this long (or longer) are dropped

# Limbs
RIGHT = "RH"
LEFT = "LH"
LIMBS = (RIGHT, LEFT)

# Marker ids in the camera tables (<id>_x, <id>_y)
WRIST_MARKER = {RIGHT: 11, LEFT: 10}
SHOULDER_MARKER = {RIGHT: 7, LEFT: 6}

# CSV column aliases (sanitized names)
TIME_CANDS = ["unix_time", "unixtime", "time", "timestamp", "time_s"]
CAMERA_GLOB = "Camera*.csv"

# Output layout
VIEWER_ASSETS_DIR = "ViewerAssets"
PLOTS_DIR = ("Plots", "MovementDetection")
USE_SIGNAL_FILE = "UseSignal.csv"
TIME_COL = "Time"
USE_COL = "{limb}_Use_Signal"
DIST_RAW_COL = "{limb}_Dist_to_Ori_raw"
DIST_FILT_COL = "{limb}_Dist_to_Ori_filt"
SHOULDER_RAW_COL = "{limb}_Dist_to_Should_raw"
SHOULDER_FILT_COL = "{limb}_Dist_to_Should_filt"
VEL_COL = "{limb}_Dist_to_Ori_vel"
