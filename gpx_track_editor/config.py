"""Central configuration for the GPX track editor.

All values are constants imported by the rest of the package. Most can be
overridden through environment variables (optionally via a local `.env`).
"""

from __future__ import annotations

import importlib
import os


def _env_float(key: str, default: float) -> float:
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _env_int(key: str, default: int) -> int:
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _env_bool(key: str, default: bool) -> bool:
    value = os.getenv(key)
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    return default


# Load .env variables when python-dotenv is available.
_load_dotenv = None
try:
    _dotenv_mod = importlib.import_module("dotenv")
    _load_dotenv = getattr(_dotenv_mod, "load_dotenv", None)
except Exception:
    _load_dotenv = None

if callable(_load_dotenv):
    # Load .env from the current directory or any parent folder.
    _load_dotenv()


# ---------------------------------------------------------------------------
# Input/Output
# ---------------------------------------------------------------------------
# Output name used when the CLI is not given an explicit path.
OUTPUT_FILE = "edited_track"

# Append _YYYYMMDD_HHMMSS to the output name when True.
OUTPUT_FILE_TIMESTAMP_ENABLED = _env_bool("OUTPUT_FILE_TIMESTAMP_ENABLED", False)

# Value written to the GPX ``creator`` attribute.
GPX_CREATOR = os.getenv("GPX_CREATOR", "gpx_track_editor")


# ---------------------------------------------------------------------------
# Spatial index
# ---------------------------------------------------------------------------
# Half the side (metres) of the square planar cell indexed around each point.
SPATIAL_CELL_HALF_SIZE_M = _env_float("SPATIAL_CELL_HALF_SIZE_M", 5.0)

# Initial radius (metres) around a pick ray used to gather candidates. The
# radius doubles until a candidate is confirmed nearest.
RAY_SEARCH_RADIUS_M = _env_float("RAY_SEARCH_RADIUS_M", 10.0)

# Below this many points the ray query simply scans every point.
RAY_LINEAR_SCAN_MAX_POINTS = _env_int("RAY_LINEAR_SCAN_MAX_POINTS", 64)


# ---------------------------------------------------------------------------
# Loop tools
# ---------------------------------------------------------------------------
# Endpoints closer than this (metres) are treated as the same place.
LOOP_EXACT_TOLERANCE_M = _env_float("LOOP_EXACT_TOLERANCE_M", 1.0)

# Endpoints closer than this (metres) make the track an "almost" loop.
LOOP_ALMOST_THRESHOLD_M = _env_float("LOOP_ALMOST_THRESHOLD_M", 200.0)

# Distance (metres) behind the start where the closing lead-in point lands.
LOOP_CLOSING_LEAD_M = _env_float("LOOP_CLOSING_LEAD_M", 1.0)


# ---------------------------------------------------------------------------
# Transforms
# ---------------------------------------------------------------------------
# Default spacing (metres) between points on a smoothed bend.
BEND_DEFAULT_SPACING_M = _env_float("BEND_DEFAULT_SPACING_M", 5.0)

# Largest planar shift (metres) a single move may apply.
MOVE_MAX_MAGNITUDE_M = _env_float("MOVE_MAX_MAGNITUDE_M", 100.0)

# Quick-fix decimates until the mean spacing reaches this many metres.
QUICK_FIX_TARGET_SPACING_M = _env_float("QUICK_FIX_TARGET_SPACING_M", 25.0)

# Upper bound on decimation passes so pathological input always terminates.
QUICK_FIX_MAX_DECIMATION_PASSES = _env_int("QUICK_FIX_MAX_DECIMATION_PASSES", 50)

# Points emitted per control-polygon span by the spline approximation.
QUICK_FIX_SAMPLES_PER_SPAN = _env_int("QUICK_FIX_SAMPLES_PER_SPAN", 4)

# Number of centroid smoothing passes applied at the end of a quick-fix.
QUICK_FIX_CENTROID_PASSES = 3


# ---------------------------------------------------------------------------
# Track splitter
# ---------------------------------------------------------------------------
# Extra distance (metres) kept before each split segment for a start pen.
PEN_BUFFER_START_M = _env_float("PEN_BUFFER_START_M", 60.0)

# Extra distance (metres) kept after each split segment for a finish pen.
PEN_BUFFER_END_M = _env_float("PEN_BUFFER_END_M", 140.0)

# Pause (seconds) between consecutive segment hand-offs to the exporter.
SPLIT_EXPORT_DELAY_S = _env_float("SPLIT_EXPORT_DELAY_S", 2.0)


# ---------------------------------------------------------------------------
# Undo/redo
# ---------------------------------------------------------------------------
# Maximum number of undo entries retained. Set to 0 for an unbounded history.
UNDO_HISTORY_LIMIT: int | None = _env_int("UNDO_HISTORY_LIMIT", 0)
if UNDO_HISTORY_LIMIT is not None and UNDO_HISTORY_LIMIT <= 0:
    UNDO_HISTORY_LIMIT = None
