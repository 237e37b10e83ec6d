"""Central configuration for the Subsurface dive-log tools.

All values are constants imported by the rest of the package. Adjust as needed
for your environment. Some values can be overridden through environment
variables (optionally via a local `.env`).
"""

from __future__ import annotations

import os

from dotenv import load_dotenv


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


# Load .env from the current directory or any parent folder.
load_dotenv()


# ---------------------------------------------------------------------------
# Geo settings
# ---------------------------------------------------------------------------
# Metres in one degree of latitude at the equator.
METERS_PER_DEGREE = 111317

# Number of latitude buckets (0.1 degree each) kept in the conversion cache.
DEGREE_FACTOR_CACHE_SIZE = _env_int("DEGREE_FACTOR_CACHE_SIZE", 1800)


# ---------------------------------------------------------------------------
# Dive log settings
# ---------------------------------------------------------------------------
# Sea level pressure (bar) used when converting ambient pressure to altitude.
DEFAULT_PRESSURE_BAR = 1.013

# Pressure assumed when a dive records none.
FALLBACK_PRESSURE_BAR = 1.0

# Salinity written by the salinity fix for devices without a water record.
DEFAULT_SALINITY = os.getenv("DEFAULT_SALINITY", "1030 g/l")

# A site closer than this (metres) to a searched position is reused.
SITE_MATCH_RADIUS_M = _env_float("SITE_MATCH_RADIUS_M", 200.0)

# Finest decimal precision used when scanning site coordinates (p=4 ~ 10 m).
SITE_SEARCH_MAX_PRECISION = 4

# Notes written into sites created from a bare position.
SITE_CREATED_NOTES = "## Created by subsurface-tools ##"

# Samples shallower than this (metres) after the final surface sample are
# dropped by the compaction pass.
COMPACT_SURFACE_DEPTH_M = _env_float("COMPACT_SURFACE_DEPTH_M", 1.0)


# ---------------------------------------------------------------------------
# Track settings
# ---------------------------------------------------------------------------
# Widest gap (seconds) between the query instant and the samples used to
# interpolate a track position.
TRACK_MAX_GAP_S = _env_int("TRACK_MAX_GAP_S", 1800)

# Waypoints closer than this (metres) lend their name to a track position.
WAYPOINT_NAME_RADIUS_M = _env_float("WAYPOINT_NAME_RADIUS_M", 10.0)

# Consecutive fixes closer than this (metres) count as stationary.
STATIONARY_RADIUS_M = _env_float("STATIONARY_RADIUS_M", 1.0)

# Target spacing (seconds) between points when exporting dives as tracks.
DIVE_TRACK_INTERVAL_S = _env_int("DIVE_TRACK_INTERVAL_S", 900)

# Creator attribute written into GPX documents.
GPX_CREATOR = "subsurface-tools"


# ---------------------------------------------------------------------------
# Timezone lookup (command-line only)
# ---------------------------------------------------------------------------
# geonames.org account used to resolve site timezones. Leave empty to fall
# back to the user supplied timezone.
GEONAMES_USERNAME = os.getenv("GEONAMES_USERNAME", "")
GEONAMES_TIMEZONE_URL = os.getenv(
    "GEONAMES_TIMEZONE_URL", "https://secure.geonames.org/timezoneJSON"
)
GEONAMES_ENABLED = _env_bool("GEONAMES_ENABLED", True)

# Request timeout in seconds.
REQUEST_TIMEOUT = _env_int("REQUEST_TIMEOUT", 15)


# ---------------------------------------------------------------------------
# Reports
# ---------------------------------------------------------------------------
# Column order for fused date reports.
REPORT_COLUMNS = [
    "DateTime",
    "GPSLatitude",
    "GPSLongitude",
    "GPSAltitude",
    "SpotName",
    "WaterDepth",
    "Temperature",
    "HeartRate",
]
EXCEL_DATETIME_FORMAT = "yyyy-mm-dd hh:mm:ss"
