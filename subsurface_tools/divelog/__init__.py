"""Subsurface dive log model."""

from .dives import Dive, pressure_to_altitude
from .document import DiveLog
from .models import DepthStats, Sample
from .sites import DiveSite, SiteRegistry
from .timezones import (
    find_marker,
    is_timezone,
    system_timezone,
    timezone_info,
    validate_timezone,
    write_marker,
)

__all__ = [
    "DiveLog",
    "Dive",
    "DiveSite",
    "SiteRegistry",
    "Sample",
    "DepthStats",
    "pressure_to_altitude",
    "find_marker",
    "is_timezone",
    "system_timezone",
    "timezone_info",
    "validate_timezone",
    "write_marker",
]
