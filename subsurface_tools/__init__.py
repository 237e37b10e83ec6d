"""Subsurface dive-log and GPX track tools.

Exposes the document models and the correlation helpers; see
``subsurface_tools.main`` for the command-line entry point.
"""

from .correlation import (
    FusedRecord,
    dive_to_track,
    dives_to_track,
    fuse,
    sites_to_track,
    track_depth,
    track_to_dive_log,
)
from .divelog import Dive, DiveLog, DiveSite, Sample, SiteRegistry
from .geo import Point
from .gpx import TrackPoint, TrackReader, TrackWriter
from .interpolator import Interpolator, MatchMode, SampleMatch

__all__ = [
    "Point",
    "Interpolator",
    "MatchMode",
    "SampleMatch",
    "DiveLog",
    "Dive",
    "DiveSite",
    "SiteRegistry",
    "Sample",
    "TrackPoint",
    "TrackReader",
    "TrackWriter",
    "FusedRecord",
    "fuse",
    "dive_to_track",
    "dives_to_track",
    "track_to_dive_log",
    "sites_to_track",
    "track_depth",
]
