"""Dataclasses and constants for GPX documents."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from ..geo import Point

GPX_NS = "http://www.topografix.com/GPX/1/1"
XSI_NS = "http://www.w3.org/2001/XMLSchema-instance"
GPX_SCHEMA_LOCATION = f"{GPX_NS} http://www.topografix.com/GPX/1/1/gpx.xsd"


@dataclass(frozen=True, slots=True)
class TrackPoint:
    """A timestamped position fix and the name of the track holding it."""

    point: Point
    time: datetime
    track: str = ""
