"""GPX writer accumulating waypoints and grouped track positions."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Tuple

from ..config import GPX_CREATOR, STATIONARY_RADIUS_M
from ..errors import EmptyTrackError
from ..geo import Point
from ..structure import Struct, to_markup
from ..utils import format_number, format_utc
from .models import GPX_NS, GPX_SCHEMA_LOCATION, XSI_NS

LOGGER = logging.getLogger(__name__)

Fix = Tuple[Point, datetime]


@dataclass(slots=True)
class _Track:
    name: str
    segments: List[List[Fix]] = field(default_factory=lambda: [[]])


class TrackWriter:
    """Build a GPX document from waypoints and positions.

    Positions are grouped into tracks by a label; a label change closes the
    current track and opens a new one.

    Args:
        track_waypoints: Add ``"<track>: Start Point"`` and
            ``"<track>: End Point"`` waypoints to every track.
        suppress_stationary: Hold back fixes within the stationary radius of
            the last stored fix. The held fix (latest time and altitude) is
            written once movement resumes or the segment closes.
    """

    def __init__(self, track_waypoints: bool = False, suppress_stationary: bool = False) -> None:
        self._track_waypoints = bool(track_waypoints)
        self._suppress_stationary = bool(suppress_stationary)
        self._reset()

    def _reset(self) -> None:
        self._tracks: List[_Track] = []
        self._waypoints: List[Point] = []
        self._current: Optional[_Track] = None
        self._last: Optional[Point] = None
        self._stopped_until: Optional[datetime] = None

    def add_waypoint(self, point: Point) -> None:
        self._waypoints.append(point)

    def add_position(
        self,
        point: Point,
        instant: datetime,
        group: Optional[str] = None,
        new_segment: bool = False,
    ) -> None:
        """Append a fix to the track named ``group`` (the fix date by default)."""

        if group is None:
            group = instant.date().isoformat()
        if self._current is None or group != self._current.name:
            if self._current is not None:
                self._end_track()
            self._start_track(group, point)
        elif new_segment:
            self._flush_stationary()
            self._current.segments.append([])
        elif (
            self._suppress_stationary
            and self._last is not None
            and self._last.distance_to(point) <= STATIONARY_RADIUS_M
        ):
            self._stopped_until = instant
            self._last = self._last.with_alt(point.alt)
            return

        self._flush_stationary()
        self._last = point
        self._current.segments[-1].append((point, instant))

    def has_content(self) -> bool:
        return bool(self._tracks or self._waypoints)

    def finish(self) -> str:
        """Serialize everything accumulated so far and start over.

        Raises:
            EmptyTrackError: If no waypoint or position was added.
        """

        if not self.has_content():
            raise EmptyTrackError("No track or waypoint to write")
        if self._current is not None:
            self._end_track()
        document = self._build()
        LOGGER.debug(
            "Wrote GPX with %d tracks and %d waypoints",
            len(self._tracks),
            len(self._waypoints),
        )
        self._reset()
        return '<?xml version="1.0" encoding="UTF-8"?>\n' + to_markup(document, "gpx")

    def _start_track(self, group: str, point: Point) -> None:
        self._current = _Track(name=group)
        self._tracks.append(self._current)
        if self._track_waypoints:
            self.add_waypoint(point.with_name(f"{group}: Start Point"))

    def _end_track(self) -> None:
        self._flush_stationary()
        if self._track_waypoints and self._last is not None and self._current is not None:
            self.add_waypoint(self._last.with_name(f"{self._current.name}: End Point"))
        self._current = None

    def _flush_stationary(self) -> None:
        if self._stopped_until is None or self._current is None or self._last is None:
            return
        self._current.segments[-1].append((self._last, self._stopped_until))
        self._stopped_until = None

    def _build(self) -> Struct:
        document = Struct(
            attributes={
                "xmlns": GPX_NS,
                "creator": GPX_CREATOR,
                "version": "1.1",
                "xmlns:xsi": XSI_NS,
                "xsi:schemaLocation": GPX_SCHEMA_LOCATION,
            }
        )
        unnamed = 0
        for waypoint in self._waypoints:
            name = waypoint.name
            if not name:
                unnamed += 1
                name = f"POI #{unnamed}"
            wpt = document.add("wpt", self._point_struct(waypoint))
            wpt.add("name", Struct(text=name))
        for track in self._tracks:
            trk = document.add("trk", Struct())
            trk.add("name", Struct(text=track.name))
            for segment in track.segments:
                trkseg = trk.add("trkseg", Struct())
                for point, instant in segment:
                    trkpt = trkseg.add("trkpt", self._point_struct(point))
                    trkpt.add("time", Struct(text=format_utc(instant)))
        return document

    @staticmethod
    def _point_struct(point: Point) -> Struct:
        struct = Struct(
            attributes={"lat": format_number(point.lat), "lon": format_number(point.lon)}
        )
        struct.add("ele", Struct(text=format_number(point.alt)))
        return struct
