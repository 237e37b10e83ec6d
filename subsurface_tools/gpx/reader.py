"""GPX reader: waypoints, track points and interpolated positions."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Iterator, Optional
from xml.etree import ElementTree as ET
from xml.etree.ElementTree import Element

from defusedxml import ElementTree as SafeET
from defusedxml.common import DefusedXmlException

from ..config import TRACK_MAX_GAP_S, WAYPOINT_NAME_RADIUS_M
from ..errors import TrackFormatError
from ..geo import Point
from ..interpolator import Interpolator
from ..structure import Struct, find_child, iter_elements, local_name, to_struct
from ..utils import epoch_seconds, parse_iso8601
from .models import TrackPoint

LOGGER = logging.getLogger(__name__)


def _has_position(element: Element) -> bool:
    return element.get("lat") is not None and element.get("lon") is not None


def _struct_to_point(struct: Struct) -> Point:
    """Build a point from a ``trkpt``/``wpt`` structure (depth >= 1)."""

    try:
        lat = float(struct.attributes["lat"])
        lon = float(struct.attributes["lon"])
        ele = struct.child_text("ele")
        alt = float(ele) if ele else 0.0
    except (KeyError, ValueError) as exc:
        raise TrackFormatError(f"Invalid GPX point {struct.attributes}: {exc}") from exc
    return Point(lat, lon, alt, name=struct.child_text("name") or None)


def _struct_time(struct: Struct) -> Optional[datetime]:
    text = struct.child_text("time")
    if not text:
        return None
    try:
        return parse_iso8601(text)
    except ValueError as exc:
        raise TrackFormatError(str(exc)) from exc


class TrackReader:
    """Read-only view of a GPX document.

    Args:
        text: GPX XML text.

    Raises:
        TrackFormatError: If the text is not well-formed or its root is not
            ``gpx``.
    """

    def __init__(self, text: str | bytes) -> None:
        try:
            root = SafeET.fromstring(text)
        except (ET.ParseError, DefusedXmlException) as exc:
            raise TrackFormatError(f"Invalid GPX XML: {exc}") from exc
        if local_name(root.tag) != "gpx":
            raise TrackFormatError(f"Invalid GPX XML: unexpected root <{local_name(root.tag)}>")
        self._root = root
        self._samples: Optional[Interpolator] = None

    def __iter__(self) -> Iterator[TrackPoint]:
        """Timestamped track points in document order."""

        for track in iter_elements(self._root, "trk"):
            name_el = find_child(track, "name")
            name = (name_el.text or "").strip() if name_el is not None else ""
            for element in iter_elements(track, "trkpt", _has_position):
                struct = to_struct(element, 1)
                time = _struct_time(struct)
                if time is None:
                    continue
                yield TrackPoint(point=_struct_to_point(struct), time=time, track=name)

    def waypoints(self) -> Iterator[Point]:
        for element in iter_elements(self._root, "wpt", _has_position):
            yield _struct_to_point(to_struct(element, 1))

    def position_at(self, instant: datetime) -> Optional[Point]:
        """Position at ``instant`` interpolated between recorded fixes.

        Extrapolated positions and fixes further than the configured gap from
        ``instant`` are rejected.
        """

        samples = self._load_samples()
        match = samples.sample_at(epoch_seconds(instant))
        if match is None:
            return None
        if not match.interpolated or match.gap > TRACK_MAX_GAP_S:
            LOGGER.debug(
                "Rejected %s position at %s (gap %.0fs)",
                match.mode.value,
                instant.isoformat(),
                match.gap,
            )
            return None
        point = Point(match["lat"], match["lon"], match.get("alt") or 0.0)
        return point.with_name(self.position_name(point))

    def position_name(self, point: Point) -> Optional[str]:
        """Name of ``point`` or of the nearest named waypoint close to it."""

        if point.name:
            return point.name
        nearest: Optional[Point] = None
        best = WAYPOINT_NAME_RADIUS_M
        for waypoint in self.waypoints():
            if not waypoint.name:
                continue
            distance = point.distance_to(waypoint)
            if distance <= best:
                best = distance
                nearest = waypoint
        return nearest.name if nearest is not None else None

    def _load_samples(self) -> Interpolator:
        if self._samples is not None:
            return self._samples
        samples = Interpolator("time")
        for element in iter_elements(self._root, "trkpt", _has_position):
            struct = to_struct(element, 1)
            time = _struct_time(struct)
            if time is None:
                continue
            point = _struct_to_point(struct)
            samples.add(
                {
                    "time": epoch_seconds(time),
                    "lat": point.lat,
                    "lon": point.lon,
                    "alt": point.alt,
                }
            )
        LOGGER.debug("Loaded %d track samples", len(samples))
        self._samples = samples
        return samples
