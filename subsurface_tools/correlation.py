"""Cross-reference dive logs and GPS tracks by timestamp."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, Optional, Tuple

from .config import DIVE_TRACK_INTERVAL_S, REPORT_COLUMNS
from .divelog import Dive, DiveLog
from .errors import EmptyTrackError
from .gpx import TrackReader, TrackWriter
from .utils import round_to

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class FusedRecord:
    """Position and dive data known at one instant."""

    time: datetime
    lat: Optional[float] = None
    lon: Optional[float] = None
    alt: Optional[float] = None
    name: Optional[str] = None
    depth: Optional[float] = None
    temp: Optional[float] = None
    heart: Optional[float] = None

    @property
    def has_position(self) -> bool:
        return self.lat is not None and self.lon is not None

    def as_row(self) -> Dict[str, Any]:
        """Row keyed by the report column names."""

        values = (
            self.time,
            self.lat,
            self.lon,
            self.alt,
            self.name,
            self.depth,
            self.temp,
            self.heart,
        )
        return dict(zip(REPORT_COLUMNS, values))


def fuse(
    instant: datetime,
    track: Optional[TrackReader] = None,
    dive_log: Optional[DiveLog] = None,
) -> FusedRecord:
    """Merge the track position and the dive sample at ``instant``.

    The track position wins; the dive spot is used when the track has none.
    """

    record = FusedRecord(time=instant)
    position = track.position_at(instant) if track is not None else None
    found = dive_log.data_at(instant) if dive_log is not None else None
    if found is not None:
        dive, sample = found
        depth = sample.get("depth")
        record.depth = round_to(depth, 2) if depth is not None else None
        record.temp = sample.get("temp")
        record.heart = sample.get("heart")
        if position is None:
            position = dive.spot
    if position is not None:
        record.lat = position.lat
        record.lon = position.lon
        record.alt = position.alt
        record.name = position.name
    return record


def dive_to_track(
    dive: Dive,
    target_interval_s: int = DIVE_TRACK_INTERVAL_S,
    writer: Optional[TrackWriter] = None,
) -> TrackWriter:
    """Add the dive profile as a track below the dive spot.

    The interval is stretched so that the points split the dive evenly; each
    point sits at the spot altitude minus the depth at that instant (the mean
    depth when no sample covers it). Unlocated dives are skipped.
    """

    if target_interval_s <= 0:
        raise ValueError("target_interval_s must be positive")
    writer = writer if writer is not None else TrackWriter()
    spot = dive.spot
    if spot is None:
        LOGGER.info("Dive #%s without location, skipped", dive.number)
        return writer

    duration = dive.duration
    count = math.ceil(duration / target_interval_s) if duration > 0 else 0
    interval = math.ceil(duration / count) if count else 0
    group = f"Dive #{dive.number}"
    mean_depth = dive.depth.mean
    start = dive.start
    LOGGER.debug(
        "Dive #%s: %ds as %d points every %ds", dive.number, duration, count + 1, interval
    )

    writer.add_waypoint(spot)
    for step in range(count + 1):
        instant = start + timedelta(seconds=step * interval)
        sample = dive.sample_at(instant)
        if sample is not None and sample.get("depth") is not None:
            depth = round_to(sample["depth"], 2)
        else:
            depth = mean_depth
        writer.add_position(spot.with_alt(spot.alt - depth), instant, group)
    return writer


def dives_to_track(dive_log: DiveLog, target_interval_s: int = DIVE_TRACK_INTERVAL_S) -> str:
    """GPX text with one track and one spot waypoint per located dive."""

    writer = TrackWriter()
    for dive in dive_log:
        dive_to_track(dive, target_interval_s, writer)
    if not writer.has_content():
        raise EmptyTrackError("No localized dives found")
    return writer.finish()


def track_to_dive_log(track: TrackReader, dive_log: DiveLog) -> Tuple[int, int]:
    """Locate unlocated dives from the track and merge its waypoints as sites.

    Returns:
        ``(dives_located, waypoints_merged)``.
    """

    located = 0
    for dive in dive_log:
        if dive.is_localized:
            continue
        position = track.position_at(dive.start)
        if position is None:
            LOGGER.debug("Dive #%s: no track position at start", dive.number)
            continue
        dive.set_spot(position)
        located += 1

    merged = 0
    for waypoint in track.waypoints():
        dive_log.sites.by_position(waypoint, create=True)
        merged += 1
    LOGGER.info("Located %d dives, merged %d waypoints", located, merged)
    return located, merged


def sites_to_track(dive_log: DiveLog) -> str:
    """GPX text with a waypoint for every located site."""

    writer = TrackWriter()
    for site in dive_log.sites:
        if site.point is not None:
            writer.add_waypoint(site.point)
    if not writer.has_content():
        raise EmptyTrackError("No localized sites found")
    return writer.finish()


def track_depth(track: TrackReader, dive_log: DiveLog) -> str:
    """Re-emit ``track`` with altitudes lowered by the dive depth at each fix."""

    writer = TrackWriter()
    adjusted = 0
    for fix in track:
        point = fix.point
        sample = dive_log.sample_at(fix.time)
        if sample is not None and sample.get("depth") is not None:
            point = point.with_alt(point.alt - sample["depth"])
            adjusted += 1
        writer.add_position(point, fix.time, fix.track or None)
    for waypoint in track.waypoints():
        writer.add_waypoint(waypoint)
    LOGGER.info("Lowered %d track points by dive depth", adjusted)
    return writer.finish()
