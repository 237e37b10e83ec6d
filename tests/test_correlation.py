"""Tests for fusing and converting between dive logs and tracks."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from subsurface_tools.correlation import (
    FusedRecord,
    dive_to_track,
    dives_to_track,
    fuse,
    sites_to_track,
    track_depth,
    track_to_dive_log,
)
from subsurface_tools.divelog import DiveLog
from subsurface_tools.errors import EmptyTrackError
from subsurface_tools.gpx import TrackReader, TrackWriter


def _utc(*args):
    return datetime(*args, tzinfo=timezone.utc)


def test_fuse_prefers_track_position(track, dive_log):
    record = fuse(_utc(2023, 1, 2, 9, 35), track, dive_log)
    assert record.lat == -23.00175
    assert record.lon == -44.00175
    assert record.alt == 3.5
    assert record.name is None
    assert record.depth == 3.0
    assert record.has_position


def test_fuse_falls_back_to_dive_spot(dive_log):
    record = fuse(_utc(2023, 1, 1, 11, 1, 30), dive_log=dive_log)
    assert (record.lat, record.lon, record.alt) == (-23.0, -44.0, 0.0)
    assert record.name == "Reef North"
    assert record.depth == 7.5
    assert record.temp == 25.0
    assert record.heart is None


def test_fuse_without_sources():
    instant = _utc(2023, 1, 1)
    record = fuse(instant)
    assert record == FusedRecord(time=instant)
    assert not record.has_position


def test_fused_record_row_order():
    record = FusedRecord(time=_utc(2023, 1, 1), lat=1.0, lon=2.0, depth=3.0)
    row = record.as_row()
    assert list(row) == [
        "DateTime",
        "GPSLatitude",
        "GPSLongitude",
        "GPSAltitude",
        "SpotName",
        "WaterDepth",
        "Temperature",
        "HeartRate",
    ]
    assert row["WaterDepth"] == 3.0


def test_dive_to_track_spreads_points_evenly(dive_log):
    dive = dive_log.dives[0]
    writer = dive_to_track(dive, 250)
    reader = TrackReader(writer.finish())
    points = list(reader)
    # 600 s in 3 steps of 200 s, both ends included.
    assert [p.time for p in points] == [
        _utc(2023, 1, 1, 11, 0, 0),
        _utc(2023, 1, 1, 11, 3, 20),
        _utc(2023, 1, 1, 11, 6, 40),
        _utc(2023, 1, 1, 11, 10, 0),
    ]
    assert [p.point.alt for p in points] == [0.0, -10.0, -6.67, 0.0]
    assert {p.track for p in points} == {"Dive #1"}
    assert [w.name for w in reader.waypoints()] == ["Reef North"]


def test_dive_to_track_uses_mean_depth_without_samples():
    log = DiveLog(
        "<divelog><divesites><site uuid='a' name='Reef' gps='-23 -44'/></divesites><dives>"
        "<dive number='3' divesiteid='a' date='2023-01-01' time='08:00:00' duration='30:00 min'>"
        "<divecomputer><depth max='12.0 m' mean='8.0 m'/><surface pressure='1.013 bar'/></divecomputer>"
        "</dive></dives></divelog>"
    )
    points = list(TrackReader(dive_to_track(log.dives[0], 900).finish()))
    assert len(points) == 3
    assert {p.point.alt for p in points} == {-8.0}


def test_dive_without_duration_is_a_single_point():
    log = DiveLog(
        "<divelog><divesites><site uuid='a' name='Reef' gps='-23 -44'/></divesites><dives>"
        "<dive number='4' divesiteid='a' date='2023-01-01' time='08:00:00'/></dives></divelog>"
    )
    points = list(TrackReader(dive_to_track(log.dives[0], 900).finish()))
    assert len(points) == 1


def test_dive_to_track_skips_unlocated_dive(dive_log):
    writer = TrackWriter()
    assert dive_to_track(dive_log.dives[1], 300, writer) is writer
    assert not writer.has_content()


def test_dive_to_track_rejects_bad_interval(dive_log):
    with pytest.raises(ValueError):
        dive_to_track(dive_log.dives[0], 0)


def test_dives_to_track(dive_log):
    text = dives_to_track(dive_log, 300)
    assert text.count("<trk>") == 1
    assert "<name>Dive #1</name>" in text


def test_dives_to_track_without_located_dives():
    log = DiveLog("<divelog><dives><dive number='1' date='2023-01-01' time='08:00:00'/></dives></divelog>")
    with pytest.raises(EmptyTrackError):
        dives_to_track(log)


def test_track_to_dive_log_locates_dives_and_merges_waypoints(track, dive_log):
    assert track_to_dive_log(track, dive_log) == (1, 1)
    dive = dive_log.dives[1]
    assert dive.site.uuid == "5e6f7a8b"
    assert dive.spot.coords == "-23.0015 -44.0015"
    assert len(dive_log.sites) == 3
    created = [site for site in dive_log.sites if site.name == "Boat Ramp"]
    assert len(created) == 1

    # Second pass: nothing left to locate, waypoint site reused.
    assert track_to_dive_log(track, dive_log) == (0, 1)
    assert len(dive_log.sites) == 3


def test_sites_to_track(dive_log):
    waypoints = list(TrackReader(sites_to_track(dive_log)).waypoints())
    assert [(w.name, w.coords) for w in waypoints] == [("Reef North", "-23 -44")]


def test_sites_to_track_without_located_sites():
    with pytest.raises(EmptyTrackError):
        sites_to_track(DiveLog("<divesites><site uuid='1' name='A'/></divesites>"))


def test_track_depth_lowers_fixes_during_dives(track, dive_log):
    reader = TrackReader(track_depth(track, dive_log))
    points = list(reader)
    assert [p.point.alt for p in points] == [0.0, 0.0, 2.0, -2.0]
    assert {p.track for p in points} == {"Morning"}
    assert [w.name for w in reader.waypoints()] == ["Boat Ramp"]
