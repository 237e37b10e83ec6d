"""Tests for dive log documents and their bulk fixes."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from subsurface_tools.divelog import DiveLog
from subsurface_tools.errors import DiveLogFormatError, TimeZoneError
from subsurface_tools.geo import Point

COMPACT_XML = """<divelog><divesites/><dives>
<dive number='1' date='2023-01-01' time='08:00:00'>
<divecomputer model='Suunto'>
  <sample time='0:00 min' depth='0.0 m' />
  <sample time='1:00 min' depth='5.0 m' />
  <sample time='2:00 min' depth='5.0 m' temp='20.0 C' />
  <sample time='3:00 min' depth='5.0 m' />
  <sample time='4:00 min' depth='5.0 m' />
  <sample time='5:00 min' depth='2.0 m' />
  <sample time='6:00 min' depth='0.0 m' />
  <sample time='7:00 min' depth='0.5 m' />
  <sample time='8:00 min' depth='0.3 m' />
</divecomputer>
</dive>
</dives></divelog>"""


def test_rejects_unknown_root_and_malformed_text():
    with pytest.raises(DiveLogFormatError):
        DiveLog("<gpx/>")
    with pytest.raises(DiveLogFormatError):
        DiveLog("<divelog><dives>")


def test_bare_site_collection():
    log = DiveLog("<divesites><site uuid='1' name='A' gps='1 2'/></divesites>")
    assert len(log) == 0
    assert len(log.sites) == 1


def test_missing_site_collection_is_created_after_settings():
    log = DiveLog("<divelog><settings/><dives/></divelog>")
    assert len(log.sites) == 0
    log.sites.by_position(Point(1.0, 2.0), create=True)
    xml = log.to_xml()
    assert xml.index("<settings") < xml.index("<divesites") < xml.index("<dives />")
    assert "<site " in xml


def test_default_timezone_validation(dive_log):
    assert dive_log.default_timezone == "+0000"
    with pytest.raises(TimeZoneError):
        dive_log.default_timezone = "later"


def test_dives_are_ordered(dive_log):
    assert [d.number for d in dive_log] == [1, 2]
    assert len(dive_log) == 2
    assert dive_log.dives[0].site.name == "Reef North"


def test_data_at_finds_dive_in_progress(dive_log):
    instant = datetime(2023, 1, 1, 11, 1, 30, tzinfo=timezone.utc)
    dive, sample = dive_log.data_at(instant)
    assert dive.number == 1
    assert sample["depth"] == 7.5
    assert dive_log.dive_at(instant) is dive
    assert dive_log.sample_at(instant)["depth"] == 7.5

    later = datetime(2023, 1, 2, 9, 35, tzinfo=timezone.utc)
    assert dive_log.dive_at(later).number == 2
    assert dive_log.sample_at(later)["depth"] == 3.0

    nothing = datetime(2023, 1, 5, tzinfo=timezone.utc)
    assert dive_log.data_at(nothing) is None
    assert dive_log.dive_at(nothing) is None
    assert dive_log.sample_at(nothing) is None


def test_fix_salinity_is_idempotent(dive_log):
    assert dive_log.fix_salinity() == (2, 2)
    xml = dive_log.to_xml()
    assert xml.count('salinity="1030 g/l"') == 2
    # Inserted ahead of the sample stream.
    assert xml.index("<water") < xml.index("<sample")
    assert dive_log.fix_salinity() == (2, 0)


def test_fix_salinity_fills_empty_water_record():
    log = DiveLog(
        "<divelog><dives><dive number='1' date='2023-01-01' time='08:00:00'>"
        "<divecomputer><water salinity=''/></divecomputer>"
        "<divecomputer><water salinity='1000 g/l'/></divecomputer>"
        "</dive></dives></divelog>"
    )
    assert log.fix_salinity("1025 g/l") == (2, 1)
    xml = log.to_xml()
    assert 'salinity="1025 g/l"' in xml
    assert 'salinity="1000 g/l"' in xml


def test_fix_serial_is_idempotent(dive_log):
    assert dive_log.fix_serial() == (1, 1)
    assert '<extradata key="Serial" value="12345678"' in dive_log.to_xml()
    assert dive_log.fix_serial() == (1, 0)


def test_fix_serial_without_fingerprint_changes_nothing():
    log = DiveLog(
        "<divelog><dives><dive number='1' date='2023-01-01' time='08:00:00'>"
        "<divecomputer deviceid='ffff'/></dive></dives></divelog>"
    )
    assert log.fix_serial() == (1, 0)


def test_compact_samples_is_idempotent():
    log = DiveLog(COMPACT_XML)
    dive = log.dives[0]
    assert dive.duration == 480
    assert log.compact_samples() == 3
    assert [s.time for s in dive.samples()] == [0, 60, 120, 240, 300, 360]
    assert dive.duration == 360
    assert log.compact_samples() == 0


def test_compact_keeps_fixture_profile(dive_log):
    assert dive_log.compact_samples() == 0


def test_apply_timezones_keeps_existing_markers(dive_log):
    assert dive_log.apply_timezones("+0100") == (1, 1)
    reef = dive_log.sites.by_uuid("1a2b3c4d")
    wreck = dive_log.sites.by_uuid("5e6f7a8b")
    assert reef.timezone_marker == "-0300"
    assert wreck.timezone_marker == "+0100"
    assert dive_log.dives[0].timezone_marker is None
    assert dive_log.dives[1].tags == "boat, #tz:+0100"


def test_apply_timezones_replace_uses_resolver(dive_log):
    seen = []

    def resolver(point):
        seen.append(point.name)
        return "-0200"

    assert dive_log.apply_timezones("+0100", replace=True, resolver=resolver) == (2, 1)
    assert seen == ["Reef North"]
    assert dive_log.sites.by_uuid("1a2b3c4d").notes == "Nice reef #tz:-0200"
    assert dive_log.dives[0].timezone == "-0200"


def test_apply_timezones_resolver_may_decline(dive_log):
    dive_log.apply_timezones("+0100", replace=True, resolver=lambda point: None)
    assert dive_log.sites.by_uuid("1a2b3c4d").timezone_marker == "+0100"


def test_apply_timezones_rejects_bad_token(dive_log):
    with pytest.raises(TimeZoneError):
        dive_log.apply_timezones("somewhere")


def test_to_xml_round_trips(dive_log):
    dive_log.fix_salinity()
    again = DiveLog(dive_log.to_xml())
    assert len(again) == 2
    assert len(again.sites) == 2
    assert again.fix_salinity() == (2, 0)
    assert str(again) == again.to_xml()
