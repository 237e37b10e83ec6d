"""Global pytest fixtures & helpers.

Adds project root to path and provides small dive-log and GPX documents
shared by the model, correlation and command-line tests.
"""
from __future__ import annotations

import os
import sys

import pytest

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from subsurface_tools.divelog import DiveLog
from subsurface_tools.gpx import TrackReader


# --- Documents -------------------------------------------------------
# Dive 1 sits at a located site whose notes carry "#tz:-0300"; dive 2 is
# linked to a site without a position and has no marker of its own.
DIVELOG_XML = """<divelog program='subsurface' version='3'>
<settings>
<fingerprint model='ea0a' serial='12345678' deviceid='3a5e0c1d' diveid='1f2e3d4c' data='00'/>
</settings>
<divesites>
<site uuid='1a2b3c4d' name='Reef North' gps='-23.000000 -44.000000'>
  <notes>Nice reef #tz:-0300</notes>
</site>
<site uuid='5e6f7a8b' name='Unknown Wreck'/>
</divesites>
<dives>
<dive number='1' divesiteid='1a2b3c4d' date='2023-01-01' time='08:00:00' duration='10:00 min'>
<divecomputer model='Suunto' deviceid='3a5e0c1d'>
  <depth max='10.0 m' mean='5.0 m' />
  <surface pressure='1.013 bar' />
  <sample time='0:00 min' depth='0.0 m' temp='25.0 C' />
  <sample time='1:00 min' depth='5.0 m' />
  <sample time='2:00 min' depth='10.0 m' />
  <sample time='5:00 min' depth='10.0 m' />
  <sample time='8:00 min' depth='4.0 m' />
  <sample time='10:00 min' depth='0.0 m' />
</divecomputer>
</dive>
<dive number='2' divesiteid='5e6f7a8b' date='2023-01-02' time='09:30:00' duration='20:00 min' tags='boat'>
<divecomputer model='Shearwater'>
  <depth max='6.0 m' mean='3.0 m' />
  <sample time='0:00 min' depth='0.0 m' />
  <sample time='10:00 min' depth='6.0 m' />
  <sample time='20:00 min' depth='0.0 m' />
</divecomputer>
</dive>
</dives>
</divelog>
"""

# The "Boat Ramp" waypoint coincides with the first fix of the track.
GPX_XML = """<?xml version="1.0" encoding="UTF-8"?>
<gpx version="1.1" creator="test" xmlns="http://www.topografix.com/GPX/1/1">
  <wpt lat="-23.0100000" lon="-44.0100000"><ele>0</ele><name>Boat Ramp</name></wpt>
  <trk>
    <name>Morning</name>
    <trkseg>
      <trkpt lat="-23.0100000" lon="-44.0100000"><ele>0</ele><time>2023-01-02T08:40:00Z</time></trkpt>
      <trkpt lat="-23.0000000" lon="-44.0000000"><ele>0</ele><time>2023-01-02T09:00:00Z</time></trkpt>
      <trkpt lat="-23.0010000" lon="-44.0010000"><ele>2</ele><time>2023-01-02T09:20:00Z</time></trkpt>
      <trkpt lat="-23.0020000" lon="-44.0020000"><ele>4</ele><time>2023-01-02T09:40:00Z</time></trkpt>
    </trkseg>
  </trk>
</gpx>
"""


# --- Fixtures --------------------------------------------------------
@pytest.fixture
def divelog_xml():
    return DIVELOG_XML


@pytest.fixture
def gpx_xml():
    return GPX_XML


@pytest.fixture
def dive_log():
    log = DiveLog(DIVELOG_XML)
    log.default_timezone = "+0000"
    return log


@pytest.fixture
def track():
    return TrackReader(GPX_XML)
