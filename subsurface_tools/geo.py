"""Planar geo helpers: points, short-range distances and degree conversion.

Distances treat a latitude/longitude delta as a flat 2-D vector and scale it
by the length of one degree at the mean latitude. This is accurate enough for
the few hundred metres separating dive sites and track fixes, and wrong over
long ranges.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace

from cachetools import LRUCache, cached

from .config import DEGREE_FACTOR_CACHE_SIZE, METERS_PER_DEGREE
from .utils import format_number, round_to


@cached(cache=LRUCache(maxsize=DEGREE_FACTOR_CACHE_SIZE))
def _degree_factor(bucket: float) -> int:
    return int(METERS_PER_DEGREE * math.cos(math.radians(bucket)))


def degree_factor(lat: float = 0.0) -> int:
    """Metres per degree around ``lat``, memoized per 0.1 degree bucket."""

    return _degree_factor(round_to(lat, 1))


def degrees_to_meters(deg: float, lat: float = 0.0) -> float:
    return deg * degree_factor(lat)


def meters_to_degrees(meters: float, lat: float = 0.0) -> float:
    return meters / degree_factor(lat)


@dataclass(frozen=True, slots=True)
class Point:
    """A geographic position.

    Attributes:
        lat: Latitude in decimal degrees, rounded to 7 decimals.
        lon: Longitude in decimal degrees, rounded to 7 decimals.
        alt: Altitude in metres, rounded to 2 decimals.
        name: Optional label (site or waypoint name).
    """

    lat: float
    lon: float
    alt: float = 0.0
    name: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "lat", round_to(self.lat, 7))
        object.__setattr__(self, "lon", round_to(self.lon, 7))
        object.__setattr__(self, "alt", round_to(self.alt or 0.0, 2))

    @property
    def coords(self) -> str:
        """``"lat lon"`` as written in Subsurface ``gps`` attributes."""

        return f"{format_number(self.lat)} {format_number(self.lon)}"

    @property
    def desc(self) -> str:
        return self.name or self.coords

    def with_alt(self, alt: float) -> "Point":
        return replace(self, alt=alt)

    def with_name(self, name: str | None) -> "Point":
        return replace(self, name=name)

    def distance_to(self, other: "Point") -> float:
        return distance_to(self, other)

    def calculated_timezone(self) -> str:
        return calculated_timezone(self)


def distance_to(a: Point, b: Point) -> float:
    """Planar distance in metres between two points."""

    dh = math.hypot(b.lon - a.lon, b.lat - a.lat)
    return degrees_to_meters(dh, (a.lat + b.lat) / 2)


def calculated_timezone(point: Point) -> str:
    """Estimate a ``±HH00`` offset from longitude (15 degrees per hour).

    Political borders are ignored, so this is only a last resort.
    """

    hours = int(round_to(point.lon / 15, 0))
    sign = "-" if hours < 0 else "+"
    return f"{sign}{abs(hours):02d}00"
