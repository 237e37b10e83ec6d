"""Dive sites and the registry that resolves them by uuid or position."""

from __future__ import annotations

import logging
import math
from typing import Dict, Iterator, List, Optional, Sequence, Tuple
from xml.etree.ElementTree import Element, SubElement

from ..config import (
    SITE_CREATED_NOTES,
    SITE_MATCH_RADIUS_M,
    SITE_SEARCH_MAX_PRECISION,
)
from ..errors import SiteCollisionError
from ..geo import Point, meters_to_degrees
from ..structure import find_child, iter_elements
from ..utils import string_hash
from .timezones import find_marker, write_marker

LOGGER = logging.getLogger(__name__)


class DiveSite:
    """A ``site`` element: uuid, name, optional GPS position and notes."""

    def __init__(self, element: Element) -> None:
        self._element = element
        self._point: Optional[Point] = None
        self._point_loaded = False
        self.revision = 0

    def __repr__(self) -> str:
        return f"DiveSite(uuid={self.uuid!r}, name={self.name!r})"

    @property
    def uuid(self) -> str:
        return (self._element.get("uuid") or "").strip()

    @property
    def name(self) -> Optional[str]:
        return self._element.get("name")

    @property
    def point(self) -> Optional[Point]:
        """Site position named after the site (or its coordinates), if located."""

        if not self._point_loaded:
            self._point = self._parse_gps()
            self._point_loaded = True
        return self._point

    @property
    def is_localized(self) -> bool:
        return self.point is not None

    @property
    def notes(self) -> str:
        notes = find_child(self._element, "notes")
        if notes is None:
            return ""
        return notes.text or ""

    @notes.setter
    def notes(self, text: str) -> None:
        notes = find_child(self._element, "notes")
        if notes is None:
            notes = SubElement(self._element, "notes")
        notes.text = text
        self.revision += 1

    @property
    def timezone_marker(self) -> Optional[str]:
        return find_marker(self.notes)

    def set_timezone(self, token: str) -> "DiveSite":
        self.notes = write_marker(self.notes, token)
        return self

    @property
    def calculated_timezone(self) -> Optional[str]:
        point = self.point
        if point is None:
            return None
        return point.calculated_timezone()

    def set_position(self, point: Point, force: bool = False) -> bool:
        """Write ``point`` as the site GPS position.

        Returns False (and leaves the site alone) when the site is already
        located, unless ``force`` is set.
        """

        if self._element.get("gps") and not force:
            return False
        self._element.set("gps", point.coords)
        self._point_loaded = False
        self.revision += 1
        return True

    def _parse_gps(self) -> Optional[Point]:
        gps = (self._element.get("gps") or "").strip()
        if not gps:
            return None
        coords = gps.split()
        try:
            lat, lon = float(coords[0]), float(coords[1])
        except (IndexError, ValueError):
            LOGGER.warning("Site %s has an unreadable gps value %r", self.uuid, gps)
            return None
        return Point(lat, lon, name=self.name or gps)


def _cell(value: float, precision: int) -> int:
    return math.trunc(value * 10**precision)


def _same_cell(a: Point, b: Point, precision: int) -> bool:
    """True when ``b`` lies in ``a``'s lat/lon cell at ``precision`` or a neighbour."""

    return (
        abs(_cell(a.lat, precision) - _cell(b.lat, precision)) <= 1
        and abs(_cell(a.lon, precision) - _cell(b.lon, precision)) <= 1
    )


class SiteRegistry:
    """The ``divesites`` collection of a dive log.

    Sites are indexed by uuid; position look-ups narrow candidates through
    coordinate cells of increasing precision before measuring distances.

    Precision bands (cell size):

    * p = 0, ~100 km
    * p = 1, ~10 km
    * p = 2, ~1 km
    * p = 3, ~100 m
    * p = 4, ~10 m
    """

    def __init__(self, element: Element) -> None:
        self._element = element
        self._sites: Dict[str, DiveSite] = {}
        for site_el in iter_elements(element, "site"):
            site = DiveSite(site_el)
            if site.uuid in self._sites:
                LOGGER.warning("Duplicate site uuid %s ignored", site.uuid)
                continue
            self._sites[site.uuid] = site

    def __iter__(self) -> Iterator[DiveSite]:
        return iter(list(self._sites.values()))

    def __len__(self) -> int:
        return len(self._sites)

    def __contains__(self, uuid: object) -> bool:
        return isinstance(uuid, str) and uuid.strip() in self._sites

    def by_uuid(self, uuid: Optional[str]) -> Optional[DiveSite]:
        if not uuid:
            return None
        return self._sites.get(uuid.strip())

    def by_position(self, point: Point, create: bool = False) -> Optional[DiveSite]:
        """Return the nearest site within the match radius of ``point``.

        Args:
            point: Position to look up.
            create: Append a new site for ``point`` when nothing matches.

        Returns:
            The matching (or created) site, or None.
        """

        best_site: Optional[DiveSite] = None
        best = SITE_MATCH_RADIUS_M
        bands = self._candidate_bands(point)
        for precision in reversed(range(len(bands))):
            site, distance = self._nearest(point, bands[precision], best)
            if site is not None:
                best_site, best = site, distance
            # A band holds every site closer than one cell of its precision
            if best_site is not None and meters_to_degrees(best, point.lat) < 10**-precision:
                return best_site
        if best_site is not None:
            return best_site
        if create:
            return self.create_site(point)
        return None

    def create_site(self, point: Point) -> DiveSite:
        """Append a site for ``point`` with an identifier derived from its label.

        Raises:
            SiteCollisionError: If the derived identifier is already in use.
        """

        name = point.desc
        uuid = str(abs(string_hash(name + SITE_CREATED_NOTES)))[:8]
        if uuid in self._sites:
            raise SiteCollisionError(
                f"Site identifier {uuid} for {name!r} already used by "
                f"{self._sites[uuid].name!r}"
            )
        site_el = SubElement(
            self._element,
            "site",
            {"uuid": uuid, "name": name, "gps": point.coords},
        )
        notes = SubElement(site_el, "notes")
        notes.text = SITE_CREATED_NOTES
        site = DiveSite(site_el)
        self._sites[uuid] = site
        LOGGER.info("Created site %s %r at %s", uuid, name, point.coords)
        return site

    def _candidate_bands(self, point: Point) -> List[List[DiveSite]]:
        """Located sites near ``point``, one list per precision band."""

        candidates = [site for site in self._sites.values() if site.point is not None]
        bands: List[List[DiveSite]] = []
        for precision in range(SITE_SEARCH_MAX_PRECISION + 1):
            candidates = [
                site
                for site in candidates
                if _same_cell(point, site.point, precision)  # type: ignore[arg-type]
            ]
            if not candidates:
                break
            bands.append(candidates)
        return bands

    @staticmethod
    def _nearest(
        point: Point, sites: Sequence[DiveSite], limit: float
    ) -> Tuple[Optional[DiveSite], float]:
        nearest: Optional[DiveSite] = None
        best = limit
        for site in sites:
            distance = point.distance_to(site.point)  # type: ignore[arg-type]
            if distance < best:
                best = distance
                nearest = site
                if distance == 0:
                    break
        return nearest, best
