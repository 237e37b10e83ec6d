"""Subsurface dive log documents (``divelog`` or bare ``divesites`` roots)."""

from __future__ import annotations

import copy
import logging
from datetime import datetime
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple
from xml.etree import ElementTree as ET
from xml.etree.ElementTree import Element

from defusedxml import ElementTree as SafeET
from defusedxml.common import DefusedXmlException

from ..config import COMPACT_SURFACE_DEPTH_M, DEFAULT_SALINITY
from ..errors import DiveLogFormatError
from ..geo import Point
from ..structure import find_child, find_children, iter_elements, local_name
from ..utils import parse_measure
from .dives import Dive
from .sites import SiteRegistry
from .timezones import system_timezone, validate_timezone

LOGGER = logging.getLogger(__name__)

TimeZoneResolver = Callable[[Point], Optional[str]]
FixStats = Tuple[int, int]


def _insert_before_samples(computer: Element, element: Element) -> None:
    """Insert ``element`` ahead of the sample/event stream of ``computer``."""

    for index, child in enumerate(list(computer)):
        if local_name(child.tag) in {"sample", "event"}:
            computer.insert(index, element)
            return
    computer.append(element)


class DiveLog:
    """In-memory Subsurface dive log.

    Args:
        text: XML document whose root is ``divelog`` or ``divesites``.

    Raises:
        DiveLogFormatError: If the text is not well-formed XML or has any
            other root element.
    """

    def __init__(self, text: str | bytes) -> None:
        try:
            root = SafeET.fromstring(text)
        except (ET.ParseError, DefusedXmlException) as exc:
            raise DiveLogFormatError(f"Invalid Subsurface XML: {exc}") from exc

        tag = local_name(root.tag)
        if tag == "divesites":
            sites_el = root
        elif tag == "divelog":
            sites_el = find_child(root, "divesites")
            if sites_el is None:
                sites_el = Element("divesites")
                settings = find_child(root, "settings")
                position = list(root).index(settings) + 1 if settings is not None else 0
                root.insert(position, sites_el)
        else:
            raise DiveLogFormatError(f"Invalid Subsurface XML: unexpected root <{tag}>")

        self._root = root
        self._sites = SiteRegistry(sites_el)
        self._default_tz = system_timezone()
        self._dives: List[Dive] = [Dive(self, el) for el in iter_elements(root, "dive")]
        LOGGER.debug(
            "Loaded dive log with %d dives and %d sites", len(self._dives), len(self._sites)
        )

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------
    @property
    def default_timezone(self) -> str:
        """Timezone for dives without a marker or located site (host offset by default)."""

        return self._default_tz

    @default_timezone.setter
    def default_timezone(self, token: str) -> None:
        self._default_tz = validate_timezone(token)

    @property
    def sites(self) -> SiteRegistry:
        return self._sites

    @property
    def dives(self) -> Tuple[Dive, ...]:
        return tuple(self._dives)

    def __iter__(self) -> Iterator[Dive]:
        return iter(self._dives)

    def __len__(self) -> int:
        return len(self._dives)

    def dive_at(self, instant: datetime) -> Optional[Dive]:
        """The first dive with sample data at ``instant``."""

        found = self.data_at(instant)
        return found[0] if found else None

    def sample_at(self, instant: datetime) -> Optional[Dict[str, Any]]:
        found = self.data_at(instant)
        return found[1] if found else None

    def data_at(self, instant: datetime) -> Optional[Tuple[Dive, Dict[str, Any]]]:
        """The dive in progress at ``instant`` and its sample there."""

        for dive in self._dives:
            sample = dive.sample_at(instant)
            if sample is not None:
                return dive, sample
        return None

    # ------------------------------------------------------------------
    # Bulk fixes
    # ------------------------------------------------------------------
    def fix_salinity(self, salinity: str = DEFAULT_SALINITY) -> FixStats:
        """Add a water salinity record to every computer that lacks one.

        Returns:
            ``(eligible, changed)``: computers inspected and computers updated.
        """

        eligible = changed = 0
        for computer in iter_elements(self._root, "divecomputer"):
            eligible += 1
            water = find_child(computer, "water")
            if water is not None and water.get("salinity"):
                continue
            if water is None:
                _insert_before_samples(computer, Element("water", {"salinity": salinity}))
            else:
                water.set("salinity", salinity)
            changed += 1
        LOGGER.info("Salinity fix: %d/%d computers updated", changed, eligible)
        return eligible, changed

    def fix_serial(self) -> FixStats:
        """Add the ``Serial`` extra data entry from the fingerprint settings.

        Returns:
            ``(eligible, changed)``: computers with a device id, and computers
            that received a serial.
        """

        serials = self._fingerprint_serials()
        eligible = changed = 0
        for computer in iter_elements(self._root, "divecomputer"):
            device_id = (computer.get("deviceid") or "").strip().lower()
            if not device_id:
                continue
            eligible += 1
            has_serial = any(
                (extra.get("key") or "").lower() == "serial"
                for extra in find_children(computer, "extradata")
            )
            if has_serial:
                continue
            serial = serials.get(device_id)
            if not serial:
                LOGGER.debug("No fingerprint serial for device %s", device_id)
                continue
            _insert_before_samples(
                computer, Element("extradata", {"key": "Serial", "value": serial})
            )
            changed += 1
        LOGGER.info("Serial fix: %d/%d computers updated", changed, eligible)
        return eligible, changed

    def _fingerprint_serials(self) -> Dict[str, str]:
        serials: Dict[str, str] = {}
        settings = find_child(self._root, "settings")
        if settings is None:
            return serials
        for fingerprint in iter_elements(settings, "fingerprint"):
            device_id = (fingerprint.get("deviceid") or "").strip().lower()
            serial = (fingerprint.get("serial") or "").strip()
            if device_id and serial:
                serials.setdefault(device_id, serial)
        return serials

    def compact_samples(self) -> int:
        """Drop redundant samples and return how many were removed.

        Inside a run of consecutive samples at the same depth, samples that
        carry nothing but time and depth are dropped (the first and last of
        the run stay). Shallow samples trailing the final surface sample of a
        computer are dropped too.
        """

        removed = 0
        for computer in iter_elements(self._root, "divecomputer"):
            removed += self._compact_runs(computer)
            removed += self._compact_tail(computer)
        if removed:
            for dive in self._dives:
                dive.invalidate_samples()
        LOGGER.info("Compaction removed %d samples", removed)
        return removed

    @staticmethod
    def _compact_runs(computer: Element) -> int:
        runs: List[List[Element]] = []
        current: List[Element] = []
        for child in computer:
            if local_name(child.tag) != "sample":
                current = []
                continue
            depth = (child.get("depth") or "").strip()
            if current and (current[0].get("depth") or "").strip() == depth:
                current.append(child)
            else:
                current = [child]
                runs.append(current)
        removed = 0
        for run in runs:
            for sample in run[1:-1]:
                if set(sample.attrib) == {"time", "depth"}:
                    computer.remove(sample)
                    removed += 1
        return removed

    @staticmethod
    def _compact_tail(computer: Element) -> int:
        children = list(computer)
        tail: List[Element] = []
        for child in reversed(children):
            if local_name(child.tag) != "sample":
                break
            if parse_measure(child.get("depth")) >= COMPACT_SURFACE_DEPTH_M:
                break
            tail.insert(0, child)
        for index, sample in enumerate(tail):
            if parse_measure(sample.get("depth")) == 0:
                surplus = tail[index + 1 :]
                for extra in surplus:
                    computer.remove(extra)
                return len(surplus)
        return 0

    # ------------------------------------------------------------------
    # Timezones
    # ------------------------------------------------------------------
    def apply_timezones(
        self,
        token: str,
        replace: bool = False,
        resolver: Optional[TimeZoneResolver] = None,
    ) -> FixStats:
        """Write ``#tz:`` markers into sites and unlocated dives.

        Located sites use ``resolver(point)`` when given and it answers,
        everything else uses ``token``. Existing markers are kept unless
        ``replace`` is set.

        Returns:
            ``(sites_changed, dives_changed)``.
        """

        token = validate_timezone(token)
        sites_changed = dives_changed = 0
        for site in self._sites:
            if not replace and site.timezone_marker:
                continue
            value = None
            if site.point is not None and resolver is not None:
                value = resolver(site.point)
            site.set_timezone(value or token)
            sites_changed += 1
        for dive in self._dives:
            if not replace and dive.timezone_marker:
                continue
            if not dive.is_localized:
                dive.set_timezone(token)
                dives_changed += 1
        LOGGER.info(
            "Timezones applied to %d sites and %d dives", sites_changed, dives_changed
        )
        return sites_changed, dives_changed

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------
    def to_xml(self) -> str:
        """Current document as XML text. The model is not modified."""

        root = copy.deepcopy(self._root)
        ET.indent(root, space="  ")
        return ET.tostring(root, encoding="unicode")

    def __str__(self) -> str:
        return self.to_xml()
