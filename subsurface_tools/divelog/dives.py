"""Dive entities: start instant, timezone resolution, samples and spot."""

from __future__ import annotations

import logging
import math
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Any, Dict, Hashable, List, Optional, Tuple
from xml.etree.ElementTree import Element

from ..config import DEFAULT_PRESSURE_BAR, FALLBACK_PRESSURE_BAR
from ..errors import DiveLogFormatError, TimeZoneError
from ..geo import Point
from ..interpolator import Interpolator
from ..structure import find_child, find_children
from ..utils import parse_duration, parse_measure, round_to, to_utc
from .models import DepthStats, Sample, sample_fields
from .sites import DiveSite
from .timezones import find_marker, is_timezone, timezone_info, write_marker

if TYPE_CHECKING:  # pragma: no cover
    from .document import DiveLog

LOGGER = logging.getLogger(__name__)


def pressure_to_altitude(bar: float) -> float:
    """Altitude (metres, 1 decimal) matching an ambient pressure in bar."""

    return round_to(math.log10(DEFAULT_PRESSURE_BAR / bar) * 7800, 1)


class Dive:
    """A ``dive`` element of a dive log.

    Derived values (timezone, start, duration, sample interpolator) are
    memoized. The timezone and start are keyed on every input they read, and
    mutators on this class drop the caches they stale.
    """

    def __init__(self, dive_log: "DiveLog", element: Element) -> None:
        self._log = dive_log
        self._element = element
        self._site: Optional[DiveSite] = None
        self._samples: Optional[Interpolator] = None
        self._held: Optional[List[Sample]] = None
        self._duration: Optional[int] = None
        self._tz_cache: Optional[Tuple[Hashable, str]] = None
        self._start_cache: Optional[Tuple[Hashable, datetime]] = None

        number = (element.get("number") or "").strip()
        self._number = int(number) if number.isdigit() else None

        uuid = element.get("divesiteid")
        if uuid:
            self._site = dive_log.sites.by_uuid(uuid)
            if self._site is None:
                LOGGER.warning(
                    "Dive #%s: site %s not found, link removed", self._number, uuid
                )
                del element.attrib["divesiteid"]

    def __repr__(self) -> str:
        return f"Dive(number={self._number!r}, date={self._element.get('date')!r})"

    @property
    def number(self) -> Optional[int]:
        return self._number

    @property
    def site(self) -> Optional[DiveSite]:
        return self._site

    @property
    def is_localized(self) -> bool:
        return self._site is not None and self._site.is_localized

    # ------------------------------------------------------------------
    # Time
    # ------------------------------------------------------------------
    @property
    def tags(self) -> str:
        return self._element.get("tags") or ""

    @property
    def timezone_marker(self) -> Optional[str]:
        return find_marker(self.tags)

    def set_timezone(self, token: str) -> "Dive":
        """Store ``token`` as the dive's own ``#tz:`` marker in its tags."""

        self._element.set("tags", write_marker(self.tags, token, ", "))
        self._clear_time_cache()
        return self

    @property
    def timezone(self) -> str:
        """Resolved timezone token.

        Precedence: the dive's own marker, its site's marker, the offset
        calculated from the site longitude, then the log default.

        Raises:
            TimeZoneError: If the chosen token is not a valid timezone.
        """

        key = self._timezone_key()
        if self._tz_cache is not None and self._tz_cache[0] == key:
            return self._tz_cache[1]
        token, source = self._resolve_timezone()
        if not is_timezone(token):
            raise TimeZoneError(f"Invalid dive TZ: {token!r} (dive #{self._number})")
        LOGGER.debug("Dive #%s: using %s TZ %s", self._number, source, token)
        self._tz_cache = (key, token)
        return token

    @property
    def start(self) -> datetime:
        """Timezone-aware start instant."""

        key = (self._element.get("date"), self._element.get("time"), self._timezone_key())
        if self._start_cache is not None and self._start_cache[0] == key:
            return self._start_cache[1]
        date = (self._element.get("date") or "").strip()
        time = (self._element.get("time") or "00:00:00").strip()
        try:
            naive = datetime.strptime(f"{date} {time}", "%Y-%m-%d %H:%M:%S")
        except ValueError as exc:
            raise DiveLogFormatError(
                f"Dive #{self._number}: invalid date/time {date!r} {time!r}"
            ) from exc
        start = naive.replace(tzinfo=timezone_info(self.timezone))
        self._start_cache = (key, start)
        return start

    @property
    def end(self) -> datetime:
        return self.start + timedelta(seconds=self.duration)

    @property
    def duration(self) -> int:
        """Duration in seconds.

        The last sample time of the primary computer wins over the declared
        ``duration`` attribute, which devices tend to under-report.
        """

        if self._duration is None:
            samples = self.samples()
            if samples:
                self._duration = int(samples[-1].time)
            else:
                self._duration = parse_duration(self._element.get("duration"))
        return self._duration

    def _resolve_timezone(self) -> Tuple[str, str]:
        marker = self.timezone_marker
        if marker:
            return marker, "own"
        site = self._site
        if site is not None:
            marker = site.timezone_marker
            if marker:
                return marker, "site's"
            calculated = site.calculated_timezone
            if calculated:
                return calculated, "site's calculated"
        return self._log.default_timezone, "default"

    def _timezone_key(self) -> Hashable:
        site = self._site
        return (
            self.tags,
            site.uuid if site is not None else None,
            site.revision if site is not None else None,
            self._log.default_timezone,
        )

    def _clear_time_cache(self) -> None:
        self._tz_cache = None
        self._start_cache = None

    # ------------------------------------------------------------------
    # Samples
    # ------------------------------------------------------------------
    def computers(self) -> List[Element]:
        return find_children(self._element, "divecomputer")

    def primary_computer(self) -> Optional[Element]:
        return find_child(self._element, "divecomputer")

    def samples(self) -> List[Sample]:
        """Primary computer samples, unset fields held from the previous sample."""

        self._load_samples()
        return list(self._held or [])

    def sample_at(self, instant: datetime) -> Optional[Dict[str, Any]]:
        """Sample fields at ``instant``, or None outside the dive or without data."""

        offset = (to_utc(instant) - self.start).total_seconds()
        if offset < 0 or offset > self.duration:
            return None
        samples = self._load_samples()
        match = samples.sample_at(offset)
        if match is None:
            return None
        return dict(match.values)

    def invalidate_samples(self) -> None:
        self._samples = None
        self._held = None
        self._duration = None

    def _load_samples(self) -> Interpolator:
        if self._samples is not None:
            return self._samples
        interpolator = Interpolator("time")
        held: List[Sample] = []
        computer = self.primary_computer()
        last: Dict[str, float] = {}
        for element in find_children(computer, "sample") if computer is not None else []:
            fields = sample_fields(element)
            if "time" not in fields:
                continue
            merged = {**last, **fields}
            interpolator.add(merged)
            held.append(Sample.from_dict(merged))
            last = merged
        self._samples = interpolator
        self._held = held
        return interpolator

    @property
    def depth(self) -> DepthStats:
        """Largest max and mean depth reported by any computer."""

        max_depth = mean_depth = 0.0
        for computer in self.computers():
            depth = find_child(computer, "depth")
            if depth is None:
                continue
            max_depth = max(max_depth, parse_measure(depth.get("max")))
            mean_depth = max(mean_depth, parse_measure(depth.get("mean")))
        return DepthStats(max=max_depth, mean=mean_depth)

    # ------------------------------------------------------------------
    # Position
    # ------------------------------------------------------------------
    @property
    def spot(self) -> Optional[Point]:
        """Site position with the altitude implied by the surface pressure."""

        if self._site is None or self._site.point is None:
            return None
        bar = self._surface_pressure()
        altitude = max(0.0, pressure_to_altitude(bar))
        return self._site.point.with_alt(altitude)

    def set_spot(self, point: Point) -> "Dive":
        """Locate the dive at ``point``.

        An unlocated linked site gets the position; otherwise the nearest
        existing site is reused or a new one created, and the dive relinked.
        """

        site = self._site
        if site is not None and not site.is_localized and site.set_position(point):
            self._clear_time_cache()
            return self
        site = self._log.sites.by_position(point, create=True)
        if site is None:  # pragma: no cover - create=True always returns a site
            return self
        self._element.set("divesiteid", site.uuid)
        self._site = site
        self._clear_time_cache()
        return self

    def _surface_pressure(self) -> float:
        bar = 0.0
        if self._element.get("airpressure"):
            bar = parse_measure(self._element.get("airpressure"))
        else:
            computer = self.primary_computer()
            for surface in find_children(computer, "surface") if computer is not None else []:
                if surface.get("pressure"):
                    bar = parse_measure(surface.get("pressure"))
                    break
        if bar <= 0:
            bar = FALLBACK_PRESSURE_BAR
        return bar
