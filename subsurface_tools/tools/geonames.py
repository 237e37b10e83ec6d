"""Timezone look-up for site positions through the geonames.org web service.

The dive-log model never performs I/O; the ``timezone`` command passes
:func:`geonames_resolver` to :meth:`DiveLog.apply_timezones` instead.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional

import requests

from ..config import GEONAMES_TIMEZONE_URL, GEONAMES_USERNAME, REQUEST_TIMEOUT
from ..errors import TimeZoneLookupError
from ..geo import Point

LOGGER = logging.getLogger(__name__)


def _format_offset(hours: float) -> str:
    sign = "-" if hours < 0 else "+"
    total_minutes = round(abs(hours) * 60)
    return f"{sign}{total_minutes // 60:02d}{total_minutes % 60:02d}"


def lookup_timezone(
    point: Point,
    username: str = GEONAMES_USERNAME,
    *,
    url: str = GEONAMES_TIMEZONE_URL,
) -> str:
    """Standard (non-DST) offset at ``point`` as a ``+HHMM`` token.

    Raises:
        TimeZoneLookupError: On transport errors, non-2xx responses or a
            payload without ``rawOffset``.
    """

    if not username:
        raise TimeZoneLookupError("geonames username is not configured")
    params = {"lat": point.lat, "lng": point.lon, "username": username}
    LOGGER.debug("GET %s lat=%s lng=%s", url, point.lat, point.lon)
    try:
        response = requests.get(url, params=params, timeout=REQUEST_TIMEOUT)
        response.raise_for_status()
        payload: Any = response.json()
    except (requests.RequestException, ValueError) as exc:
        raise TimeZoneLookupError(f"Timezone lookup failed for {point.coords}: {exc}") from exc

    if not isinstance(payload, dict) or "rawOffset" not in payload:
        message = payload.get("status", {}).get("message") if isinstance(payload, dict) else None
        raise TimeZoneLookupError(
            f"Timezone lookup failed for {point.coords}: {message or 'no rawOffset'}"
        )
    try:
        return _format_offset(float(payload["rawOffset"]))
    except (TypeError, ValueError) as exc:
        raise TimeZoneLookupError(f"Invalid rawOffset {payload['rawOffset']!r}") from exc


def geonames_resolver(username: str = GEONAMES_USERNAME) -> Callable[[Point], Optional[str]]:
    """Resolver for :meth:`DiveLog.apply_timezones` that logs failed look-ups.

    A failed look-up answers ``None`` so the caller's fallback token is used.
    """

    def resolve(point: Point) -> Optional[str]:
        try:
            token = lookup_timezone(point, username)
        except TimeZoneLookupError as exc:
            LOGGER.warning("%s; using the default timezone", exc)
            return None
        LOGGER.debug("Site %s resolved to %s", point.desc, token)
        return token

    return resolve
