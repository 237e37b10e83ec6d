"""Timezone tokens and the inline ``#tz:`` markers stored in tags and notes.

Subsurface stores dive times as local wall-clock values without an offset.
The offset is recovered from a ``#tz:<token>`` marker written into the dive
tags or the site notes, where ``<token>`` is ``[+-]HH:MM``, ``[+-]HHMM``,
``GMT`` or ``UTC``.
"""

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone
from typing import Optional

from ..errors import TimeZoneError

TZ_TOKEN_RE = re.compile(r"^(?:[+-]?\d{2}:?\d{2}|GMT|UTC)$", re.IGNORECASE)
MARKER_RE = re.compile(r"#tz:([+-]?[A-Z0-9:]+)", re.IGNORECASE)


def is_timezone(token: object) -> bool:
    return isinstance(token, str) and TZ_TOKEN_RE.match(token.strip()) is not None


def validate_timezone(token: object) -> str:
    """Return ``token`` stripped, or raise :class:`TimeZoneError`."""

    if not is_timezone(token):
        raise TimeZoneError(f"Invalid TZ offset {token!r}")
    return str(token).strip()


def timezone_info(token: str) -> timezone:
    """Convert a validated token into a fixed-offset ``tzinfo``."""

    token = validate_timezone(token)
    if token.upper() in {"GMT", "UTC"}:
        return timezone.utc
    sign = -1 if token.startswith("-") else 1
    digits = token.lstrip("+-").replace(":", "")
    hours, minutes = int(digits[:2]), int(digits[2:])
    if hours > 23 or minutes > 59:
        raise TimeZoneError(f"TZ offset out of range {token!r}")
    return timezone(sign * timedelta(hours=hours, minutes=minutes))


def system_timezone() -> str:
    """The host's current UTC offset as ``GMT`` or ``±HHMM``."""

    offset = datetime.now().astimezone().utcoffset() or timedelta(0)
    total = int(offset.total_seconds() // 60)
    if total == 0:
        return "GMT"
    sign = "-" if total < 0 else "+"
    hours, minutes = divmod(abs(total), 60)
    return f"{sign}{hours:02d}{minutes:02d}"


def find_marker(text: Optional[str]) -> Optional[str]:
    """Token of the first ``#tz:`` marker in ``text`` (not validated)."""

    if not text:
        return None
    match = MARKER_RE.search(text)
    return match.group(1) if match else None


def write_marker(text: Optional[str], token: str, separator: str = " ") -> str:
    """Return ``text`` with its marker replaced by (or extended with) ``token``."""

    token = validate_timezone(token)
    marker = f"#tz:{token}"
    text = text or ""
    if MARKER_RE.search(text):
        return MARKER_RE.sub(lambda _: marker, text, count=1)
    if text.strip():
        return f"{text.rstrip()}{separator}{marker}"
    return marker
