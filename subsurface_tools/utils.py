"""General utility helpers shared across modules."""

from __future__ import annotations

import re
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

_MEASURE_RE = re.compile(r"^\s*([+-]?\d+(?:\.\d+)?)")
_DURATION_RE = re.compile(r"^\s*([+-]?\d+)(?::(\d{1,2}))?(?::(\d{1,2}))?")


def round_to(value: float, scale: int) -> float:
    """Round ``value`` to ``scale`` decimals, halves away from zero."""

    quantum = Decimal(1).scaleb(-scale)
    return float(Decimal(repr(float(value))).quantize(quantum, rounding=ROUND_HALF_UP))


def is_numeric(value: Any) -> bool:
    """Return True for numbers, booleans and numeric strings."""

    if isinstance(value, (int, float)):
        return value == value  # NaN is not usable
    if isinstance(value, str):
        try:
            float(value)
        except ValueError:
            return False
        return bool(value.strip())
    return False


def string_hash(text: str) -> int:
    """Signed 32-bit ``h * 31 + c`` hash over the UTF-16 code units of ``text``."""

    h = 0
    data = text.encode("utf-16-le")
    for idx in range(0, len(data), 2):
        unit = data[idx] | (data[idx + 1] << 8)
        h = (h * 31 + unit) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return h


def escape_xml(text: str) -> str:
    """Escape special XML characters."""
    return (
        text.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
        .replace("'", "&apos;")
    )


def format_number(value: float) -> str:
    """Render a number without a trailing ``.0`` for integral values."""

    number = float(value)
    if number.is_integer():
        return str(int(number))
    return repr(number)


def parse_measure(text: str | None) -> float:
    """Convert a value with a unit suffix (``'1.23 m'``) to a float; 0 if absent."""

    if not text:
        return 0.0
    match = _MEASURE_RE.match(text)
    if match is None:
        return 0.0
    return float(match.group(1))


def parse_duration(text: str | None) -> int:
    """Convert ``'mm:ss min'`` (or ``'h:mm:ss'``) to seconds; 0 if unparsable."""

    if not text:
        return 0
    match = _DURATION_RE.match(text)
    if match is None:
        return 0
    first, second, third = match.groups()
    if third is not None:
        return int(first) * 3600 + int(second) * 60 + int(third)
    if second is not None:
        return int(first) * 60 + int(second)
    return int(first) * 60


def parse_iso8601(value: str) -> datetime:
    """Parse ISO timestamps, normalising a trailing Z. Naive values are UTC."""

    value = value.strip()
    if value.endswith(("Z", "z")):
        value = value[:-1] + "+00:00"
    try:
        dt = datetime.fromisoformat(value)
    except ValueError as exc:
        raise ValueError(f"Invalid ISO timestamp: {value!r}") from exc
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def to_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def format_utc(value: datetime) -> str:
    """Format an instant as ``YYYY-MM-DDTHH:MM:SSZ``."""

    return to_utc(value).strftime("%Y-%m-%dT%H:%M:%SZ")


def epoch_seconds(value: datetime) -> int:
    """Whole seconds since the Unix epoch (naive values treated as UTC)."""

    return int(to_utc(value).timestamp())
