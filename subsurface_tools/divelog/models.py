"""Dataclasses describing dive computer samples and depth summaries."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional
from xml.etree.ElementTree import Element

from ..utils import parse_duration, parse_measure

# Sample attribute -> field name used in sample dictionaries.
SAMPLE_ATTRIBUTES = {
    "time": "time",
    "depth": "depth",
    "temp": "temp",
    "heartbeat": "heart",
}


@dataclass(slots=True)
class Sample:
    """One dive computer reading.

    ``time`` is the offset in seconds from the dive start. Temperature and
    heart rate are only present when the device recorded them (or when held
    over from an earlier sample).
    """

    time: float
    depth: Optional[float] = None
    temp: Optional[float] = None
    heart: Optional[float] = None

    def as_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"time": self.time}
        for name in ("depth", "temp", "heart"):
            value = getattr(self, name)
            if value is not None:
                data[name] = value
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Sample":
        return cls(
            time=data["time"],
            depth=data.get("depth"),
            temp=data.get("temp"),
            heart=data.get("heart"),
        )


@dataclass(frozen=True, slots=True)
class DepthStats:
    """Maximum and mean depth in metres."""

    max: float = 0.0
    mean: float = 0.0


def sample_fields(element: Element) -> Dict[str, float]:
    """Fields recorded on a ``sample`` element; unset attributes are omitted."""

    fields: Dict[str, float] = {}
    for attribute, name in SAMPLE_ATTRIBUTES.items():
        raw = element.get(attribute)
        if raw is None:
            continue
        if name == "time":
            fields[name] = parse_duration(raw)
        else:
            fields[name] = parse_measure(raw)
    return fields
