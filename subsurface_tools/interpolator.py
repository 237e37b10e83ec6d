"""Linear interpolation over samples keyed by one numeric field."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Tuple

import numpy as np
from numpy.typing import NDArray

from .errors import InvalidSampleError
from .utils import is_numeric

SampleDict = Dict[str, Any]


class MatchMode(enum.Enum):
    """How a :class:`SampleMatch` was derived from the stored samples."""

    EXACT = "exact"
    INTERPOLATED = "interpolated"
    EXTRAPOLATED_FORWARD = "extrapolated-forward"
    EXTRAPOLATED_BACKWARD = "extrapolated-backward"


@dataclass(slots=True)
class SampleMatch:
    """Sample computed for a key value.

    Attributes:
        values: Field values. Numeric fields are interpolated, others are None.
        mode: Exact, interpolated or extrapolated.
        gap: Largest |key - x| over the two samples used for the value. This
            is not the widest key seen while searching for the pair. Callers
            use it to reject weak matches.
    """

    values: SampleDict
    mode: MatchMode
    gap: float

    @property
    def interpolated(self) -> bool:
        """True when the value lies between (or on) recorded samples."""

        return self.mode in (MatchMode.EXACT, MatchMode.INTERPOLATED)

    @property
    def extrapolated(self) -> bool:
        return not self.interpolated

    def get(self, field: str, default: Any = None) -> Any:
        return self.values.get(field, default)

    def __getitem__(self, field: str) -> Any:
        return self.values[field]


def linear(x1: float, y1: float, x2: float, y2: float, x: float) -> float:
    """Value at ``x`` on the line through ``(x1, y1)`` and ``(x2, y2)``."""

    if x1 == x2:
        return y1
    ratio = (x - x1) / (x2 - x1)
    return y1 + ratio * (y2 - y1)


class Interpolator:
    """Store of samples keyed by ``key`` answering value-at-key queries.

    A later sample with the same key replaces the earlier one. Queries
    between recorded keys interpolate from the nearest sample on each side;
    queries outside the recorded range extrapolate from the two nearest
    samples. Fewer than two usable samples yields no data.
    """

    def __init__(self, key: str = "time") -> None:
        self._key = key
        self._samples: Dict[float, SampleDict] = {}
        self._keys: Optional[NDArray[np.float64]] = None

    @property
    def key(self) -> str:
        return self._key

    def add(self, sample: Mapping[str, Any]) -> "Interpolator":
        """Store ``sample``.

        Raises:
            InvalidSampleError: If the key field is missing or not numeric.
        """

        value = sample.get(self._key) if sample is not None else None
        if value is None or not is_numeric(value):
            raise InvalidSampleError(
                f"Invalid sample: field {self._key!r} missing or not numeric"
            )
        self._samples[float(value)] = dict(sample)
        self._keys = None
        return self

    def is_empty(self) -> bool:
        return not self._samples

    def __len__(self) -> int:
        return len(self._samples)

    def sample_at(self, x: float) -> Optional[SampleMatch]:
        """Return the sample at key ``x``, or None when it cannot be estimated."""

        x = float(x)
        exact = self._samples.get(x)
        if exact is not None:
            return SampleMatch(dict(exact), MatchMode.EXACT, 0.0)

        selected = self._select(x)
        if selected is None:
            return None
        x1, x2, mode = selected
        s1 = self._samples[x1]
        s2 = self._samples[x2]
        values: SampleDict = {}
        for field, y1 in s1.items():
            y2 = s2.get(field)
            if not is_numeric(y1) or y2 is None or not is_numeric(y2):
                values[field] = None
                continue
            values[field] = linear(x1, float(y1), x2, float(y2), x)
        gap = max(abs(x1 - x), abs(x2 - x))
        return SampleMatch(values, mode, gap)

    def _sorted_keys(self) -> NDArray[np.float64]:
        if self._keys is None:
            self._keys = np.asarray(sorted(self._samples), dtype=float)
        return self._keys

    def _select(self, x: float) -> Optional[Tuple[float, float, MatchMode]]:
        """Pick the key pair used for ``x`` (never an exact key)."""

        keys = self._sorted_keys()
        # keys[:idx] are strictly below x; keys[idx:] strictly above.
        idx = int(np.searchsorted(keys, x))
        before = keys[max(0, idx - 2) : idx]
        after = keys[idx : idx + 2]
        if before.size and after.size:
            return float(before[-1]), float(after[0]), MatchMode.INTERPOLATED
        if before.size >= 2:
            return float(before[-2]), float(before[-1]), MatchMode.EXTRAPOLATED_FORWARD
        if after.size >= 2:
            return float(after[0]), float(after[1]), MatchMode.EXTRAPOLATED_BACKWARD
        return None
