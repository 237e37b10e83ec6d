"""Central error types used across the package."""

from __future__ import annotations


class DocumentFormatError(RuntimeError):
    """Raised when a document is malformed or has an unexpected root element."""


class DiveLogFormatError(DocumentFormatError):
    """Raised when text is not a Subsurface dive log or site collection."""


class TrackFormatError(DocumentFormatError):
    """Raised when text is not a GPX document."""


class TimeZoneError(ValueError):
    """Raised when a timezone token does not match ``[+-]HH:MM``, GMT or UTC."""


class InvalidSampleError(ValueError):
    """Raised when a sample lacks a numeric value for the interpolation key."""


class EmptyTrackError(RuntimeError):
    """Raised when a track writer is finished without any waypoint or position."""


class SiteCollisionError(RuntimeError):
    """Raised when a generated site identifier is already used by another site."""


class TimeZoneLookupError(RuntimeError):
    """Raised when the remote timezone service cannot resolve a position."""


__all__ = [
    "DocumentFormatError",
    "DiveLogFormatError",
    "TrackFormatError",
    "TimeZoneError",
    "InvalidSampleError",
    "EmptyTrackError",
    "SiteCollisionError",
    "TimeZoneLookupError",
]
