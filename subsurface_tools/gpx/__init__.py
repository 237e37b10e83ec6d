"""GPX track documents."""

from .models import TrackPoint
from .reader import TrackReader
from .writer import TrackWriter

__all__ = ["TrackPoint", "TrackReader", "TrackWriter"]
