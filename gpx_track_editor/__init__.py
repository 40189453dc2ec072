"""GPX track editing engine."""

from .editor import TrackEditor
from .errors import EditConflictError, TrackEditorError, TrackLoadError
from .gpx_io import load_gpx, load_track, track_to_gpx
from .history import EditHistory, UndoEntry
from .models import EditResult, GeoOrigin, Ray, TrackPoint
from .track import Track
from .transforms import Operation

__all__ = [
    "EditConflictError",
    "EditHistory",
    "EditResult",
    "GeoOrigin",
    "Operation",
    "Ray",
    "Track",
    "TrackEditor",
    "TrackEditorError",
    "TrackLoadError",
    "TrackPoint",
    "UndoEntry",
    "load_gpx",
    "load_track",
    "track_to_gpx",
]
