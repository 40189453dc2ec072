"""Central error types used across the application."""

from __future__ import annotations


class TrackEditorError(RuntimeError):
    """Base error for track editing failures."""


class TrackLoadError(TrackEditorError):
    """Raised when input data cannot become a track."""


class EmptyTrackError(TrackLoadError):
    """Raised when a track would contain no points."""


class MalformedCoordinateError(TrackLoadError):
    """Raised when a coordinate is not a finite, in-range lon/lat/ele triple."""


class GpxFormatError(TrackLoadError):
    """Raised when GPX text cannot be parsed."""


class EditConflictError(TrackEditorError):
    """Raised when a recorded operation no longer applies to the track."""


class ExportError(TrackEditorError):
    """Raised when a segment cannot be handed to the exporter."""


__all__ = [
    "TrackEditorError",
    "TrackLoadError",
    "EmptyTrackError",
    "MalformedCoordinateError",
    "GpxFormatError",
    "EditConflictError",
    "ExportError",
]
