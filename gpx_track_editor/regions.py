"""Derive the inclusive index range an edit applies to from the two markers."""

from __future__ import annotations

import logging
from typing import Optional, Tuple, TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover - type checking only
    from .track import Track

LOGGER = logging.getLogger(__name__)

Region = Tuple[int, int]


def resolve_region(
    current: int,
    secondary: Optional[int],
    length: int,
    *,
    destructive: bool = False,
) -> Region:
    """Return ``(start, end)`` inclusive for the markers on a track of ``length``.

    Without a secondary marker the region is the single current point. For
    ``destructive`` edits a region covering the whole track starts at 1 instead
    of 0 so at least one point is always left behind.
    """

    if length < 1:
        raise ValueError("length must be at least 1")
    other = current if secondary is None else secondary
    start = max(min(current, other), 0)
    end = min(max(current, other), length - 1)
    if start > end:
        start = end
    if destructive and start == 0 and end == length - 1 and length > 1:
        LOGGER.debug("Region spans the whole track; starting at 1 to keep a point")
        start = 1
    return start, end


def track_region(track: "Track", *, destructive: bool = False) -> Region:
    """Resolve the edit region of a track from its own markers."""

    return resolve_region(
        track.current_marker,
        track.secondary_marker,
        track.length,
        destructive=destructive,
    )


__all__ = ["Region", "resolve_region", "track_region"]
