"""Delete the points between the markers."""

from __future__ import annotations

import logging
from typing import Optional, TYPE_CHECKING

from ..models import EditResult
from ..regions import track_region
from .base import register

if TYPE_CHECKING:  # pragma: no cover - type checking only
    from ..track import Track

LOGGER = logging.getLogger(__name__)


@register("delete", "Delete points")
def delete_region(track: "Track") -> Optional[EditResult]:
    """Remove the inclusive marker region, never the last remaining point."""

    start, end = track_region(track, destructive=True)
    if end - start + 1 >= track.length:
        LOGGER.debug("Refusing to delete every point of a %s point track", track.length)
        return None
    return EditResult.replace_span(track.points, start, end + 1, (), track.origin)
