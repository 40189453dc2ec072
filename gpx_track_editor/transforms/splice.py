"""Restore a captured span of positions; the inverse of every transform."""

from __future__ import annotations

import logging
from typing import Optional, Sequence, TYPE_CHECKING

from ..models import EditResult
from .base import register

if TYPE_CHECKING:  # pragma: no cover - type checking only
    from ..track import Track

LOGGER = logging.getLogger(__name__)


@register("restore_span", "Restore points")
def restore_span(
    track: "Track",
    start: int,
    length: int,
    positions: Sequence[Sequence[float]],
) -> Optional[EditResult]:
    """Replace ``length`` points at ``start`` with ``positions``."""

    if start < 0 or length < 0 or start + length > track.length:
        LOGGER.debug(
            "Span start=%s length=%s does not fit a %s point track",
            start,
            length,
            track.length,
        )
        return None
    if not positions and length == track.length:
        return None
    return EditResult.replace_span(
        track.points, start, start + length, positions, track.origin
    )
