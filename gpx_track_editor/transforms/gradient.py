"""Blend altitudes in the marker region toward a constant gradient."""

from __future__ import annotations

from typing import Optional, TYPE_CHECKING

import numpy as np

from ..models import EditResult, array_to_positions, as_position_array
from ..regions import track_region
from .base import register

if TYPE_CHECKING:  # pragma: no cover - type checking only
    from ..track import Track


@register("smooth_gradient", "Smooth gradient")
def smooth_gradient(track: "Track", bumpiness: float = 0.0) -> Optional[EditResult]:
    """Pull interior altitudes toward the straight slope between the region ends.

    ``bumpiness`` 0 puts every point on the average slope, 1 leaves the
    altitudes unchanged. Planar positions are never touched.
    """

    start, end = track_region(track)
    if end - start < 2:
        return None
    factor = min(max(float(bumpiness), 0.0), 1.0)
    segment = track.points[start : end + 1]
    distances = np.asarray([p.distance_from_start for p in segment], dtype=float)
    span = float(distances[-1] - distances[0])
    if span <= 0.0:
        return None

    positions = as_position_array(p.position for p in segment)
    start_alt = positions[0, 2]
    end_alt = positions[-1, 2]
    fractions = (distances - distances[0]) / span
    average = start_alt + (end_alt - start_alt) * fractions
    blended = (1.0 - factor) * average + factor * positions[:, 2]
    positions[1:-1, 2] = blended[1:-1]
    return EditResult.replace_span(
        track.points, start, end + 1, array_to_positions(positions), track.origin
    )
