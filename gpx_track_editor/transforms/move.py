"""Move the marker region sideways, either rigidly or as a stretch."""

from __future__ import annotations

from enum import Enum
import math
from typing import Optional, Sequence, Tuple, TYPE_CHECKING

import numpy as np

from ..config import MOVE_MAX_MAGNITUDE_M
from ..models import EditResult, MetricArray, array_to_positions, as_position_array
from ..regions import track_region
from .base import register

if TYPE_CHECKING:  # pragma: no cover - type checking only
    from ..track import Track


class MoveMode(str, Enum):
    TRANSLATE = "translate"
    STRETCH = "stretch"


def cap_vector(
    vector: Sequence[float], max_magnitude_m: float = MOVE_MAX_MAGNITUDE_M
) -> Tuple[float, float]:
    """Scale a planar vector down so its length is at most ``max_magnitude_m``."""

    dx, dy = float(vector[0]), float(vector[1])
    magnitude = math.hypot(dx, dy)
    if magnitude <= max_magnitude_m or magnitude == 0.0:
        return dx, dy
    scale = max_magnitude_m / magnitude
    return dx * scale, dy * scale


def stretch_weights(distances: MetricArray, pointer_distance: float) -> MetricArray:
    """Weight 1 at the pointer falling linearly to 0 at both ends of the region."""

    first = float(distances[0])
    last = float(distances[-1])
    weights = np.ones_like(distances)
    rising = distances < pointer_distance
    falling = distances > pointer_distance
    if pointer_distance > first:
        weights[rising] = (distances[rising] - first) / (pointer_distance - first)
    if last > pointer_distance:
        weights[falling] = (last - distances[falling]) / (last - pointer_distance)
    return np.clip(weights, 0.0, 1.0)


@register("move_region", "Move & stretch")
def move_region(
    track: "Track",
    vector: Sequence[float] = (0.0, 0.0),
    mode: str = MoveMode.TRANSLATE.value,
    stretch_pointer: Optional[int] = None,
    height_m: float = 0.0,
) -> Optional[EditResult]:
    """Shift the region by ``vector`` (capped), optionally raising it by ``height_m``.

    In translate mode every region point moves by the same amount. In stretch
    mode the point at ``stretch_pointer`` (default: the point nearest the
    middle of the region by distance) moves fully and the shift tapers
    linearly to nothing at the region ends.
    """

    move_mode = MoveMode(mode)
    dx, dy = cap_vector(vector)
    if dx == 0.0 and dy == 0.0 and height_m == 0.0:
        return None
    start, end = track_region(track)
    segment = track.points[start : end + 1]
    positions = as_position_array(p.position for p in segment)

    if move_mode is MoveMode.TRANSLATE:
        weights = np.ones(len(segment))
    else:
        distances = np.asarray([p.distance_from_start for p in segment], dtype=float)
        if stretch_pointer is None:
            middle = (distances[0] + distances[-1]) / 2.0
            pointer = int(np.argmin(np.abs(distances - middle)))
        else:
            pointer = min(max(int(stretch_pointer), start), end) - start
        weights = stretch_weights(distances, float(distances[pointer]))

    positions[:, 0] += dx * weights
    positions[:, 1] += dy * weights
    if height_m:
        positions[:, 2] += float(height_m) * weights
    return EditResult.replace_span(
        track.points, start, end + 1, array_to_positions(positions), track.origin
    )


__all__ = ["MoveMode", "cap_vector", "move_region", "stretch_weights"]
